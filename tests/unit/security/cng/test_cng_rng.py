"""Тесты для rng.py: SecureRandom, проверки здоровья, generate_key."""

from __future__ import annotations

import threading
from typing import List
from unittest.mock import patch

import pytest

from src.security.cng.core.exceptions import EngineError, InvalidParameterError
from src.security.cng.rng import STATIC_RNG, SecureRandom, generate_key


@pytest.fixture
def rng() -> SecureRandom:
    """Отдельный экземпляр генератора."""
    return SecureRandom()


class TestFill:
    def test_fills_in_place(self, rng: SecureRandom) -> None:
        buf = bytearray(64)
        rng.fill(buf)
        assert len(buf) == 64
        assert buf != bytearray(64)

    def test_empty_buffer_is_noop(self, rng: SecureRandom) -> None:
        buf = bytearray()
        rng.fill(buf)
        assert buf == bytearray()

    def test_larger_than_chunk(self, rng: SecureRandom) -> None:
        buf = bytearray(10000)
        rng.fill(buf)
        assert buf[:4096] != buf[4096:8192]

    def test_rejects_bytes(self, rng: SecureRandom) -> None:
        with pytest.raises(TypeError):
            rng.fill(b"immutable")  # type: ignore[arg-type]

    def test_rejects_oversized(self, rng: SecureRandom) -> None:
        with pytest.raises(InvalidParameterError):
            rng.fill(bytearray(10 * 1024 * 1024 + 1))

    def test_degenerate_output_detected(self, rng: SecureRandom) -> None:
        with patch.object(SecureRandom, "_mix", return_value=bytes(32)):
            with pytest.raises(EngineError):
                rng.fill(bytearray(32))


class TestGetBytes:
    def test_sizes(self, rng: SecureRandom) -> None:
        assert rng.get_bytes(0) == b""
        assert len(rng.get_bytes(48)) == 48

    def test_two_calls_differ(self, rng: SecureRandom) -> None:
        assert rng.get_bytes(16) != rng.get_bytes(16)

    def test_negative_size(self, rng: SecureRandom) -> None:
        with pytest.raises(InvalidParameterError):
            rng.get_bytes(-1)

    def test_generate_key_requires_positive(self, rng: SecureRandom) -> None:
        with pytest.raises(InvalidParameterError):
            rng.generate_key(0)

    def test_module_generate_key(self) -> None:
        assert len(generate_key(32)) == 32


def test_shared_instance_is_thread_safe() -> None:
    """Параллельные запросы к STATIC_RNG дают независимые результаты."""
    results: List[bytes] = []
    lock = threading.Lock()

    def worker() -> None:
        value = STATIC_RNG.get_bytes(32)
        with lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert len(set(results)) == 8
