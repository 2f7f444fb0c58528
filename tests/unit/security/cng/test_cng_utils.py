"""Тесты для utils.py."""

from __future__ import annotations

import pytest

from src.security.cng.core.exceptions import InvalidParameterError
from src.security.cng.utils import ensure_bytes, secure_compare, slice_window, zero_memory


def test_zero_memory() -> None:
    buf = bytearray(b"secret")
    zero_memory(buf)
    assert buf == bytearray(6)


def test_zero_memory_none() -> None:
    zero_memory(None)


def test_secure_compare() -> None:
    assert secure_compare(b"abc", bytearray(b"abc"))
    assert not secure_compare(b"abc", b"abd")
    assert not secure_compare(b"abc", b"abcd")


class TestEnsureBytes:
    def test_accepts_bytes_like(self) -> None:
        assert ensure_bytes(bytearray(b"x"), "data") == b"x"
        assert ensure_bytes(memoryview(b"yz"), "data") == b"yz"

    def test_rejects_str(self) -> None:
        with pytest.raises(TypeError, match="data"):
            ensure_bytes("text", "data")


class TestSliceWindow:
    def test_default_count(self) -> None:
        assert slice_window(10, 3, None) == (3, 10)

    def test_explicit(self) -> None:
        assert slice_window(10, 2, 5) == (2, 7)

    def test_empty_window_at_end(self) -> None:
        assert slice_window(10, 10, 0) == (10, 10)

    @pytest.mark.parametrize(
        "offset,count",
        [(-1, None), (11, None), (0, -1), (5, 6)],
    )
    def test_out_of_range(self, offset: int, count: int) -> None:
        with pytest.raises(InvalidParameterError):
            slice_window(10, offset, count)
