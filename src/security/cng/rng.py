# -*- coding: utf-8 -*-
"""
RU: Источник криптографически стойкой случайности для генерации ключей и IV.

Два независимых источника ОС (os.urandom и secrets.token_bytes) смешиваются
через HKDF-SHA256; результат проходит быстрые проверки здоровья (RCT/APT).
Один экземпляр (STATIC_RNG) разделяется всеми адаптерами и безопасен для
одновременного использования из нескольких потоков.
"""
from __future__ import annotations

import logging
import os
import secrets
import threading
from collections import Counter
from typing import Final

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from src.security.cng.core.exceptions import EngineError, InvalidParameterError

_LOGGER: Final = logging.getLogger(__name__)

_MAX_RANDOM_BYTES: Final[int] = 10 * 1024 * 1024
# HKDF-SHA256 can expand to at most 255 * 32 bytes per derivation.
_HKDF_CHUNK: Final[int] = 4096
_HKDF_INFO: Final[bytes] = b"CNG-RNG-v1"
_RCT_MIN_N: Final[int] = 8
_APT_MIN_N: Final[int] = 32
_APT_MAX_PROPORTION: Final[float] = 0.80


class SecureRandom:
    """
    Thread-safe CSPRNG with dual-source mixing.

    Examples:
        >>> rng = SecureRandom()
        >>> buf = bytearray(16)
        >>> rng.fill(buf)
        >>> len(rng.get_bytes(32))
        32
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def fill(self, buffer: bytearray) -> None:
        """
        Fill ``buffer`` in place with random bytes.

        Raises:
            TypeError: if buffer is not a bytearray.
            InvalidParameterError: if buffer is larger than 10 MiB.
            EngineError: if the output fails a health check.
        """
        if not isinstance(buffer, bytearray):
            raise TypeError(f"buffer must be bytearray, got {type(buffer).__name__}")
        n = len(buffer)
        if n == 0:
            return
        if n > _MAX_RANDOM_BYTES:
            raise InvalidParameterError("buffer", "random request must be at most 10 MiB")

        with self._lock:
            offset = 0
            while offset < n:
                size = min(_HKDF_CHUNK, n - offset)
                buffer[offset : offset + size] = self._mix(size)
                offset += size

        _health_checks(buffer)
        _LOGGER.debug("Generated %d random bytes", n)

    def get_bytes(self, size: int) -> bytes:
        """Return ``size`` fresh random bytes."""
        if not isinstance(size, int) or size < 0:
            raise InvalidParameterError("size", f"must be a non-negative int, got {size!r}")
        buf = bytearray(size)
        self.fill(buf)
        return bytes(buf)

    def generate_key(self, size: int) -> bytes:
        """
        Generate key material of ``size`` bytes.

        Raises:
            InvalidParameterError: if size is not positive.
        """
        if not isinstance(size, int) or size <= 0:
            raise InvalidParameterError("size", f"key size must be positive, got {size!r}")
        return self.get_bytes(size)

    @staticmethod
    def _mix(n: int) -> bytes:
        src1 = os.urandom(n)
        src2 = secrets.token_bytes(n)
        ikm = bytes(a ^ b for a, b in zip(src1, src2))
        hkdf = HKDF(algorithm=hashes.SHA256(), length=n, salt=src2[:16], info=_HKDF_INFO)
        return hkdf.derive(ikm)


def _health_checks(data: bytearray) -> None:
    """
    Repetition Count Test (RCT) and Adaptive Proportion Test (APT) sanity checks.

    Raises:
        EngineError: if data fails basic entropy sanity checks.
    """
    n = len(data)
    if n >= _RCT_MIN_N and all(b == data[0] for b in data):
        raise EngineError("Degenerate RNG output (all bytes equal)")
    if n >= _APT_MIN_N:
        max_prop = max(Counter(data).values()) / float(n)
        if max_prop > _APT_MAX_PROPORTION:
            raise EngineError("RNG output fails adaptive proportion sanity check")


STATIC_RNG: Final[SecureRandom] = SecureRandom()


def generate_key(size: int) -> bytes:
    """Generate ``size`` bytes of key material from the shared source."""
    return STATIC_RNG.generate_key(size)


__all__ = [
    "SecureRandom",
    "STATIC_RNG",
    "generate_key",
]
