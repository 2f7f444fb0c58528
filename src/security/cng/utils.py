# -*- coding: utf-8 -*-
"""
RU: Вспомогательные функции: best‑effort зануление буферов, сравнение в
константное время, проверки типов и диапазонов для байтовых аргументов.
"""
from __future__ import annotations

import hmac
import logging
from typing import Final, Optional, Tuple, Union

from src.security.cng.core.exceptions import InvalidParameterError

_LOGGER: Final = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def zero_memory(buf: Optional[bytearray]) -> None:
    """
    Best-effort zeroization of mutable buffer.

    Args:
        buf: bytearray to wipe (None is silently ignored).

    Notes:
        - Only works on bytearray (mutable); bytes cannot be wiped.
        - Ограничения Python: сборщик мусора и копии в библиотеке движка
        означают, что истинное криптографическое стирание недостижимо.
    """
    if buf is None:
        return
    buf[:] = bytes(len(buf))


def secure_compare(a: BytesLike, b: BytesLike) -> bool:
    """
    Constant-time bytes comparison.

    Returns:
        True if sequences are equal, False otherwise.
    """
    return hmac.compare_digest(bytes(a), bytes(b))


def ensure_bytes(value: object, name: str) -> bytes:
    """
    Validate that ``value`` is bytes-like and return an immutable copy.

    Raises:
        TypeError: if value is not bytes, bytearray or memoryview.
    """
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes, got {type(value).__name__}")
    return bytes(value)


def slice_window(length: int, offset: int, count: Optional[int]) -> Tuple[int, int]:
    """
    Validate an ``(offset, count)`` window over a buffer of ``length`` bytes.

    Args:
        length: buffer length.
        offset: start index.
        count: number of bytes (None means "up to the end").

    Returns:
        ``(start, end)`` indices.

    Raises:
        InvalidParameterError: if the window falls outside the buffer.
    """
    if not isinstance(offset, int) or offset < 0 or offset > length:
        raise InvalidParameterError("offset", f"must be within 0..{length}, got {offset}")
    if count is None:
        count = length - offset
    if not isinstance(count, int) or count < 0:
        raise InvalidParameterError("count", f"must be >= 0, got {count}")
    if offset + count > length:
        raise InvalidParameterError(
            "count", f"offset + count exceeds buffer length ({offset} + {count} > {length})"
        )
    return offset, offset + count


__all__ = [
    "BytesLike",
    "zero_memory",
    "secure_compare",
    "ensure_bytes",
    "slice_window",
]
