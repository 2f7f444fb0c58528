"""
Множества допустимых размеров ключей и блоков.

Размеры задаются в битах тройкой (min, max, skip), как в host-фреймворке:
допустим любой размер ``min + k * skip`` не больше ``max``. При
``skip == 0`` допустим единственный размер ``min``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

__all__ = ["KeySizes", "is_legal_size", "describe_sizes"]


@dataclass(frozen=True)
class KeySizes:
    """
    Диапазон допустимых размеров в битах.

    Attributes:
        min_size: Минимальный размер
        max_size: Максимальный размер
        skip_size: Шаг между допустимыми размерами

    Example:
        >>> aes_keys = KeySizes(128, 256, 64)
        >>> aes_keys.contains(192)
        True
        >>> aes_keys.contains(160)
        False
    """

    min_size: int
    max_size: int
    skip_size: int

    def __post_init__(self) -> None:
        """Validate range."""
        if self.min_size <= 0:
            raise ValueError("min_size must be positive")
        if self.max_size < self.min_size:
            raise ValueError("max_size must be >= min_size")
        if self.skip_size < 0:
            raise ValueError("skip_size must be >= 0")
        if self.skip_size == 0 and self.max_size != self.min_size:
            raise ValueError("skip_size 0 requires min_size == max_size")

    def contains(self, size_bits: int) -> bool:
        if size_bits < self.min_size or size_bits > self.max_size:
            return False
        if self.skip_size == 0:
            return size_bits == self.min_size
        return (size_bits - self.min_size) % self.skip_size == 0

    def sizes(self) -> Tuple[int, ...]:
        """All legal sizes in ascending order."""
        if self.skip_size == 0:
            return (self.min_size,)
        return tuple(range(self.min_size, self.max_size + 1, self.skip_size))


def is_legal_size(size_bits: int, legal_sizes: Iterable[KeySizes]) -> bool:
    """
    Check ``size_bits`` against a set of ranges.

    Args:
        size_bits: Size to check, in bits.
        legal_sizes: Ranges to check against.

    Returns:
        True if any range contains the size.
    """
    return any(r.contains(size_bits) for r in legal_sizes)


def describe_sizes(legal_sizes: Iterable[KeySizes]) -> str:
    """Human-readable list for error messages, e.g. ``"128, 192, 256"``."""
    values = sorted({s for r in legal_sizes for s in r.sizes()})
    return ", ".join(str(v) for v in values)
