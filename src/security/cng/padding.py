"""
Схемы дополнения последнего блока.

PKCS7 и ANSI X9.23 делегируются ``cryptography.hazmat.primitives.padding``
(проверка паддинга там выполняется в константное время). ISO 10126 и
ZEROS реализованы здесь: в ``cryptography`` их нет.

Семантика на границе блока (как в host-фреймворке):
    - PKCS7 / ANSI_X923 / ISO_10126: всегда добавляется от 1 до
      block_size байт, для выровненных данных — целый блок
    - ZEROS: выровненные данные не дополняются
    - NONE: ничего не добавляется
"""

from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives import padding as _padding

from src.security.cng.core.exceptions import InvalidPaddingError, InvalidParameterError
from src.security.cng.core.modes import PaddingMode
from src.security.cng.core.protocols import SecureRandomProtocol
from src.security.cng.rng import STATIC_RNG

__all__ = ["pad", "unpad", "padded_length"]


def padded_length(length: int, padding: PaddingMode, block_size: int) -> int:
    """Длина данных после дополнения."""
    remainder = length % block_size
    if padding is PaddingMode.NONE:
        return length
    if padding is PaddingMode.ZEROS:
        return length if remainder == 0 else length + block_size - remainder
    return length + block_size - remainder


def pad(
    data: bytes,
    padding: PaddingMode,
    block_size: int,
    *,
    rng: Optional[SecureRandomProtocol] = None,
) -> bytes:
    """
    Дополнить данные до границы блока.

    Args:
        data: Хвост открытого текста
        padding: Схема паддинга
        block_size: Размер блока в байтах (1..255)
        rng: Источник случайности для ISO 10126 (по умолчанию STATIC_RNG)

    Returns:
        Дополненные данные (для NONE — без изменений)
    """
    _check_block_size(block_size)
    if padding is PaddingMode.NONE:
        return data

    pad_len = padded_length(len(data), padding, block_size) - len(data)

    if padding is PaddingMode.PKCS7:
        padder = _padding.PKCS7(block_size * 8).padder()
        return padder.update(data) + padder.finalize()
    if padding is PaddingMode.ANSI_X923:
        padder = _padding.ANSIX923(block_size * 8).padder()
        return padder.update(data) + padder.finalize()
    if padding is PaddingMode.ZEROS:
        return data + bytes(pad_len)
    if padding is PaddingMode.ISO_10126:
        filler = (rng or STATIC_RNG).get_bytes(pad_len - 1)
        return data + filler + bytes([pad_len])

    raise InvalidParameterError("padding", f"unknown padding mode {padding!r}")


def unpad(data: bytes, padding: PaddingMode, block_size: int) -> bytes:
    """
    Проверить и снять паддинг с расшифрованного хвоста.

    Args:
        data: Последний расшифрованный блок (длина кратна block_size)
        padding: Схема паддинга
        block_size: Размер блока в байтах

    Returns:
        Данные без паддинга. Для NONE и ZEROS данные возвращаются как есть:
        нулевое дополнение невозможно отличить от нулевых байт текста.

    Raises:
        InvalidPaddingError: Паддинг повреждён (возможна подмена)
    """
    _check_block_size(block_size)
    if not padding.is_removable:
        return data

    if not data or len(data) % block_size != 0:
        raise InvalidPaddingError(
            "Ciphertext too short to carry padding",
            context={"padding": padding.value},
        )

    try:
        if padding is PaddingMode.PKCS7:
            unpadder = _padding.PKCS7(block_size * 8).unpadder()
            return unpadder.update(data) + unpadder.finalize()
        if padding is PaddingMode.ANSI_X923:
            unpadder = _padding.ANSIX923(block_size * 8).unpadder()
            return unpadder.update(data) + unpadder.finalize()
    except ValueError as exc:
        raise InvalidPaddingError(
            "Padding is invalid and cannot be removed",
            context={"padding": padding.value},
        ) from exc

    # ISO 10126: only the count byte carries information.
    pad_len = data[-1]
    if pad_len < 1 or pad_len > block_size:
        raise InvalidPaddingError(
            "Padding is invalid and cannot be removed",
            context={"padding": padding.value},
        )
    return data[: len(data) - pad_len]


def _check_block_size(block_size: int) -> None:
    if not isinstance(block_size, int) or not 1 <= block_size <= 255:
        raise InvalidParameterError("block_size", f"must be 1..255 bytes, got {block_size!r}")
