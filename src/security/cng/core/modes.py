"""
Режимы сцепления, схемы паддинга и идентификаторы свойств движка.

Единственная таблица соответствия ChainingMode → строковый идентификатор
движка находится здесь. Строки совпадают с идентификаторами BCrypt
(``BCRYPT_CHAIN_MODE_*``) и НЕ должны меняться: от них зависит
совместимость с существующими провайдерами алгоритмов.

Example:
    >>> map_chaining_mode(ChainingMode.CBC)
    'ChainingModeCBC'
    >>> chaining_mode_from_name("ChainingModeECB")
    <ChainingMode.ECB: 'ecb'>
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping

from src.security.cng.core.exceptions import AlgorithmNotSupportedError

__all__ = [
    "ChainingMode",
    "PaddingMode",
    "PropertyName",
    "CHAINING_MODE_NAMES",
    "map_chaining_mode",
    "chaining_mode_from_name",
]


# ==============================================================================
# ENUM: CHAINING MODE
# ==============================================================================


class ChainingMode(str, Enum):
    """
    Режим сцепления блоков.

    Наследует str для корректной JSON сериализации (config.json).

    Example:
        >>> ChainingMode.from_str("cbc")
        <ChainingMode.CBC: 'cbc'>
        >>> ChainingMode.CBC.requires_iv
        True
    """

    CBC = "cbc"
    ECB = "ecb"
    CFB = "cfb"
    CTR = "ctr"
    OFB = "ofb"
    CTS = "cts"

    @property
    def requires_iv(self) -> bool:
        """Все режимы, кроме ECB, используют IV."""
        return self is not ChainingMode.ECB

    @property
    def requires_block_alignment(self) -> bool:
        """
        Режим принимает только целые блоки.

        CFB/CTR работают как потоковые: последний неполный блок
        допустим при PaddingMode.NONE.
        """
        return self in (ChainingMode.CBC, ChainingMode.ECB)

    @classmethod
    def from_str(cls, value: str) -> ChainingMode:
        """
        Парсинг из строки (case-insensitive).

        Raises:
            ValueError: Некорректное значение
        """
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(
                f"Неизвестный режим сцепления: {value}. "
                f"Допустимые значения: {[m.value for m in cls]}"
            ) from None


# ==============================================================================
# ENUM: PADDING MODE
# ==============================================================================


class PaddingMode(str, Enum):
    """
    Схема дополнения последнего блока.

    PKCS7, ANSI_X923 и ISO_10126 самоописываемы: при расшифровке
    паддинг проверяется и удаляется. ZEROS снять однозначно нельзя,
    NONE ничего не добавляет.
    """

    PKCS7 = "pkcs7"
    NONE = "none"
    ZEROS = "zeros"
    ANSI_X923 = "ansi_x923"
    ISO_10126 = "iso_10126"

    @property
    def is_removable(self) -> bool:
        return self in (PaddingMode.PKCS7, PaddingMode.ANSI_X923, PaddingMode.ISO_10126)

    @classmethod
    def from_str(cls, value: str) -> PaddingMode:
        """
        Парсинг из строки (case-insensitive).

        Raises:
            ValueError: Некорректное значение
        """
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(
                f"Неизвестная схема паддинга: {value}. "
                f"Допустимые значения: {[p.value for p in cls]}"
            ) from None


# ==============================================================================
# ENGINE PROPERTY NAMES
# ==============================================================================


class PropertyName:
    """Имена свойств дескриптора алгоритма (BCRYPT_* property strings)."""

    BLOCK_LENGTH: Final[str] = "BlockLength"
    CHAINING_MODE: Final[str] = "ChainingMode"
    HASH_LENGTH: Final[str] = "HashDigestLength"
    HASH_BLOCK_LENGTH: Final[str] = "HashBlockLength"
    KEY_LENGTHS: Final[str] = "KeyLengths"
    BLOCK_SIZE_LIST: Final[str] = "BlockSizeList"


# ==============================================================================
# CHAINING MODE MAPPING TABLE
# ==============================================================================

CHAINING_MODE_NAMES: Final[Mapping[ChainingMode, str]] = MappingProxyType(
    {
        ChainingMode.CBC: "ChainingModeCBC",
        ChainingMode.ECB: "ChainingModeECB",
        ChainingMode.CFB: "ChainingModeCFB",
        ChainingMode.CTR: "ChainingModeCTR",
    }
)

_MODES_BY_NAME: Final[Mapping[str, ChainingMode]] = MappingProxyType(
    {name: mode for mode, name in CHAINING_MODE_NAMES.items()}
)


def map_chaining_mode(mode: ChainingMode) -> str:
    """
    Получить идентификатор движка для режима сцепления.

    Args:
        mode: Режим сцепления

    Returns:
        Строковый идентификатор (например, "ChainingModeCBC")

    Raises:
        AlgorithmNotSupportedError: Режим не имеет идентификатора движка
            (OFB, CTS)
    """
    mode = ChainingMode(mode)
    try:
        return CHAINING_MODE_NAMES[mode]
    except KeyError:
        raise AlgorithmNotSupportedError(
            mode.name, "chaining mode has no engine identifier"
        ) from None


def chaining_mode_from_name(name: str) -> ChainingMode:
    """
    Обратное отображение: идентификатор движка → ChainingMode.

    Raises:
        AlgorithmNotSupportedError: Неизвестный идентификатор
    """
    try:
        return _MODES_BY_NAME[name]
    except KeyError:
        raise AlgorithmNotSupportedError(name, "unknown chaining mode identifier") from None
