"""
Протокольные интерфейсы CNG-подсистемы.

Определяет контракты внешних возможностей (движок, источник случайности)
и публичных преобразований (HMAC, симметричный шифр). Модуль использует
typing.Protocol — structural subtyping без явного наследования. Все
Protocol классы помечены @runtime_checkable для поддержки isinstance().

Example:
    >>> from src.security.cng.engine import CryptographyEngine
    >>> isinstance(CryptographyEngine(), EngineProtocol)
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.security.cng.config import Provider
    from src.security.cng.engine import AlgorithmHandle, CipherContext, HashContext

__all__ = [
    "EngineProtocol",
    "SecureRandomProtocol",
    "CryptoTransformProtocol",
    "KeyedHashProtocol",
]


# ==============================================================================
# ENGINE CAPABILITY
# ==============================================================================


@runtime_checkable
class EngineProtocol(Protocol):
    """
    Протокол криптографического движка.

    Движок — доверенный «чёрный ящик»: открывает алгоритмы, хранит их
    свойства, создаёт контексты хеширования и шифрования и обрабатывает
    байты. Вся арифметика выполняется им, а не преобразованиями.

    Lifecycle:
        open_algorithm → set_property* → create_*_context →
        process* → finish → close
    """

    def open_algorithm(
        self, name: str, provider: Provider, *, hmac: bool = False
    ) -> AlgorithmHandle:
        """
        Открыть алгоритм у провайдера.

        Args:
            name: Идентификатор алгоритма ("AES", "SHA384", ...)
            provider: Провайдер алгоритма
            hmac: Открыть хеш-алгоритм для ключевого использования

        Raises:
            AlgorithmNotSupportedError: Неизвестный алгоритм или провайдер
        """
        ...

    def set_property(self, handle: AlgorithmHandle, name: str, value: Any) -> None:
        """Установить свойство дескриптора (BlockLength, ChainingMode)."""
        ...

    def get_property(self, handle: AlgorithmHandle, name: str) -> Any:
        """Прочитать свойство дескриптора."""
        ...

    def create_hash_context(
        self, handle: AlgorithmHandle, key: Optional[bytes] = None
    ) -> HashContext:
        """Создать контекст хеширования (ключевой, если дескриптор открыт для HMAC)."""
        ...

    def create_cipher_context(
        self,
        handle: AlgorithmHandle,
        key: bytes,
        iv: Optional[bytes],
        *,
        encrypting: bool,
    ) -> CipherContext:
        """Создать контекст шифрования с ключом и IV."""
        ...

    def process(self, context: Any, data: bytes) -> bytes:
        """
        Обработать байты в контексте.

        Returns:
            Для шифра — выходные байты; для хеша — пустая строка
        """
        ...

    def finish(self, context: Any) -> bytes:
        """Завершить контекст; для хеша возвращает дайджест."""
        ...

    def close(self, handle: AlgorithmHandle) -> None:
        """Освободить дескриптор. Повторный вызов — no-op."""
        ...


# ==============================================================================
# SECURE RANDOM CAPABILITY
# ==============================================================================


@runtime_checkable
class SecureRandomProtocol(Protocol):
    """
    Источник криптографически стойких случайных байт.

    Реализации обязаны быть потокобезопасными: один экземпляр
    разделяется всеми преобразованиями и адаптерами.
    """

    def fill(self, buffer: bytearray) -> None:
        """Заполнить буфер случайными байтами целиком."""
        ...

    def get_bytes(self, size: int) -> bytes:
        """Вернуть size случайных байт."""
        ...


# ==============================================================================
# TRANSFORMS
# ==============================================================================


@runtime_checkable
class CryptoTransformProtocol(Protocol):
    """
    Потоковое блочное преобразование (аналог ICryptoTransform).

    Attributes:
        input_block_size: Размер входного блока в байтах
        output_block_size: Размер выходного блока в байтах
        can_transform_multiple_blocks: Можно ли подавать несколько блоков за раз
        can_reuse_transform: Можно ли использовать после финализации
    """

    @property
    def input_block_size(self) -> int: ...

    @property
    def output_block_size(self) -> int: ...

    @property
    def can_transform_multiple_blocks(self) -> bool: ...

    @property
    def can_reuse_transform(self) -> bool: ...

    def transform_block(self, data: bytes) -> bytes:
        """Преобразовать очередную порцию данных."""
        ...

    def transform_final_block(self, data: bytes = b"") -> bytes:
        """Преобразовать последнюю порцию и завершить поток."""
        ...

    def close(self) -> None:
        """Освободить ресурсы. Идемпотентно."""
        ...


@runtime_checkable
class KeyedHashProtocol(Protocol):
    """
    Инкрементальный ключевой хеш (HMAC).

    Attributes:
        hash_name: Имя хеш-алгоритма ("SHA384")
        hash_size: Размер дайджеста в битах
    """

    hash_name: str

    @property
    def hash_size(self) -> int: ...

    @property
    def key(self) -> bytes: ...

    def process_bytes(
        self, buffer: bytes, offset: int = 0, count: Optional[int] = None
    ) -> None:
        """Добавить байты buffer[offset:offset + count] к вычислению."""
        ...

    def finalize(self) -> bytes:
        """Вернуть дайджест и завершить вычисление."""
        ...

    def initialize(self) -> None:
        """Начать новое вычисление с тем же ключом."""
        ...
