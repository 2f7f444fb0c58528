"""
HMAC поверх криптографического движка.

EngineHMAC — обобщённое инкрементальное вычисление HMAC: открывает
хеш-алгоритм движка для ключевого использования, передаёт ему данные
порциями и возвращает дайджест при финализации. Вся хеш-арифметика
выполняется движком.

Конкретные классы:
    - HMACSHA256: дайджест 32 байта, блок хеша 64 байта
    - HMACSHA384: дайджест 48 байт, блок хеша 128 байт
    - HMACSHA512: дайджест 64 байта, блок хеша 128 байт

Жизненный цикл:
    process_bytes* → finalize → (initialize → process_bytes* → finalize)*
    После finalize() новые данные принимаются только после initialize().

Example:
    >>> with HMACSHA384(b"secret key") as mac:
    ...     mac.process_bytes(b"part one, ")
    ...     mac.process_bytes(b"part two")
    ...     digest = mac.finalize()
    >>> len(digest)
    48

Thread Safety:
    Экземпляр НЕ потокобезопасен: каждый вызов изменяет состояние хеша.
    Независимые экземпляры можно использовать в разных потоках.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Dict, Final, Optional, Type

from src.security.cng.config import PRIMITIVE_PROVIDER, Provider
from src.security.cng.core.exceptions import (
    InvalidKeyError,
    InvalidParameterError,
    InvalidStateError,
    MacVerificationError,
    ObjectDisposedError,
    TransformFinalizedError,
)
from src.security.cng.core.modes import PropertyName
from src.security.cng.core.protocols import EngineProtocol, SecureRandomProtocol
from src.security.cng.engine import DEFAULT_ENGINE, HashContext
from src.security.cng.rng import STATIC_RNG
from src.security.cng.utils import ensure_bytes, secure_compare, slice_window, zero_memory

logger = logging.getLogger(__name__)

__all__ = [
    "CHUNK_SIZE",
    "EngineHMAC",
    "HMACSHA256",
    "HMACSHA384",
    "HMACSHA512",
    "HMAC_ALGORITHMS",
    "get_hmac_algorithm",
]

CHUNK_SIZE: Final[int] = 65536  # 64 KB


# ==============================================================================
# GENERIC HMAC TRANSFORM
# ==============================================================================


class EngineHMAC:
    """
    Инкрементальный HMAC поверх дескриптора хеш-алгоритма движка.

    Args:
        key: Ключ (непустой)
        provider: Провайдер алгоритма
        hash_name: Идентификатор хеша движка ("SHA384")
        block_size: Внутренний размер блока хеша в байтах
        engine: Движок (по умолчанию DEFAULT_ENGINE)

    Raises:
        InvalidKeyError: Ключ отсутствует или пуст
        InvalidParameterError: Провайдер отсутствует или block_size
            не совпадает с размером блока хеша у движка
        AlgorithmNotSupportedError: Движок не знает алгоритм/провайдера
    """

    def __init__(
        self,
        key: bytes,
        provider: Provider,
        hash_name: str,
        block_size: int,
        *,
        engine: Optional[EngineProtocol] = None,
    ) -> None:
        if key is None:
            raise InvalidKeyError("HMAC key must not be None", algorithm=hash_name)
        key_bytes = ensure_bytes(key, "key")
        if not key_bytes:
            raise InvalidKeyError("HMAC key must not be empty", algorithm=hash_name)
        if provider is None:
            raise InvalidParameterError("provider", "must not be None", algorithm=hash_name)

        self.hash_name = hash_name
        self._engine: EngineProtocol = engine or DEFAULT_ENGINE
        self._key = bytearray(key_bytes)
        self._hash_value: Optional[bytearray] = None
        self._in_progress = False
        self._finalized = False
        self._closed = False

        self._handle = self._engine.open_algorithm(hash_name, provider, hmac=True)
        try:
            engine_block = self._engine.get_property(self._handle, PropertyName.HASH_BLOCK_LENGTH)
            if block_size != engine_block:
                raise InvalidParameterError(
                    "block_size",
                    f"{hash_name} block length is {engine_block} bytes, got {block_size}",
                    algorithm=hash_name,
                )
            self._block_size = block_size
            self._hash_size = self._engine.get_property(self._handle, PropertyName.HASH_LENGTH) * 8
            self._context: Optional[HashContext] = self._engine.create_hash_context(
                self._handle, bytes(self._key)
            )
        except BaseException:
            self._engine.close(self._handle)
            zero_memory(self._key)
            self._closed = True
            raise

        logger.debug(f"HMAC-{hash_name}: transform created ({self._hash_size}-bit digest)")

    # --------------------------------------------------------------------------
    # Capabilities
    # --------------------------------------------------------------------------

    @property
    def hash_size(self) -> int:
        """Размер дайджеста в битах (384 для SHA-384)."""
        return self._hash_size

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def input_block_size(self) -> int:
        return self._block_size

    @property
    def output_block_size(self) -> int:
        return self._block_size

    @property
    def can_reuse_transform(self) -> bool:
        return True

    @property
    def can_transform_multiple_blocks(self) -> bool:
        return True

    @property
    def closed(self) -> bool:
        return self._closed

    # --------------------------------------------------------------------------
    # Key and result
    # --------------------------------------------------------------------------

    @property
    def key(self) -> bytes:
        """Копия текущего ключа."""
        self._ensure_open()
        return bytes(self._key)

    @key.setter
    def key(self, value: bytes) -> None:
        """
        Сменить ключ.

        Незавершённое вычисление отбрасывается: новый ключ всегда
        начинает новое вычисление. Дайджест, полученный со старым ключом,
        стирается.
        """
        self._ensure_open()
        if value is None:
            raise InvalidKeyError("HMAC key must not be None", algorithm=self.hash_name)
        new_key = ensure_bytes(value, "key")
        if not new_key:
            raise InvalidKeyError("HMAC key must not be empty", algorithm=self.hash_name)
        if self._in_progress:
            logger.debug(f"HMAC-{self.hash_name}: re-key discards in-progress computation")
        zero_memory(self._hash_value)
        self._hash_value = None
        zero_memory(self._key)
        self._key = bytearray(new_key)
        self.initialize()

    @property
    def hash(self) -> bytes:
        """
        Дайджест последнего завершённого вычисления.

        Raises:
            InvalidStateError: Вычисление ещё не завершено
        """
        self._ensure_open()
        if self._hash_value is None or self._in_progress:
            raise InvalidStateError(
                "Hash must be finalized before the hash value is retrieved",
                algorithm=self.hash_name,
            )
        return bytes(self._hash_value)

    # --------------------------------------------------------------------------
    # Streaming
    # --------------------------------------------------------------------------

    def initialize(self) -> None:
        """Сбросить состояние и начать новое вычисление с тем же ключом."""
        self._ensure_open()
        self._context = self._engine.create_hash_context(self._handle, bytes(self._key))
        self._in_progress = False
        self._finalized = False

    def process_bytes(
        self, buffer: bytes, offset: int = 0, count: Optional[int] = None
    ) -> None:
        """
        Добавить ``buffer[offset:offset + count]`` к вычислению.

        Raises:
            TypeError: buffer не bytes-like
            InvalidParameterError: Окно выходит за пределы буфера
            TransformFinalizedError: Вызов после finalize() без initialize()
            ObjectDisposedError: Объект закрыт
        """
        self._ensure_open()
        if not isinstance(buffer, (bytes, bytearray, memoryview)):
            raise TypeError(f"buffer must be bytes, got {type(buffer).__name__}")
        start, end = slice_window(len(buffer), offset, count)
        if self._finalized:
            raise TransformFinalizedError(
                "HMAC already finalized; call initialize() to start a new computation",
                algorithm=self.hash_name,
            )
        assert self._context is not None
        self._engine.process(self._context, bytes(memoryview(buffer)[start:end]))
        self._in_progress = True

    def update(self, data: bytes) -> None:
        """Добавить весь буфер к вычислению."""
        self.process_bytes(data)

    def finalize(self) -> bytes:
        """
        Завершить вычисление и вернуть дайджест (hash_size // 8 байт).

        Raises:
            TransformFinalizedError: Уже финализировано
        """
        self._ensure_open()
        if self._finalized:
            raise TransformFinalizedError(
                "HMAC already finalized; call initialize() to start a new computation",
                algorithm=self.hash_name,
            )
        assert self._context is not None
        digest = self._engine.finish(self._context)
        self._context = None
        self._finalized = True
        self._in_progress = False
        self._hash_value = bytearray(digest)
        return digest

    def transform_block(self, data: bytes) -> bytes:
        """Хешировать порцию и вернуть её без изменений."""
        self.process_bytes(data)
        return bytes(data)

    def transform_final_block(self, data: bytes = b"") -> bytes:
        """Хешировать последнюю порцию, завершить вычисление; дайджест — в .hash."""
        self.process_bytes(data)
        self.finalize()
        return bytes(data)

    # --------------------------------------------------------------------------
    # One-shot helpers
    # --------------------------------------------------------------------------

    def compute_hash(self, data: bytes) -> bytes:
        """Вычислить HMAC от данных целиком (с чистого состояния)."""
        self.initialize()
        self.process_bytes(data)
        return self.finalize()

    def compute_hash_stream(self, stream: BinaryIO) -> bytes:
        """
        Вычислить HMAC от потока (для больших файлов).

        Читает данные чанками по CHUNK_SIZE (64 KB).

        Raises:
            TypeError: Если stream не является читаемым бинарным объектом
        """
        if not hasattr(stream, "read"):
            raise TypeError("stream must be a binary readable object")

        self.initialize()
        bytes_processed = 0
        while chunk := stream.read(CHUNK_SIZE):
            self.process_bytes(chunk)
            bytes_processed += len(chunk)

        logger.debug(f"HMAC-{self.hash_name}: hashed {bytes_processed} bytes from stream")
        return self.finalize()

    def verify(self, data: bytes, expected: bytes) -> None:
        """
        Проверить MAC в константное время.

        Raises:
            MacVerificationError: MAC не совпадает
        """
        expected = ensure_bytes(expected, "expected")
        actual = self.compute_hash(data)
        if not secure_compare(actual, expected):
            raise MacVerificationError(
                "MAC verification failed", algorithm=f"HMAC-{self.hash_name}"
            )

    # --------------------------------------------------------------------------
    # Disposal
    # --------------------------------------------------------------------------

    def close(self) -> None:
        """Обнулить ключ и освободить дескриптор. Идемпотентно."""
        if self._closed:
            return
        self._closed = True
        self._context = None
        try:
            zero_memory(self._key)
            zero_memory(self._hash_value)
        finally:
            self._engine.close(self._handle)

    def __enter__(self) -> EngineHMAC:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(hash_name={self.hash_name!r}, closed={self._closed})"

    def _ensure_open(self) -> None:
        if self._closed:
            raise ObjectDisposedError(f"HMAC-{self.hash_name} transform")


# ==============================================================================
# CONCRETE ALGORITHMS
# ==============================================================================


class _FixedHMAC(EngineHMAC):
    """HMAC с фиксированным хеш-алгоритмом."""

    HASH_NAME: str
    BLOCK_SIZE: int

    def __init__(
        self,
        key: bytes,
        provider: Provider = PRIMITIVE_PROVIDER,
        *,
        engine: Optional[EngineProtocol] = None,
    ) -> None:
        super().__init__(key, provider, self.HASH_NAME, self.BLOCK_SIZE, engine=engine)

    @classmethod
    def generate(
        cls,
        provider: Provider = PRIMITIVE_PROVIDER,
        *,
        engine: Optional[EngineProtocol] = None,
        rng: Optional[SecureRandomProtocol] = None,
    ) -> EngineHMAC:
        """Создать экземпляр со случайным ключом длиной BLOCK_SIZE байт."""
        key = (rng or STATIC_RNG).get_bytes(cls.BLOCK_SIZE)
        return cls(key, provider, engine=engine)


class HMACSHA256(_FixedHMAC):
    """HMAC-SHA256: дайджест 32 байта, блок 64 байта."""

    HASH_NAME = "SHA256"
    BLOCK_SIZE = 64


class HMACSHA384(_FixedHMAC):
    """
    HMAC-SHA384.

    Security Properties:
        - Digest: 384 bits (48 bytes)
        - Hash block: 1024 bits (128 bytes)

    Эти размеры фиксированы: от них зависит совместимость с ранее
    вычисленными MAC.
    """

    HASH_NAME = "SHA384"
    BLOCK_SIZE = 128


class HMACSHA512(_FixedHMAC):
    """HMAC-SHA512: дайджест 64 байта, блок 128 байт."""

    HASH_NAME = "SHA512"
    BLOCK_SIZE = 128


HMAC_ALGORITHMS: Dict[str, Type[_FixedHMAC]] = {
    "hmac-sha256": HMACSHA256,
    "hmac-sha384": HMACSHA384,
    "hmac-sha512": HMACSHA512,
}


def get_hmac_algorithm(
    algorithm_id: str,
    key: bytes,
    provider: Provider = PRIMITIVE_PROVIDER,
) -> EngineHMAC:
    """
    Получить HMAC-преобразование по идентификатору.

    Args:
        algorithm_id: "hmac-sha256", "hmac-sha384" или "hmac-sha512"
        key: Ключ
        provider: Провайдер

    Raises:
        KeyError: Если алгоритм не найден
    """
    if algorithm_id not in HMAC_ALGORITHMS:
        available = ", ".join(sorted(HMAC_ALGORITHMS))
        raise KeyError(f"HMAC algorithm '{algorithm_id}' not found. Available: {available}")
    return HMAC_ALGORITHMS[algorithm_id](key, provider)
