"""
Криптографический движок и дескрипторы алгоритмов.

Движок говорит на словаре идентификаторов BCrypt (имена алгоритмов,
имена свойств, строки режимов сцепления, имя провайдера), а всю
арифметику делегирует библиотеке ``cryptography`` (OpenSSL backend).
Преобразования работают только через этот интерфейс и никогда не
обращаются к ``cryptography`` напрямую.

Поддерживаемые алгоритмы:
    Хеши: SHA1, SHA256, SHA384, SHA512 (обычные и для HMAC)
    Шифры: AES (CBC/ECB/CFB/CTR), Camellia (CBC/ECB/CFB)

Ресурсы:
    AlgorithmHandle — владеемый ресурс. close() идемпотентен, после
    закрытия любые операции с дескриптором и его контекстами дают
    ObjectDisposedError.

Example:
    >>> engine = CryptographyEngine()
    >>> with engine.open_algorithm("SHA384", PRIMITIVE_PROVIDER, hmac=True) as h:
    ...     ctx = engine.create_hash_context(h, b"key")
    ...     engine.process(ctx, b"message")
    ...     mac = engine.finish(ctx)
    >>> len(mac)
    48
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from cryptography.exceptions import AlreadyFinalized, UnsupportedAlgorithm
from cryptography.hazmat.decrepit.ciphers.algorithms import Camellia
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers import Cipher, CipherAlgorithm, algorithms, modes

from src.security.cng.config import PRIMITIVE_PROVIDER, Provider
from src.security.cng.core.exceptions import (
    AlgorithmNotSupportedError,
    EngineError,
    InvalidIVError,
    InvalidKeyError,
    InvalidKeySizeError,
    InvalidParameterError,
    ObjectDisposedError,
    TransformFinalizedError,
)
from src.security.cng.core.modes import (
    ChainingMode,
    PropertyName,
    chaining_mode_from_name,
    map_chaining_mode,
)
from src.security.cng.core.sizes import KeySizes, describe_sizes, is_legal_size

logger = logging.getLogger(__name__)

__all__ = [
    "AlgorithmHandle",
    "HashContext",
    "CipherContext",
    "CryptographyEngine",
    "DEFAULT_ENGINE",
    "SUPPORTED_PROVIDERS",
    "HASH_ALGORITHMS",
    "CIPHER_ALGORITHMS",
]


# ==============================================================================
# ALGORITHM TABLES
# ==============================================================================


@dataclass(frozen=True)
class _HashDescriptor:
    name: str
    factory: Callable[[], hashes.HashAlgorithm]
    digest_length: int  # bytes
    block_length: int  # bytes


@dataclass(frozen=True)
class _CipherDescriptor:
    name: str
    factory: Callable[[bytes], CipherAlgorithm]
    block_sizes: Tuple[KeySizes, ...]  # bits
    key_sizes: Tuple[KeySizes, ...]  # bits
    default_block_length: int  # bytes
    modes: FrozenSet[ChainingMode]


HASH_ALGORITHMS: Mapping[str, _HashDescriptor] = MappingProxyType(
    {
        "SHA1": _HashDescriptor("SHA1", hashes.SHA1, 20, 64),
        "SHA256": _HashDescriptor("SHA256", hashes.SHA256, 32, 64),
        "SHA384": _HashDescriptor("SHA384", hashes.SHA384, 48, 128),
        "SHA512": _HashDescriptor("SHA512", hashes.SHA512, 64, 128),
    }
)

CIPHER_ALGORITHMS: Mapping[str, _CipherDescriptor] = MappingProxyType(
    {
        "AES": _CipherDescriptor(
            "AES",
            algorithms.AES,
            block_sizes=(KeySizes(128, 128, 0),),
            key_sizes=(KeySizes(128, 256, 64),),
            default_block_length=16,
            modes=frozenset(
                {ChainingMode.CBC, ChainingMode.ECB, ChainingMode.CFB, ChainingMode.CTR}
            ),
        ),
        "Camellia": _CipherDescriptor(
            "Camellia",
            Camellia,
            block_sizes=(KeySizes(128, 128, 0),),
            key_sizes=(KeySizes(128, 256, 64),),
            default_block_length=16,
            modes=frozenset({ChainingMode.CBC, ChainingMode.ECB, ChainingMode.CFB}),
        ),
    }
)

SUPPORTED_PROVIDERS: FrozenSet[str] = frozenset({PRIMITIVE_PROVIDER.name})

_READ_ONLY_PROPERTIES: FrozenSet[str] = frozenset(
    {
        PropertyName.HASH_LENGTH,
        PropertyName.HASH_BLOCK_LENGTH,
        PropertyName.KEY_LENGTHS,
        PropertyName.BLOCK_SIZE_LIST,
    }
)


# ==============================================================================
# HANDLE AND CONTEXTS
# ==============================================================================


class AlgorithmHandle:
    """
    Открытый дескриптор алгоритма.

    Единственный владелец — объект, открывший дескриптор (или тот, кому
    он передан). Освобождается ровно один раз; повторный close() — no-op.

    Attributes:
        algorithm_name: Идентификатор алгоритма
        provider: Провайдер
        is_hmac: Открыт ли хеш для ключевого использования
    """

    def __init__(
        self,
        descriptor: Union[_HashDescriptor, _CipherDescriptor],
        provider: Provider,
        *,
        is_hmac: bool = False,
    ) -> None:
        self._descriptor = descriptor
        self.algorithm_name = descriptor.name
        self.provider = provider
        self.is_hmac = is_hmac
        self._properties: Dict[str, Any] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_cipher(self) -> bool:
        return isinstance(self._descriptor, _CipherDescriptor)

    def close(self) -> None:
        """Освободить дескриптор. Идемпотентно."""
        if self._closed:
            return
        self._closed = True
        self._properties.clear()
        logger.debug(f"Closed algorithm handle: {self.algorithm_name}")

    def __enter__(self) -> AlgorithmHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"AlgorithmHandle({self.algorithm_name!r}, {self.provider.name!r}, {state})"

    def _ensure_open(self) -> None:
        if self._closed:
            raise ObjectDisposedError("algorithm handle")


class HashContext:
    """Состояние хеширования, созданное движком. Не для прямого использования."""

    __slots__ = ("handle", "_impl", "finished")

    def __init__(self, handle: AlgorithmHandle, impl: Union[hashes.Hash, hmac.HMAC]) -> None:
        self.handle = handle
        self._impl = impl
        self.finished = False


class CipherContext:
    """Состояние шифрования, созданное движком. Не для прямого использования."""

    __slots__ = ("handle", "_impl", "encrypting", "finished")

    def __init__(self, handle: AlgorithmHandle, impl: Any, *, encrypting: bool) -> None:
        self.handle = handle
        self._impl = impl
        self.encrypting = encrypting
        self.finished = False


# ==============================================================================
# ENGINE
# ==============================================================================


class CryptographyEngine:
    """
    Движок на базе библиотеки ``cryptography``.

    Не хранит состояния между вызовами, поэтому один экземпляр можно
    разделять между потоками; потокобезопасность отдельных дескрипторов
    и контекстов НЕ гарантируется.
    """

    def open_algorithm(
        self, name: str, provider: Provider, *, hmac: bool = False
    ) -> AlgorithmHandle:
        """Открыть алгоритм ``name`` у провайдера ``provider``."""
        if provider is None:
            raise InvalidParameterError("provider", "must not be None")
        if not isinstance(provider, Provider):
            raise TypeError(f"provider must be Provider, got {type(provider).__name__}")
        if provider.name not in SUPPORTED_PROVIDERS:
            raise AlgorithmNotSupportedError(name, f"provider '{provider.name}' is not available")

        descriptor: Union[_HashDescriptor, _CipherDescriptor]
        if name in HASH_ALGORITHMS:
            descriptor = HASH_ALGORITHMS[name]
            handle = AlgorithmHandle(descriptor, provider, is_hmac=hmac)
            handle._properties[PropertyName.HASH_LENGTH] = descriptor.digest_length
            handle._properties[PropertyName.HASH_BLOCK_LENGTH] = descriptor.block_length
        elif name in CIPHER_ALGORITHMS:
            if hmac:
                raise InvalidParameterError("hmac", f"'{name}' is not a hash algorithm")
            descriptor = CIPHER_ALGORITHMS[name]
            handle = AlgorithmHandle(descriptor, provider)
            handle._properties[PropertyName.BLOCK_LENGTH] = descriptor.default_block_length
            handle._properties[PropertyName.CHAINING_MODE] = map_chaining_mode(ChainingMode.CBC)
            handle._properties[PropertyName.KEY_LENGTHS] = descriptor.key_sizes
            handle._properties[PropertyName.BLOCK_SIZE_LIST] = descriptor.block_sizes
        else:
            raise AlgorithmNotSupportedError(name, "unknown algorithm identifier")

        logger.debug(f"Opened algorithm handle: {name} (provider={provider.name}, hmac={hmac})")
        return handle

    def set_property(self, handle: AlgorithmHandle, name: str, value: Any) -> None:
        """
        Установить свойство дескриптора.

        Raises:
            InvalidParameterError: Неизвестное/только для чтения свойство
                или недопустимое значение
            AlgorithmNotSupportedError: Режим сцепления не поддерживается
        """
        handle._ensure_open()
        if name in _READ_ONLY_PROPERTIES:
            raise InvalidParameterError(name, "property is read-only")

        descriptor = handle._descriptor
        if not isinstance(descriptor, _CipherDescriptor):
            raise InvalidParameterError(name, f"not settable on hash algorithm {descriptor.name}")

        if name == PropertyName.BLOCK_LENGTH:
            if not isinstance(value, int) or not is_legal_size(value * 8, descriptor.block_sizes):
                raise InvalidParameterError(
                    name,
                    f"{value!r} bytes is not a legal block length "
                    f"(legal bits: {describe_sizes(descriptor.block_sizes)})",
                    algorithm=descriptor.name,
                )
        elif name == PropertyName.CHAINING_MODE:
            mode = chaining_mode_from_name(value)
            if mode not in descriptor.modes:
                raise AlgorithmNotSupportedError(
                    descriptor.name, f"chaining mode {value} is not available"
                )
        else:
            raise InvalidParameterError(name, "unknown property")

        handle._properties[name] = value

    def get_property(self, handle: AlgorithmHandle, name: str) -> Any:
        """Прочитать свойство дескриптора."""
        handle._ensure_open()
        try:
            return handle._properties[name]
        except KeyError:
            raise InvalidParameterError(
                name, f"unknown property for {handle.algorithm_name}"
            ) from None

    def create_hash_context(
        self, handle: AlgorithmHandle, key: Optional[bytes] = None
    ) -> HashContext:
        """
        Создать контекст хеширования.

        Для дескриптора, открытого с hmac=True, ключ обязателен.
        """
        handle._ensure_open()
        descriptor = handle._descriptor
        if not isinstance(descriptor, _HashDescriptor):
            raise InvalidParameterError("handle", f"{descriptor.name} is not a hash algorithm")

        if handle.is_hmac and not key:
            raise InvalidKeyError("HMAC requires a non-empty key", algorithm=descriptor.name)
        if not handle.is_hmac and key is not None:
            raise InvalidParameterError(
                "key", "handle was not opened for keyed hashing", algorithm=descriptor.name
            )

        impl: Union[hashes.Hash, hmac.HMAC]
        try:
            if handle.is_hmac:
                impl = hmac.HMAC(bytes(key), descriptor.factory())  # type: ignore[arg-type]
            else:
                impl = hashes.Hash(descriptor.factory())
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise EngineError("Failed to create hash context", algorithm=descriptor.name) from exc
        return HashContext(handle, impl)

    def create_cipher_context(
        self,
        handle: AlgorithmHandle,
        key: bytes,
        iv: Optional[bytes],
        *,
        encrypting: bool,
    ) -> CipherContext:
        """
        Создать контекст шифрования с ключом и IV.

        Raises:
            InvalidKeySizeError: Размер ключа недопустим
            InvalidIVError: IV отсутствует или неверной длины
            AlgorithmNotSupportedError: Комбинация не поддерживается backend'ом
        """
        handle._ensure_open()
        descriptor = handle._descriptor
        if not isinstance(descriptor, _CipherDescriptor):
            raise InvalidParameterError("handle", f"{descriptor.name} is not a cipher algorithm")

        if not key:
            raise InvalidKeyError("Cipher requires a non-empty key", algorithm=descriptor.name)
        if not is_legal_size(len(key) * 8, descriptor.key_sizes):
            raise InvalidKeySizeError(
                len(key) * 8,
                algorithm=descriptor.name,
                legal=describe_sizes(descriptor.key_sizes),
            )

        block_length = handle._properties[PropertyName.BLOCK_LENGTH]
        mode = chaining_mode_from_name(handle._properties[PropertyName.CHAINING_MODE])
        if mode.requires_iv:
            if iv is None:
                raise InvalidIVError(f"{mode.name} mode requires an IV", algorithm=descriptor.name)
            if len(iv) != block_length:
                raise InvalidIVError(
                    f"IV must be {block_length} bytes, got {len(iv)}", algorithm=descriptor.name
                )

        try:
            cipher = Cipher(descriptor.factory(bytes(key)), _build_mode(mode, iv))
            impl = cipher.encryptor() if encrypting else cipher.decryptor()
        except UnsupportedAlgorithm as exc:
            raise AlgorithmNotSupportedError(
                descriptor.name, f"backend does not support {mode.name}"
            ) from exc
        except ValueError as exc:
            raise EngineError("Failed to create cipher context", algorithm=descriptor.name) from exc

        direction = "encrypt" if encrypting else "decrypt"
        logger.debug(f"{descriptor.name}-{mode.name}: created {direction} context")
        return CipherContext(handle, impl, encrypting=encrypting)

    def process(self, context: Union[HashContext, CipherContext], data: bytes) -> bytes:
        """Обработать байты: хеш → b"", шифр → выходные байты."""
        self._ensure_usable(context)
        try:
            if isinstance(context, HashContext):
                context._impl.update(data)
                return b""
            return bytes(context._impl.update(data))
        except (ValueError, AlreadyFinalized) as exc:
            raise EngineError(
                "Engine failed to process data", algorithm=context.handle.algorithm_name
            ) from exc

    def finish(self, context: Union[HashContext, CipherContext]) -> bytes:
        """Завершить контекст. Повторный вызов — TransformFinalizedError."""
        self._ensure_usable(context)
        context.finished = True
        try:
            return bytes(context._impl.finalize())
        except (ValueError, AlreadyFinalized) as exc:
            raise EngineError(
                "Engine failed to finalize", algorithm=context.handle.algorithm_name
            ) from exc

    def close(self, handle: AlgorithmHandle) -> None:
        """Освободить дескриптор. Повторный вызов — no-op."""
        handle.close()

    @staticmethod
    def _ensure_usable(context: Union[HashContext, CipherContext]) -> None:
        context.handle._ensure_open()
        if context.finished:
            raise TransformFinalizedError(
                "Engine context already finalized", algorithm=context.handle.algorithm_name
            )


def _build_mode(mode: ChainingMode, iv: Optional[bytes]) -> modes.Mode:
    if mode is ChainingMode.ECB:
        return modes.ECB()
    assert iv is not None
    if mode is ChainingMode.CBC:
        return modes.CBC(bytes(iv))
    if mode is ChainingMode.CFB:
        return modes.CFB(bytes(iv))
    if mode is ChainingMode.CTR:
        return modes.CTR(bytes(iv))
    raise AlgorithmNotSupportedError(mode.name, "chaining mode has no engine implementation")


DEFAULT_ENGINE = CryptographyEngine()
