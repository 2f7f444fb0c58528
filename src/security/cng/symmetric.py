"""
Symmetric block ciphers on top of the cryptographic engine.

Two layers:

**SymmetricAlgorithm** (adapter):
    Configuration holder (block size, key size, legal sizes, chaining mode,
    padding) and factory for cipher transforms in either direction. Owns
    key/IV generation.

**SymmetricCryptoTransform** (transform):
    Streams data through one engine cipher context. Only whole blocks are
    handed to the engine; a trailing partial block is buffered until more
    data arrives or the stream is finalized. Padding is added on encryption
    and checked/removed on decryption in transform_final_block().

Concrete algorithms:
    - AES: block 128 bits, keys 128/192/256 bits
    - Camellia: block 128 bits, keys 128/192/256 bits

Example:
    >>> aes = AES()
    >>> aes.mode = ChainingMode.CBC
    >>> encryptor = aes.create_encryptor()
    >>> ct = encryptor.transform_block(b"first part, ")
    >>> ct += encryptor.transform_final_block(b"second part")
    >>> aes.decrypt(ct)
    b'first part, second part'

Security Guidelines:
    ⚠️  None of these modes authenticate data. Pair with HMAC (encrypt-then-MAC).
    ⛔ ECB leaks plaintext patterns; use only for interoperability.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Type

from src.security.cng.config import DEFAULT_SYMMETRIC_CONFIG, Provider, SymmetricConfig
from src.security.cng.core.exceptions import (
    BlockAlignmentError,
    InvalidIVError,
    InvalidKeyError,
    InvalidKeySizeError,
    InvalidParameterError,
    ObjectDisposedError,
    TransformFinalizedError,
)
from src.security.cng.core.modes import (
    ChainingMode,
    PaddingMode,
    PropertyName,
    chaining_mode_from_name,
    map_chaining_mode,
)
from src.security.cng.core.protocols import EngineProtocol, SecureRandomProtocol
from src.security.cng.core.sizes import KeySizes, describe_sizes, is_legal_size
from src.security.cng.engine import DEFAULT_ENGINE, AlgorithmHandle, CipherContext
from src.security.cng.padding import pad, unpad
from src.security.cng.rng import STATIC_RNG
from src.security.cng.utils import ensure_bytes, zero_memory

logger = logging.getLogger(__name__)

__all__ = [
    "SymmetricCryptoTransform",
    "SymmetricAlgorithm",
    "AES",
    "Camellia",
    "ALGORITHMS",
    "get_algorithm",
]

# Default-argument marker for "use the adapter's current key / IV".
_CURRENT: Any = object()


# ==============================================================================
# TRANSFORM
# ==============================================================================


class SymmetricCryptoTransform:
    """
    Streaming encryption or decryption over one engine cipher context.

    The transform takes ownership of ``handle``: it is released when the
    stream is finalized, when close() is called, or immediately if
    construction fails.

    States:
        created/streaming → transform_block() any number of times
        finalized         → transform_final_block() ran; every further call
                            raises TransformFinalizedError

    Args:
        handle: Engine handle configured with block length and chaining mode
        key: Key material
        iv: Initialization vector (block-size bytes; may be None for ECB)
        padding: Padding scheme
        encrypting: Direction, fixed for the lifetime of the transform
        engine: Engine that opened ``handle``
        rng: Random source for ISO 10126 padding

    Raises:
        InvalidKeyError: Key missing or empty
        InvalidKeySizeError: Key size not legal for the algorithm
        InvalidIVError: IV missing (non-ECB) or of the wrong length
    """

    def __init__(
        self,
        handle: AlgorithmHandle,
        key: bytes,
        iv: Optional[bytes],
        padding: PaddingMode,
        encrypting: bool,
        *,
        engine: Optional[EngineProtocol] = None,
        rng: Optional[SecureRandomProtocol] = None,
    ) -> None:
        self._engine: EngineProtocol = engine or DEFAULT_ENGINE
        self._handle = handle
        self._rng = rng or STATIC_RNG
        self._encrypting = bool(encrypting)
        self._pending = bytearray()
        self._finalized = False
        self._closed = False

        try:
            if key is None:
                raise InvalidKeyError("Key must not be None", algorithm=handle.algorithm_name)
            key_bytes = ensure_bytes(key, "key")
            if not key_bytes:
                raise InvalidKeyError("Key must not be empty", algorithm=handle.algorithm_name)
            self._padding = PaddingMode(padding)

            self._block_size: int = self._engine.get_property(handle, PropertyName.BLOCK_LENGTH)
            self._mode = chaining_mode_from_name(
                self._engine.get_property(handle, PropertyName.CHAINING_MODE)
            )

            iv_bytes: Optional[bytes] = None
            if iv is not None:
                iv_bytes = ensure_bytes(iv, "iv")
                if len(iv_bytes) != self._block_size:
                    raise InvalidIVError(
                        f"IV must be {self._block_size} bytes, got {len(iv_bytes)}",
                        algorithm=handle.algorithm_name,
                    )
            elif self._mode.requires_iv:
                raise InvalidIVError(
                    f"{self._mode.name} mode requires an IV", algorithm=handle.algorithm_name
                )

            self._context: CipherContext = self._engine.create_cipher_context(
                handle,
                key_bytes,
                iv_bytes if self._mode.requires_iv else None,
                encrypting=self._encrypting,
            )
        except BaseException:
            self._closed = True
            self._engine.close(handle)
            raise

        # Decryption must hold back the last full block until finalize so the
        # padding can be checked and stripped.
        self._withhold_last_block = not self._encrypting and self._padding.is_removable

    # --------------------------------------------------------------------------
    # Capabilities
    # --------------------------------------------------------------------------

    @property
    def input_block_size(self) -> int:
        return self._block_size

    @property
    def output_block_size(self) -> int:
        return self._block_size

    @property
    def can_transform_multiple_blocks(self) -> bool:
        return True

    @property
    def can_reuse_transform(self) -> bool:
        return False

    @property
    def encrypting(self) -> bool:
        return self._encrypting

    @property
    def mode(self) -> ChainingMode:
        return self._mode

    @property
    def padding(self) -> PaddingMode:
        return self._padding

    @property
    def algorithm_name(self) -> str:
        return self._handle.algorithm_name

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def closed(self) -> bool:
        return self._closed

    # --------------------------------------------------------------------------
    # Streaming
    # --------------------------------------------------------------------------

    def transform_block(self, data: bytes) -> bytes:
        """
        Transform the next chunk of the stream.

        Input need not be block-aligned: the unaligned tail (and, when
        decrypting with a removable padding, the last full block) is kept
        back and emitted by a later call.

        Returns:
            Output for every whole block released to the engine
            (possibly empty)
        """
        self._ensure_active()
        chunk = ensure_bytes(data, "data")

        buffered = self._pending + chunk
        ready = len(buffered) - len(buffered) % self._block_size
        if self._withhold_last_block and ready == len(buffered) and ready > 0:
            ready -= self._block_size

        output = b""
        if ready:
            output = self._engine.process(self._context, bytes(buffered[:ready]))

        zero_memory(self._pending)
        self._pending = bytearray(buffered[ready:])
        zero_memory(buffered)
        return output

    def transform_final_block(self, data: bytes = b"") -> bytes:
        """
        Transform the last chunk, apply or remove padding, and end the stream.

        The engine handle is released whatever the outcome.

        Raises:
            BlockAlignmentError: Unaligned data in a mode that requires whole
                blocks (CBC/ECB) without padding, or unaligned ciphertext
            InvalidPaddingError: Decrypted padding is corrupt (possible tampering)
        """
        self._ensure_active()
        chunk = ensure_bytes(data, "data")

        try:
            final = bytes(self._pending) + chunk
            if self._encrypting:
                return self._encrypt_final(final)
            return self._decrypt_final(final)
        finally:
            self._finalized = True
            self.close()

    def _encrypt_final(self, final: bytes) -> bytes:
        bs = self._block_size
        if self._padding is PaddingMode.NONE:
            if len(final) % bs and self._mode.requires_block_alignment:
                raise BlockAlignmentError(
                    "Length of the data to encrypt is invalid",
                    algorithm=self.algorithm_name,
                    context={"block_size": bs, "remainder": len(final) % bs},
                )
            padded = final
        else:
            padded = pad(final, self._padding, bs, rng=self._rng)

        output = self._engine.process(self._context, padded) if padded else b""
        return output + self._engine.finish(self._context)

    def _decrypt_final(self, final: bytes) -> bytes:
        bs = self._block_size
        if len(final) % bs and self._mode.requires_block_alignment:
            raise BlockAlignmentError(
                "Length of the data to decrypt is invalid",
                algorithm=self.algorithm_name,
                context={"block_size": bs, "remainder": len(final) % bs},
            )

        decrypted = self._engine.process(self._context, final) if final else b""
        decrypted += self._engine.finish(self._context)
        return unpad(decrypted, self._padding, bs)

    # --------------------------------------------------------------------------
    # Disposal
    # --------------------------------------------------------------------------

    def close(self) -> None:
        """Release the engine handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            zero_memory(self._pending)
        finally:
            self._engine.close(self._handle)

    def __enter__(self) -> SymmetricCryptoTransform:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        direction = "encrypt" if self._encrypting else "decrypt"
        return (
            f"SymmetricCryptoTransform({self.algorithm_name}-{self._mode.name}, "
            f"{self._padding.name}, {direction})"
        )

    def _ensure_active(self) -> None:
        if self._finalized:
            raise TransformFinalizedError(
                "Transform already finalized; create a new transform",
                algorithm=self.algorithm_name,
            )
        if self._closed:
            raise ObjectDisposedError("symmetric transform")


# ==============================================================================
# ADAPTER
# ==============================================================================


class SymmetricAlgorithm:
    """
    Configuration holder and transform factory for one block cipher.

    Args:
        algorithm_name: Engine algorithm identifier ("AES")
        legal_block_sizes: Legal block sizes in bits
        legal_key_sizes: Legal key sizes in bits
        block_size: Initial block size in bits
        key_size: Initial key size in bits
        provider: Algorithm provider (default: config.provider)
        config: Default mode/padding/provider
        engine: Engine (default DEFAULT_ENGINE)
        rng: Random source for keys and IVs (default STATIC_RNG)
    """

    def __init__(
        self,
        algorithm_name: str,
        legal_block_sizes: Tuple[KeySizes, ...],
        legal_key_sizes: Tuple[KeySizes, ...],
        *,
        block_size: int,
        key_size: int,
        provider: Optional[Provider] = None,
        config: Optional[SymmetricConfig] = None,
        engine: Optional[EngineProtocol] = None,
        rng: Optional[SecureRandomProtocol] = None,
    ) -> None:
        config = config or DEFAULT_SYMMETRIC_CONFIG

        self.algorithm_name = algorithm_name
        self._legal_block_sizes = tuple(legal_block_sizes)
        self._legal_key_sizes = tuple(legal_key_sizes)
        self._provider = provider or config.provider
        self._engine: EngineProtocol = engine or DEFAULT_ENGINE
        self._rng: SecureRandomProtocol = rng or STATIC_RNG

        self._key: Optional[bytearray] = None
        self._iv: Optional[bytearray] = None
        self._block_size = self._check_block_size(block_size)
        self._key_size = self._check_key_size(key_size)
        self._mode = ChainingMode.CBC
        self._padding = PaddingMode.PKCS7
        self.mode = config.mode
        self.padding = config.padding

    # --------------------------------------------------------------------------
    # Sizes
    # --------------------------------------------------------------------------

    @property
    def legal_block_sizes(self) -> Tuple[KeySizes, ...]:
        return self._legal_block_sizes

    @property
    def legal_key_sizes(self) -> Tuple[KeySizes, ...]:
        return self._legal_key_sizes

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def block_size(self) -> int:
        """Block size in bits."""
        return self._block_size

    @block_size.setter
    def block_size(self, value: int) -> None:
        """Changing the block size discards the current IV."""
        value = self._check_block_size(value)
        if value != self._block_size:
            zero_memory(self._iv)
            self._iv = None
            self._block_size = value

    @property
    def key_size(self) -> int:
        """Key size in bits."""
        return self._key_size

    @key_size.setter
    def key_size(self, value: int) -> None:
        """Changing the key size discards the current key."""
        value = self._check_key_size(value)
        if value != self._key_size:
            zero_memory(self._key)
            self._key = None
            self._key_size = value

    def valid_key_size(self, bit_length: int) -> bool:
        return is_legal_size(bit_length, self._legal_key_sizes)

    # --------------------------------------------------------------------------
    # Key / IV
    # --------------------------------------------------------------------------

    @property
    def key(self) -> bytes:
        """Current key; generated on first access if none is set."""
        if self._key is None:
            self.generate_key()
        assert self._key is not None
        return bytes(self._key)

    @key.setter
    def key(self, value: bytes) -> None:
        if value is None:
            raise InvalidKeyError("Key must not be None", algorithm=self.algorithm_name)
        key = ensure_bytes(value, "key")
        if not self.valid_key_size(len(key) * 8):
            raise InvalidKeySizeError(
                len(key) * 8,
                algorithm=self.algorithm_name,
                legal=describe_sizes(self._legal_key_sizes),
            )
        zero_memory(self._key)
        self._key = bytearray(key)
        self._key_size = len(key) * 8

    @property
    def iv(self) -> bytes:
        """Current IV; generated on first access if none is set."""
        if self._iv is None:
            self.generate_iv()
        assert self._iv is not None
        return bytes(self._iv)

    @iv.setter
    def iv(self, value: bytes) -> None:
        if value is None:
            raise InvalidIVError("IV must not be None", algorithm=self.algorithm_name)
        iv = ensure_bytes(value, "iv")
        if len(iv) != self._block_size // 8:
            raise InvalidIVError(
                f"IV must be {self._block_size // 8} bytes, got {len(iv)}",
                algorithm=self.algorithm_name,
            )
        zero_memory(self._iv)
        self._iv = bytearray(iv)

    def generate_key(self) -> None:
        """Replace the current key with key_size random bits."""
        buf = bytearray(self._key_size // 8)
        self._rng.fill(buf)
        zero_memory(self._key)
        self._key = buf

    def generate_iv(self) -> None:
        """Replace the current IV with block_size random bits."""
        buf = bytearray(self._block_size // 8)
        self._rng.fill(buf)
        zero_memory(self._iv)
        self._iv = buf

    # --------------------------------------------------------------------------
    # Mode / padding
    # --------------------------------------------------------------------------

    @property
    def mode(self) -> ChainingMode:
        return self._mode

    @mode.setter
    def mode(self, value: ChainingMode) -> None:
        try:
            mode = value if isinstance(value, ChainingMode) else ChainingMode.from_str(value)
        except (ValueError, AttributeError):
            raise InvalidParameterError(
                "mode", f"unknown chaining mode {value!r}", algorithm=self.algorithm_name
            ) from None
        map_chaining_mode(mode)  # raises AlgorithmNotSupportedError for OFB/CTS
        if mode is ChainingMode.ECB:
            logger.warning(f"{self.algorithm_name}: ECB mode leaks plaintext patterns")
        self._mode = mode

    @property
    def padding(self) -> PaddingMode:
        return self._padding

    @padding.setter
    def padding(self, value: PaddingMode) -> None:
        try:
            self._padding = (
                value if isinstance(value, PaddingMode) else PaddingMode.from_str(value)
            )
        except (ValueError, AttributeError):
            raise InvalidParameterError(
                "padding", f"unknown padding mode {value!r}", algorithm=self.algorithm_name
            ) from None

    # --------------------------------------------------------------------------
    # Transform factory
    # --------------------------------------------------------------------------

    def create_encryptor(self, key: Any = _CURRENT, iv: Any = _CURRENT) -> SymmetricCryptoTransform:
        """
        Create an encrypting transform.

        Args:
            key: Key; omitted → the adapter's current key. None → InvalidKeyError.
            iv: IV; omitted → the adapter's current IV. None is accepted only
                for ECB.
        """
        return self._create_transform(key, iv, encrypting=True)

    def create_decryptor(self, key: Any = _CURRENT, iv: Any = _CURRENT) -> SymmetricCryptoTransform:
        """Create a decrypting transform. Arguments as in create_encryptor()."""
        return self._create_transform(key, iv, encrypting=False)

    def encrypt(self, plaintext: bytes) -> bytes:
        """One-shot encryption with the current key and IV."""
        with self.create_encryptor() as transform:
            return transform.transform_final_block(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """One-shot decryption with the current key and IV."""
        with self.create_decryptor() as transform:
            return transform.transform_final_block(ciphertext)

    def _create_transform(self, key: Any, iv: Any, *, encrypting: bool) -> SymmetricCryptoTransform:
        if key is _CURRENT:
            key = self.key
        if iv is _CURRENT:
            iv = self.iv if self._mode.requires_iv else None

        if key is None:
            raise InvalidKeyError("Key must not be None", algorithm=self.algorithm_name)
        key = ensure_bytes(key, "key")
        if not key:
            raise InvalidKeyError("Key must not be empty", algorithm=self.algorithm_name)

        # The block size may have changed since key/IV were chosen: check both
        # against the current configuration before touching the engine.
        if not self.valid_key_size(len(key) * 8):
            raise InvalidKeySizeError(
                len(key) * 8,
                algorithm=self.algorithm_name,
                legal=describe_sizes(self._legal_key_sizes),
            )
        if iv is None:
            if self._mode.requires_iv:
                raise InvalidIVError(
                    f"{self._mode.name} mode requires an IV",
                    algorithm=self.algorithm_name,
                )
        else:
            iv = ensure_bytes(iv, "iv")
            if len(iv) != self._block_size // 8:
                raise InvalidIVError(
                    f"IV must be {self._block_size // 8} bytes for block size "
                    f"{self._block_size}, got {len(iv)}",
                    algorithm=self.algorithm_name,
                )

        handle = self._setup_algorithm()
        transform = SymmetricCryptoTransform(
            handle,
            key,
            iv,
            self._padding,
            encrypting,
            engine=self._engine,
            rng=self._rng,
        )
        logger.debug(f"Created {transform!r}")
        return transform

    def _setup_algorithm(self) -> AlgorithmHandle:
        """Open an engine handle configured with the current block size and mode."""
        handle = self._engine.open_algorithm(self.algorithm_name, self._provider)
        try:
            block_length = self._block_size // 8
            if block_length != self._engine.get_property(handle, PropertyName.BLOCK_LENGTH):
                self._engine.set_property(handle, PropertyName.BLOCK_LENGTH, block_length)
            self._engine.set_property(
                handle, PropertyName.CHAINING_MODE, map_chaining_mode(self._mode)
            )
        except BaseException:
            self._engine.close(handle)
            raise
        return handle

    # --------------------------------------------------------------------------
    # Disposal
    # --------------------------------------------------------------------------

    def close(self) -> None:
        """
        Wipe key and IV buffers.

        The adapter stays usable: the next operation that needs a key or IV
        generates a fresh random one.
        """
        zero_memory(self._key)
        zero_memory(self._iv)
        self._key = None
        self._iv = None

    def __enter__(self) -> SymmetricAlgorithm:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(block_size={self._block_size}, "
            f"key_size={self._key_size}, mode={self._mode.name}, padding={self._padding.name})"
        )

    def _check_block_size(self, value: int) -> int:
        if not isinstance(value, int) or not is_legal_size(value, self._legal_block_sizes):
            raise InvalidParameterError(
                "block_size",
                f"{value!r} is not legal (legal bits: {describe_sizes(self._legal_block_sizes)})",
                algorithm=self.algorithm_name,
            )
        return value

    def _check_key_size(self, value: int) -> int:
        if not isinstance(value, int) or not is_legal_size(value, self._legal_key_sizes):
            raise InvalidParameterError(
                "key_size",
                f"{value!r} is not legal (legal bits: {describe_sizes(self._legal_key_sizes)})",
                algorithm=self.algorithm_name,
            )
        return value


# ==============================================================================
# CONCRETE ALGORITHMS
# ==============================================================================


class AES(SymmetricAlgorithm):
    """
    AES (FIPS 197) through the engine.

    Security Properties:
        - Block: 128 bits
        - Key: 128, 192 or 256 bits (default 256)
        - Modes: CBC, ECB, CFB, CTR
    """

    ALGORITHM_NAME = "AES"
    LEGAL_BLOCK_SIZES: Tuple[KeySizes, ...] = (KeySizes(128, 128, 0),)
    LEGAL_KEY_SIZES: Tuple[KeySizes, ...] = (KeySizes(128, 256, 64),)

    def __init__(
        self,
        *,
        provider: Optional[Provider] = None,
        config: Optional[SymmetricConfig] = None,
        engine: Optional[EngineProtocol] = None,
        rng: Optional[SecureRandomProtocol] = None,
    ) -> None:
        super().__init__(
            self.ALGORITHM_NAME,
            self.LEGAL_BLOCK_SIZES,
            self.LEGAL_KEY_SIZES,
            block_size=128,
            key_size=256,
            provider=provider,
            config=config,
            engine=engine,
            rng=rng,
        )


class Camellia(SymmetricAlgorithm):
    """
    Camellia (RFC 3713) through the engine.

    Security Properties:
        - Block: 128 bits
        - Key: 128, 192 or 256 bits (default 256)
        - Modes: CBC, ECB, CFB
    """

    ALGORITHM_NAME = "Camellia"
    LEGAL_BLOCK_SIZES: Tuple[KeySizes, ...] = (KeySizes(128, 128, 0),)
    LEGAL_KEY_SIZES: Tuple[KeySizes, ...] = (KeySizes(128, 256, 64),)

    def __init__(
        self,
        *,
        provider: Optional[Provider] = None,
        config: Optional[SymmetricConfig] = None,
        engine: Optional[EngineProtocol] = None,
        rng: Optional[SecureRandomProtocol] = None,
    ) -> None:
        super().__init__(
            self.ALGORITHM_NAME,
            self.LEGAL_BLOCK_SIZES,
            self.LEGAL_KEY_SIZES,
            block_size=128,
            key_size=256,
            provider=provider,
            config=config,
            engine=engine,
            rng=rng,
        )


# ==============================================================================
# ALGORITHM REGISTRY & HELPERS
# ==============================================================================

ALGORITHMS: Dict[str, Type[SymmetricAlgorithm]] = {
    "aes": AES,
    "camellia": Camellia,
}


def get_algorithm(algorithm_id: str, **kwargs: Any) -> SymmetricAlgorithm:
    """
    Получить экземпляр адаптера по ID.

    Args:
        algorithm_id: ID алгоритма ("aes", "camellia")
        **kwargs: provider / config / engine / rng

    Raises:
        KeyError: Если алгоритм не найден

    Example:
        >>> aes = get_algorithm("aes")
        >>> aes.key_size
        256
    """
    if algorithm_id not in ALGORITHMS:
        raise KeyError(
            f"Algorithm '{algorithm_id}' not found. " f"Available: {list(ALGORITHMS.keys())}"
        )
    return ALGORITHMS[algorithm_id](**kwargs)
