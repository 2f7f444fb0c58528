"""
CNG-подсистема: HMAC и симметричные шифры поверх движка с дескрипторами
алгоритмов (BCrypt-словарь идентификаторов, арифметика ``cryptography``).

EN: Public entry point. Everything an application needs is re-exported
here; engine internals (handles, contexts) stay in ``engine``.

Example:
    >>> from src.security.cng import AES, HMACSHA384, ChainingMode
    >>> aes = AES()
    >>> aes.mode = ChainingMode.CTR
    >>> ct = aes.encrypt(b"payload")
    >>> with HMACSHA384(b"k" * 48) as mac:
    ...     tag = mac.compute_hash(ct)
    >>> len(tag)
    48
"""

from src.security.cng.config import (
    DEFAULT_SYMMETRIC_CONFIG,
    PRIMITIVE_PROVIDER,
    Provider,
    SymmetricConfig,
)
from src.security.cng.core import (
    AlgorithmError,
    AlgorithmNotSupportedError,
    BlockAlignmentError,
    ChainingMode,
    CryptoError,
    EngineError,
    InvalidArgumentError,
    InvalidIVError,
    InvalidKeyError,
    InvalidKeySizeError,
    InvalidPaddingError,
    InvalidParameterError,
    InvalidStateError,
    KeySizes,
    MacVerificationError,
    ObjectDisposedError,
    PaddingMode,
    TransformFinalizedError,
    ValidationFailureError,
    map_chaining_mode,
)
from src.security.cng.engine import DEFAULT_ENGINE, CryptographyEngine
from src.security.cng.hmac import (
    HMAC_ALGORITHMS,
    EngineHMAC,
    HMACSHA256,
    HMACSHA384,
    HMACSHA512,
    get_hmac_algorithm,
)
from src.security.cng.rng import STATIC_RNG, SecureRandom, generate_key
from src.security.cng.symmetric import (
    AES,
    ALGORITHMS,
    Camellia,
    SymmetricAlgorithm,
    SymmetricCryptoTransform,
    get_algorithm,
)

__all__ = [
    # Configuration
    "Provider",
    "PRIMITIVE_PROVIDER",
    "SymmetricConfig",
    "DEFAULT_SYMMETRIC_CONFIG",
    # Engine
    "CryptographyEngine",
    "DEFAULT_ENGINE",
    # Random
    "SecureRandom",
    "STATIC_RNG",
    "generate_key",
    # HMAC
    "EngineHMAC",
    "HMACSHA256",
    "HMACSHA384",
    "HMACSHA512",
    "HMAC_ALGORITHMS",
    "get_hmac_algorithm",
    # Symmetric
    "SymmetricCryptoTransform",
    "SymmetricAlgorithm",
    "AES",
    "Camellia",
    "ALGORITHMS",
    "get_algorithm",
    # Modes
    "ChainingMode",
    "PaddingMode",
    "KeySizes",
    "map_chaining_mode",
    # Exceptions
    "CryptoError",
    "InvalidArgumentError",
    "InvalidKeyError",
    "InvalidKeySizeError",
    "InvalidIVError",
    "InvalidParameterError",
    "InvalidStateError",
    "ObjectDisposedError",
    "TransformFinalizedError",
    "BlockAlignmentError",
    "ValidationFailureError",
    "InvalidPaddingError",
    "MacVerificationError",
    "AlgorithmError",
    "AlgorithmNotSupportedError",
    "EngineError",
]
