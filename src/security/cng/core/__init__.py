"""
Ядро CNG-подсистемы: иерархия исключений, протоколы, режимы сцепления,
схемы паддинга и диапазоны допустимых размеров.
"""

from src.security.cng.core.exceptions import (
    AlgorithmError,
    AlgorithmNotSupportedError,
    BlockAlignmentError,
    CryptoError,
    EngineError,
    InvalidArgumentError,
    InvalidIVError,
    InvalidKeyError,
    InvalidKeySizeError,
    InvalidPaddingError,
    InvalidParameterError,
    InvalidStateError,
    MacVerificationError,
    ObjectDisposedError,
    TransformFinalizedError,
    ValidationFailureError,
)
from src.security.cng.core.modes import (
    CHAINING_MODE_NAMES,
    ChainingMode,
    PaddingMode,
    PropertyName,
    chaining_mode_from_name,
    map_chaining_mode,
)
from src.security.cng.core.protocols import (
    CryptoTransformProtocol,
    EngineProtocol,
    KeyedHashProtocol,
    SecureRandomProtocol,
)
from src.security.cng.core.sizes import KeySizes, describe_sizes, is_legal_size

__all__ = [
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
    # Modes
    "ChainingMode",
    "PaddingMode",
    "PropertyName",
    "CHAINING_MODE_NAMES",
    "map_chaining_mode",
    "chaining_mode_from_name",
    # Protocols
    "EngineProtocol",
    "SecureRandomProtocol",
    "CryptoTransformProtocol",
    "KeyedHashProtocol",
    # Sizes
    "KeySizes",
    "is_legal_size",
    "describe_sizes",
]
