"""
Централизованные исключения CNG-подсистемы.

Иерархия типизированных исключений для HMAC и симметричных
преобразований. Три основные категории различаются намеренно:
ошибка аргумента (ничего не выделено), ошибка состояния (объект
закрыт или уже финализирован) и ошибка проверки (паддинг/MAC не
сошёлся, возможная подмена данных).

Example:
    >>> from src.security.cng.core.exceptions import ValidationFailureError
    >>> try:
    ...     plaintext = decryptor.transform_final_block(ciphertext)
    ... except ValidationFailureError as e:
    ...     logger.warning(f"Tampering suspected: {e}")

Иерархия:
    CryptoError (базовое)
    ├── InvalidArgumentError (+ ValueError)
    │   ├── InvalidKeyError
    │   │   └── InvalidKeySizeError
    │   ├── InvalidIVError
    │   └── InvalidParameterError
    ├── InvalidStateError (+ RuntimeError)
    │   ├── ObjectDisposedError
    │   ├── TransformFinalizedError
    │   └── BlockAlignmentError
    ├── ValidationFailureError
    │   ├── InvalidPaddingError
    │   └── MacVerificationError
    └── AlgorithmError
        ├── AlgorithmNotSupportedError
        └── EngineError

Security Note:
    Все исключения НЕ раскрывают:
    - Ключи или их части
    - Plaintext или ciphertext
    - IV значения
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__: list[str] = [
    # Base exception
    "CryptoError",
    # Argument errors
    "InvalidArgumentError",
    "InvalidKeyError",
    "InvalidKeySizeError",
    "InvalidIVError",
    "InvalidParameterError",
    # State errors
    "InvalidStateError",
    "ObjectDisposedError",
    "TransformFinalizedError",
    "BlockAlignmentError",
    # Validation failures
    "ValidationFailureError",
    "InvalidPaddingError",
    "MacVerificationError",
    # Algorithm / engine errors
    "AlgorithmError",
    "AlgorithmNotSupportedError",
    "EngineError",
]


# ==============================================================================
# BASE EXCEPTION
# ==============================================================================


class CryptoError(Exception):
    """
    Базовое исключение для всех криптографических ошибок.

    Attributes:
        message: Человекочитаемое сообщение об ошибке
        algorithm: Имя алгоритма, вызвавшего ошибку (опционально)
        context: Дополнительный контекст для отладки (без секретов!)

    Example:
        >>> raise CryptoError(
        ...     "Operation failed",
        ...     algorithm="AES",
        ...     context={"operation": "encrypt"},
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        algorithm: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.algorithm = algorithm
        self.context = context or {}

    def __str__(self) -> str:
        """
        Строковое представление исключения.

        Example:
            >>> str(CryptoError("Operation failed", algorithm="AES"))
            'CryptoError: Operation failed [algorithm=AES]'
        """
        parts = [self.__class__.__name__, ": ", self.message]

        if self.algorithm:
            parts.append(f" [algorithm={self.algorithm}]")

        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({ctx_str})")

        return "".join(parts)

    def __repr__(self) -> str:
        """Представление для отладки."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"algorithm={self.algorithm!r}, "
            f"context={self.context!r})"
        )


# ==============================================================================
# ARGUMENT ERRORS
# ==============================================================================


class InvalidArgumentError(CryptoError, ValueError):
    """
    Некорректный аргумент конструктора или операции.

    Поднимается до выделения каких-либо ресурсов: при ошибке
    аргумента дескриптор движка не открывается.
    """

    pass


class InvalidKeyError(InvalidArgumentError):
    """Ключ отсутствует, пуст или не подходит алгоритму."""

    pass


class InvalidKeySizeError(InvalidKeyError):
    """
    Размер ключа не входит в множество допустимых размеров.

    Attributes:
        actual_bits: Полученный размер ключа в битах

    Example:
        >>> raise InvalidKeySizeError(40, algorithm="AES")
        InvalidKeySizeError: Key size 40 bits is not legal [algorithm=AES]
    """

    def __init__(
        self,
        actual_bits: int,
        *,
        algorithm: Optional[str] = None,
        legal: Optional[str] = None,
    ) -> None:
        message = f"Key size {actual_bits} bits is not legal"
        context: Dict[str, Any] = {"actual_bits": actual_bits}
        if legal:
            context["legal"] = legal
        super().__init__(message, algorithm=algorithm, context=context)
        self.actual_bits = actual_bits


class InvalidIVError(InvalidArgumentError):
    """
    IV отсутствует или имеет неверную длину.

    Example:
        >>> raise InvalidIVError("IV must be 16 bytes, got 8", algorithm="AES")
    """

    pass


class InvalidParameterError(InvalidArgumentError):
    """
    Некорректный параметр (провайдер, размер блока, смещение и т.п.).

    Attributes:
        parameter: Имя параметра

    Example:
        >>> raise InvalidParameterError("block_size", "must be one of [128]")
        InvalidParameterError: Invalid parameter 'block_size': must be one of [128]
    """

    def __init__(
        self,
        parameter: str,
        reason: str,
        *,
        algorithm: Optional[str] = None,
    ) -> None:
        message = f"Invalid parameter '{parameter}': {reason}"
        super().__init__(message, algorithm=algorithm, context={"parameter": parameter})
        self.parameter = parameter
        self.reason = reason


# ==============================================================================
# STATE ERRORS
# ==============================================================================


class InvalidStateError(CryptoError, RuntimeError):
    """
    Операция вызвана в недопустимом состоянии объекта.

    Никогда не возвращаем устаревшие или нулевые данные вместо этой ошибки.
    """

    pass


class ObjectDisposedError(InvalidStateError):
    """Объект уже закрыт (close() вызван)."""

    def __init__(self, object_name: str) -> None:
        super().__init__(
            f"Cannot access a closed {object_name}",
            context={"object": object_name},
        )
        self.object_name = object_name


class TransformFinalizedError(InvalidStateError):
    """Преобразование уже финализировано и не может принимать данные."""

    pass


class BlockAlignmentError(InvalidStateError):
    """
    Длина данных не кратна размеру блока в режиме, требующем выравнивания.

    Example:
        >>> raise BlockAlignmentError(
        ...     "Length of the data to encrypt is invalid",
        ...     algorithm="AES",
        ...     context={"block_size": 16, "remainder": 5},
        ... )
    """

    pass


# ==============================================================================
# VALIDATION FAILURES
# ==============================================================================


class ValidationFailureError(CryptoError):
    """
    Криптографическая проверка не прошла.

    Это НЕ ошибка ввода: несовпадение паддинга или MAC может означать
    подмену данных. Вызывающий код должен реагировать соответственно.
    """

    pass


class InvalidPaddingError(ValidationFailureError):
    """Паддинг последнего расшифрованного блока некорректен."""

    pass


class MacVerificationError(ValidationFailureError):
    """Вычисленный MAC не совпадает с ожидаемым."""

    pass


# ==============================================================================
# ALGORITHM / ENGINE ERRORS
# ==============================================================================


class AlgorithmError(CryptoError):
    """Ошибки выбора алгоритма и работы движка."""

    pass


class AlgorithmNotSupportedError(AlgorithmError):
    """
    Алгоритм, провайдер или режим не поддерживается движком.

    Attributes:
        reason: Причина отсутствия поддержки

    Example:
        >>> raise AlgorithmNotSupportedError("OFB", "no engine chaining mode")
        AlgorithmNotSupportedError: Algorithm 'OFB' not supported: no engine chaining mode [algorithm=OFB] (reason=no engine chaining mode)
    """

    def __init__(self, algorithm: str, reason: str) -> None:
        message = f"Algorithm '{algorithm}' not supported: {reason}"
        super().__init__(message, algorithm=algorithm, context={"reason": reason})
        self.reason = reason


class EngineError(AlgorithmError):
    """
    Движок сообщил об ошибке.

    Всегда фатальна: повтор операции не имеет смысла, исходное
    исключение доступно через __cause__.
    """

    pass
