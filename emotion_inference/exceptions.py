"""
Custom exceptions for the emotion inference engine.

Every exception carries an ErrorCode (its ``kind``) and a ``recoverable``
flag so callers and result sinks can react without string matching.
"""

from typing import Any, Dict, Optional

from emotion_inference.utils.error_codes import ErrorCode


class EmotionInferenceError(Exception):
    """
    Base exception for the emotion inference engine.

    Attributes:
        message: Human readable error message
        error_code: Structured error kind
        recoverable: Whether the caller can recover without reconfiguration
        details: Optional dict with diagnostic context
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    recoverable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def kind(self) -> str:
        """Error kind as a plain string."""
        return self.error_code.value


class EmptyInputError(EmotionInferenceError):
    """Raised when the submitted text is empty or whitespace only."""

    error_code = ErrorCode.EMPTY_INPUT
    recoverable = True


class ModelNotReadyError(EmotionInferenceError):
    """
    Raised when inference is requested without a ready model.

    The caller should trigger or await a model load and retry.
    """

    error_code = ErrorCode.MODEL_NOT_READY
    recoverable = True


class ModelLoadError(EmotionInferenceError):
    """
    Raised when loading a model fails.

    This can occur due to:
    - Missing or unreadable weight archives
    - S3 access failures after retries
    - Feature version or dimensionality incompatibility
    - Load superseded by an unload

    The store remains usable and the load can be retried.

    Attributes:
        cause: Original exception that caused the failure (if any)
    """

    error_code = ErrorCode.MODEL_LOAD_FAILED
    recoverable = True

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.cause = cause


class LoadInProgressError(EmotionInferenceError):
    """Raised when a load is requested while another load is in flight."""

    error_code = ErrorCode.LOAD_IN_PROGRESS
    recoverable = True


class DimensionMismatchError(EmotionInferenceError):
    """
    Raised when feature and model dimensionality disagree.

    Signals a deployment bug (feature/model version skew) and is not
    recoverable without reconfiguration.

    Attributes:
        expected: Dimensionality the model expects
        actual: Dimensionality that was provided
    """

    error_code = ErrorCode.DIMENSION_MISMATCH
    recoverable = False

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message, details={'expected': expected, 'actual': actual})
        self.expected = expected
        self.actual = actual


class ClassificationError(EmotionInferenceError):
    """Raised when the model produces an unusable output (e.g. NaN)."""

    error_code = ErrorCode.CLASSIFICATION_FAILED
    recoverable = False


class InferenceTimeoutError(EmotionInferenceError):
    """
    Raised when a host-imposed inference timeout elapses.

    Attributes:
        timeout_seconds: Timeout that was exceeded
    """

    error_code = ErrorCode.INFERENCE_TIMEOUT
    recoverable = True

    def __init__(self, message: str, timeout_seconds: float):
        super().__init__(message, details={'timeout_seconds': timeout_seconds})
        self.timeout_seconds = timeout_seconds
