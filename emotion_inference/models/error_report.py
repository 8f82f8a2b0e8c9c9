"""
Structured error report delivered to result sinks.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from emotion_inference.exceptions import EmotionInferenceError
from emotion_inference.utils.error_codes import ErrorCode


@dataclass(frozen=True)
class ErrorReport:
    """
    Structured error (kind + message) for a failed inference.

    Attributes:
        kind: Error code
        message: Human readable message
        recoverable: Whether the caller can retry without reconfiguration
        sequence: Sequence number of the failed delivery (if stamped)
        correlation_id: Correlation ID of the failed call (if any)
    """

    kind: ErrorCode
    message: str
    recoverable: bool
    sequence: Optional[int] = None
    correlation_id: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        sequence: Optional[int] = None,
        correlation_id: Optional[str] = None
    ) -> 'ErrorReport':
        """
        Build a report from an exception.

        Engine errors keep their code; anything else is INTERNAL_ERROR.
        """
        if isinstance(error, EmotionInferenceError):
            return cls(
                kind=error.error_code,
                message=error.message,
                recoverable=error.recoverable,
                sequence=sequence,
                correlation_id=correlation_id,
            )
        return cls(
            kind=ErrorCode.INTERNAL_ERROR,
            message=str(error) or type(error).__name__,
            recoverable=False,
            sequence=sequence,
            correlation_id=correlation_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.kind.value,
            'message': self.message,
            'recoverable': self.recoverable,
            'sequence': self.sequence,
            'correlationId': self.correlation_id,
        }
