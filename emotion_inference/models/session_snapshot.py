"""
Session state data models.

Capture status/event enumerations and the immutable snapshot handed to
result sinks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .emotion_result import EmotionResult


class CaptureStatus(str, Enum):
    """Capture lifecycle status."""

    IDLE = 'idle'
    LISTENING = 'listening'
    ERROR = 'error'


class CaptureEvent(str, Enum):
    """Events driving the capture state machine."""

    START = 'start'
    STOP = 'stop'
    CAPTURE_ERROR = 'captureError'
    RESET = 'reset'


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Point-in-time copy of the session state.

    Attributes:
        capture_status: Current capture status
        last_transcript: Transcript of the most recently applied result
        last_result: Most recently applied result (None before the first)
        last_error: Last capture error message (None when cleared)
        sequence: Sequence number of the applied result (0 before the first)
    """

    capture_status: CaptureStatus
    last_transcript: str = ''
    last_result: Optional[EmotionResult] = None
    last_error: Optional[str] = None
    sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'captureStatus': self.capture_status.value,
            'lastTranscript': self.last_transcript,
            'lastResult': self.last_result.to_dict() if self.last_result else None,
            'lastError': self.last_error,
            'sequence': self.sequence,
        }
