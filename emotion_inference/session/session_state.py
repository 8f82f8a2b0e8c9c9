"""
Session state for one capture/inference session.

Tracks the capture lifecycle and the most recent transcript/result pair.
Transitions are synchronous and total: an event with no transition from
the current status is a no-op.

    idle --start--> listening --stop--> idle
    listening --captureError--> error --reset--> idle
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from emotion_inference.models.emotion_result import EmotionResult
from emotion_inference.models.session_snapshot import CaptureEvent, CaptureStatus, SessionSnapshot


logger = logging.getLogger(__name__)


TRANSITIONS: Dict[Tuple[CaptureStatus, CaptureEvent], CaptureStatus] = {
    (CaptureStatus.IDLE, CaptureEvent.START): CaptureStatus.LISTENING,
    (CaptureStatus.LISTENING, CaptureEvent.STOP): CaptureStatus.IDLE,
    (CaptureStatus.LISTENING, CaptureEvent.CAPTURE_ERROR): CaptureStatus.ERROR,
    (CaptureStatus.ERROR, CaptureEvent.RESET): CaptureStatus.IDLE,
}


class SessionState:
    """
    Thread-safe session state.

    Results are applied by sequence number: an update whose sequence is
    lower than the currently applied one is discarded, so a slow older
    inference never overwrites a newer result.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._reset_fields()

    def _reset_fields(self) -> None:
        self._status = CaptureStatus.IDLE
        self._last_transcript = ''
        self._last_result: Optional[EmotionResult] = None
        self._last_error: Optional[str] = None
        self._applied_sequence = 0

    @property
    def capture_status(self) -> CaptureStatus:
        with self._lock:
            return self._status

    @property
    def last_transcript(self) -> str:
        with self._lock:
            return self._last_transcript

    @property
    def last_result(self) -> Optional[EmotionResult]:
        with self._lock:
            return self._last_result

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    @property
    def applied_sequence(self) -> int:
        with self._lock:
            return self._applied_sequence

    def dispatch(self, event: CaptureEvent, error_message: Optional[str] = None) -> CaptureStatus:
        """
        Apply a capture event.

        Args:
            event: Capture event
            error_message: Message recorded on CAPTURE_ERROR

        Returns:
            Capture status after the event
        """
        event = CaptureEvent(event)

        with self._lock:
            current = self._status
            target = TRANSITIONS.get((current, event))

            if target is None:
                logger.debug(
                    "Ignoring capture event %s in status %s", event.value, current.value
                )
                return current

            self._status = target
            if event is CaptureEvent.CAPTURE_ERROR:
                self._last_error = error_message or 'Capture failed'
            elif event in (CaptureEvent.START, CaptureEvent.RESET):
                self._last_error = None

        logger.info(f"Capture status {current.value} -> {target.value} on {event.value}")
        return target

    def start(self) -> CaptureStatus:
        return self.dispatch(CaptureEvent.START)

    def stop(self) -> CaptureStatus:
        return self.dispatch(CaptureEvent.STOP)

    def capture_error(self, message: str) -> CaptureStatus:
        return self.dispatch(CaptureEvent.CAPTURE_ERROR, error_message=message)

    def reset(self) -> CaptureStatus:
        return self.dispatch(CaptureEvent.RESET)

    def apply_result(self, sequence: int, transcript: str, result: EmotionResult) -> bool:
        """
        Update transcript and result together.

        Args:
            sequence: Delivery sequence number of the inference
            transcript: Text the result was computed from
            result: Inference result

        Returns:
            True when applied, False when discarded as stale
        """
        with self._lock:
            if sequence < self._applied_sequence:
                logger.debug(
                    "Discarding stale result: sequence=%d, applied=%d",
                    sequence,
                    self._applied_sequence
                )
                return False

            self._applied_sequence = sequence
            self._last_transcript = transcript
            self._last_result = result
            return True

    def snapshot(self) -> SessionSnapshot:
        """Return an immutable copy of the current state."""
        with self._lock:
            return SessionSnapshot(
                capture_status=self._status,
                last_transcript=self._last_transcript,
                last_result=self._last_result,
                last_error=self._last_error,
                sequence=self._applied_sequence,
            )

    def end(self) -> None:
        """End the session: clear everything back to a fresh idle state."""
        with self._lock:
            self._reset_fields()
        logger.info("Session ended")
