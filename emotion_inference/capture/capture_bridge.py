"""
Capture bridge between a live transcript source and the inference service.

The source (e.g. a speech recognizer) pushes interim and final transcripts
through callbacks; each transcript delivered while listening becomes one
independent submission. Capture lifecycle events update Session State.
"""

import logging
from typing import Callable, Optional, Protocol

from emotion_inference.inference_service import InferenceService
from emotion_inference.models.session_snapshot import CaptureStatus


logger = logging.getLogger(__name__)


UNSUPPORTED_MESSAGE = 'Speech recognition is not supported'
SOURCE_ERROR_PREFIX = 'Error with speech recognition: '


class TranscriptSource(Protocol):
    """Continuous transcript producer."""

    def start(
        self,
        on_transcript: Callable[[str, bool], None],
        on_error: Callable[[str], None]
    ) -> None:
        ...

    def stop(self) -> None:
        ...


class CaptureBridge:
    """
    Routes transcript callbacks into InferenceService.submit.

    Interim and final transcripts are treated the same; ordering between
    overlapping inferences is resolved by the service's sequence numbers.
    """

    def __init__(self, service: InferenceService, source: Optional[TranscriptSource] = None):
        """
        Initialize capture bridge.

        Args:
            service: Inference service receiving transcripts
            source: Transcript source (None when capture is unavailable)
        """
        self.service = service
        self.source = source

    @property
    def session(self):
        return self.service.session

    def start(self) -> CaptureStatus:
        """
        Start listening.

        Returns:
            Capture status after starting
        """
        if self.session.capture_status is not CaptureStatus.IDLE:
            # No transition from listening or error
            return self.session.start()

        status = self.session.start()

        if self.source is None:
            logger.warning(UNSUPPORTED_MESSAGE)
            return self.session.capture_error(UNSUPPORTED_MESSAGE)

        try:
            self.source.start(self.on_transcript, self.on_error)
        except Exception as e:
            logger.error(f"Transcript source failed to start: {e}", exc_info=True)
            return self.on_error(str(e))

        return status

    def stop(self) -> CaptureStatus:
        """Stop listening. In-flight inferences still complete."""
        if self.source is not None and self.session.capture_status is CaptureStatus.LISTENING:
            self.source.stop()
        return self.session.stop()

    def reset(self) -> CaptureStatus:
        return self.session.reset()

    def on_transcript(self, text: str, is_final: bool = False) -> None:
        """
        Handle a transcript from the source.

        Args:
            text: Transcript so far (interim) or final transcript
            is_final: Whether the source marked the transcript final
        """
        if self.session.capture_status is not CaptureStatus.LISTENING:
            logger.debug("Dropping transcript received while not listening")
            return

        logger.debug("Transcript received: final=%s, length=%d", is_final, len(text))
        self.service.submit(text, source='capture')

    def on_error(self, detail: str) -> CaptureStatus:
        """Record a source failure as a capture error."""
        logger.warning(f"Transcript source error: {detail}")
        return self.session.capture_error(f"{SOURCE_ERROR_PREFIX}{detail}")
