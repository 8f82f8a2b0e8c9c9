"""
Unit tests for CaptureBridge.

Tests capture lifecycle routing, transcript forwarding and source errors.
"""

from unittest.mock import Mock

import pytest

from emotion_inference.capture.capture_bridge import CaptureBridge
from emotion_inference.models.session_snapshot import CaptureStatus


class FakeTranscriptSource:
    """Transcript source driven by the test."""

    def __init__(self):
        self.on_transcript = None
        self.on_error = None
        self.started = False
        self.stopped = False

    def start(self, on_transcript, on_error):
        self.on_transcript = on_transcript
        self.on_error = on_error
        self.started = True

    def stop(self):
        self.stopped = True


class TestCaptureBridge:
    """Test suite for CaptureBridge."""

    @pytest.fixture
    def source(self):
        """Creates a fake transcript source."""
        return FakeTranscriptSource()

    @pytest.fixture
    def bridge(self, service, source):
        """Creates a bridge over a ready service."""
        return CaptureBridge(service, source)

    def test_start_begins_listening(self, bridge, source):
        """Test start wires callbacks and listens."""
        assert bridge.start() is CaptureStatus.LISTENING
        assert source.started

    def test_transcripts_trigger_inference(self, bridge, source, sink):
        """Test each interim and final transcript is inferred."""
        bridge.start()

        source.on_transcript('I am', False)
        source.on_transcript('I am really upset', False)
        source.on_transcript('I am really upset about this', True)

        assert len(sink.results) == 3
        snapshot = bridge.session.snapshot()
        assert snapshot.last_transcript == 'I am really upset about this'
        assert snapshot.capture_status is CaptureStatus.LISTENING

    def test_transcripts_dropped_when_not_listening(self, bridge, sink):
        """Test transcripts outside a capture are ignored."""
        bridge.on_transcript('late transcript', True)

        assert sink.results == []
        assert sink.errors == []

    def test_stop_returns_to_idle(self, bridge, source):
        """Test stop ends listening and stops the source."""
        bridge.start()

        assert bridge.stop() is CaptureStatus.IDLE
        assert source.stopped

    def test_stop_does_not_cancel_inflight_inference(self, service, sink):
        """Test an inference already running still applies after stop."""
        source = FakeTranscriptSource()
        bridge = CaptureBridge(service, source)
        bridge.start()

        original_infer = service.infer

        def infer_then_stop(text, **kwargs):
            bridge.stop()
            return original_infer(text, **kwargs)

        service.infer = infer_then_stop
        source.on_transcript('goodbye for now', True)

        snapshot = bridge.session.snapshot()
        assert snapshot.capture_status is CaptureStatus.IDLE
        assert snapshot.last_transcript == 'goodbye for now'
        assert len(sink.results) == 1

    def test_source_error_moves_to_error(self, bridge, source):
        """Test a recognizer failure is recorded with context."""
        bridge.start()

        assert source.on_error('network') is CaptureStatus.ERROR
        assert bridge.session.last_error == 'Error with speech recognition: network'

    def test_reset_after_error(self, bridge, source):
        """Test reset clears the error."""
        bridge.start()
        source.on_error('no-speech')

        assert bridge.reset() is CaptureStatus.IDLE
        assert bridge.session.last_error is None

    def test_missing_source_is_capture_error(self, service):
        """Test capture without a recognizer reports unsupported."""
        bridge = CaptureBridge(service, source=None)

        assert bridge.start() is CaptureStatus.ERROR
        assert bridge.session.last_error == 'Speech recognition is not supported'

    def test_source_start_failure_is_capture_error(self, service):
        """Test a recognizer that fails to start."""
        source = Mock()
        source.start.side_effect = RuntimeError('microphone permission denied')
        bridge = CaptureBridge(service, source)

        assert bridge.start() is CaptureStatus.ERROR
        assert 'microphone permission denied' in bridge.session.last_error

    def test_inference_errors_do_not_change_capture(self, bridge, source, sink):
        """Test empty transcripts are reported without stopping capture."""
        bridge.start()

        source.on_transcript('   ', False)

        assert bridge.session.capture_status is CaptureStatus.LISTENING
        assert bridge.session.last_error is None
        assert len(sink.errors) == 1

    def test_start_while_listening_is_noop(self, bridge, source):
        """Test a second start does not restart the source."""
        bridge.start()
        source.started = False

        assert bridge.start() is CaptureStatus.LISTENING
        assert source.started is False
