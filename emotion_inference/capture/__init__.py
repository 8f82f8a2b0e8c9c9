"""Live transcript capture."""

from .capture_bridge import CaptureBridge, TranscriptSource

__all__ = ['CaptureBridge', 'TranscriptSource']
