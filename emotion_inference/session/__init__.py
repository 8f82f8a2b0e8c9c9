"""Session state tracking."""

from .session_state import SessionState, TRANSITIONS

__all__ = ['SessionState', 'TRANSITIONS']
