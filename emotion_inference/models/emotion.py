"""
Emotion taxonomy.

Defines the closed, ordered set of emotions the engine can report. The
member order is also the model output index order.
"""

from enum import Enum
from typing import Dict, Tuple


# Bump when categories change; requires retraining
TAXONOMY_VERSION = '1'


class Emotion(str, Enum):
    """Closed emotion taxonomy in model output order."""

    ANGRY = 'angry'
    HAPPY = 'happy'
    SAD = 'sad'
    NEUTRAL = 'neutral'

    @property
    def description(self) -> str:
        """Human readable description for result sinks."""
        return EMOTION_DESCRIPTIONS[self]

    @classmethod
    def ordered(cls) -> Tuple['Emotion', ...]:
        """Return emotions in model output index order."""
        return tuple(cls)


# Tie-break order for arg-max selection, highest priority first
TIE_BREAK_PRIORITY: Tuple[Emotion, ...] = (
    Emotion.ANGRY,
    Emotion.SAD,
    Emotion.HAPPY,
    Emotion.NEUTRAL,
)


EMOTION_DESCRIPTIONS: Dict[Emotion, str] = {
    Emotion.HAPPY: "You're expressing joy and positivity!",
    Emotion.SAD: "I sense some sadness in your words.",
    Emotion.ANGRY: "There's some frustration in your tone.",
    Emotion.NEUTRAL: "You're maintaining a balanced perspective.",
}
