"""
Emotion result data model.

The final answer of one inference call: the selected emotion and its
probability.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .distribution import Distribution, PROBABILITY_TOLERANCE
from .emotion import Emotion


@dataclass(frozen=True)
class EmotionResult:
    """
    Immutable result of an inference call.

    Attributes:
        emotion: Selected (arg-max) emotion
        confidence: Probability of the selected emotion, in [0, 1]
        distribution: Distribution the result was derived from (optional)
    """

    emotion: Emotion
    confidence: float
    distribution: Optional[Distribution] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate result data."""
        object.__setattr__(self, 'emotion', Emotion(self.emotion))

        if not isinstance(self.confidence, (int, float)):
            raise ValueError(f"confidence must be numeric, got {type(self.confidence)}")

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

        if self.distribution is not None:
            expected = self.distribution[self.emotion]
            if abs(expected - self.confidence) > PROBABILITY_TOLERANCE:
                raise ValueError(
                    f"confidence {self.confidence} does not match distribution "
                    f"entry {expected} for {self.emotion.value}"
                )

    @property
    def description(self) -> str:
        return self.emotion.description

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for result sinks and JSON responses."""
        data: Dict[str, Any] = {
            'emotion': self.emotion.value,
            'confidence': self.confidence,
            'description': self.description,
        }
        if self.distribution is not None:
            data['distribution'] = self.distribution.to_dict()
        return data
