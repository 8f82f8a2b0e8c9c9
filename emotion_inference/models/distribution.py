"""
Probability distribution over the emotion taxonomy.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Union

import numpy as np

from .emotion import Emotion


# Allowed deviation of the probability sum from 1.0
PROBABILITY_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Distribution:
    """
    Per-emotion probabilities produced by the classifier.

    Invariants:
    - exactly one entry per Emotion
    - every value within [0, 1]
    - values sum to 1.0 within PROBABILITY_TOLERANCE

    Attributes:
        probabilities: Read-only mapping of Emotion to probability
    """

    probabilities: Mapping[Emotion, float]

    def __post_init__(self):
        """Validate distribution invariants."""
        try:
            probabilities = {
                Emotion(key): float(value) for key, value in self.probabilities.items()
            }
        except ValueError as e:
            raise ValueError(f"Invalid distribution entry: {e}") from e

        missing = set(Emotion) - set(probabilities)
        if missing:
            raise ValueError(
                f"Distribution is missing emotions: {sorted(e.value for e in missing)}"
            )

        for emotion, value in probabilities.items():
            if not np.isfinite(value):
                raise ValueError(f"Probability for {emotion.value} is not finite")
            if value < -PROBABILITY_TOLERANCE or value > 1.0 + PROBABILITY_TOLERANCE:
                raise ValueError(
                    f"Probability for {emotion.value} must be in [0, 1], got {value}"
                )

        total = sum(probabilities.values())
        if abs(total - 1.0) > PROBABILITY_TOLERANCE:
            raise ValueError(f"Probabilities must sum to 1.0, got {total}")

        ordered = {emotion: probabilities[emotion] for emotion in Emotion}
        object.__setattr__(self, 'probabilities', MappingProxyType(ordered))

    @classmethod
    def from_array(cls, values: Union[Sequence[float], np.ndarray]) -> 'Distribution':
        """
        Build a distribution from values in model output order.

        Args:
            values: One probability per emotion, ordered as Emotion

        Returns:
            Distribution
        """
        values = np.asarray(values, dtype=np.float64).ravel()
        emotions = Emotion.ordered()
        if values.shape[0] != len(emotions):
            raise ValueError(
                f"Expected {len(emotions)} probabilities, got {values.shape[0]}"
            )
        return cls({emotion: float(value) for emotion, value in zip(emotions, values)})

    def __getitem__(self, emotion: Union[Emotion, str]) -> float:
        return self.probabilities[Emotion(emotion)]

    def max_probability(self) -> float:
        """Highest probability in the distribution."""
        return max(self.probabilities.values())

    def to_array(self) -> np.ndarray:
        """Return probabilities in model output order."""
        return np.array([self.probabilities[e] for e in Emotion], dtype=np.float64)

    def to_dict(self) -> Dict[str, float]:
        """Serialize as ``{emotion_name: probability}``."""
        return {emotion.value: value for emotion, value in self.probabilities.items()}
