"""
Feature vector data model.

Fixed-length numeric encoding of one text input, consumed by the classifier.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class FeatureVector:
    """
    Immutable feature vector.

    Attributes:
        values: 1-D float64 array; made read-only on construction
        extractor_version: Version of the extractor that produced it
    """

    values: np.ndarray
    extractor_version: str

    def __post_init__(self):
        """Validate and freeze the vector."""
        values = np.asarray(self.values, dtype=np.float64)

        if values.ndim != 1:
            raise ValueError(f"values must be 1-D, got shape {values.shape}")

        if values.size == 0:
            raise ValueError("values must not be empty")

        if not np.all(np.isfinite(values)):
            raise ValueError("values must be finite (no NaN/Inf)")

        if not self.extractor_version:
            raise ValueError("extractor_version must be non-empty string")

        values = values.copy()
        values.setflags(write=False)
        object.__setattr__(self, 'values', values)

    @property
    def dimension(self) -> int:
        """Number of features."""
        return int(self.values.shape[0])

    def __len__(self) -> int:
        return self.dimension

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureVector):
            return NotImplemented
        return (
            self.extractor_version == other.extractor_version
            and np.array_equal(self.values, other.values)
        )

    def __hash__(self) -> int:
        return hash((self.extractor_version, self.values.tobytes()))
