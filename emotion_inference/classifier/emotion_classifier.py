"""
Emotion classification over feature vectors.

Runs the forward pass of a borrowed ModelHandle and returns a Distribution.
The classifier holds no state between calls and never mutates the handle.
"""

import logging

import numpy as np

from emotion_inference.exceptions import (
    ClassificationError,
    DimensionMismatchError,
    ModelNotReadyError,
)
from emotion_inference.models.distribution import Distribution
from emotion_inference.models.feature_vector import FeatureVector
from emotion_inference.store.model_handle import ModelHandle


logger = logging.getLogger(__name__)


class EmotionClassifier:
    """
    Deterministic dense-network classifier.

    Hidden layers apply ReLU; the output layer applies a numerically stable
    softmax (max-subtracted) in float64.
    """

    def classify(self, handle: ModelHandle, vector: FeatureVector) -> Distribution:
        """
        Classify a feature vector.

        Args:
            handle: Ready model handle (borrowed)
            vector: Feature vector matching the handle's input dimension

        Returns:
            Distribution over the emotion taxonomy

        Raises:
            ModelNotReadyError: When the handle is missing or not ready
            DimensionMismatchError: When the vector length does not match
            ClassificationError: When the model output is not finite
        """
        if handle is None or not handle.is_ready:
            state = handle.state.value if handle is not None else 'missing'
            raise ModelNotReadyError(f"Model handle is not ready (state={state})")

        if vector.dimension != handle.input_dimension:
            raise DimensionMismatchError(
                f"Feature vector has {vector.dimension} values but the model "
                f"expects {handle.input_dimension}",
                expected=handle.input_dimension,
                actual=vector.dimension
            )

        activations = vector.values
        for layer in handle.layers:
            activations = activations @ layer.kernel + layer.bias
            if layer.activation == 'relu':
                activations = np.maximum(activations, 0.0)
            else:
                activations = self._softmax(activations)

        if not np.all(np.isfinite(activations)):
            raise ClassificationError(
                f"Model {handle.version} produced non-finite output",
                details={'handle_id': handle.handle_id}
            )

        logger.debug("Classification completed: handle=%s", handle.handle_id)

        return Distribution.from_array(activations)

    @staticmethod
    def _softmax(logits: np.ndarray) -> np.ndarray:
        shifted = logits - np.max(logits)
        exp = np.exp(shifted)
        return exp / np.sum(exp)
