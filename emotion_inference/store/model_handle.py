"""
Loaded model representation.

A ModelHandle is an opaque, read-only reference to a dense feed-forward
network. Its lifecycle state is changed only by the ModelStore that owns it.
"""

import hashlib
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from emotion_inference.models.model_config import ModelConfig


class ModelState(str, Enum):
    """Model lifecycle state."""

    UNLOADED = 'unloaded'
    LOADING = 'loading'
    READY = 'ready'
    FAILED = 'failed'


VALID_ACTIVATIONS = {'relu', 'softmax'}


@dataclass(frozen=True, eq=False)
class DenseLayer:
    """
    Fully connected layer.

    Attributes:
        kernel: Weight matrix of shape (input_dimension, output_dimension)
        bias: Bias vector of shape (output_dimension,)
        activation: 'relu' or 'softmax'
    """

    kernel: np.ndarray
    bias: np.ndarray
    activation: str

    def __post_init__(self):
        """Validate shapes and freeze the weights."""
        kernel = np.array(self.kernel, dtype=np.float64)
        bias = np.array(self.bias, dtype=np.float64)

        if kernel.ndim != 2:
            raise ValueError(f"kernel must be 2-D, got shape {kernel.shape}")

        if bias.shape != (kernel.shape[1],):
            raise ValueError(
                f"bias shape {bias.shape} does not match kernel output {kernel.shape[1]}"
            )

        if self.activation not in VALID_ACTIVATIONS:
            raise ValueError(
                f"Invalid activation: {self.activation}. Must be one of {VALID_ACTIVATIONS}"
            )

        kernel.setflags(write=False)
        bias.setflags(write=False)
        object.__setattr__(self, 'kernel', kernel)
        object.__setattr__(self, 'bias', bias)

    @property
    def input_dimension(self) -> int:
        return int(self.kernel.shape[0])

    @property
    def output_dimension(self) -> int:
        return int(self.kernel.shape[1])


class ModelHandle:
    """
    Opaque reference to a loaded classification model.

    Exclusively owned by a ModelStore; the classifier only borrows it.

    Attributes:
        handle_id: Unique identifier of this handle
        version: Feature schema version the model was built for
        config: Configuration the model was loaded from
        source: Where the weights came from ('generated' or the weights URI)
    """

    def __init__(
        self,
        layers: Sequence[DenseLayer],
        version: str,
        config: Optional[ModelConfig] = None,
        source: str = 'generated'
    ):
        if not layers:
            raise ValueError("A model needs at least one layer")

        for previous, layer in zip(layers, layers[1:]):
            if previous.output_dimension != layer.input_dimension:
                raise ValueError(
                    f"Layer dimensions do not chain: {previous.output_dimension} "
                    f"-> {layer.input_dimension}"
                )

        if layers[-1].activation != 'softmax':
            raise ValueError("The output layer must use softmax activation")

        self.handle_id = str(uuid.uuid4())
        self.version = version
        self.config = config
        self.source = source
        self._layers: Tuple[DenseLayer, ...] = tuple(layers)
        self._state = ModelState.LOADING

    @property
    def layers(self) -> Tuple[DenseLayer, ...]:
        return self._layers

    @property
    def input_dimension(self) -> int:
        return self._layers[0].input_dimension

    @property
    def output_dimension(self) -> int:
        return self._layers[-1].output_dimension

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ModelState.READY

    def _set_state(self, state: ModelState) -> None:
        # Only ModelStore calls this
        self._state = state

    def fingerprint(self) -> str:
        """SHA-256 over all weights; equal fingerprints mean identical behavior."""
        digest = hashlib.sha256()
        for layer in self._layers:
            digest.update(layer.activation.encode('utf-8'))
            digest.update(layer.kernel.tobytes())
            digest.update(layer.bias.tobytes())
        return digest.hexdigest()

    def __repr__(self) -> str:
        return (
            f"ModelHandle(handle_id={self.handle_id!r}, version={self.version!r}, "
            f"input_dimension={self.input_dimension}, state={self._state.value})"
        )
