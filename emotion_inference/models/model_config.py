"""
Model configuration data model.

Describes which model ModelStore.load should build and how.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ModelConfig:
    """
    Configuration for loading a classification model.

    Attributes:
        version: Feature schema identifier; must match the extractor version
        weights_uri: Local path or s3://bucket/key of an .npz weight archive.
            When None, weights are generated deterministically from the seed.
        seed: Seed for generated weights
        hidden_layers: Hidden layer sizes for generated weights
        input_dimension: Input size for generated weights (defaults to the
            store's expected dimension)
    """

    version: str
    weights_uri: Optional[str] = None
    seed: int = 0
    hidden_layers: Tuple[int, ...] = field(default=(64, 32))
    input_dimension: Optional[int] = None

    def __post_init__(self):
        """Validate model configuration."""
        if not self.version or not isinstance(self.version, str):
            raise ValueError("version must be non-empty string")

        if self.weights_uri is not None and not str(self.weights_uri).strip():
            raise ValueError("weights_uri must be non-empty when provided")

        if not isinstance(self.seed, int) or self.seed < 0:
            raise ValueError(f"seed must be non-negative integer, got {self.seed}")

        hidden_layers = tuple(int(size) for size in self.hidden_layers)
        if any(size <= 0 for size in hidden_layers):
            raise ValueError(f"hidden_layers must be positive, got {hidden_layers}")
        object.__setattr__(self, 'hidden_layers', hidden_layers)

        if self.input_dimension is not None and self.input_dimension <= 0:
            raise ValueError(
                f"input_dimension must be positive, got {self.input_dimension}"
            )

    @property
    def uses_generated_weights(self) -> bool:
        return self.weights_uri is None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ModelConfig':
        """
        Build a config from a plain mapping (e.g. parsed JSON).

        Accepts snake_case or camelCase keys; unknown keys are ignored.

        Args:
            data: Mapping with at least ``version``

        Returns:
            ModelConfig
        """
        if 'version' not in data:
            raise ValueError("Missing required field: version")

        aliases = {
            'weightsUri': 'weights_uri',
            'hiddenLayers': 'hidden_layers',
            'inputDimension': 'input_dimension',
        }
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value

        if 'hidden_layers' in kwargs:
            kwargs['hidden_layers'] = tuple(kwargs['hidden_layers'])

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['hidden_layers'] = list(self.hidden_layers)
        return data
