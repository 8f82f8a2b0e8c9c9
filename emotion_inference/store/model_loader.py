"""
Model construction from a ModelConfig.

Weights are either generated deterministically from the config (dense
network with Glorot-uniform kernels and zero biases) or read from an
``.npz`` archive on local disk or S3. Archives hold ``kernel_<i>`` and
``bias_<i>`` arrays per layer; hidden layers use ReLU and the last layer
softmax.
"""

import hashlib
import io
import logging
from typing import List, Optional

import numpy as np

from emotion_inference.clients.s3_weights_client import S3WeightsClient
from emotion_inference.models.emotion import Emotion
from emotion_inference.models.model_config import ModelConfig
from emotion_inference.store.model_handle import DenseLayer, ModelHandle


logger = logging.getLogger(__name__)


class ModelLoader:
    """
    Builds ModelHandle instances from configuration.

    Heavy work (downloads, deserialization) happens here so ModelStore can
    run it on a background worker.
    """

    KERNEL_KEY = 'kernel_{index}'
    BIAS_KEY = 'bias_{index}'
    GENERATED_SOURCE = 'generated'

    def __init__(
        self,
        s3_client: Optional[S3WeightsClient] = None,
        region_name: Optional[str] = None,
        max_retries: int = S3WeightsClient.DEFAULT_MAX_RETRIES,
        base_delay: float = S3WeightsClient.DEFAULT_BASE_DELAY,
        max_delay: float = S3WeightsClient.DEFAULT_MAX_DELAY
    ):
        """
        Initialize model loader.

        Args:
            s3_client: S3 client for s3:// weights (created on first use if None)
            region_name: AWS region for a lazily created S3 client
            max_retries: Retry attempts for a lazily created S3 client
            base_delay: Backoff base delay for a lazily created S3 client
            max_delay: Backoff max delay for a lazily created S3 client
        """
        self._s3_client = s3_client
        self._region_name = region_name
        self._retry_options = {
            'max_retries': max_retries,
            'base_delay': base_delay,
            'max_delay': max_delay,
        }

    @property
    def s3_client(self) -> S3WeightsClient:
        if self._s3_client is None:
            self._s3_client = S3WeightsClient(region_name=self._region_name, **self._retry_options)
        return self._s3_client

    def load(
        self,
        config: ModelConfig,
        input_dimension: int,
        output_dimension: int = len(Emotion)
    ) -> ModelHandle:
        """
        Build a model for the given configuration.

        Args:
            config: Model configuration
            input_dimension: Input size for generated weights when the
                config does not override it
            output_dimension: Output size for generated weights

        Returns:
            ModelHandle in LOADING state
        """
        if config.uses_generated_weights:
            layers = self.generate_layers(
                config,
                config.input_dimension or input_dimension,
                output_dimension
            )
            source = self.GENERATED_SOURCE
        else:
            layers = self.read_layers(config.weights_uri)
            source = config.weights_uri

        handle = ModelHandle(layers=layers, version=config.version, config=config, source=source)

        logger.debug(
            "Model built: version=%s, layers=%d, input_dimension=%d, source=%s",
            config.version,
            len(layers),
            handle.input_dimension,
            source
        )
        return handle

    def generate_layers(
        self,
        config: ModelConfig,
        input_dimension: int,
        output_dimension: int
    ) -> List[DenseLayer]:
        """
        Generate Glorot-uniform weights seeded from (version, seed).

        Args:
            config: Model configuration
            input_dimension: Network input size
            output_dimension: Network output size

        Returns:
            List of DenseLayer
        """
        rng = np.random.default_rng(self.derive_seed(config))
        sizes = [input_dimension, *config.hidden_layers, output_dimension]
        layers = []

        for index, (fan_in, fan_out) in enumerate(zip(sizes, sizes[1:])):
            limit = np.sqrt(6.0 / (fan_in + fan_out))
            kernel = rng.uniform(-limit, limit, size=(fan_in, fan_out))
            bias = np.zeros(fan_out, dtype=np.float64)
            activation = 'softmax' if index == len(sizes) - 2 else 'relu'
            layers.append(DenseLayer(kernel=kernel, bias=bias, activation=activation))

        return layers

    @staticmethod
    def derive_seed(config: ModelConfig) -> int:
        """Stable 64-bit seed from the config version and seed."""
        material = f"{config.version}:{config.seed}".encode('utf-8')
        return int.from_bytes(hashlib.sha256(material).digest()[:8], 'big')

    def read_layers(self, weights_uri: str) -> List[DenseLayer]:
        """
        Read layers from a local or S3 ``.npz`` archive.

        Args:
            weights_uri: Local path or s3://bucket/key

        Returns:
            List of DenseLayer
        """
        if weights_uri.startswith('s3://'):
            source = io.BytesIO(self.s3_client.fetch(weights_uri))
        else:
            source = weights_uri

        with np.load(source, allow_pickle=False) as archive:
            return self.layers_from_archive(archive)

    @classmethod
    def layers_from_archive(cls, archive) -> List[DenseLayer]:
        """
        Convert archive arrays into layers.

        Args:
            archive: Mapping with kernel_<i>/bias_<i> arrays

        Returns:
            List of DenseLayer

        Raises:
            ValueError: When the archive has no layers or a bias is missing
        """
        names = set(archive.keys())
        count = 0
        while cls.KERNEL_KEY.format(index=count) in names:
            count += 1

        if count == 0:
            raise ValueError("Weight archive contains no layers")

        layers = []
        for index in range(count):
            bias_key = cls.BIAS_KEY.format(index=index)
            if bias_key not in names:
                raise ValueError(f"Weight archive is missing {bias_key}")

            layers.append(DenseLayer(
                kernel=archive[cls.KERNEL_KEY.format(index=index)],
                bias=archive[bias_key],
                activation='softmax' if index == count - 1 else 'relu'
            ))

        return layers

    @classmethod
    def save_archive(cls, handle: ModelHandle, destination) -> None:
        """
        Write a model's weights as an ``.npz`` archive readable by read_layers.

        Args:
            handle: Model to export
            destination: Path or binary file object
        """
        arrays = {}
        for index, layer in enumerate(handle.layers):
            arrays[cls.KERNEL_KEY.format(index=index)] = layer.kernel
            arrays[cls.BIAS_KEY.format(index=index)] = layer.bias
        np.savez(destination, **arrays)
