"""
Shared pytest fixtures for emotion inference tests.
"""

import pytest

from emotion_inference.extractors.text_feature_extractor import TextFeatureExtractor
from emotion_inference.inference_service import InferenceService
from emotion_inference.models.model_config import ModelConfig
from emotion_inference.session.session_state import SessionState
from emotion_inference.store.model_store import ModelStore
from emotion_inference.utils.metrics import InferenceMetrics


FEATURE_VERSION = 'hashed-bow-v1'
FEATURE_DIMENSION = 100


class RecordingSink:
    """Result sink that records everything it receives."""

    def __init__(self):
        self.results = []
        self.errors = []

    def on_result(self, result, snapshot):
        self.results.append((result, snapshot))

    def on_error(self, report):
        self.errors.append(report)


@pytest.fixture
def metrics():
    """Fixture providing a log-only metrics emitter."""
    return InferenceMetrics(use_cloudwatch=False)


@pytest.fixture
def extractor():
    """Fixture providing the default text feature extractor."""
    return TextFeatureExtractor(dimension=FEATURE_DIMENSION, version=FEATURE_VERSION)


@pytest.fixture
def model_config():
    """Fixture providing a generated-weights model configuration."""
    return ModelConfig(version=FEATURE_VERSION, seed=7)


@pytest.fixture
def model_store(metrics):
    """Fixture providing an empty model store."""
    store = ModelStore(
        expected_dimension=FEATURE_DIMENSION,
        feature_version=FEATURE_VERSION,
        metrics=metrics
    )
    yield store
    store.close()


@pytest.fixture
def ready_store(model_store, model_config):
    """Fixture providing a model store with a ready model."""
    model_store.load(model_config).result(timeout=10)
    return model_store


@pytest.fixture
def sink():
    """Fixture providing a recording result sink."""
    return RecordingSink()


@pytest.fixture
def service(ready_store, extractor, metrics, sink):
    """Fixture providing an inference service backed by a ready model."""
    service = InferenceService(
        model_store=ready_store,
        extractor=extractor,
        session=SessionState(),
        result_sink=sink,
        metrics=metrics
    )
    yield service
    service.close()
