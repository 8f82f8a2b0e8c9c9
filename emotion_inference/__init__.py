"""
Emotion inference engine.

Classifies the dominant emotion (angry, happy, sad, neutral) of typed text
or live speech transcripts with a hashed bag-of-words feature extractor and
a small dense network.
"""

from emotion_inference.capture import CaptureBridge, TranscriptSource
from emotion_inference.inference_service import (
    InferenceService,
    ResultSink,
    create_inference_service,
    select_emotion,
)
from emotion_inference.models import (
    Emotion,
    EmotionResult,
    Distribution,
    FeatureVector,
    ModelConfig,
    SessionSnapshot,
    ErrorReport,
)
from emotion_inference.store import ModelStore, ModelState

__version__ = '1.0.0'

__all__ = [
    'CaptureBridge',
    'TranscriptSource',
    'InferenceService',
    'ResultSink',
    'create_inference_service',
    'select_emotion',
    'Emotion',
    'EmotionResult',
    'Distribution',
    'FeatureVector',
    'ModelConfig',
    'SessionSnapshot',
    'ErrorReport',
    'ModelStore',
    'ModelState',
]
