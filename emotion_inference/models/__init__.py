"""
Data models for emotion inference.

This module provides dataclasses for representing the emotion taxonomy,
feature vectors, distributions, results, model configuration and session
snapshots throughout the pipeline.
"""

from .emotion import Emotion, TIE_BREAK_PRIORITY, TAXONOMY_VERSION, EMOTION_DESCRIPTIONS
from .feature_vector import FeatureVector
from .distribution import Distribution, PROBABILITY_TOLERANCE
from .emotion_result import EmotionResult
from .model_config import ModelConfig
from .session_snapshot import CaptureStatus, CaptureEvent, SessionSnapshot
from .error_report import ErrorReport

__all__ = [
    'Emotion',
    'TIE_BREAK_PRIORITY',
    'TAXONOMY_VERSION',
    'EMOTION_DESCRIPTIONS',
    'FeatureVector',
    'Distribution',
    'PROBABILITY_TOLERANCE',
    'EmotionResult',
    'ModelConfig',
    'CaptureStatus',
    'CaptureEvent',
    'SessionSnapshot',
    'ErrorReport',
]
