"""Feature extractors for emotion inference."""

from .text_feature_extractor import TextFeatureExtractor

__all__ = ['TextFeatureExtractor']
