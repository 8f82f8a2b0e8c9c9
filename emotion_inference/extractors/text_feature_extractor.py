"""
Text feature extraction using signed feature hashing.

This module maps raw text to a fixed-length numeric vector. Tokens
(unigrams and adjacent-word bigrams) are hashed into a fixed number of
buckets with a keyed BLAKE2b digest, weighted sublinearly and L2
normalised. The digest is keyed by the extractor version so vectors are
stable across processes and change only when the version changes.
"""

import hashlib
import logging
import re
import unicodedata
from typing import List

import numpy as np

from emotion_inference.exceptions import EmptyInputError
from emotion_inference.models.feature_vector import FeatureVector


logger = logging.getLogger(__name__)


class TextFeatureExtractor:
    """
    Deterministic text feature extractor.

    Pipeline:
    - NFKC normalisation and lower-casing
    - Word tokenisation (letters, digits, apostrophes)
    - Unigram and bigram signed hashing into ``dimension`` buckets
    - log1p term weighting preserving sign
    - L2 normalisation (zero vector when no tokens are found)
    """

    DEFAULT_DIMENSION = 100
    DEFAULT_VERSION = 'hashed-bow-v1'

    TOKEN_PATTERN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")

    def __init__(
        self,
        dimension: int = DEFAULT_DIMENSION,
        version: str = DEFAULT_VERSION,
        use_bigrams: bool = True
    ):
        """
        Initialize text feature extractor.

        Args:
            dimension: Output vector length
            version: Extractor version; keys the hash function
            use_bigrams: Whether to include adjacent-word bigrams
        """
        if not isinstance(dimension, int) or dimension <= 0:
            raise ValueError(f"dimension must be positive integer, got {dimension}")

        if not version or not isinstance(version, str):
            raise ValueError("version must be non-empty string")

        self.dimension = dimension
        self.version = version
        self.use_bigrams = use_bigrams
        self._hash_key = version.encode('utf-8')[:hashlib.blake2b.MAX_KEY_SIZE]

        logger.info(
            f"Initialized TextFeatureExtractor with dimension={dimension}, version={version}"
        )

    def extract(self, text: str) -> FeatureVector:
        """
        Extract a feature vector from text.

        Args:
            text: Input text

        Returns:
            FeatureVector of length ``dimension``

        Raises:
            EmptyInputError: When text is empty or whitespace only
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, got {type(text).__name__}")

        stripped = text.strip()
        if not stripped:
            raise EmptyInputError("Input text is empty")

        tokens = self.tokenize(stripped)
        values = np.zeros(self.dimension, dtype=np.float64)

        for feature in self._features(tokens):
            index, sign = self._bucket(feature)
            values[index] += sign

        # log1p weighting, sign preserved
        values = np.sign(values) * np.log1p(np.abs(values))

        norm = float(np.linalg.norm(values))
        if norm > 0:
            values /= norm

        logger.debug(
            "Feature extraction completed: tokens=%d, non_zero=%d",
            len(tokens),
            int(np.count_nonzero(values))
        )

        return FeatureVector(values=values, extractor_version=self.version)

    def tokenize(self, text: str) -> List[str]:
        """
        Normalise and split text into word tokens.

        Args:
            text: Input text

        Returns:
            List of lower-cased tokens
        """
        normalized = unicodedata.normalize('NFKC', text).lower()
        # Curly apostrophes are common in transcripts
        normalized = normalized.replace('\u2019', "'")
        return self.TOKEN_PATTERN.findall(normalized)

    def _features(self, tokens: List[str]) -> List[str]:
        features = [f"w:{token}" for token in tokens]
        if self.use_bigrams:
            features.extend(
                f"b:{first} {second}" for first, second in zip(tokens, tokens[1:])
            )
        return features

    def _bucket(self, feature: str):
        digest = hashlib.blake2b(
            feature.encode('utf-8'),
            digest_size=8,
            key=self._hash_key
        ).digest()
        value = int.from_bytes(digest, 'big')
        index = value % self.dimension
        sign = 1.0 if (value >> 63) & 1 == 0 else -1.0
        return index, sign
