"""
Configuration settings for the emotion inference engine.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional, Tuple

from emotion_inference.models.model_config import ModelConfig


class Settings:
    """
    Configuration settings for feature extraction, model loading and inference.

    All settings are loaded from environment variables with defaults.
    """

    def __init__(self):
        """Initialize settings from environment variables."""
        # AWS Configuration
        self.aws_region: str = os.getenv('AWS_REGION', 'us-east-1')

        # Feature Extraction Configuration
        self.feature_dimension: int = int(os.getenv('FEATURE_DIMENSION', '100'))
        self.feature_version: str = os.getenv('FEATURE_VERSION', 'hashed-bow-v1')

        # Model Configuration
        self.model_version: str = os.getenv('MODEL_VERSION', self.feature_version)
        self.model_weights_uri: Optional[str] = os.getenv('MODEL_WEIGHTS_URI') or None
        self.model_seed: int = int(os.getenv('MODEL_SEED', '0'))
        self.model_hidden_layers: Tuple[int, ...] = self._parse_int_list(
            os.getenv('MODEL_HIDDEN_LAYERS', '64,32')
        )
        self.model_load_timeout_seconds: float = float(
            os.getenv('MODEL_LOAD_TIMEOUT_SECONDS', '30.0')
        )

        # Inference Configuration
        self.inference_timeout_seconds: float = float(
            os.getenv('INFERENCE_TIMEOUT_SECONDS', '0')
        )
        self.tie_tolerance: float = float(os.getenv('TIE_TOLERANCE', '1e-6'))
        self.max_text_length: int = int(os.getenv('MAX_TEXT_LENGTH', '3000'))

        # Metrics Configuration
        self.enable_metrics: bool = self._parse_bool(os.getenv('ENABLE_METRICS', 'true'))
        self.metrics_namespace: str = os.getenv('METRICS_NAMESPACE', 'EmotionInference')

        # Retry Configuration
        self.max_retries: int = int(os.getenv('MAX_RETRIES', '3'))
        self.retry_base_delay: float = float(os.getenv('RETRY_BASE_DELAY', '0.1'))
        self.retry_max_delay: float = float(os.getenv('RETRY_MAX_DELAY', '2.0'))

        # Logging Configuration
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.log_format: str = os.getenv('LOG_FORMAT', 'json').lower()

        # Validate configuration
        self._validate()

    def _parse_bool(self, value: str) -> bool:
        """
        Parse boolean value from string.

        Args:
            value: String value to parse

        Returns:
            Boolean value
        """
        return value.lower() in ('true', '1', 'yes', 'on')

    def _parse_int_list(self, value: str) -> Tuple[int, ...]:
        """Parse a comma separated list of integers (e.g. '64,32')."""
        items = [item.strip() for item in value.split(',') if item.strip()]
        try:
            return tuple(int(item) for item in items)
        except ValueError as e:
            raise ValueError(f"Invalid MODEL_HIDDEN_LAYERS: {value}") from e

    def _validate(self):
        """Validate configuration values."""
        if self.feature_dimension <= 0:
            raise ValueError(
                f"FEATURE_DIMENSION must be positive, got {self.feature_dimension}"
            )

        if not self.feature_version:
            raise ValueError("FEATURE_VERSION must be non-empty")

        if self.model_seed < 0:
            raise ValueError(f"MODEL_SEED must be non-negative, got {self.model_seed}")

        if not self.model_hidden_layers or any(s <= 0 for s in self.model_hidden_layers):
            raise ValueError(
                f"MODEL_HIDDEN_LAYERS must be positive sizes, got {self.model_hidden_layers}"
            )

        if self.model_load_timeout_seconds <= 0:
            raise ValueError(
                f"MODEL_LOAD_TIMEOUT_SECONDS must be positive, "
                f"got {self.model_load_timeout_seconds}"
            )

        if self.inference_timeout_seconds < 0:
            raise ValueError(
                f"INFERENCE_TIMEOUT_SECONDS must be non-negative, "
                f"got {self.inference_timeout_seconds}"
            )

        if not 0 <= self.tie_tolerance < 1:
            raise ValueError(f"TIE_TOLERANCE must be in [0, 1), got {self.tie_tolerance}")

        if self.max_text_length <= 0:
            raise ValueError(f"MAX_TEXT_LENGTH must be positive, got {self.max_text_length}")

        # Validate retry configuration
        if self.max_retries < 0:
            raise ValueError(f"MAX_RETRIES must be non-negative, got {self.max_retries}")

        if self.retry_base_delay <= 0:
            raise ValueError(
                f"RETRY_BASE_DELAY must be positive, got {self.retry_base_delay}"
            )

        if self.retry_max_delay <= 0:
            raise ValueError(
                f"RETRY_MAX_DELAY must be positive, got {self.retry_max_delay}"
            )

        # Validate log level
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level not in valid_log_levels:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {valid_log_levels}"
            )

        valid_log_formats = {'json', 'text'}
        if self.log_format not in valid_log_formats:
            raise ValueError(
                f"Invalid LOG_FORMAT: {self.log_format}. "
                f"Must be one of {valid_log_formats}"
            )

    def model_config(self) -> ModelConfig:
        """Build the default ModelConfig from these settings."""
        return ModelConfig(
            version=self.model_version,
            weights_uri=self.model_weights_uri,
            seed=self.model_seed,
            hidden_layers=self.model_hidden_layers,
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
