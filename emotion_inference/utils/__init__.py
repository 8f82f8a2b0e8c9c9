"""Utility modules for emotion inference."""

from emotion_inference.utils.error_codes import ErrorCode, ERROR_CODE_TO_HTTP_STATUS, get_http_status
from emotion_inference.utils.metrics import InferenceMetrics
from emotion_inference.utils.structured_logger import (
    StructuredFormatter,
    configure_structured_logging,
    log_inference,
    log_model_load,
    log_error
)

__all__ = [
    'ErrorCode',
    'ERROR_CODE_TO_HTTP_STATUS',
    'get_http_status',
    'InferenceMetrics',
    'StructuredFormatter',
    'configure_structured_logging',
    'log_inference',
    'log_model_load',
    'log_error'
]
