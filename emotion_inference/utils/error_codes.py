"""
Standardized error codes for the emotion inference engine.

This module provides a centralized enumeration of the error kinds reported
to callers and result sinks, and their mapping to HTTP status codes for
request/response hosts such as the Lambda handler.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the engine.

    Error codes are organized by category:
    - Input (EMPTY_INPUT, INVALID_INPUT)
    - Model lifecycle (MODEL_*, LOAD_IN_PROGRESS)
    - Inference (DIMENSION_MISMATCH, CLASSIFICATION_FAILED, INFERENCE_TIMEOUT)
    - Internal (INTERNAL_ERROR)
    """

    # Input Errors
    EMPTY_INPUT = 'EMPTY_INPUT'
    INVALID_INPUT = 'INVALID_INPUT'

    # Model Lifecycle Errors
    MODEL_NOT_READY = 'MODEL_NOT_READY'
    MODEL_LOAD_FAILED = 'MODEL_LOAD_FAILED'
    LOAD_IN_PROGRESS = 'LOAD_IN_PROGRESS'

    # Inference Errors
    DIMENSION_MISMATCH = 'DIMENSION_MISMATCH'
    CLASSIFICATION_FAILED = 'CLASSIFICATION_FAILED'
    INFERENCE_TIMEOUT = 'INFERENCE_TIMEOUT'

    # Internal Errors
    INTERNAL_ERROR = 'INTERNAL_ERROR'


# Error code to HTTP status code mapping
ERROR_CODE_TO_HTTP_STATUS = {
    ErrorCode.EMPTY_INPUT: 400,
    ErrorCode.INVALID_INPUT: 400,

    ErrorCode.MODEL_NOT_READY: 503,
    ErrorCode.MODEL_LOAD_FAILED: 503,
    ErrorCode.LOAD_IN_PROGRESS: 409,

    ErrorCode.DIMENSION_MISMATCH: 500,
    ErrorCode.CLASSIFICATION_FAILED: 500,
    ErrorCode.INFERENCE_TIMEOUT: 504,

    ErrorCode.INTERNAL_ERROR: 500,
}


def get_http_status(error_code: ErrorCode) -> int:
    """
    Get HTTP status code for an error code.

    Args:
        error_code: Error code enum value

    Returns:
        HTTP status code (defaults to 500 for unmapped codes)
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(error_code, 500)
