"""
Text emotion Lambda handler.

This module provides the Lambda handler that classifies the dominant emotion
of a text (typed input or a transcript) with the emotion inference engine.
"""

import json
import logging
import uuid
from typing import Dict, Any, Optional

from emotion_inference.config.settings import get_settings
from emotion_inference.exceptions import EmotionInferenceError
from emotion_inference.inference_service import InferenceService, create_inference_service
from emotion_inference.store.model_handle import ModelState
from emotion_inference.utils.error_codes import ErrorCode, get_http_status
from emotion_inference.utils.structured_logger import configure_structured_logging

# Configure logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Global service instance (singleton per Lambda container)
# Initialized on cold start and reused across invocations
service: Optional[InferenceService] = None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for text emotion inference.

    Args:
        event: Lambda event object containing:
            - text: Text to classify (required)
            - correlationId: Correlation identifier (optional)
        context: Lambda context object

    Returns:
        Response dict with statusCode and body containing:
            - emotion: Detected emotion label
            - confidence: Probability of the detected emotion
            - description: Human-readable emotion description
            - distribution: Probability per emotion
            - correlationId: Correlation identifier
            - session: Session snapshot after the inference

    Examples:
        >>> response = lambda_handler({'text': 'I am so happy today'}, None)
        >>> assert response['statusCode'] == 200
        >>> body = json.loads(response['body'])
        >>> assert body['emotion'] in ('angry', 'happy', 'sad', 'neutral')
    """
    global service

    try:
        logger.info("Lambda handler invoked for text emotion inference")
        settings = get_settings()

        # Initialize service on cold start
        if service is None:
            logger.info("Cold start: Initializing InferenceService")
            configure_structured_logging(settings.log_level, settings.log_format == 'json')
            service = create_inference_service(settings)
            logger.info("InferenceService initialized successfully")

        # Parse and validate input event
        try:
            text, correlation_id = _parse_input_event(event, settings.max_text_length)
        except ValueError as e:
            logger.error(f"Input validation failed: {e}")
            return _error_response(
                get_http_status(ErrorCode.INVALID_INPUT), ErrorCode.INVALID_INPUT.value, str(e)
            )

        try:
            _ensure_model_ready(service, settings)

            timeout = settings.inference_timeout_seconds
            if timeout:
                result = service.infer_with_timeout(text, timeout, correlation_id=correlation_id)
            else:
                result = service.infer(text, correlation_id=correlation_id)

            logger.info(
                f"Inference completed successfully: "
                f"correlation_id={correlation_id}, "
                f"emotion={result.emotion.value}"
            )

            return _success_response(result, correlation_id, service.snapshot())

        except EmotionInferenceError as e:
            logger.error(f"Emotion inference failed: {e}", exc_info=not e.recoverable)
            return _error_response(get_http_status(e.error_code), e.kind, e.message)

    except Exception as e:
        logger.error(f"Unexpected error in lambda_handler: {e}", exc_info=True)
        return _error_response(500, 'Internal server error', str(e))

    finally:
        # The container may be frozen after returning
        if service is not None:
            service.metrics.flush_metrics()


def _ensure_model_ready(current: InferenceService, settings) -> None:
    """
    Load the configured model if none is ready or loading.

    A failed load is retried on the next invocation.

    Raises:
        ModelLoadError: When the load fails
        ModelNotReadyError: When the load does not finish in time
    """
    store = current.model_store
    if store.state in (ModelState.UNLOADED, ModelState.FAILED):
        logger.info("Starting model load")
        store.load(settings.model_config())
    store.wait_until_ready(timeout=settings.model_load_timeout_seconds)


def _parse_input_event(event: Dict[str, Any], max_text_length: int) -> tuple:
    """
    Parse and validate input event.

    Whitespace-only text passes here and is rejected by the engine as
    EMPTY_INPUT.

    Args:
        event: Lambda event object
        max_text_length: Maximum accepted text length in characters

    Returns:
        Tuple of (text, correlation_id)

    Raises:
        ValueError: When input validation fails
    """
    if not isinstance(event, dict):
        raise ValueError(f"Invalid event: must be object, got {type(event).__name__}")

    text = event.get('text')
    if text is None:
        raise ValueError("Missing required field: text")

    if not isinstance(text, str):
        raise ValueError(f"Invalid text: must be string, got {type(text).__name__}")

    if len(text) > max_text_length:
        raise ValueError(
            f"text exceeds maximum length: "
            f"{len(text)} > {max_text_length} characters"
        )

    correlation_id = event.get('correlationId') or str(uuid.uuid4())
    if not isinstance(correlation_id, str):
        raise ValueError(
            f"Invalid correlationId: must be string, got {type(correlation_id).__name__}"
        )

    logger.debug(f"Input parsed successfully: text_length={len(text)}")

    return text, correlation_id


def _success_response(result, correlation_id: str, snapshot) -> Dict[str, Any]:
    """
    Build success response from an EmotionResult.

    Args:
        result: EmotionResult object
        correlation_id: Correlation identifier
        snapshot: SessionSnapshot after the inference

    Returns:
        Lambda response dict with statusCode 200
    """
    body = result.to_dict()
    body['correlationId'] = correlation_id
    body['session'] = snapshot.to_dict()

    return {
        'statusCode': 200,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps(body)
    }


def _error_response(status_code: int, error_type: str, message: str) -> Dict[str, Any]:
    """
    Build error response.

    Args:
        status_code: HTTP status code
        error_type: Error type description
        message: Error message

    Returns:
        Lambda response dict with error details
    """
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps({
            'error': error_type,
            'message': message
        })
    }
