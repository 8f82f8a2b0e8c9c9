"""
Structured logging utilities for emotion inference.

This module provides JSON-formatted logging with correlation ID tracking
for CloudWatch Logs integration and analysis.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


# Standard LogRecord attributes that are not copied as extra fields
_SKIP_FIELDS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName',
}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Formats log records as JSON with consistent fields including:
    - timestamp: ISO 8601 timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR)
    - correlation_id: Correlation ID from extra fields
    - component: Logger name
    - message: Log message
    - Additional fields from extra dict
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage()
        }

        if hasattr(record, 'correlation_id'):
            log_entry['correlation_id'] = record.correlation_id

        for key, value in record.__dict__.items():
            if key in _SKIP_FIELDS or key.startswith('_') or key in log_entry:
                continue
            # Handle non-serializable types
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_structured_logging(
    level: int = logging.INFO,
    use_json: bool = True
) -> None:
    """
    Configure structured logging for the entire application.

    Sets up JSON formatting on the root logger.

    Args:
        level: Logging level (default: INFO)
        use_json: Whether to use JSON formatting (default: True)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    root_logger.info(
        f"Configured structured logging: level={logging.getLevelName(level)}, json={use_json}"
    )


def log_inference(
    logger: logging.Logger,
    correlation_id: Optional[str],
    sequence: int,
    emotion: str,
    confidence: float,
    latency_ms: float
) -> None:
    """
    Log a completed inference with structured fields.

    Args:
        logger: Logger instance
        correlation_id: Correlation ID
        sequence: Delivery sequence number
        emotion: Selected emotion
        confidence: Confidence of the selected emotion
        latency_ms: Inference latency in milliseconds
    """
    logger.info(
        f"Inference completed: emotion={emotion}, confidence={confidence:.3f}",
        extra={
            'correlation_id': correlation_id,
            'operation': 'inference',
            'sequence': sequence,
            'emotion': emotion,
            'confidence': confidence,
            'latency_ms': latency_ms
        }
    )


def log_model_load(
    logger: logging.Logger,
    model_version: str,
    input_dimension: int,
    source: str,
    latency_ms: float
) -> None:
    """
    Log a completed model load with structured fields.

    Args:
        logger: Logger instance
        model_version: Loaded model version
        input_dimension: Model input dimensionality
        source: Weight source ('generated' or the weights URI)
        latency_ms: Load latency in milliseconds
    """
    logger.info(
        f"Model load completed: version={model_version}, input_dimension={input_dimension}",
        extra={
            'operation': 'model_load',
            'model_version': model_version,
            'input_dimension': input_dimension,
            'source': source,
            'latency_ms': latency_ms
        }
    )


def log_error(
    logger: logging.Logger,
    correlation_id: Optional[str],
    component: str,
    error_type: str,
    error_message: str,
    exc_info: bool = True
) -> None:
    """
    Log error with structured fields and context.

    Args:
        logger: Logger instance
        correlation_id: Correlation ID
        component: Component where error occurred
        error_type: Type of error
        error_message: Error message
        exc_info: Whether to include exception info
    """
    logger.error(
        f"{component} error: {error_message}",
        extra={
            'correlation_id': correlation_id,
            'error_component': component,
            'error_type': error_type,
            'error_message': error_message
        },
        exc_info=exc_info
    )
