"""
Unit tests for structured logging utilities.

Tests JSON formatting and the structured log helpers.
"""

import json
import logging
import sys

import pytest

from emotion_inference.utils.structured_logger import (
    StructuredFormatter,
    configure_structured_logging,
    log_error,
    log_inference,
    log_model_load,
)


def _record(message='hello', **extra):
    record = logging.LogRecord(
        name='emotion_inference.test',
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Test suite for StructuredFormatter."""

    def test_format_base_fields(self):
        """Test the JSON entry carries the standard fields."""
        entry = json.loads(StructuredFormatter().format(_record('Model loaded')))

        assert entry['level'] == 'INFO'
        assert entry['component'] == 'emotion_inference.test'
        assert entry['message'] == 'Model loaded'
        assert entry['timestamp'].endswith('Z')

    def test_format_extra_fields(self):
        """Test extra fields are copied into the entry."""
        entry = json.loads(StructuredFormatter().format(
            _record(correlation_id='abc-123', emotion='happy', latency_ms=4.2)
        ))

        assert entry['correlation_id'] == 'abc-123'
        assert entry['emotion'] == 'happy'
        assert entry['latency_ms'] == 4.2
        assert 'pathname' not in entry

    def test_format_non_serializable_extra(self):
        """Test non-JSON values are stringified."""
        entry = json.loads(StructuredFormatter().format(_record(payload={1, 2})))

        assert isinstance(entry['payload'], str)

    def test_format_exception(self):
        """Test exception text is included."""
        try:
            raise ValueError('broken')
        except ValueError:
            record = logging.LogRecord(
                'emotion_inference.test', logging.ERROR, __file__, 1,
                'failed', (), exc_info=sys.exc_info()
            )

        entry = json.loads(StructuredFormatter().format(record))

        assert 'ValueError: broken' in entry['exception']


class TestLogHelpers:
    """Test suite for structured log helpers."""

    @pytest.fixture
    def logger(self):
        return logging.getLogger('emotion_inference.tests.helpers')

    def test_log_inference(self, logger, caplog):
        """Test inference logging fields."""
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_inference(logger, 'cid', 3, 'angry', 0.81, 1.5)

        record = caplog.records[-1]
        assert record.operation == 'inference'
        assert record.sequence == 3
        assert record.emotion == 'angry'
        assert record.correlation_id == 'cid'

    def test_log_model_load(self, logger, caplog):
        """Test model load logging fields."""
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_model_load(logger, 'hashed-bow-v1', 100, 'generated', 12.0)

        record = caplog.records[-1]
        assert record.operation == 'model_load'
        assert record.model_version == 'hashed-bow-v1'
        assert record.input_dimension == 100

    def test_log_error(self, logger, caplog):
        """Test error logging fields."""
        with caplog.at_level(logging.ERROR, logger=logger.name):
            log_error(logger, 'cid', 'ModelStore', 'FileNotFoundError', 'missing', exc_info=False)

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.error_component == 'ModelStore'
        assert record.error_type == 'FileNotFoundError'


class TestConfigureStructuredLogging:
    """Test suite for logging configuration."""

    def test_configure_json(self):
        """Test the root logger gets a single JSON handler."""
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        try:
            configure_structured_logging(logging.DEBUG, use_json=True)

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_configure_text(self):
        """Test plain text formatting."""
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        try:
            configure_structured_logging('WARNING', use_json=False)

            assert root.level == logging.WARNING
            assert not isinstance(root.handlers[0].formatter, StructuredFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
