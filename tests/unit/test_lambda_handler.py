"""
Unit tests for the text emotion Lambda handler.

Tests input validation, cold/warm start behaviour and error mapping to
HTTP status codes.
"""

import json
import logging
import os
import sys
from unittest.mock import Mock, patch

import pytest

from emotion_inference.config.settings import Settings

# Import Lambda handler
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../lambda/text_emotion_handler'))
import handler  # noqa: E402
from handler import lambda_handler, _parse_input_event  # noqa: E402


def _settings(**overrides):
    env = {'ENABLE_METRICS': 'false', **overrides}
    with patch.dict(os.environ, env, clear=True):
        return Settings()


@pytest.fixture
def invoke():
    """Invokes the handler with fresh container state and given settings."""
    services = []

    def _invoke(event, settings=None):
        settings = settings or _settings()
        with patch.object(handler, 'get_settings', return_value=settings), \
                patch.object(handler, 'configure_structured_logging'):
            response = lambda_handler(event, Mock())
        if handler.service is not None and handler.service not in services:
            services.append(handler.service)
        return response

    handler.service = None
    yield _invoke
    for service in services:
        service.model_store.close()
        service.close()
    handler.service = None


class TestLambdaHandler:
    """Test suite for lambda_handler."""

    def test_valid_text_returns_emotion(self, invoke):
        """Test a successful inference response."""
        response = invoke({'text': 'I just got the job, this is amazing!'})

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'] == 'application/json'

        body = json.loads(response['body'])
        assert body['emotion'] in {'angry', 'happy', 'sad', 'neutral'}
        assert 0.0 <= body['confidence'] <= 1.0
        assert body['description']
        assert set(body['distribution']) == {'angry', 'happy', 'sad', 'neutral'}
        assert body['correlationId']
        assert body['session']['lastTranscript'] == 'I just got the job, this is amazing!'

    def test_correlation_id_echoed(self, invoke):
        """Test a caller supplied correlation ID is returned."""
        response = invoke({'text': 'hello', 'correlationId': 'req-42'})

        assert json.loads(response['body'])['correlationId'] == 'req-42'

    def test_service_reused_on_warm_start(self, invoke):
        """Test the service is created once per container."""
        invoke({'text': 'first'})
        first_service = handler.service

        invoke({'text': 'second'})

        assert handler.service is first_service
        assert handler.service.snapshot().sequence == 2

    def test_missing_text_returns_400(self, invoke):
        """Test missing text is rejected."""
        response = invoke({})

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['error'] == 'INVALID_INPUT'
        assert 'text' in body['message']

    def test_non_string_text_returns_400(self, invoke):
        """Test non-string text is rejected."""
        response = invoke({'text': 123})

        assert response['statusCode'] == 400

    def test_text_too_long_returns_400(self, invoke):
        """Test oversized text is rejected."""
        response = invoke({'text': 'x' * 11}, settings=_settings(MAX_TEXT_LENGTH='10'))

        assert response['statusCode'] == 400
        assert 'maximum length' in json.loads(response['body'])['message']

    def test_whitespace_text_returns_empty_input(self, invoke):
        """Test whitespace-only text maps to EMPTY_INPUT."""
        response = invoke({'text': '   '})

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['error'] == 'EMPTY_INPUT'

    def test_model_load_failure_returns_503(self, invoke):
        """Test an incompatible model maps to MODEL_LOAD_FAILED."""
        settings = _settings(MODEL_VERSION='other-version')

        response = invoke({'text': 'hello'}, settings=settings)

        assert response['statusCode'] == 503
        assert json.loads(response['body'])['error'] == 'MODEL_LOAD_FAILED'

    def test_failed_load_retried_on_next_invocation(self, invoke):
        """Test a failed model load is attempted again."""
        invoke({'text': 'hello'}, settings=_settings(MODEL_VERSION='other-version'))

        response = invoke({'text': 'hello'})

        assert response['statusCode'] == 200

    def test_inference_timeout_setting_used(self, invoke):
        """Test the configured inference timeout path."""
        response = invoke({'text': 'quick'}, settings=_settings(INFERENCE_TIMEOUT_SECONDS='5'))

        assert response['statusCode'] == 200

    def test_metrics_flushed_after_invocation(self, invoke):
        """Test buffered metrics do not outlive an invocation."""
        invoke({'text': 'hello there'})

        assert handler.service.metrics.metrics_buffer == []

    def test_unexpected_error_returns_500(self, invoke):
        """Test unexpected failures map to 500."""
        with patch.object(handler, 'create_inference_service', side_effect=RuntimeError('boom')):
            response = invoke({'text': 'hello'})

        assert response['statusCode'] == 500
        assert json.loads(response['body'])['error'] == 'Internal server error'


class TestColdStartLogging:
    """Test suite for logging setup on cold start."""

    @pytest.fixture
    def root_logger(self):
        """Restores root logger handlers and level after the test."""
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        yield root
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    def test_lowercase_log_level_configures_logging(self, root_logger):
        """Test a lowercase LOG_LEVEL sets up logging and serves requests."""
        settings = _settings(LOG_LEVEL='info', LOG_FORMAT='text')
        handler.service = None
        try:
            with patch.object(handler, 'get_settings', return_value=settings):
                first = lambda_handler({'text': 'I am so happy today'}, Mock())
                second = lambda_handler({'text': 'Still smiling'}, Mock())

            assert first['statusCode'] == 200
            assert second['statusCode'] == 200
            assert handler.service is not None
            assert root_logger.level == logging.INFO
        finally:
            if handler.service is not None:
                handler.service.model_store.close()
                handler.service.close()
            handler.service = None


class TestParseInputEvent:
    """Test suite for _parse_input_event."""

    def test_parse_valid_event(self):
        """Test a valid event parses."""
        text, correlation_id = _parse_input_event(
            {'text': 'hello', 'correlationId': 'abc'}, max_text_length=100
        )

        assert text == 'hello'
        assert correlation_id == 'abc'

    def test_parse_generates_correlation_id(self):
        """Test a correlation ID is generated when missing."""
        _, correlation_id = _parse_input_event({'text': 'hello'}, max_text_length=100)

        assert len(correlation_id) == 36

    def test_parse_rejects_non_dict_event(self):
        """Test a non-object event is rejected."""
        with pytest.raises(ValueError, match='Invalid event'):
            _parse_input_event(['text'], max_text_length=100)

    def test_parse_rejects_non_string_correlation_id(self):
        """Test correlation ID type validation."""
        with pytest.raises(ValueError, match='correlationId'):
            _parse_input_event({'text': 'hi', 'correlationId': 5}, max_text_length=100)
