"""
Unit tests for S3WeightsClient.

Tests URI parsing, retry logic with exponential backoff and error mapping.
"""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from emotion_inference.clients.s3_weights_client import S3WeightsClient
from emotion_inference.exceptions import ModelLoadError


def _client_error(code: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'GetObject')


def _response(payload: bytes) -> dict:
    body = Mock()
    body.read.return_value = payload
    return {'Body': body}


class TestS3WeightsClient:
    """Test suite for S3WeightsClient."""

    @pytest.fixture
    def mock_s3(self):
        """Creates mock boto3 S3 client."""
        return Mock()

    @pytest.fixture
    def client(self, mock_s3):
        """Creates S3WeightsClient with mock S3 client."""
        return S3WeightsClient(s3_client=mock_s3, max_retries=2, base_delay=0.01)

    def test_parse_uri(self):
        """Test splitting an S3 URI into bucket and key."""
        assert S3WeightsClient.parse_uri('s3://models/emotion/v1.npz') == (
            'models', 'emotion/v1.npz'
        )

    @pytest.mark.parametrize('uri', ['/tmp/model.npz', 's3://bucket-only', 's3:///key'])
    def test_parse_uri_rejects_invalid(self, uri):
        """Test malformed URIs are rejected."""
        with pytest.raises(ValueError):
            S3WeightsClient.parse_uri(uri)

    def test_fetch_success(self, client, mock_s3):
        """Test successful download returns the body."""
        mock_s3.get_object.return_value = _response(b'weights')

        assert client.fetch('s3://models/v1.npz') == b'weights'
        mock_s3.get_object.assert_called_once_with(Bucket='models', Key='v1.npz')

    @patch('emotion_inference.clients.s3_weights_client.time.sleep')
    def test_fetch_retries_throttling(self, mock_sleep, client, mock_s3):
        """Test throttling errors are retried with backoff."""
        mock_s3.get_object.side_effect = [
            _client_error('SlowDown'),
            _client_error('ServiceUnavailable'),
            _response(b'weights'),
        ]

        assert client.fetch('s3://models/v1.npz') == b'weights'
        assert mock_s3.get_object.call_count == 3
        assert mock_sleep.call_count == 2

    @patch('emotion_inference.clients.s3_weights_client.time.sleep')
    def test_fetch_gives_up_after_max_retries(self, mock_sleep, client, mock_s3):
        """Test exhausted retries raise ModelLoadError with the cause."""
        mock_s3.get_object.side_effect = _client_error('SlowDown')

        with pytest.raises(ModelLoadError, match='after 2 retries') as exc_info:
            client.fetch('s3://models/v1.npz')

        assert mock_s3.get_object.call_count == 3
        assert isinstance(exc_info.value.cause, ClientError)

    @patch('emotion_inference.clients.s3_weights_client.time.sleep')
    def test_fetch_non_retryable_fails_fast(self, mock_sleep, client, mock_s3):
        """Test missing objects are not retried."""
        mock_s3.get_object.side_effect = _client_error('NoSuchKey')

        with pytest.raises(ModelLoadError, match='NoSuchKey'):
            client.fetch('s3://models/v1.npz')

        assert mock_s3.get_object.call_count == 1
        mock_sleep.assert_not_called()

    def test_fetch_botocore_error(self, client, mock_s3):
        """Test connection errors map to ModelLoadError."""
        mock_s3.get_object.side_effect = EndpointConnectionError(endpoint_url='https://s3')

        with pytest.raises(ModelLoadError) as exc_info:
            client.fetch('s3://models/v1.npz')

        assert isinstance(exc_info.value.cause, EndpointConnectionError)

    @patch('emotion_inference.clients.s3_weights_client.random.random', return_value=0.5)
    @patch('emotion_inference.clients.s3_weights_client.time.sleep')
    def test_backoff_is_capped(self, mock_sleep, mock_random, mock_s3):
        """Test exponential delays never exceed max_delay."""
        client = S3WeightsClient(
            s3_client=mock_s3, max_retries=4, base_delay=1.0, max_delay=2.0
        )
        mock_s3.get_object.side_effect = _client_error('Throttling')

        with pytest.raises(ModelLoadError):
            client.fetch('s3://models/v1.npz')

        delays = [c.args[0] for c in mock_sleep.call_args_list]
        assert delays == [1.0, 2.0, 2.0, 2.0]

    @patch('emotion_inference.clients.s3_weights_client.boto3.client')
    def test_creates_boto3_client(self, mock_boto_client):
        """Test a boto3 client is created when none is given."""
        S3WeightsClient(region_name='eu-west-1')

        mock_boto_client.assert_called_once_with('s3', region_name='eu-west-1')
