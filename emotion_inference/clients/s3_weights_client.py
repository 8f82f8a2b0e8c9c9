"""
Amazon S3 client for fetching model weight archives.

This module provides a client that downloads ``.npz`` weight archives from
S3 with exponential backoff retry logic for throttling and transient
service errors.
"""

import logging
import random
import time
from typing import Optional, Tuple
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from emotion_inference.exceptions import ModelLoadError


logger = logging.getLogger(__name__)


class S3WeightsClient:
    """
    Client for downloading model weight archives from Amazon S3.

    This client handles:
    - s3://bucket/key URI parsing
    - Exponential backoff with jitter for throttling errors
    - Mapping of failures to ModelLoadError

    Attributes:
        s3_client: Boto3 S3 client
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Base delay for exponential backoff in seconds (default: 0.1)
        max_delay: Maximum delay for exponential backoff in seconds (default: 2.0)
    """

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_BASE_DELAY = 0.1  # 100ms
    DEFAULT_MAX_DELAY = 2.0   # 2s

    RETRYABLE_ERRORS = {
        'SlowDown',
        'Throttling',
        'ThrottlingException',
        'RequestTimeout',
        'InternalError',
        'ServiceUnavailable',
    }

    def __init__(
        self,
        region_name: Optional[str] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        s3_client=None
    ):
        """
        Initialize S3 weights client.

        Args:
            region_name: AWS region name (uses default if not specified)
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff in seconds
            max_delay: Maximum delay for exponential backoff in seconds
            s3_client: Pre-built boto3 S3 client (created if None)
        """
        self.s3_client = s3_client or boto3.client('s3', region_name=region_name)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

        logger.info(
            f"Initialized S3WeightsClient with max_retries={max_retries}, "
            f"base_delay={base_delay}s, max_delay={max_delay}s"
        )

    @staticmethod
    def parse_uri(uri: str) -> Tuple[str, str]:
        """
        Split an s3:// URI into bucket and key.

        Args:
            uri: URI of the form s3://bucket/key

        Returns:
            Tuple of (bucket, key)

        Raises:
            ValueError: When the URI is not a valid S3 object URI
        """
        parsed = urlparse(uri)
        if parsed.scheme != 's3':
            raise ValueError(f"Not an S3 URI: {uri}")

        bucket = parsed.netloc
        key = parsed.path.lstrip('/')
        if not bucket or not key:
            raise ValueError(f"S3 URI must include bucket and key: {uri}")

        return bucket, key

    def fetch(self, uri: str) -> bytes:
        """
        Download an object from S3.

        Args:
            uri: s3://bucket/key of the weight archive

        Returns:
            Object body as bytes

        Raises:
            ValueError: When the URI is malformed
            ModelLoadError: When the download fails after retries or with a
                            non-retryable error
        """
        bucket, key = self.parse_uri(uri)
        attempt = 0

        while True:
            try:
                logger.debug(
                    f"Fetching weights (attempt {attempt + 1}/{self.max_retries + 1}): "
                    f"bucket={bucket}, key={key}"
                )

                response = self.s3_client.get_object(Bucket=bucket, Key=key)
                body = response['Body'].read()

                logger.info(f"Fetched weights from {uri}: {len(body)} bytes")
                return body

            except ClientError as e:
                error_code = e.response.get('Error', {}).get('Code', 'Unknown')

                if error_code not in self.RETRYABLE_ERRORS:
                    logger.error(f"S3 fetch failed with non-retryable error: {error_code}")
                    raise ModelLoadError(
                        f"Failed to fetch weights from {uri}: {error_code}",
                        cause=e
                    ) from e

                if attempt >= self.max_retries:
                    logger.error(f"S3 {error_code} after {self.max_retries} retries")
                    raise ModelLoadError(
                        f"Failed to fetch weights from {uri} after "
                        f"{self.max_retries} retries: {error_code}",
                        cause=e
                    ) from e

                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                # Add jitter (±25%)
                jitter = delay * 0.25 * (2 * random.random() - 1)
                delay_with_jitter = max(0, delay + jitter)

                logger.warning(
                    f"S3 {error_code} on attempt {attempt + 1}, "
                    f"retrying in {delay_with_jitter:.2f}s"
                )

                time.sleep(delay_with_jitter)
                attempt += 1

            except BotoCoreError as e:
                logger.error(f"Unexpected error fetching weights from S3: {e}")
                raise ModelLoadError(f"Failed to fetch weights from {uri}: {e}", cause=e) from e
