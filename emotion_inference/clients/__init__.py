"""AWS clients for emotion inference."""

from .s3_weights_client import S3WeightsClient

__all__ = ['S3WeightsClient']
