"""
CloudWatch metrics utilities for emotion inference.

This module provides utilities for emitting custom CloudWatch metrics
to track inference latency, model loads, errors and detected emotions.
"""

import logging
import os
import threading
from typing import Optional, Dict, Any, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class InferenceMetrics:
    """
    Emits CloudWatch metrics for emotion inference.

    Uses the boto3 CloudWatch client when enabled, otherwise logs metrics
    in structured format for CloudWatch Logs Insights parsing.
    """

    # CloudWatch accepts at most 20 datums per put_metric_data call
    MAX_BATCH_SIZE = 20

    def __init__(
        self,
        namespace: str = 'EmotionInference',
        use_cloudwatch: Optional[bool] = None,
        region_name: Optional[str] = None
    ):
        """
        Initialize metrics emitter.

        Args:
            namespace: CloudWatch namespace for metrics
            use_cloudwatch: Whether to use CloudWatch client (auto-detects if None)
            region_name: AWS region for the CloudWatch client
        """
        self.namespace = namespace
        self.metrics_buffer: List[Dict[str, Any]] = []
        self._buffer_lock = threading.Lock()

        # Auto-detect CloudWatch usage if not specified
        if use_cloudwatch is None:
            use_cloudwatch = os.getenv('PYTEST_CURRENT_TEST') is None

        self.use_cloudwatch = use_cloudwatch
        self.cloudwatch = None

        if self.use_cloudwatch:
            try:
                self.cloudwatch = boto3.client('cloudwatch', region_name=region_name)
                logger.info(f"Initialized CloudWatch metrics client for namespace: {namespace}")
            except (BotoCoreError, ClientError) as e:
                logger.warning(f"Failed to initialize CloudWatch client: {e}, falling back to logging")
                self.use_cloudwatch = False
        else:
            logger.info("CloudWatch metrics disabled, using log-based metrics")

    def emit_inference_latency(
        self,
        latency_ms: float,
        correlation_id: Optional[str] = None
    ) -> None:
        """
        Emit metric for end-to-end inference latency.

        Args:
            latency_ms: Inference latency in milliseconds
            correlation_id: Optional correlation ID for tracking
        """
        dimensions = {}
        if correlation_id:
            dimensions['CorrelationId'] = correlation_id

        self._emit_metric({
            'namespace': self.namespace,
            'metric_name': 'InferenceLatency',
            'value': latency_ms,
            'unit': 'Milliseconds',
            'dimensions': dimensions
        })

    def emit_model_load_latency(
        self,
        latency_ms: float,
        model_version: str
    ) -> None:
        """
        Emit metric for model load latency.

        Args:
            latency_ms: Load latency in milliseconds
            model_version: Version of the loaded model
        """
        self._emit_metric({
            'namespace': self.namespace,
            'metric_name': 'ModelLoadLatency',
            'value': latency_ms,
            'unit': 'Milliseconds',
            'dimensions': {'ModelVersion': model_version}
        })

    def emit_error_count(
        self,
        error_type: str,
        component: str,
        correlation_id: Optional[str] = None
    ) -> None:
        """
        Emit metric for error count by type and component.

        Args:
            error_type: Type of error (e.g., 'ModelNotReadyError')
            component: Component where error occurred (e.g., 'InferenceService')
            correlation_id: Optional correlation ID for tracking
        """
        dimensions = {
            'ErrorType': error_type,
            'Component': component
        }
        if correlation_id:
            dimensions['CorrelationId'] = correlation_id

        self._emit_metric({
            'namespace': self.namespace,
            'metric_name': 'ErrorCount',
            'value': 1,
            'unit': 'Count',
            'dimensions': dimensions
        })

    def emit_detected_emotion(
        self,
        emotion: str,
        confidence: float
    ) -> None:
        """
        Emit metric for a detected emotion with its confidence as value.

        Args:
            emotion: Selected emotion
            confidence: Confidence of the selected emotion
        """
        self._emit_metric({
            'namespace': self.namespace,
            'metric_name': 'DetectedEmotion',
            'value': confidence,
            'unit': 'None',
            'dimensions': {'Emotion': emotion}
        })

    def emit_stale_result_discarded(self) -> None:
        """Emit metric for a result discarded because a newer one was applied."""
        self._emit_metric({
            'namespace': self.namespace,
            'metric_name': 'StaleResultDiscarded',
            'value': 1,
            'unit': 'Count',
            'dimensions': {}
        })

    def _emit_metric(self, metric: dict) -> None:
        """
        Add metric to buffer and flush if needed.

        Args:
            metric: Metric dictionary with keys: namespace, metric_name, value, unit, dimensions
        """
        logger.debug(
            f"METRIC {metric['metric_name']}={metric['value']} "
            f"unit={metric['unit']} "
            f"dimensions={metric['dimensions']}"
        )

        with self._buffer_lock:
            self.metrics_buffer.append(metric)
            buffer_full = len(self.metrics_buffer) >= self.MAX_BATCH_SIZE

        if buffer_full:
            self.flush_metrics()

    def _emit_to_cloudwatch(self, metrics: List[Dict[str, Any]]) -> None:
        """
        Emit metrics to CloudWatch using boto3 client.

        Args:
            metrics: List of metric dictionaries
        """
        if not self.cloudwatch:
            return

        metric_data = []
        for metric in metrics:
            metric_datum = {
                'MetricName': metric['metric_name'],
                'Value': metric['value'],
                'Unit': metric['unit']
            }

            if metric['dimensions']:
                metric_datum['Dimensions'] = [
                    {'Name': k, 'Value': str(v)}
                    for k, v in metric['dimensions'].items()
                ]

            metric_data.append(metric_datum)

        for i in range(0, len(metric_data), self.MAX_BATCH_SIZE):
            batch = metric_data[i:i + self.MAX_BATCH_SIZE]
            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=batch
            )

        logger.debug(f"Emitted {len(metric_data)} metrics to CloudWatch")

    def flush_metrics(self) -> None:
        """
        Flush buffered metrics to CloudWatch.

        Sends buffered metrics in batches and clears the buffer. With
        CloudWatch disabled the buffer is only cleared, since every metric
        was already logged when emitted.
        """
        with self._buffer_lock:
            if not self.metrics_buffer:
                return
            pending, self.metrics_buffer = self.metrics_buffer, []

        logger.debug(f"Flushing {len(pending)} buffered metrics")

        if self.use_cloudwatch and self.cloudwatch:
            try:
                self._emit_to_cloudwatch(pending)
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Failed to flush metrics to CloudWatch: {e}", exc_info=True)
