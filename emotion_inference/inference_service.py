"""
Inference Service orchestrating feature extraction and classification.

This module coordinates the Feature Extractor, the Classifier (backed by
the Model Store's current handle) and Session State, selects the reported
emotion from the classifier distribution and delivers results or
structured errors to a result sink.
"""

import itertools
import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Protocol

from emotion_inference.classifier.emotion_classifier import EmotionClassifier
from emotion_inference.config.settings import Settings, get_settings
from emotion_inference.exceptions import (
    EmotionInferenceError,
    EmptyInputError,
    InferenceTimeoutError,
    ModelNotReadyError,
)
from emotion_inference.extractors.text_feature_extractor import TextFeatureExtractor
from emotion_inference.models.distribution import Distribution, PROBABILITY_TOLERANCE
from emotion_inference.models.emotion import Emotion, TIE_BREAK_PRIORITY
from emotion_inference.models.emotion_result import EmotionResult
from emotion_inference.models.error_report import ErrorReport
from emotion_inference.models.session_snapshot import SessionSnapshot
from emotion_inference.session.session_state import SessionState
from emotion_inference.store.model_loader import ModelLoader
from emotion_inference.store.model_store import ModelStore
from emotion_inference.utils.metrics import InferenceMetrics
from emotion_inference.utils.structured_logger import log_error, log_inference


logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    """Consumer of inference outcomes (e.g. a UI)."""

    def on_result(self, result: EmotionResult, snapshot: SessionSnapshot) -> None:
        """Receive a successful result and the session snapshot after it."""
        ...

    def on_error(self, report: ErrorReport) -> None:
        """Receive a structured error for a failed inference."""
        ...


def select_emotion(
    distribution: Distribution,
    tolerance: float = PROBABILITY_TOLERANCE
) -> Emotion:
    """
    Arg-max selection with a fixed tie-break.

    Emotions whose probability is within ``tolerance`` of the maximum are
    tied; ties resolve by TIE_BREAK_PRIORITY (angry > sad > happy > neutral).

    Args:
        distribution: Classifier output
        tolerance: Tie tolerance

    Returns:
        Selected emotion
    """
    top = distribution.max_probability()
    for emotion in TIE_BREAK_PRIORITY:
        if top - distribution[emotion] <= tolerance:
            return emotion
    # Unreachable: the maximum itself is always within tolerance
    raise AssertionError("No emotion matched the maximum probability")


class InferenceService:
    """
    Orchestrates text -> features -> distribution -> EmotionResult.

    Every delivered text is stamped with a monotonically increasing sequence
    number before any work starts. Session updates from overlapping calls are
    applied in delivery order: a result whose sequence is lower than the one
    already applied is returned to its caller but not written to the session.
    """

    def __init__(
        self,
        model_store: ModelStore,
        extractor: Optional[TextFeatureExtractor] = None,
        classifier: Optional[EmotionClassifier] = None,
        session: Optional[SessionState] = None,
        result_sink: Optional[ResultSink] = None,
        metrics: Optional[InferenceMetrics] = None,
        tie_tolerance: float = PROBABILITY_TOLERANCE,
        default_timeout_seconds: Optional[float] = None
    ):
        """
        Initialize inference service.

        Args:
            model_store: Store providing the current model
            extractor: Feature extractor (creates one matching the store if None)
            classifier: Classifier (creates new if None)
            session: Session state (creates new if None)
            result_sink: Optional consumer of results and errors
            metrics: Metrics emitter (reuses the store's if None)
            tie_tolerance: Tolerance for arg-max ties
            default_timeout_seconds: Timeout applied by submit() (None disables)
        """
        self.model_store = model_store
        self.extractor = extractor or TextFeatureExtractor(
            dimension=model_store.expected_dimension,
            version=model_store.feature_version
        )
        self.classifier = classifier or EmotionClassifier()
        self.session = session or SessionState()
        self.result_sink = result_sink
        self.metrics = metrics or model_store.metrics
        self.tie_tolerance = tie_tolerance
        self.default_timeout_seconds = default_timeout_seconds

        self._sequence = itertools.count(1)
        self._sequence_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logger.info("Initialized InferenceService")

    def next_sequence(self) -> int:
        """Stamp a new delivery sequence number."""
        with self._sequence_lock:
            return next(self._sequence)

    def infer(
        self,
        text: str,
        sequence: Optional[int] = None,
        correlation_id: Optional[str] = None
    ) -> EmotionResult:
        """
        Infer the dominant emotion of a text.

        Args:
            text: Text to analyse (typed or transcribed)
            sequence: Delivery sequence number (stamped now if None)
            correlation_id: Correlation ID for tracking (generates UUID if None)

        Returns:
            EmotionResult

        Raises:
            EmptyInputError: When text is empty after trimming
            ModelNotReadyError: When no model is ready
            DimensionMismatchError: On feature/model version skew
            ClassificationError: When the model output is unusable
        """
        if sequence is None:
            sequence = self.next_sequence()
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        start_time = time.time()

        try:
            if not isinstance(text, str) or not text.strip():
                raise EmptyInputError("Input text is empty")

            handle = self.model_store.current()
            if handle is None:
                raise ModelNotReadyError(
                    f"No model is ready (state={self.model_store.state.value})"
                )

            vector = self.extractor.extract(text)
            distribution = self.classifier.classify(handle, vector)
            emotion = select_emotion(distribution, self.tie_tolerance)
            result = EmotionResult(
                emotion=emotion,
                confidence=distribution[emotion],
                distribution=distribution
            )
        except EmotionInferenceError as e:
            self._record_failure(e, correlation_id)
            raise

        if not self.session.apply_result(sequence, text, result):
            logger.info(
                f"Result for sequence {sequence} superseded by sequence "
                f"{self.session.applied_sequence}",
                extra={'correlation_id': correlation_id}
            )
            self.metrics.emit_stale_result_discarded()

        latency_ms = (time.time() - start_time) * 1000
        log_inference(
            logger,
            correlation_id,
            sequence,
            result.emotion.value,
            result.confidence,
            latency_ms
        )
        self.metrics.emit_inference_latency(latency_ms)
        self.metrics.emit_detected_emotion(result.emotion.value, result.confidence)

        return result

    def infer_with_timeout(
        self,
        text: str,
        timeout_seconds: float,
        sequence: Optional[int] = None,
        correlation_id: Optional[str] = None
    ) -> EmotionResult:
        """
        Run infer() on a worker and bound the wait.

        The sequence number is stamped before dispatch. A timed-out inference
        keeps running and may still update the session if nothing newer has
        been applied.

        Args:
            text: Text to analyse
            timeout_seconds: Maximum seconds to wait
            sequence: Delivery sequence number (stamped now if None)
            correlation_id: Correlation ID for tracking

        Returns:
            EmotionResult

        Raises:
            InferenceTimeoutError: When the timeout elapses
        """
        if sequence is None:
            sequence = self.next_sequence()
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        future = self._get_executor().submit(
            self.infer, text, sequence=sequence, correlation_id=correlation_id
        )

        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeoutError as e:
            error = InferenceTimeoutError(
                f"Inference did not complete within {timeout_seconds}s",
                timeout_seconds=timeout_seconds
            )
            self._record_failure(error, correlation_id)
            raise error from e

    def submit(
        self,
        text: str,
        source: str = 'text',
        correlation_id: Optional[str] = None
    ) -> Optional[EmotionResult]:
        """
        Deliver one text (typed input or a capture transcript).

        Never raises: the result sink receives the result and a session
        snapshot on success, or an ErrorReport on failure.

        Args:
            text: Text to analyse
            source: Origin of the text ('text' or 'capture'), for logging
            correlation_id: Correlation ID for tracking

        Returns:
            EmotionResult, or None when inference failed
        """
        sequence = self.next_sequence()
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        logger.debug(
            "Text delivered: source=%s, sequence=%d", source, sequence,
            extra={'correlation_id': correlation_id}
        )

        try:
            if self.default_timeout_seconds:
                result = self.infer_with_timeout(
                    text,
                    self.default_timeout_seconds,
                    sequence=sequence,
                    correlation_id=correlation_id
                )
            else:
                result = self.infer(text, sequence=sequence, correlation_id=correlation_id)
        except EmotionInferenceError as e:
            self._deliver_error(ErrorReport.from_exception(e, sequence, correlation_id))
            return None
        except Exception as e:
            log_error(
                logger,
                correlation_id,
                component='InferenceService',
                error_type=type(e).__name__,
                error_message=f"Unexpected error during inference: {e}"
            )
            self.metrics.emit_error_count(type(e).__name__, 'InferenceService', correlation_id)
            self._deliver_error(ErrorReport.from_exception(e, sequence, correlation_id))
            return None

        self._deliver_result(result)
        return result

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def close(self) -> None:
        """Stop the timeout worker pool (in-flight inferences finish) and flush metrics."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
        self.metrics.flush_metrics()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4,
                    thread_name_prefix='inference'
                )
            return self._executor

    def _record_failure(self, error: EmotionInferenceError, correlation_id: Optional[str]) -> None:
        if error.recoverable:
            logger.warning(
                f"Inference failed: {error.kind}: {error.message}",
                extra={'correlation_id': correlation_id, 'error_type': error.kind}
            )
        else:
            log_error(
                logger,
                correlation_id,
                component='InferenceService',
                error_type=error.kind,
                error_message=error.message,
                exc_info=False
            )
        self.metrics.emit_error_count(type(error).__name__, 'InferenceService', correlation_id)

    def _deliver_result(self, result: EmotionResult) -> None:
        if self.result_sink is None:
            return
        try:
            self.result_sink.on_result(result, self.session.snapshot())
        except Exception as e:
            log_error(
                logger,
                None,
                component='ResultSink',
                error_type=type(e).__name__,
                error_message=f"Result sink failed: {e}"
            )

    def _deliver_error(self, report: ErrorReport) -> None:
        if self.result_sink is None:
            return
        try:
            self.result_sink.on_error(report)
        except Exception as e:
            log_error(
                logger,
                report.correlation_id,
                component='ResultSink',
                error_type=type(e).__name__,
                error_message=f"Result sink failed: {e}"
            )


def create_inference_service(
    settings: Optional[Settings] = None,
    result_sink: Optional[ResultSink] = None
) -> InferenceService:
    """
    Build an InferenceService wired from settings.

    The model is not loaded; call ``service.model_store.load(settings.model_config())``.

    Args:
        settings: Settings (uses global settings if None)
        result_sink: Optional consumer of results and errors

    Returns:
        InferenceService
    """
    settings = settings or get_settings()

    metrics = InferenceMetrics(
        namespace=settings.metrics_namespace,
        use_cloudwatch=None if settings.enable_metrics else False,
        region_name=settings.aws_region
    )
    extractor = TextFeatureExtractor(
        dimension=settings.feature_dimension,
        version=settings.feature_version
    )
    loader = ModelLoader(
        region_name=settings.aws_region,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay
    )
    store = ModelStore(
        expected_dimension=settings.feature_dimension,
        feature_version=settings.feature_version,
        loader=loader,
        metrics=metrics
    )

    return InferenceService(
        model_store=store,
        extractor=extractor,
        classifier=EmotionClassifier(),
        session=SessionState(),
        result_sink=result_sink,
        metrics=metrics,
        tie_tolerance=settings.tie_tolerance,
        default_timeout_seconds=settings.inference_timeout_seconds or None
    )
