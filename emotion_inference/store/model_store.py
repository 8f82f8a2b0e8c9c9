"""
Model Store owning the lifecycle of the current classification model.

Loads run on a single background worker so callers stay responsive. All
state transitions go through one lock:

    unloaded -> loading -> ready  -> (load: loading | unload: unloaded)
                loading -> failed -> (load: loading | unload: unloaded)

A load requested while another is in flight is rejected with
LoadInProgressError.
"""

import asyncio
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Mapping, Optional, Union

from emotion_inference.exceptions import (
    DimensionMismatchError,
    LoadInProgressError,
    ModelLoadError,
    ModelNotReadyError,
)
from emotion_inference.models.emotion import Emotion
from emotion_inference.models.model_config import ModelConfig
from emotion_inference.store.model_handle import ModelHandle, ModelState
from emotion_inference.store.model_loader import ModelLoader
from emotion_inference.utils.metrics import InferenceMetrics
from emotion_inference.utils.structured_logger import log_error, log_model_load


logger = logging.getLogger(__name__)


class ModelStore:
    """
    Owns at most one current ModelHandle.

    The store validates at load time that the model was built for the
    extractor's feature version and dimensionality, so a ready handle is
    always compatible with the extractor it was created for.
    """

    def __init__(
        self,
        expected_dimension: int,
        feature_version: str,
        loader: Optional[ModelLoader] = None,
        metrics: Optional[InferenceMetrics] = None,
        executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Initialize model store.

        Args:
            expected_dimension: Feature vector length produced by the extractor
            feature_version: Extractor version models must be built for
            loader: Model loader (creates new if None)
            metrics: Metrics emitter (creates new if None)
            executor: Background executor for loads (creates a single worker if None)
        """
        self.expected_dimension = expected_dimension
        self.feature_version = feature_version
        self.loader = loader or ModelLoader()
        self.metrics = metrics or InferenceMetrics()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix='model-store'
        )

        self._lock = threading.RLock()
        self._state = ModelState.UNLOADED
        self._handle: Optional[ModelHandle] = None
        self._pending: Optional[Future] = None
        self._last_error: Optional[ModelLoadError] = None
        # Bumped on every load/unload; stale load results are discarded
        self._generation = 0

        logger.info(
            f"Initialized ModelStore for feature_version={feature_version}, "
            f"expected_dimension={expected_dimension}"
        )

    @property
    def state(self) -> ModelState:
        with self._lock:
            return self._state

    @property
    def last_error(self) -> Optional[ModelLoadError]:
        """Error of the most recent failed load (cleared by the next load/unload)."""
        with self._lock:
            return self._last_error

    def load(self, config: Union[ModelConfig, Mapping[str, Any]]) -> 'Future[ModelHandle]':
        """
        Start loading a model in the background.

        A load from ``ready`` is a reload: the previous handle is released
        immediately and ``current()`` returns None until the new one is ready.

        Args:
            config: ModelConfig or a plain mapping accepted by ModelConfig.from_dict

        Returns:
            Future resolving to the ready ModelHandle, or failing with ModelLoadError

        Raises:
            LoadInProgressError: When another load is in flight
            ValueError: When a mapping config is invalid
        """
        if not isinstance(config, ModelConfig):
            config = ModelConfig.from_dict(config)

        with self._lock:
            if self._state is ModelState.LOADING:
                raise LoadInProgressError(
                    "A model load is already in progress",
                    details={'requested_version': config.version}
                )

            self._release_handle()
            self._state = ModelState.LOADING
            self._last_error = None
            self._generation += 1
            generation = self._generation

            try:
                future = self._executor.submit(self._load_worker, config, generation)
            except RuntimeError as e:
                self._state = ModelState.FAILED
                self._last_error = ModelLoadError(
                    f"Model store cannot schedule loads: {e}",
                    cause=e
                )
                raise self._last_error from e

            self._pending = future

        logger.info(
            f"Model load started: version={config.version}, "
            f"source={config.weights_uri or ModelLoader.GENERATED_SOURCE}"
        )
        return future

    async def load_async(self, config: Union[ModelConfig, Mapping[str, Any]]) -> ModelHandle:
        """
        Load a model and await readiness from asyncio code.

        Args:
            config: ModelConfig or mapping

        Returns:
            The ready ModelHandle
        """
        return await asyncio.wrap_future(self.load(config))

    def current(self) -> Optional[ModelHandle]:
        """Return the ready handle, or None. Never waits for a load."""
        with self._lock:
            if self._state is ModelState.READY:
                return self._handle
            return None

    def wait_until_ready(self, timeout: Optional[float] = None) -> ModelHandle:
        """
        Block until the in-flight load finishes.

        Args:
            timeout: Maximum seconds to wait (None waits forever)

        Returns:
            The ready ModelHandle

        Raises:
            ModelNotReadyError: When nothing is loading or the timeout elapses
            ModelLoadError: When the in-flight load fails
        """
        with self._lock:
            if self._state is ModelState.READY:
                return self._handle
            pending = self._pending

        if pending is None:
            raise ModelNotReadyError(f"No model is loaded (state={self.state.value})")

        try:
            return pending.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise ModelNotReadyError(f"Model not ready after {timeout}s") from e

    def unload(self) -> None:
        """
        Release the current handle.

        Safe from ``ready``, ``failed`` and ``loading`` (the in-flight load
        is discarded); a no-op from ``unloaded``.
        """
        with self._lock:
            if self._state is ModelState.UNLOADED:
                return

            previous_state = self._state
            self._release_handle()
            self._state = ModelState.UNLOADED
            self._pending = None
            self._last_error = None
            self._generation += 1

        logger.info(f"Model unloaded (previous state={previous_state.value})")

    def close(self) -> None:
        """Unload and stop the background worker if this store created it."""
        self.unload()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        self.metrics.flush_metrics()

    def _release_handle(self) -> None:
        if self._handle is not None:
            self._handle._set_state(ModelState.UNLOADED)
            self._handle = None

    def _load_worker(self, config: ModelConfig, generation: int) -> ModelHandle:
        """Build and validate a model, then publish it if still wanted."""
        start_time = time.time()

        try:
            self._check_version(config)
            handle = self.loader.load(config, input_dimension=self.expected_dimension)
            self._check_dimensions(handle)
        except Exception as e:
            if isinstance(e, ModelLoadError):
                error = e
            else:
                error = ModelLoadError(
                    f"Failed to load model version {config.version}: {e}",
                    cause=e
                )
            self._fail(generation, error)
            if error is e:
                raise
            raise error from e

        with self._lock:
            if generation != self._generation:
                handle._set_state(ModelState.UNLOADED)
                raise ModelLoadError(
                    f"Load of model version {config.version} was superseded by unload"
                )

            handle._set_state(ModelState.READY)
            self._handle = handle
            self._state = ModelState.READY
            self._pending = None

        latency_ms = (time.time() - start_time) * 1000
        log_model_load(logger, config.version, handle.input_dimension, handle.source, latency_ms)
        self.metrics.emit_model_load_latency(latency_ms, config.version)

        return handle

    def _fail(self, generation: int, error: ModelLoadError) -> None:
        with self._lock:
            if generation == self._generation:
                self._state = ModelState.FAILED
                self._last_error = error
                self._pending = None

        cause = error.cause or error
        log_error(
            logger,
            correlation_id=None,
            component='ModelStore',
            error_type=type(cause).__name__,
            error_message=error.message,
            exc_info=False
        )
        self.metrics.emit_error_count(error_type=type(cause).__name__, component='ModelStore')

    def _check_version(self, config: ModelConfig) -> None:
        if config.version != self.feature_version:
            mismatch = DimensionMismatchError(
                f"Model version {config.version} is not compatible with "
                f"feature version {self.feature_version}",
                expected=self.feature_version,
                actual=config.version
            )
            raise ModelLoadError(mismatch.message, cause=mismatch) from mismatch

    def _check_dimensions(self, handle: ModelHandle) -> None:
        if handle.input_dimension != self.expected_dimension:
            mismatch = DimensionMismatchError(
                f"Model input dimension {handle.input_dimension} does not match "
                f"feature dimension {self.expected_dimension}",
                expected=self.expected_dimension,
                actual=handle.input_dimension
            )
            raise ModelLoadError(mismatch.message, cause=mismatch) from mismatch

        if handle.output_dimension != len(Emotion):
            mismatch = DimensionMismatchError(
                f"Model output dimension {handle.output_dimension} does not match "
                f"the {len(Emotion)}-emotion taxonomy",
                expected=len(Emotion),
                actual=handle.output_dimension
            )
            raise ModelLoadError(mismatch.message, cause=mismatch) from mismatch
