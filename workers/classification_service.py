"""
PlasticClassifierService: owns the recognition model handle and its lifecycle.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

from domain.errors import (
    InferenceError, InvalidImageError, ModelLoadError, ModelNotReadyError
)
from domain.models import ClassificationResult, PlasticCategory, RecognitionLabel
from ml.action_guidance import RecyclingVerdict, get_recycling_verdict
from ml.classifier import RecognitionBackend, RecognitionModel, TorchvisionBackend, run_inference
from ml.config import EngineConfig
from ml.preprocess import normalized_tensor
from trust.decision_engine import DecisionEngine, decide
from trust.image_properties import ImageStatistics, analyze_image_properties
from trust.signatures import REGISTRY, SignatureRegistry

logger = logging.getLogger(__name__)


class ModelState(Enum):
    """Model lifecycle state."""
    UNLOADED = "UNLOADED"
    LOADING = "LOADING"
    READY = "READY"
    LOAD_FAILED = "LOAD_FAILED"


_TRANSITIONS = {
    ModelState.UNLOADED: {ModelState.LOADING},
    ModelState.LOADING: {ModelState.READY, ModelState.LOAD_FAILED},
    ModelState.READY: {ModelState.LOADING},
    ModelState.LOAD_FAILED: {ModelState.LOADING},
}


@dataclass
class ClassificationReport:
    """Everything the engine computed for one image."""
    result: ClassificationResult
    labels: List[RecognitionLabel]
    statistics: ImageStatistics
    scores: Dict[PlasticCategory, float]

    @property
    def verdict(self) -> RecyclingVerdict:
        return get_recycling_verdict(self.result.category)


class PlasticClassifierService:
    """
    Long-lived classification service.

    Model loading runs on a single background thread; overlapping load
    requests share one in-flight load. Inference through the model handle is
    serialized. Preprocessing, property analysis and scoring are pure and run
    on the caller's thread.
    """

    def __init__(self, backend: Optional[RecognitionBackend] = None,
                 config: Optional[EngineConfig] = None,
                 registry: SignatureRegistry = REGISTRY):
        """
        Initialize the service. No model is loaded until load_model().

        Args:
            backend: Recognition backend (default: torchvision pretrained model)
            config: Engine configuration
            registry: Category signature registry
        """
        self.config = config or EngineConfig()
        self.backend = backend or TorchvisionBackend()
        self.decision_engine = DecisionEngine(
            threshold=self.config.confidence_threshold,
            weights=self.config.weights,
            registry=registry,
        )

        self._model: Optional[RecognitionModel] = None
        self._state = ModelState.UNLOADED
        self._state_lock = threading.Lock()
        self._inference_lock = threading.Lock()
        self._load_future: Optional[Future] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="model-loader")
        self._closed = False

    @property
    def state(self) -> ModelState:
        with self._state_lock:
            return self._state

    @property
    def is_ready(self) -> bool:
        return self.state is ModelState.READY

    def _transition(self, new_state: ModelState):
        # Caller holds _state_lock
        if new_state not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid model state transition {self._state.value} -> {new_state.value}")
        logger.info("Model state %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def load_model_async(self) -> Future:
        """
        Start loading (or reloading) the recognition model.

        Returns:
            Future resolving to True on success, False on failure. While a load
            is in flight every caller gets the same future.
        """
        with self._state_lock:
            if self._closed:
                raise RuntimeError("Service is closed")
            if self._load_future is not None and not self._load_future.done():
                return self._load_future

            self._transition(ModelState.LOADING)
            self._model = None
            self._load_future = self._executor.submit(self._load)
            return self._load_future

    def load_model(self, timeout: Optional[float] = None) -> bool:
        """Load the model and wait for the outcome."""
        try:
            future = self.load_model_async()
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Model load still running after %.1fs", timeout)
            return False
        except RuntimeError as e:
            logger.error("Cannot load model: %s", e)
            return False

    def _load(self) -> bool:
        try:
            model = self.backend.load(self.config)
        except ModelLoadError as e:
            logger.error("Model load failed: %s", e)
        except Exception:
            logger.exception("Unexpected error while loading model")
        else:
            with self._state_lock:
                self._model = model
                self._transition(ModelState.READY)
            return True

        with self._state_lock:
            self._transition(ModelState.LOAD_FAILED)
        return False

    def analyze(self, image: np.ndarray) -> ClassificationReport:
        """
        Classify an image and return the full breakdown.

        Raises:
            ModelNotReadyError: Model is not READY
            InvalidImageError: Zero-size or malformed image
            InferenceError: Recognition model failed
        """
        with self._state_lock:
            model = self._model
            state = self._state
        if state is not ModelState.READY or model is None:
            raise ModelNotReadyError(f"Model is {state.value}")

        with normalized_tensor(image, model.normalization, self.config.image_size) as scope:
            statistics = analyze_image_properties(image)
            with self._inference_lock:
                labels = run_inference(model, scope.tensor, self.config.top_k)

        scores = self.decision_engine.score(labels, statistics)
        result = decide(scores, self.decision_engine.threshold)

        return ClassificationReport(
            result=result,
            labels=labels,
            statistics=statistics,
            scores=scores,
        )

    def classify_image(self, image: np.ndarray) -> ClassificationResult:
        """
        Classify an image. Never raises: failures are logged and give (UNKNOWN, 0).
        """
        try:
            return self.analyze(image).result
        except ModelNotReadyError as e:
            logger.warning("Classification rejected: %s", e)
        except InvalidImageError as e:
            logger.warning("Invalid image: %s", e)
        except InferenceError as e:
            logger.error("Inference failed: %s", e)
        except Exception:
            logger.exception("Unexpected classification error")
        return ClassificationResult.unknown()

    def close(self):
        """Stop the loader thread. A running load is left to finish."""
        with self._state_lock:
            self._closed = True
        self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
