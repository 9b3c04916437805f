import logging
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple, Union

import torch
from torchvision import models

from domain.errors import InferenceError, ModelLoadError
from domain.models import RecognitionLabel
from ml.config import EngineConfig, NORMALIZE_IMAGENET, NORMALIZE_SIGNED

logger = logging.getLogger(__name__)

LabelLike = Union[RecognitionLabel, Tuple[str, float]]


class RecognitionModel(ABC):
    """Loaded handle of a generic visual-recognition model."""

    # Value range the model expects from the normalizer
    normalization: str = NORMALIZE_SIGNED

    @abstractmethod
    def classify(self, tensor: torch.Tensor, top_k: int) -> Sequence[LabelLike]:
        """Return up to top_k RecognitionLabels or (text, probability) pairs."""


class RecognitionBackend(ABC):
    """Factory that obtains a RecognitionModel."""

    @abstractmethod
    def load(self, config: EngineConfig) -> RecognitionModel:
        """Load the model or raise ModelLoadError."""


def top_k_labels(probs: torch.Tensor, categories: Sequence[str], top_k: int) -> List[Tuple[str, float]]:
    """Turn a 1-D probability vector into ordered (text, probability) pairs."""
    k = min(top_k, probs.shape[0])
    values, indices = torch.topk(probs, k)
    return [(categories[idx], p) for p, idx in zip(values.tolist(), indices.tolist())]


class TorchvisionRecognitionModel(RecognitionModel):
    normalization = NORMALIZE_IMAGENET

    def __init__(self, model: torch.nn.Module, categories: Sequence[str], device: torch.device):
        self.model = model
        self.categories = list(categories)
        self.device = device

    @torch.no_grad()
    def classify(self, tensor: torch.Tensor, top_k: int) -> List[Tuple[str, float]]:
        x = tensor.to(self.device, dtype=torch.float32, non_blocking=True)
        logits = self.model(x)
        probs = torch.softmax(logits, dim=1)[0].detach().cpu()
        return top_k_labels(probs, self.categories, top_k)


class TorchvisionBackend(RecognitionBackend):
    """Pretrained ImageNet classifier from torchvision (weights download on first load)."""

    def load(self, config: EngineConfig) -> RecognitionModel:
        if config.device:
            device = torch.device(config.device)
        else:
            device = torch.device("cuda" if torch.cuda.is_available() else "cpu")

        try:
            weights = models.get_model_weights(config.model_name).DEFAULT
            model = models.get_model(config.model_name, weights=weights)
        except Exception as e:
            raise ModelLoadError(f"Failed to load {config.model_name}: {e}") from e

        # force FP32
        model = model.float().to(device)
        model.eval()

        categories = weights.meta["categories"]
        logger.info("Loaded %s (%d categories) on %s", config.model_name, len(categories), device)
        return TorchvisionRecognitionModel(model, categories, device)


def _clamped_label(item: LabelLike) -> RecognitionLabel:
    if isinstance(item, RecognitionLabel):
        text, probability = item.text, item.probability
    else:
        text, probability = item
    # float32 softmax can land a hair outside [0, 1]
    return RecognitionLabel(text=str(text), probability=min(1.0, max(0.0, float(probability))))


def run_inference(model: RecognitionModel, tensor: torch.Tensor, top_k: int) -> List[RecognitionLabel]:
    """
    Call the model and return its labels, highest probability first.

    Probabilities are clamped to [0, 1] here, once for every backend. Any
    failure of the model, including malformed output, becomes InferenceError.
    """
    try:
        labels = [_clamped_label(item) for item in model.classify(tensor, top_k)]
    except Exception as e:
        raise InferenceError(f"Recognition model failed: {e}") from e

    labels.sort(key=lambda label: label.probability, reverse=True)
    return labels[:top_k]
