from dataclasses import dataclass, field
from typing import Optional

from trust.config import CONFIDENCE_THRESHOLD, ScoringWeights

IMG_SIZE = 224
TOP_K = 5

# Tensor value range expected by a recognition model
NORMALIZE_SIGNED = "signed"      # (x - 127.5) / 127.5 -> [-1, 1]
NORMALIZE_UNIT = "unit"          # x / 255 -> [0, 1]
NORMALIZE_IMAGENET = "imagenet"  # unit, then (x - MEAN) / STD
NORMALIZATION_MODES = (NORMALIZE_SIGNED, NORMALIZE_UNIT, NORMALIZE_IMAGENET)

MEAN = [0.485, 0.456, 0.406]
STD  = [0.229, 0.224, 0.225]

# torchvision architecture used by the default recognition backend
MODEL_NAME = "mobilenet_v2"


@dataclass(frozen=True)
class EngineConfig:
    """Settings for one classification service."""
    image_size: int = IMG_SIZE
    top_k: int = TOP_K
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    model_name: str = MODEL_NAME
    device: Optional[str] = None  # None -> cuda when available, else cpu

    def __post_init__(self):
        if self.image_size <= 0:
            raise ValueError("image_size must be positive")
        if self.top_k <= 0:
            raise ValueError("top_k must be positive")
        if not 0.0 < self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in (0, 1]")
