"""Domain types shared by the ml and trust layers."""

from domain.models import PlasticCategory, RecognitionLabel, ClassificationResult
from domain.errors import (
    PlasticEngineError,
    ModelLoadError,
    InvalidImageError,
    ModelNotReadyError,
    InferenceError,
)

__all__ = [
    "PlasticCategory",
    "RecognitionLabel",
    "ClassificationResult",
    "PlasticEngineError",
    "ModelLoadError",
    "InvalidImageError",
    "ModelNotReadyError",
    "InferenceError",
]
