"""
Domain models for plastic classification results.
"""
from dataclasses import dataclass
from enum import Enum


class PlasticCategory(str, Enum):
    """Plastic categories the engine can report."""
    PET = "PET"
    HDPE = "HDPE"
    PVC = "PVC"
    LDPE = "LDPE"
    PP = "PP"
    PS = "PS"
    OTHER = "OTHER"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class RecognitionLabel:
    """One (text, probability) pair from the recognition model."""
    text: str
    probability: float

    def __post_init__(self):
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError(f"Label probability must be in [0, 1], got {self.probability}")


@dataclass(frozen=True)
class ClassificationResult:
    """Final engine output."""
    category: PlasticCategory
    confidence: float

    @classmethod
    def unknown(cls) -> "ClassificationResult":
        return cls(category=PlasticCategory.UNKNOWN, confidence=0.0)

    @property
    def is_unknown(self) -> bool:
        """Check if the result is unknown."""
        return self.category is PlasticCategory.UNKNOWN

    def to_dict(self) -> dict:
        return {"category": self.category.value, "confidence": float(self.confidence)}
