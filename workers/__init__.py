"""Long-lived service objects for PlasticWise."""

from workers.classification_service import (
    ClassificationReport,
    ModelState,
    PlasticClassifierService,
)

__all__ = [
    "ClassificationReport",
    "ModelState",
    "PlasticClassifierService",
]
