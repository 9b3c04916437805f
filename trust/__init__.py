"""Scoring and decision layer for PlasticWise."""

from trust.image_properties import ImageStatistics, analyze_image_properties
from trust.signatures import REGISTRY, CategorySignature, SignatureRegistry
from trust.scoring import score_categories
from trust.decision_engine import DecisionEngine, decide

__all__ = [
    "ImageStatistics",
    "analyze_image_properties",
    "REGISTRY",
    "CategorySignature",
    "SignatureRegistry",
    "score_categories",
    "DecisionEngine",
    "decide",
]
