"""Per-category scoring from recognition labels and pixel statistics."""

from typing import Dict, Optional, Sequence

from domain.models import PlasticCategory, RecognitionLabel
from trust.config import ScoringWeights
from trust.image_properties import ImageStatistics
from trust.signatures import (
    REGISTRY, CategorySignature, SignatureRegistry, TextureLevel, TransparencyLevel
)


def keyword_score(labels: Sequence[RecognitionLabel], signature: CategorySignature,
                  keyword_weight: float) -> float:
    """
    Sum of (keyword hits x label probability x keyword_weight) over all labels.

    A keyword hits when it is a case-insensitive substring of the label text,
    so one label can hit several keywords.
    """
    score = 0.0
    for label in labels:
        text = label.text.lower()
        hits = sum(1 for keyword in signature.keywords if keyword in text)
        score += hits * label.probability * keyword_weight
    return score


def visual_score(stats: ImageStatistics, signature: CategorySignature,
                 weights: ScoringWeights) -> float:
    """Bonus for agreement between the declared visual profile and measured statistics."""
    profile = signature.visual_profile
    score = 0.0

    if profile.transparency is TransparencyLevel.HIGH and stats.is_transparent:
        score += weights.transparency_bonus
    if profile.transparency is TransparencyLevel.LOW and stats.is_opaque:
        score += weights.transparency_bonus
    if profile.texture is TextureLevel.SMOOTH and not stats.has_texture:
        score += weights.texture_bonus
    if profile.texture is TextureLevel.RIGID and stats.has_texture:
        score += weights.texture_bonus

    return score


def score_category(labels: Sequence[RecognitionLabel], stats: ImageStatistics,
                   signature: CategorySignature,
                   weights: Optional[ScoringWeights] = None) -> float:
    """Unnormalised score for one category."""
    weights = weights or ScoringWeights()
    score = keyword_score(labels, signature, weights.keyword_weight)
    score += visual_score(stats, signature, weights)
    return score * signature.base_weight


def score_categories(labels: Sequence[RecognitionLabel], stats: ImageStatistics,
                     weights: Optional[ScoringWeights] = None,
                     registry: SignatureRegistry = REGISTRY) -> Dict[PlasticCategory, float]:
    """
    Score every registered category independently.

    Args:
        labels: Recognition labels, highest probability first
        stats: Pixel statistics of the same image
        weights: Scoring weights (defaults from trust.config)
        registry: Signature registry

    Returns:
        Category -> score, in registry order. Scores are not normalised across
        categories and may exceed 1.
    """
    weights = weights or ScoringWeights()
    return {
        signature.category: score_category(labels, stats, signature, weights)
        for signature in registry
    }
