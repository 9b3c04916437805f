"""Decision stage: pick the winning category under a confidence floor."""

from typing import Dict, Optional, Sequence

from domain.models import ClassificationResult, PlasticCategory, RecognitionLabel
from trust.config import CONFIDENCE_THRESHOLD, ScoringWeights
from trust.image_properties import ImageStatistics
from trust.scoring import score_categories
from trust.signatures import REGISTRY, SignatureRegistry


def decide(scores: Dict[PlasticCategory, float],
           threshold: float = CONFIDENCE_THRESHOLD) -> ClassificationResult:
    """
    Select the best category.

    Scores are visited in iteration order. A candidate replaces the running
    best only when its score is strictly greater and at least `threshold`, so
    on a tie the earlier category keeps the win.

    Args:
        scores: Category -> raw score, in registry order
        threshold: Confidence floor

    Returns:
        ClassificationResult; (UNKNOWN, 0) when nothing clears the floor
    """
    best_score = 0.0
    best_category = PlasticCategory.UNKNOWN

    for category, score in scores.items():
        if score > best_score and score >= threshold:
            best_score = score
            best_category = category

    if best_category is PlasticCategory.UNKNOWN:
        return ClassificationResult.unknown()

    return ClassificationResult(
        category=best_category,
        confidence=float(min(1.0, max(0.0, best_score)))
    )


class DecisionEngine:
    """Scores labels + statistics against the registry and decides."""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD,
                 weights: Optional[ScoringWeights] = None,
                 registry: SignatureRegistry = REGISTRY):
        """
        Initialize decision engine.

        Args:
            threshold: Confidence floor
            weights: Scoring weights
            registry: Signature registry (order breaks ties)
        """
        self.threshold = threshold
        self.weights = weights or ScoringWeights()
        self.registry = registry

    def score(self, labels: Sequence[RecognitionLabel],
              stats: ImageStatistics) -> Dict[PlasticCategory, float]:
        return score_categories(labels, stats, self.weights, self.registry)

    def process(self, labels: Sequence[RecognitionLabel],
                stats: ImageStatistics) -> ClassificationResult:
        """Score every category and return the decision."""
        return decide(self.score(labels, stats), self.threshold)
