"""Configuration constants for the scoring and decision layer."""

from dataclasses import dataclass

# Pixel property thresholds (fixed, not user-configurable)
BRIGHT_PIXEL_MIN = 240  # Per-pixel brightness (0-255) above which a pixel counts as see-through
TRANSPARENT_RATIO_MIN = 0.7  # transparency_ratio above this -> is_transparent
OPAQUE_BRIGHTNESS_MAX = 200 / 255  # average_brightness below this -> is_opaque
TEXTURE_MIN = 0.1  # Mean brightness step per pixel (0-255 units) above this -> has_texture

# Scoring weights
KEYWORD_WEIGHT = 0.3  # Per keyword hit, scaled by label probability
TRANSPARENCY_BONUS = 0.3
TEXTURE_BONUS = 0.2

# Decision threshold (confidence floor)
CONFIDENCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class ScoringWeights:
    """Blend between model-driven (keyword) and heuristic (visual) evidence."""
    keyword_weight: float = KEYWORD_WEIGHT
    transparency_bonus: float = TRANSPARENCY_BONUS
    texture_bonus: float = TEXTURE_BONUS

    def __post_init__(self):
        for name in ("keyword_weight", "transparency_bonus", "texture_bonus"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
