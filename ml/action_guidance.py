"""Recyclability verdict and action guidance for each plastic type."""

from dataclasses import dataclass
from typing import List, Optional

from domain.models import PlasticCategory

ACTION_GUIDANCE = {
    PlasticCategory.PET: [
        "Rinse and remove cap",
        "Flatten to save space",
        "Remove label if possible"
    ],
    PlasticCategory.HDPE: [
        "Rinse thoroughly with water",
        "Remove any labels or caps if possible",
        "Check local recycling guidelines"
    ],
    PlasticCategory.PVC: [
        "Do not put in household recycling",
        "Take pipes and frames to a construction waste facility",
        "Never burn PVC, it releases toxic fumes"
    ],
    PlasticCategory.LDPE: [
        "Keep bags and film out of curbside bins",
        "Return clean bags to store drop-off points",
        "Reuse bags where possible"
    ],
    PlasticCategory.PP: [
        "Rinse if used for food",
        "Check label for specific instructions",
        "Avoid if oily or contaminated"
    ],
    PlasticCategory.PS: [
        "Do not burn or incinerate",
        "Check if local facility accepts",
        "Consider alternative disposal if not recyclable"
    ],
    PlasticCategory.OTHER: [
        "Check local recycling guidelines",
        "Contact waste management for guidance",
        "Consider reuse if possible"
    ],
    PlasticCategory.UNKNOWN: [
        "Look for the resin code inside the recycling triangle",
        "Try another photo with better lighting",
        "Check local recycling guidelines"
    ],
}

# (resin identification code, accepted by most curbside programs)
RESIN_CODES = {
    PlasticCategory.PET: (1, True),
    PlasticCategory.HDPE: (2, True),
    PlasticCategory.PVC: (3, False),
    PlasticCategory.LDPE: (4, False),
    PlasticCategory.PP: (5, True),
    PlasticCategory.PS: (6, False),
    PlasticCategory.OTHER: (7, False),
}


@dataclass(frozen=True)
class RecyclingVerdict:
    category: PlasticCategory
    recyclable: bool
    resin_code: Optional[int]
    suggestions: List[str]

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "recyclable": self.recyclable,
            "resin_code": self.resin_code,
            "suggestions": list(self.suggestions),
        }


def get_action_guidance(category: PlasticCategory) -> list:
    """
    Get action guidance for a plastic category.

    Args:
        category: Plastic category

    Returns:
        List of action guidance strings
    """
    return list(ACTION_GUIDANCE.get(category, ACTION_GUIDANCE[PlasticCategory.OTHER]))


def get_recycling_verdict(category: PlasticCategory) -> RecyclingVerdict:
    resin_code, recyclable = RESIN_CODES.get(category, (None, False))
    return RecyclingVerdict(
        category=category,
        recyclable=recyclable,
        resin_code=resin_code,
        suggestions=get_action_guidance(category),
    )
