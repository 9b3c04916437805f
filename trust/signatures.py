"""Static signatures describing each plastic category."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from domain.models import PlasticCategory


class TransparencyLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TextureLevel(str, Enum):
    SMOOTH = "smooth"
    MATTE = "matte"
    RIGID = "rigid"
    FLEXIBLE = "flexible"


@dataclass(frozen=True)
class VisualProfile:
    """Qualitative visual characteristics of a plastic category."""
    transparency: TransparencyLevel
    texture: TextureLevel
    common_shapes: Tuple[str, ...] = ()
    typical_uses: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CategorySignature:
    """Keywords, visual profile and prior weight for one category."""
    category: PlasticCategory
    keywords: Tuple[str, ...]
    visual_profile: VisualProfile
    base_weight: float

    def __post_init__(self):
        if not self.keywords:
            raise ValueError(f"{self.category.value}: signature needs at least one keyword")
        if not 0.0 < self.base_weight <= 1.0:
            raise ValueError(f"{self.category.value}: base_weight must be in (0, 1]")
        # Matching is case-insensitive, store lowercase once
        object.__setattr__(self, "keywords", tuple(k.lower() for k in self.keywords))


class SignatureRegistry:
    """Read-only registry, one signature per scorable category, in tie-break order."""

    def __init__(self, signatures):
        table: Dict[PlasticCategory, CategorySignature] = {}
        for signature in signatures:
            if signature.category is PlasticCategory.UNKNOWN:
                raise ValueError("UNKNOWN is the no-match outcome and cannot have a signature")
            if signature.category in table:
                raise ValueError(f"Duplicate signature for {signature.category.value}")
            table[signature.category] = signature

        missing = [c.value for c in PlasticCategory
                   if c is not PlasticCategory.UNKNOWN and c not in table]
        if missing:
            raise ValueError(f"Missing signatures for: {', '.join(missing)}")

        self._table: Mapping[PlasticCategory, CategorySignature] = MappingProxyType(table)

    def get(self, category: PlasticCategory) -> CategorySignature:
        return self._table[category]

    def categories(self) -> Tuple[PlasticCategory, ...]:
        return tuple(self._table)

    def __iter__(self) -> Iterator[CategorySignature]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, category) -> bool:
        return category in self._table


DEFAULT_SIGNATURES = (
    CategorySignature(
        category=PlasticCategory.PET,
        keywords=("bottle", "water bottle", "plastic bottle", "beverage", "container",
                  "transparent", "clear"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.HIGH,
            texture=TextureLevel.SMOOTH,
            common_shapes=("cylindrical", "bottle"),
            typical_uses=("beverages", "food containers"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.HDPE,
        keywords=("milk jug", "detergent", "bottle", "container", "jug", "opaque", "white"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.LOW,
            texture=TextureLevel.MATTE,
            common_shapes=("jug", "bottle", "container"),
            typical_uses=("milk", "detergent", "shampoo"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.PVC,
        keywords=("pipe", "tubing", "window", "frame", "rigid", "construction"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.LOW,
            texture=TextureLevel.RIGID,
            common_shapes=("pipe", "frame", "sheet"),
            typical_uses=("construction", "plumbing"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.LDPE,
        keywords=("bag", "film", "wrap", "flexible", "soft", "squeeze"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.MEDIUM,
            texture=TextureLevel.FLEXIBLE,
            common_shapes=("film", "bag", "flexible container"),
            typical_uses=("bags", "wraps", "squeeze bottles"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.PP,
        keywords=("container", "tupperware", "cap", "lid", "food container"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.MEDIUM,
            texture=TextureLevel.SMOOTH,
            common_shapes=("container", "cap", "tub"),
            typical_uses=("food storage", "bottle caps"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.PS,
        keywords=("styrofoam", "polystyrene", "foam", "cup", "takeout", "packing peanut",
                  "egg carton", "disposable"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.MEDIUM,
            texture=TextureLevel.RIGID,
            common_shapes=("cup", "tray", "clamshell"),
            typical_uses=("takeout containers", "packaging", "disposable cutlery"),
        ),
        base_weight=0.7,
    ),
    CategorySignature(
        category=PlasticCategory.OTHER,
        keywords=("polycarbonate", "acrylic", "nylon", "resin", "composite", "multilayer", "toy"),
        visual_profile=VisualProfile(
            transparency=TransparencyLevel.MEDIUM,
            texture=TextureLevel.MATTE,
            common_shapes=("mixed",),
            typical_uses=("toys", "electronics housings", "mixed packaging"),
        ),
        base_weight=0.6,
    ),
)

REGISTRY = SignatureRegistry(DEFAULT_SIGNATURES)
