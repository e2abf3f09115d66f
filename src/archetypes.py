"""
Display archetype catalog.

Archetypes are the broad families a display belongs to (floor stand,
counter unit, wall hanger, ...). Each carries the envelope and load limits
that concrete templates of that family must respect, and free-text stand
type labels from a request are mapped onto one of them.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from display import Dimensions

logger = logging.getLogger(__name__)


class ArchetypeId(Enum):
    MODULAR_SHIPPER = "modular_shipper"
    SHELF = "shelf"
    HANGER = "hanger"
    FSU = "fsu"
    COUNTER = "counter"
    ISLAND = "island"
    EXHIBITION = "exhibition"


@dataclass(frozen=True)
class ArchetypeConstraints:
    max_dimensions: Dimensions  # mm
    min_shelf_span: float  # mm
    max_shelf_span: float  # mm
    max_load_per_shelf_kg: float
    requires_base: bool
    supports_graphics: bool = True


@dataclass(frozen=True)
class Archetype:
    id: ArchetypeId
    name: str
    description: str
    category: str  # floor, counter, wall or specialty
    constraints: ArchetypeConstraints

    def to_dict(self) -> Dict[str, object]:
        c = self.constraints
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "constraints": {
                "max_dimensions": c.max_dimensions.to_dict(),
                "min_shelf_span": c.min_shelf_span,
                "max_shelf_span": c.max_shelf_span,
                "max_load_per_shelf_kg": c.max_load_per_shelf_kg,
                "requires_base": c.requires_base,
                "supports_graphics": c.supports_graphics,
            },
        }


ARCHETYPES: Dict[ArchetypeId, Archetype] = {
    ArchetypeId.MODULAR_SHIPPER: Archetype(
        id=ArchetypeId.MODULAR_SHIPPER,
        name="Modular Shipper",
        description="Ships assembled in its own carton, opens into tiered shelves",
        category="floor",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(800, 1800, 600),
            min_shelf_span=200, max_shelf_span=600,
            max_load_per_shelf_kg=5, requires_base=True,
        ),
    ),
    ArchetypeId.SHELF: Archetype(
        id=ArchetypeId.SHELF,
        name="Shelf Display",
        description="Open shelf unit for countertops and gondola ends",
        category="counter",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(600, 400, 400),
            min_shelf_span=150, max_shelf_span=500,
            max_load_per_shelf_kg=8, requires_base=False,
        ),
    ),
    ArchetypeId.HANGER: Archetype(
        id=ArchetypeId.HANGER,
        name="Wall Hanger",
        description="Wall or slatwall mounted product hanger",
        category="wall",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(500, 300, 200),
            min_shelf_span=100, max_shelf_span=400,
            max_load_per_shelf_kg=2, requires_base=False,
        ),
    ),
    ArchetypeId.FSU: Archetype(
        id=ArchetypeId.FSU,
        name="Floor Standing Unit",
        description="Free-standing multi-shelf floor display",
        category="floor",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(1000, 2000, 800),
            min_shelf_span=250, max_shelf_span=800,
            max_load_per_shelf_kg=12, requires_base=True,
        ),
    ),
    ArchetypeId.COUNTER: Archetype(
        id=ArchetypeId.COUNTER,
        name="Counter Display",
        description="Compact point-of-sale unit for the checkout counter",
        category="counter",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(400, 600, 300),
            min_shelf_span=100, max_shelf_span=350,
            max_load_per_shelf_kg=3, requires_base=False,
        ),
    ),
    ArchetypeId.ISLAND: Archetype(
        id=ArchetypeId.ISLAND,
        name="Island Display",
        description="Four-sided display shopped from every direction",
        category="specialty",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(1200, 1800, 1200),
            min_shelf_span=300, max_shelf_span=1000,
            max_load_per_shelf_kg=15, requires_base=True,
        ),
    ),
    ArchetypeId.EXHIBITION: Archetype(
        id=ArchetypeId.EXHIBITION,
        name="Exhibition Stand",
        description="Large modular stand for trade fairs and events",
        category="specialty",
        constraints=ArchetypeConstraints(
            max_dimensions=Dimensions(3000, 2500, 1500),
            min_shelf_span=400, max_shelf_span=2500,
            max_load_per_shelf_kg=25, requires_base=True,
        ),
    ),
}

DEFAULT_ARCHETYPE = ArchetypeId.FSU

# Normalized stand type label -> archetype
STAND_TYPE_ARCHETYPES: Dict[str, ArchetypeId] = {
    "floor_stand": ArchetypeId.FSU,
    "floor": ArchetypeId.FSU,
    "corner_stand": ArchetypeId.FSU,
    "corner": ArchetypeId.FSU,
    "tabletop_stand": ArchetypeId.COUNTER,
    "tabletop": ArchetypeId.COUNTER,
    "counter_stand": ArchetypeId.COUNTER,
    "wall_mount_stand": ArchetypeId.HANGER,
    "wall_mount": ArchetypeId.HANGER,
    "wall": ArchetypeId.HANGER,
    "rotating_stand": ArchetypeId.ISLAND,
    "rotating": ArchetypeId.ISLAND,
    "multi_tier_stand": ArchetypeId.MODULAR_SHIPPER,
    "multi_tier": ArchetypeId.MODULAR_SHIPPER,
    "shipper": ArchetypeId.MODULAR_SHIPPER,
    "shelf_display": ArchetypeId.SHELF,
    "exhibition_stand": ArchetypeId.EXHIBITION,
}


def normalize_stand_type(label: Optional[str]) -> str:
    """Reduce a stand type label to a lookup key.

    A parenthesised part wins over the rest, so a localized label such as
    "Ayaklı Stant (Floor Stand)" normalizes to "floor_stand".
    """
    if not label:
        return ""
    text = label.strip().lower()
    inner = re.search(r"\(([^)]*)\)", text)
    if inner and inner.group(1).strip():
        text = inner.group(1)
    text = re.sub(r"[^a-z0-9]+", "_", text)
    return text.strip("_")


def archetype_for_stand_type(label: Optional[str]) -> Archetype:
    """Map a display type label to an archetype, defaulting to the floor unit."""
    key = normalize_stand_type(label)
    archetype_id = STAND_TYPE_ARCHETYPES.get(key)
    if archetype_id is None:
        try:
            archetype_id = ArchetypeId(key)
        except ValueError:
            logger.debug("Unknown stand type %r, using %s", label, DEFAULT_ARCHETYPE.value)
            archetype_id = DEFAULT_ARCHETYPE
    return ARCHETYPES[archetype_id]


def get_archetype(archetype_id: str) -> Optional[Archetype]:
    try:
        return ARCHETYPES[ArchetypeId(archetype_id)]
    except ValueError:
        return None
