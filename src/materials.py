"""
Display material catalog.

Sheet materials used for retail display stands, with the factors each
pipeline stage needs: DFM span/strength factors and area cost, beam
properties for the physics simulator, and thickness ranges, lead times and
standards for the manufacturing validator.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from display import MaterialType


@dataclass(frozen=True)
class DisplayMaterial:
    """A sheet material a display can be built from."""

    material_type: MaterialType
    name: str
    aliases: Tuple[str, ...]  # lower-case names a request may use
    span_factor: float  # max unsupported span = thickness * span_factor
    strength_factor: float  # kg of shelf load carried per mm of thickness
    cost_per_cm2: float  # USD
    density: float  # kg/m³
    young_modulus_pa: float
    yield_strength_pa: float
    relative_cost: float  # multiplier against plastic
    time_factor: float  # production-time multiplier
    min_thickness_mm: float
    max_thickness_mm: float
    lead_time_days: int
    standards: Tuple[str, ...] = ()
    tooling: Tuple[str, ...] = ()


MATERIALS: Dict[MaterialType, DisplayMaterial] = {
    MaterialType.CARDBOARD: DisplayMaterial(
        material_type=MaterialType.CARDBOARD,
        name="EB Flute Cardboard",
        aliases=("cardboard", "karton", "corrugated", "eb_flute_cardboard"),
        span_factor=120.0,
        strength_factor=0.8,
        cost_per_cm2=0.02,
        density=250.0,
        young_modulus_pa=1.5e9,
        yield_strength_pa=10e6,
        relative_cost=0.6,
        time_factor=1.0,
        min_thickness_mm=2.0,
        max_thickness_mm=10.0,
        lead_time_days=3,
        standards=("FEFCO 0201", "ISO 3037"),
        tooling=("Flatbed Die Cutter",),
    ),
    MaterialType.MDF: DisplayMaterial(
        material_type=MaterialType.MDF,
        name="MDF",
        aliases=("mdf", "wood", "ahşap", "ahsap"),
        span_factor=200.0,
        strength_factor=2.0,
        cost_per_cm2=0.05,
        density=800.0,
        young_modulus_pa=12e9,
        yield_strength_pa=40e6,
        relative_cost=1.2,
        time_factor=1.0,
        min_thickness_mm=3.0,
        max_thickness_mm=40.0,
        lead_time_days=3,
        standards=("DIN 68705", "EN 300"),
    ),
    MaterialType.METAL: DisplayMaterial(
        material_type=MaterialType.METAL,
        name="Sheet Metal",
        aliases=("metal", "steel", "aluminum", "aluminium", "alüminyum"),
        span_factor=300.0,
        strength_factor=5.0,
        cost_per_cm2=0.25,
        density=2700.0,
        young_modulus_pa=69e9,
        yield_strength_pa=270e6,
        relative_cost=2.5,
        time_factor=1.5,
        min_thickness_mm=0.8,
        max_thickness_mm=10.0,
        lead_time_days=10,
        standards=("ISO 286", "DIN 6930"),
        tooling=("Sheet Metal Press", "Welding Equipment"),
    ),
    # Plastic resolves before acrylic so a plain "plastic" request is not
    # captured by the acrylic alias list.
    MaterialType.PLASTIC: DisplayMaterial(
        material_type=MaterialType.PLASTIC,
        name="Plastic",
        aliases=("plastic", "plastik", "pvc", "polystyrene"),
        span_factor=100.0,
        strength_factor=1.2,
        cost_per_cm2=0.08,
        density=1200.0,
        young_modulus_pa=2.8e9,
        yield_strength_pa=50e6,
        relative_cost=1.0,
        time_factor=1.0,
        min_thickness_mm=1.5,
        max_thickness_mm=50.0,
        lead_time_days=5,
        standards=("ISO 527", "ASTM D638"),
    ),
    MaterialType.ACRYLIC: DisplayMaterial(
        material_type=MaterialType.ACRYLIC,
        name="Acrylic",
        aliases=("acrylic", "akrilik", "plexiglass", "plastic"),
        span_factor=150.0,
        strength_factor=1.5,
        cost_per_cm2=0.15,
        density=1180.0,
        young_modulus_pa=3.2e9,
        yield_strength_pa=72e6,
        relative_cost=1.8,
        time_factor=1.2,
        min_thickness_mm=2.0,
        max_thickness_mm=25.0,
        lead_time_days=7,
        standards=("ISO 7823", "ASTM D4802"),
        tooling=("Laser Cutter", "Polishing Equipment"),
    ),
}

# Fallbacks for factors when a material cannot be resolved.
DEFAULT_SPAN_FACTOR = 100.0
DEFAULT_STRENGTH_FACTOR = 1.0
DEFAULT_COST_PER_CM2 = 0.05
DEFAULT_MATERIAL = MaterialType.PLASTIC


def resolve_material(name: Optional[str]) -> Optional[MaterialType]:
    """Map a free-text material name onto a catalog material.

    Matching is case-insensitive and accepts partial names
    ("Metal (Alüminyum)" resolves to metal). Returns None when nothing matches.
    """
    if not name:
        return None
    lowered = name.strip().lower()
    for material in MATERIALS.values():
        if lowered == material.material_type.value.lower():
            return material.material_type
    for material in MATERIALS.values():
        if any(alias in lowered for alias in material.aliases):
            return material.material_type
    return None


def material_for(name: Optional[str]) -> DisplayMaterial:
    """Resolve a name to a material, falling back to plastic."""
    resolved = resolve_material(name)
    return MATERIALS[resolved if resolved is not None else DEFAULT_MATERIAL]


def material_matches(template_material: MaterialType, requested: str) -> bool:
    """True if a requested material name is compatible with a template material."""
    lowered = requested.strip().lower()
    aliases = MATERIALS[template_material].aliases
    return bool(lowered) and any(alias in lowered for alias in aliases)
