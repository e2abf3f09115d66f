"""
Physics simulator for display shelf loading.

Closed-form beam analysis of each shelf under its product load, product
collision detection, and a manufacturing viability estimate. When products
collide or the structure fails certification, a corrected copy of the
placement is produced with products re-spaced along each shelf.
"""
import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from display import DisplayRequest
from materials import DisplayMaterial, material_for
from placement import PlacementResult, ShelfStructure

logger = logging.getLogger(__name__)


@dataclass
class PhysicsConfig:
    """Beam-model and tolerance parameters."""
    shelf_thickness_mm: float = 10.0
    gravity: float = 9.81
    product_density_kg_m3: float = 500.0
    safety_factor: float = 2.5
    deflection_ratio: float = 300.0  # allowed deflection = span / ratio
    product_pitch_mm: float = 50.0  # shelf length per product slot
    min_spacing_mm: float = 15.0
    # overlap bands in placement units
    minor_overlap: float = 5.0
    moderate_overlap: float = 10.0
    max_complexity_factor: float = 2.0
    base_production_hours: float = 2.0
    large_format_width_mm: float = 500.0


@dataclass
class PhysicsConstraints:
    max_weight_kg: float  # distributed capacity per metre of span
    max_products: int
    min_spacing_mm: float
    deflection_limit_mm: float
    stability_factor: float

    def to_dict(self) -> dict:
        return {
            "max_weight_kg": round(self.max_weight_kg, 3),
            "max_products": self.max_products,
            "min_spacing_mm": self.min_spacing_mm,
            "deflection_limit_mm": round(self.deflection_limit_mm, 3),
            "stability_factor": round(self.stability_factor, 3),
        }


@dataclass
class CollisionPair:
    product_a: str
    product_b: str
    shelf_index: int
    overlap: float  # placement units
    severity: str  # "minor", "moderate" or "critical"

    def to_dict(self) -> dict:
        return {
            "product_a": self.product_a,
            "product_b": self.product_b,
            "shelf_index": self.shelf_index,
            "overlap": round(self.overlap, 3),
            "severity": self.severity,
        }


@dataclass
class CollisionData:
    collision_pairs: List[CollisionPair] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def has_collisions(self) -> bool:
        return bool(self.collision_pairs)

    def to_dict(self) -> dict:
        return {
            "has_collisions": self.has_collisions,
            "collision_pairs": [c.to_dict() for c in self.collision_pairs],
            "recommendations": list(self.recommendations),
        }


@dataclass
class StructuralAnalysis:
    max_stress_pa: float
    max_deflection_mm: float
    safety_factor: float
    material_utilization: float  # % of yield strength
    warnings: List[str] = field(default_factory=list)
    certified: bool = False
    shelf_loads_kg: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "max_stress_pa": round(self.max_stress_pa, 3),
            "max_deflection_mm": round(self.max_deflection_mm, 6),
            "safety_factor": None if math.isinf(self.safety_factor) else round(self.safety_factor, 3),
            "material_utilization": round(self.material_utilization, 4),
            "warnings": list(self.warnings),
            "certified": self.certified,
            "shelf_loads_kg": [round(w, 4) for w in self.shelf_loads_kg],
        }


@dataclass
class ManufacturingViability:
    feasible: bool
    complexity_factor: float
    cost_factor: float
    production_hours: float
    required_tooling: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "feasible": self.feasible,
            "complexity_factor": round(self.complexity_factor, 3),
            "cost_factor": round(self.cost_factor, 3),
            "production_hours": self.production_hours,
            "required_tooling": list(self.required_tooling),
        }


@dataclass
class PhysicsSimulationResult:
    constraints: PhysicsConstraints
    collisions: CollisionData
    structural: StructuralAnalysis
    viability: ManufacturingViability
    corrected_placement: Optional[PlacementResult] = None

    def to_dict(self) -> dict:
        return {
            "constraints": self.constraints.to_dict(),
            "collisions": self.collisions.to_dict(),
            "structural": self.structural.to_dict(),
            "viability": self.viability.to_dict(),
            "corrected_placement": (
                self.corrected_placement.to_dict() if self.corrected_placement else None
            ),
        }


def run_simulation(
    placement: PlacementResult,
    request: DisplayRequest,
    config: Optional[PhysicsConfig] = None,
) -> PhysicsSimulationResult:
    """Analyse a placement and correct it if needed.

    Args:
        placement: Shelves and products to analyse (not modified).
        request: Source request, for envelope and material.
        config: Beam-model parameters.

    Returns:
        PhysicsSimulationResult; ``corrected_placement`` is set only when
        products collide or the structure is not certified.
    """
    if config is None:
        config = PhysicsConfig()
    material = material_for(request.primary_material)

    constraints = calculate_constraints(request, material, config)
    collisions = detect_collisions(placement, config)
    structural = analyze_structure(placement, material, config)
    viability = assess_viability(request, placement, material, config)

    corrected = None
    if collisions.has_collisions or not structural.certified:
        corrected = optimize_placement(placement, config)
        logger.info(
            "Corrected placement: %d collisions, certified=%s",
            len(collisions.collision_pairs), structural.certified,
        )

    logger.info(
        "Physics: %s, safety factor %.2f, %d warnings",
        material.name, structural.safety_factor, len(structural.warnings),
    )
    return PhysicsSimulationResult(
        constraints=constraints,
        collisions=collisions,
        structural=structural,
        viability=viability,
        corrected_placement=corrected,
    )


# ─── Constraints ─────────────────────────────────────────────────────────────


def _second_moment(depth_m: float, thickness_m: float) -> float:
    return depth_m * thickness_m ** 3 / 12.0


def calculate_constraints(
    request: DisplayRequest,
    material: DisplayMaterial,
    config: PhysicsConfig,
) -> PhysicsConstraints:
    """Load and spacing limits for a shelf board of the requested size."""
    span_mm = request.effective_shelf_width * 10.0
    depth_mm = request.effective_shelf_depth * 10.0
    span_m = span_mm / 1000.0
    t_m = config.shelf_thickness_mm / 1000.0

    inertia = _second_moment(depth_mm / 1000.0, t_m)
    max_moment = material.yield_strength_pa * inertia / (t_m / 2.0)
    max_load = 8.0 * max_moment / span_m ** 2 if span_m > 0 else 0.0

    ratio = request.stand_height / request.stand_width if request.stand_width else 0.0
    return PhysicsConstraints(
        max_weight_kg=max_load / config.gravity,
        max_products=int(span_mm // config.product_pitch_mm),
        min_spacing_mm=config.min_spacing_mm,
        deflection_limit_mm=span_mm / config.deflection_ratio,
        stability_factor=max(0.3, 1.0 - ratio * 0.3),
    )


# ─── Collisions ──────────────────────────────────────────────────────────────


def _overlap_severity(overlap: float, config: PhysicsConfig) -> str:
    if overlap < config.minor_overlap:
        return "minor"
    if overlap < config.moderate_overlap:
        return "moderate"
    return "critical"


def detect_collisions(
    placement: PlacementResult,
    config: Optional[PhysicsConfig] = None,
) -> CollisionData:
    """Pairwise X-axis overlap of the products on each shelf, in placement units.

    Every pair on a shelf is compared along the shelf length only, so
    products one behind the other in the same column count as colliding.
    """
    if config is None:
        config = PhysicsConfig()
    data = CollisionData()
    critical_shelves = set()

    for shelf in placement.shelves:
        products = shelf.products
        for i in range(len(products)):
            a = products[i]
            for j in range(i + 1, len(products)):
                b = products[j]
                half_widths = (a.dimensions[0] + b.dimensions[0]) / 2
                overlap = max(0.0, half_widths - abs(a.position[0] - b.position[0]))
                if overlap <= 0:
                    continue
                severity = _overlap_severity(overlap, config)
                data.collision_pairs.append(CollisionPair(a.id, b.id, shelf.index, overlap, severity))
                if severity == "critical":
                    critical_shelves.add(shelf.index)

    for index in sorted(critical_shelves):
        data.recommendations.append(f"Increase spacing between products on shelf {index + 1}")
    if not data.has_collisions:
        data.recommendations.append("No collisions detected")
    return data


# ─── Structure ───────────────────────────────────────────────────────────────


def _shelf_load_kg(shelf: ShelfStructure, unit_mm: float, density: float) -> float:
    volume_m3 = sum(p.volume for p in shelf.products) * (unit_mm / 1000.0) ** 3
    return volume_m3 * density


def analyze_structure(
    placement: PlacementResult,
    material: DisplayMaterial,
    config: Optional[PhysicsConfig] = None,
) -> StructuralAnalysis:
    """Bending stress and mid-span deflection of every shelf."""
    if config is None:
        config = PhysicsConfig()
    unit = placement.length_unit_mm
    t_m = config.shelf_thickness_mm / 1000.0
    allowable_stress = material.yield_strength_pa / config.safety_factor

    warnings: List[str] = []
    loads: List[float] = []
    worst_stress = 0.0
    worst_deflection = 0.0
    for shelf in placement.shelves:
        span_m = shelf.width * unit / 1000.0
        depth_m = shelf.depth * unit / 1000.0
        load_kg = _shelf_load_kg(shelf, unit, config.product_density_kg_m3)
        loads.append(load_kg)

        area = span_m * depth_m
        stress = load_kg * config.gravity / area if area > 0 else 0.0
        inertia = _second_moment(depth_m, t_m)
        deflection_mm = 0.0
        if inertia > 0:
            deflection_mm = (
                5 * load_kg * config.gravity * span_m ** 4
                / (384 * material.young_modulus_pa * inertia)
            ) * 1000.0
        deflection_limit = span_m * 1000.0 / config.deflection_ratio

        if stress > allowable_stress:
            warnings.append(
                f"Shelf {shelf.index + 1} stress {stress / 1e6:.2f}MPa exceeds allowable "
                f"{allowable_stress / 1e6:.2f}MPa"
            )
        if deflection_mm > deflection_limit:
            warnings.append(
                f"Shelf {shelf.index + 1} deflects {deflection_mm:.2f}mm (limit {deflection_limit:.2f}mm)"
            )
        worst_stress = max(worst_stress, stress)
        worst_deflection = max(worst_deflection, deflection_mm)

    safety = material.yield_strength_pa / worst_stress if worst_stress > 0 else math.inf
    return StructuralAnalysis(
        max_stress_pa=worst_stress,
        max_deflection_mm=worst_deflection,
        safety_factor=safety,
        material_utilization=worst_stress / material.yield_strength_pa * 100.0,
        warnings=warnings,
        certified=safety >= config.safety_factor and not warnings,
        shelf_loads_kg=loads,
    )


# ─── Viability ───────────────────────────────────────────────────────────────


def assess_viability(
    request: DisplayRequest,
    placement: PlacementResult,
    material: DisplayMaterial,
    config: Optional[PhysicsConfig] = None,
) -> ManufacturingViability:
    if config is None:
        config = PhysicsConfig()
    target = request.target_dimensions_mm()
    factor = 1.0
    if request.shelf_count > 3:
        factor += 0.2
    if placement.total_products > 20:
        factor += 0.3
    if target.width % 50 or target.height % 25:
        factor += 0.1

    tooling = ["CNC Machine", "Assembly Jigs"]
    tooling.extend(material.tooling)
    if target.width > config.large_format_width_mm:
        tooling.append("Large Format Tooling")

    return ManufacturingViability(
        feasible=factor < config.max_complexity_factor,
        complexity_factor=factor,
        cost_factor=material.relative_cost * factor,
        production_hours=round(config.base_production_hours * factor * material.time_factor, 2),
        required_tooling=tooling,
    )


# ─── Correction ──────────────────────────────────────────────────────────────


def optimize_placement(
    placement: PlacementResult,
    config: Optional[PhysicsConfig] = None,
) -> PlacementResult:
    """Re-space products evenly along each shelf on a copy of the placement.

    Products keep their depth lane, are re-seated left to right with an even
    gap no smaller than the minimum spacing, then listed heaviest first with
    a priority weight favouring the shelf centre.
    """
    if config is None:
        config = PhysicsConfig()
    corrected = copy.deepcopy(placement)
    min_gap = config.min_spacing_mm / corrected.length_unit_mm

    for shelf in corrected.shelves:
        products = shelf.products
        count = len(products)
        if count == 0:
            shelf.utilization = 0.0
            continue
        unit_width = max(p.dimensions[0] for p in products)
        gap = max(min_gap, (shelf.width - count * unit_width) / (count + 1))
        used = count * unit_width + (count + 1) * gap
        if used > shelf.width + 1e-9:
            corrected.placement_errors.append(
                f"Shelf {shelf.id} needs {used:.1f} of {shelf.width:.1f} after re-spacing"
            )

        left = shelf.position[0] - shelf.width / 2
        ordered = sorted(products, key=lambda p: (p.position[0], p.position[2]))
        for k, product in enumerate(ordered):
            x = left + gap + unit_width / 2 + k * (unit_width + gap)
            product.position = (float(x), product.position[1], product.position[2])

        by_volume = sorted(products, key=lambda p: p.volume, reverse=True)
        for i, product in enumerate(by_volume):
            product.priority = count - abs(i - count / 2)
        shelf.products = by_volume
        shelf.utilization = max(0.0, min(100.0, count * unit_width / shelf.width * 100.0))

    if corrected.shelves:
        corrected.overall_utilization = float(np.mean([s.utilization for s in corrected.shelves]))
    return corrected


def summarize(result: PhysicsSimulationResult) -> Dict[str, object]:
    """Headline numbers for run metrics."""
    return {
        "collisions": len(result.collisions.collision_pairs),
        "certified": result.structural.certified,
        "safety_factor": result.structural.to_dict()["safety_factor"],
        "feasible": result.viability.feasible,
        "corrected": result.corrected_placement is not None,
    }
