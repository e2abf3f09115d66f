"""
Design-for-Manufacturing (DFM) validation rules for display templates.

Checks a template against structural, joinery, print-zone, packing and
assembly constraints and rolls the findings into a 0-100 score with a cost
and lead-time estimate. Also pre-checks raw design requests before any
template is chosen.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shapely.geometry import box

from archetypes import ArchetypeId
from display import (
    AssemblyComplexity, DisplayRequest, DisplayTemplate, JoineryType,
    MaterialType, ModuleSpec,
)
from materials import (
    DEFAULT_COST_PER_CM2, DEFAULT_SPAN_FACTOR, DEFAULT_STRENGTH_FACTOR, MATERIALS,
)
from scoring import severity_penalties, weighted_penalty_score

logger = logging.getLogger(__name__)

CRITICAL = "critical"
WARNING = "warning"
INFO = "info"


@dataclass
class DFMConfig:
    """Display manufacturing thresholds."""

    critical_stability_ratio: float = 3.0
    warning_stability_ratio: float = 2.5
    slot_min_clearance_mm: float = 0.1  # slot must exceed thickness by this
    slot_tolerance_ratio: float = 0.04  # of thickness
    slot_max_extra_mm: float = 0.3
    tab_spacing_mm: float = 150.0
    tab_coverage: float = 0.7  # fraction of recommended tabs required
    min_print_margin_mm: float = 10.0
    min_packing_efficiency: float = 0.6
    max_flat_pack_mm: float = 1200.0
    max_shipping_weight_kg: float = 20.0
    max_assembly_minutes: float = 30.0
    max_piece_count: int = 15
    manufacturable_score: float = 70.0

    # Request pre-check (mm, after cm conversion)
    max_request_width_mm: float = 1500.0
    max_request_height_mm: float = 2000.0
    min_avg_shelf_height_mm: float = 200.0
    max_avg_shelf_height_mm: float = 600.0

    # Sane request bounds (cm)
    width_range_cm: tuple = (10.0, 300.0)
    height_range_cm: tuple = (20.0, 250.0)
    depth_range_cm: tuple = (10.0, 150.0)
    shelf_count_range: tuple = (1, 8)


@dataclass
class ManufacturabilityIssue:
    """A single DFM finding."""

    rule_name: str
    severity: str  # "critical", "warning" or "info"
    category: str  # "structure", "joinery", "printing", "packing" or "assembly"
    message: str
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "rule_name": self.rule_name,
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass
class ManufacturabilityReport:
    score: float
    issues: List[ManufacturabilityIssue]
    is_manufacturable: bool
    estimated_cost: float
    estimated_lead_time_days: int

    def by_severity(self, severity: str) -> List[ManufacturabilityIssue]:
        return [i for i in self.issues if i.severity == severity]

    @property
    def critical_issues(self) -> List[ManufacturabilityIssue]:
        return self.by_severity(CRITICAL)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "is_manufacturable": self.is_manufacturable,
            "estimated_cost": round(self.estimated_cost, 2),
            "estimated_lead_time_days": self.estimated_lead_time_days,
            "issues": [i.to_dict() for i in self.issues],
        }


COMPLEXITY_COST_MULTIPLIER: Dict[AssemblyComplexity, float] = {
    AssemblyComplexity.SIMPLE: 1.0,
    AssemblyComplexity.MODERATE: 1.2,
    AssemblyComplexity.COMPLEX: 1.5,
}


def validate_template(
    template: DisplayTemplate,
    config: Optional[DFMConfig] = None,
) -> ManufacturabilityReport:
    """Run all DFM checks on a template.

    Args:
        template: The template to validate.
        config: Manufacturing thresholds.

    Returns:
        Report with score, issues, manufacturability verdict, cost and lead time.
    """
    if config is None:
        config = DFMConfig()

    issues: List[ManufacturabilityIssue] = []
    issues.extend(_check_structure(template, config))
    issues.extend(_check_joinery(template, config))
    issues.extend(_check_print_zones(template, config))
    issues.extend(_check_packing(template, config))
    issues.extend(_check_assembly(template, config))

    score = weighted_penalty_score(severity_penalties(i.severity for i in issues))
    has_critical = any(i.severity == CRITICAL for i in issues)
    report = ManufacturabilityReport(
        score=score,
        issues=issues,
        is_manufacturable=score >= config.manufacturable_score and not has_critical,
        estimated_cost=estimate_cost(template),
        estimated_lead_time_days=estimate_lead_time(template),
    )
    logger.info(
        "DFM %s: score %.0f, %d issues, manufacturable=%s",
        template.id, report.score, len(issues), report.is_manufacturable,
    )
    return report


def estimate_cost(template: DisplayTemplate) -> float:
    """Sheet area in cm² times material cost, scaled by assembly complexity."""
    area_cm2 = template.material_area_mm2() / 100.0
    material = MATERIALS.get(template.material.type)
    cost_per_cm2 = material.cost_per_cm2 if material else DEFAULT_COST_PER_CM2
    multiplier = COMPLEXITY_COST_MULTIPLIER[template.constraints.assembly_complexity]
    return area_cm2 * cost_per_cm2 * multiplier


def estimate_lead_time(template: DisplayTemplate) -> int:
    days = 3
    if template.material.type != MaterialType.CARDBOARD:
        days += 2
    if template.constraints.assembly_complexity == AssemblyComplexity.COMPLEX:
        days += 2
    if template.has_print_zones:
        days += 1
    return days


# ─── Individual checks ───────────────────────────────────────────────────────


def _check_structure(
    template: DisplayTemplate,
    config: DFMConfig,
) -> List[ManufacturabilityIssue]:
    """Stability ratio, shelf span and thickness-for-load."""
    issues = []
    dims = template.dimensions
    stability = dims.height / min(dims.width, dims.depth)
    if stability > config.critical_stability_ratio:
        issues.append(ManufacturabilityIssue(
            rule_name="stability_ratio",
            severity=CRITICAL,
            category="structure",
            message=f"Stability ratio too high ({stability:.2f} > {config.critical_stability_ratio})",
            suggestion="Widen the base or reduce the height",
        ))
    elif stability > config.warning_stability_ratio:
        issues.append(ManufacturabilityIssue(
            rule_name="stability_ratio",
            severity=WARNING,
            category="structure",
            message=f"Stability ratio is marginal ({stability:.2f})",
            suggestion="Consider a weighted base or wall anchoring",
        ))

    material = MATERIALS.get(template.material.type)
    thickness = template.material.thickness
    span_factor = material.span_factor if material else DEFAULT_SPAN_FACTOR
    max_span = thickness * span_factor
    for shelf in template.shelf_modules:
        if shelf.width > max_span:
            issues.append(ManufacturabilityIssue(
                rule_name="shelf_span",
                severity=CRITICAL,
                category="structure",
                message=f"Shelf {shelf.id} span {shelf.width:.0f}mm exceeds {max_span:.0f}mm",
                suggestion="Add a centre support or use thicker material",
            ))

    strength = material.strength_factor if material else DEFAULT_STRENGTH_FACTOR
    required = math.ceil(template.constraints.max_shelf_load_kg / strength)
    if thickness < required:
        issues.append(ManufacturabilityIssue(
            rule_name="material_thickness",
            severity=WARNING,
            category="structure",
            message=f"Material {thickness:g}mm is thinner than the {required}mm needed for the shelf load",
            suggestion=f"Increase material thickness to {required}mm",
        ))
    return issues


def _check_slot_tab(template: DisplayTemplate, config: DFMConfig) -> List[ManufacturabilityIssue]:
    issues = []
    joinery = template.joinery
    thickness = template.material.thickness
    if joinery.slot_width is not None:
        min_slot = thickness + config.slot_min_clearance_mm
        max_slot = thickness + thickness * config.slot_tolerance_ratio + config.slot_max_extra_mm
        if joinery.slot_width < min_slot:
            issues.append(ManufacturabilityIssue(
                rule_name="slot_width",
                severity=CRITICAL,
                category="joinery",
                message=f"Slot width {joinery.slot_width}mm is too tight for {thickness}mm material",
                suggestion=f"Widen slots to at least {min_slot:.1f}mm",
            ))
        elif joinery.slot_width > max_slot:
            issues.append(ManufacturabilityIssue(
                rule_name="slot_width",
                severity=WARNING,
                category="joinery",
                message=f"Slot width {joinery.slot_width}mm is loose for {thickness}mm material",
                suggestion=f"Narrow slots to at most {max_slot:.1f}mm",
            ))
    if joinery.tab_count is not None:
        shelf_count = len(template.shelf_modules)
        recommended = math.ceil(template.dimensions.width / config.tab_spacing_mm) * shelf_count + 4
        if joinery.tab_count < config.tab_coverage * recommended:
            issues.append(ManufacturabilityIssue(
                rule_name="tab_count",
                severity=WARNING,
                category="joinery",
                message=f"Only {joinery.tab_count} tabs for a recommended {recommended}",
                suggestion=f"Add tabs, about {recommended} in total",
            ))
    return issues


def _check_screws(template: DisplayTemplate, config: DFMConfig) -> List[ManufacturabilityIssue]:
    if template.joinery.hardware_required:
        return []
    return [ManufacturabilityIssue(
        rule_name="hardware_list",
        severity=INFO,
        category="joinery",
        message="Screw joinery without a hardware list",
        suggestion="List screw sizes so the kit can be packed",
    )]


def _check_no_joinery_rules(template: DisplayTemplate, config: DFMConfig) -> List[ManufacturabilityIssue]:
    return []


_JOINERY_CHECKS: Dict[JoineryType, Callable[[DisplayTemplate, DFMConfig], List[ManufacturabilityIssue]]] = {
    JoineryType.SLOT_TAB: _check_slot_tab,
    JoineryType.SCREWS: _check_screws,
    JoineryType.ADHESIVE: _check_no_joinery_rules,
    JoineryType.CLIP_FIT: _check_no_joinery_rules,
}


def _check_joinery(
    template: DisplayTemplate,
    config: DFMConfig,
) -> List[ManufacturabilityIssue]:
    return _JOINERY_CHECKS[template.joinery.type](template, config)


def _check_print_zones(
    template: DisplayTemplate,
    config: DFMConfig,
) -> List[ManufacturabilityIssue]:
    """Zones must sit inside their module with a bleed margin on every edge."""
    issues = []
    for module in template.modules:
        zone = module.print_zone
        if zone is None:
            continue
        issues.extend(_check_zone_bounds(module, config))
    return issues


def _check_zone_bounds(module: ModuleSpec, config: DFMConfig) -> List[ManufacturabilityIssue]:
    zone = module.print_zone
    issues = []
    if zone.x < 0 or zone.x + zone.width > module.width:
        issues.append(ManufacturabilityIssue(
            rule_name="print_zone_width",
            severity=CRITICAL,
            category="printing",
            message=f"Print zone on {module.id} extends past the module width",
            suggestion="Shrink or move the print zone",
        ))
    if zone.y < 0 or zone.y + zone.height > module.height:
        issues.append(ManufacturabilityIssue(
            rule_name="print_zone_height",
            severity=CRITICAL,
            category="printing",
            message=f"Print zone on {module.id} extends past the module height",
            suggestion="Shrink or move the print zone",
        ))
    if issues:
        return issues

    outline = box(0, 0, module.width, module.height)
    zone_rect = box(zone.x, zone.y, zone.x + zone.width, zone.y + zone.height)
    margin = outline.exterior.distance(zone_rect)
    if margin < config.min_print_margin_mm:
        issues.append(ManufacturabilityIssue(
            rule_name="print_margin",
            severity=WARNING,
            category="printing",
            message=f"Print zone on {module.id} is {margin:.0f}mm from the edge",
            suggestion=f"Keep at least {config.min_print_margin_mm:.0f}mm margin for bleed",
        ))
    return issues


def _check_packing(
    template: DisplayTemplate,
    config: DFMConfig,
) -> List[ManufacturabilityIssue]:
    issues = []
    packing = template.packing
    pack_area = packing.flat_width * packing.flat_height
    efficiency = template.material_area_mm2() / pack_area if pack_area > 0 else 0.0
    if efficiency < config.min_packing_efficiency:
        issues.append(ManufacturabilityIssue(
            rule_name="packing_efficiency",
            severity=WARNING,
            category="packing",
            message=f"Flat-pack efficiency {efficiency:.0%} is low",
            suggestion="Nest parts more tightly or shrink the carton",
        ))
    largest = max(packing.flat_width, packing.flat_height)
    if largest > config.max_flat_pack_mm:
        issues.append(ManufacturabilityIssue(
            rule_name="flat_pack_size",
            severity=CRITICAL,
            category="packing",
            message=f"Flat pack {largest:.0f}mm exceeds {config.max_flat_pack_mm:.0f}mm",
            suggestion="Split large panels into modules",
        ))
    if packing.shipping_weight_kg > config.max_shipping_weight_kg:
        issues.append(ManufacturabilityIssue(
            rule_name="shipping_weight",
            severity=WARNING,
            category="packing",
            message=f"Shipping weight {packing.shipping_weight_kg:g}kg exceeds {config.max_shipping_weight_kg:g}kg",
            suggestion="Ship in several cartons",
        ))
    return issues


def _check_assembly(
    template: DisplayTemplate,
    config: DFMConfig,
) -> List[ManufacturabilityIssue]:
    issues = []
    packing = template.packing
    if packing.assembly_time_minutes > config.max_assembly_minutes:
        issues.append(ManufacturabilityIssue(
            rule_name="assembly_time",
            severity=WARNING,
            category="assembly",
            message=f"Assembly takes {packing.assembly_time_minutes:g} minutes",
            suggestion="Pre-assemble sub-modules at the factory",
        ))
    if packing.piece_count > config.max_piece_count:
        issues.append(ManufacturabilityIssue(
            rule_name="piece_count",
            severity=WARNING,
            category="assembly",
            message=f"{packing.piece_count} loose pieces to assemble",
            suggestion="Combine parts with fold lines",
        ))
    if (template.constraints.assembly_complexity == AssemblyComplexity.COMPLEX
            and template.archetype_id != ArchetypeId.EXHIBITION.value):
        issues.append(ManufacturabilityIssue(
            rule_name="assembly_complexity",
            severity=WARNING,
            category="assembly",
            message="Complex assembly for an in-store display",
            suggestion="Simplify to slot-and-tab construction",
        ))
    return issues


# ─── Request pre-check ───────────────────────────────────────────────────────


def _out_of_range(value: float, bounds: tuple) -> bool:
    return value < bounds[0] or value > bounds[1]


def validate_form_data(
    request: DisplayRequest,
    config: Optional[DFMConfig] = None,
) -> List[ManufacturabilityIssue]:
    """Check a raw request before any template is chosen.

    Criticals mark requests no template can serve. A tall, narrow envelope
    is only a warning here since the chosen template's base sets the real
    footprint.
    """
    if config is None:
        config = DFMConfig()

    issues: List[ManufacturabilityIssue] = []

    def critical(rule: str, message: str, suggestion: str) -> None:
        issues.append(ManufacturabilityIssue(rule, CRITICAL, "structure", message, suggestion))

    bounds = [
        ("width", request.stand_width, config.width_range_cm),
        ("height", request.stand_height, config.height_range_cm),
        ("depth", request.stand_depth, config.depth_range_cm),
    ]
    for axis, value, (low, high) in bounds:
        if _out_of_range(value, (low, high)):
            critical(
                f"request_{axis}",
                f"Stand {axis} {value:g}cm is outside {low:g}-{high:g}cm",
                f"Choose a {axis} between {low:g} and {high:g}cm",
            )
    low, high = config.shelf_count_range
    if _out_of_range(request.shelf_count, config.shelf_count_range):
        critical(
            "request_shelf_count",
            f"Shelf count {request.shelf_count} is outside {low}-{high}",
            f"Choose between {low} and {high} shelves",
        )
    if not request.materials:
        critical("request_materials", "No material selected", "Select at least one material")
    if min(request.product_dimensions()) <= 0:
        critical("request_product_size", "Product dimensions must be positive",
                 "Enter the product's width, height and depth")
    if request.front_face_count < 1 or request.back_to_back_count < 1:
        critical("request_product_count", "Product face counts must be at least 1",
                 "Enter how many products face front and stand behind each other")

    if issues:
        return issues

    target = request.target_dimensions_mm()
    if target.width > config.max_request_width_mm:
        issues.append(ManufacturabilityIssue(
            "request_wide", WARNING, "structure",
            f"Stand width {target.width:.0f}mm is very wide",
            "Consider splitting into two units",
        ))
    if target.height > config.max_request_height_mm:
        issues.append(ManufacturabilityIssue(
            "request_tall", WARNING, "structure",
            f"Stand height {target.height:.0f}mm is very tall",
            "Reduce height for in-store safety",
        ))
    stability = target.height / min(target.width, target.depth)
    if stability > config.critical_stability_ratio:
        issues.append(ManufacturabilityIssue(
            "request_stability_needs_base", WARNING, "structure",
            f"Requested envelope is tall for its footprint (ratio {stability:.2f}); "
            "the matched template's base is expected to provide the stability",
            "Expect the template's wider base, or widen the requested footprint",
        ))
    avg_shelf_height = target.height / (request.shelf_count + 1)
    if avg_shelf_height < config.min_avg_shelf_height_mm:
        issues.append(ManufacturabilityIssue(
            "request_shelf_height", WARNING, "structure",
            f"Average shelf height {avg_shelf_height:.0f}mm is cramped",
            "Use fewer shelves or a taller stand",
        ))
    elif avg_shelf_height > config.max_avg_shelf_height_mm:
        issues.append(ManufacturabilityIssue(
            "request_shelf_height", INFO, "structure",
            f"Average shelf height {avg_shelf_height:.0f}mm leaves unused space",
            "Add a shelf",
        ))
    return issues
