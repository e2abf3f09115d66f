"""
Manufacturing standards validation.

Checks a placed design against dimensional, material, structural, assembly
and quality-management standards, runs a set of quality checks, and rolls
everything into a 0-100 score with a letter grade, certifications,
recommendations and a manufacturability summary.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from display import DisplayRequest, MaterialType
from materials import MATERIALS, DisplayMaterial, material_for, resolve_material
from placement import PlacementResult
from scoring import Penalty, weighted_penalty_score
from simulator import PhysicsSimulationResult

logger = logging.getLogger(__name__)

PASS_SCORE = 75

GRADE_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (97, "A+"),
    (93, "A"),
    (87, "B+"),
    (83, "B"),
    (77, "C+"),
    (70, "C"),
    (60, "D"),
)

DIMENSION_LIMITS_MM = {
    "width": (50.0, 2000.0),
    "height": (30.0, 2500.0),
    "depth": (50.0, 800.0),
}

STANDARD_WEIGHT = 40.0
QUALITY_WEIGHT = 40.0
COMPLIANCE_WEIGHT = 5.0


@dataclass
class StandardResult:
    standard: str
    requirement: str
    passed: bool
    severity: str  # "critical", "high" or "medium"
    details: str = ""

    def to_dict(self) -> dict:
        return {
            "standard": self.standard,
            "requirement": self.requirement,
            "passed": self.passed,
            "severity": self.severity,
            "details": self.details,
        }


@dataclass
class QualityCheck:
    name: str
    specification: str
    measured: str
    tolerance: float
    passed: bool

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "specification": self.specification,
            "measured": self.measured,
            "tolerance": self.tolerance,
            "passed": self.passed,
        }


@dataclass
class ComplianceFlags:
    iso9001: bool
    ce_marking: bool
    rohs_compliant: bool
    reach_compliant: bool

    def count(self) -> int:
        return sum([self.iso9001, self.ce_marking, self.rohs_compliant, self.reach_compliant])

    def to_dict(self) -> dict:
        return {
            "iso9001": self.iso9001,
            "ce_marking": self.ce_marking,
            "rohs_compliant": self.rohs_compliant,
            "reach_compliant": self.reach_compliant,
        }


@dataclass
class ManufacturabilitySummary:
    feasible: bool
    difficulty_score: float
    alternative_materials: List[str] = field(default_factory=list)
    process_optimizations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "feasible": self.feasible,
            "difficulty_score": self.difficulty_score,
            "alternative_materials": list(self.alternative_materials),
            "process_optimizations": list(self.process_optimizations),
        }


@dataclass
class ManufacturingValidationResult:
    passed: bool
    score: int
    grade: str
    certifications: List[str]
    standards: List[StandardResult]
    quality_checks: List[QualityCheck]
    recommendations: Dict[str, List[str]]
    compliance: ComplianceFlags
    manufacturability: ManufacturabilitySummary

    def to_dict(self) -> dict:
        return {
            "overall": {
                "passed": self.passed,
                "score": self.score,
                "grade": self.grade,
                "certifications": list(self.certifications),
            },
            "standards": [s.to_dict() for s in self.standards],
            "quality_checks": [q.to_dict() for q in self.quality_checks],
            "recommendations": {k: list(v) for k, v in self.recommendations.items()},
            "compliance": self.compliance.to_dict(),
            "manufacturability": self.manufacturability.to_dict(),
        }


def grade_for_score(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def validate_manufacturing(
    request: DisplayRequest,
    placement: PlacementResult,
    physics: Optional[PhysicsSimulationResult] = None,
) -> ManufacturingValidationResult:
    """Validate a placed design for production.

    Args:
        request: Source request (envelope and material).
        placement: Final shelf/product layout.
        physics: Physics result, if available, for collision and
            certification recommendations.

    Returns:
        ManufacturingValidationResult with score, grade and findings.
    """
    material = material_for(request.primary_material)
    standards = check_standards(request, placement, material)
    checks = run_quality_checks(request, placement)
    compliance = check_compliance(request)

    passed_standards = sum(1 for s in standards if s.passed)
    passed_checks = sum(1 for c in checks if c.passed)
    penalties = [
        Penalty(STANDARD_WEIGHT, 1 - passed_standards / len(standards), "standards"),
        Penalty(QUALITY_WEIGHT, 1 - passed_checks / len(checks), "quality"),
        Penalty(COMPLIANCE_WEIGHT, 4 - compliance.count(), "compliance"),
    ]
    score = int(round(weighted_penalty_score(penalties)))

    result = ManufacturingValidationResult(
        passed=score >= PASS_SCORE,
        score=score,
        grade=grade_for_score(score),
        certifications=_certifications(score, compliance),
        standards=standards,
        quality_checks=checks,
        recommendations=_recommendations(placement, material, physics),
        compliance=compliance,
        manufacturability=assess_manufacturability(request, placement, material),
    )
    logger.info(
        "Manufacturing validation: score %d (%s), %d/%d standards, %d/%d checks",
        score, result.grade, passed_standards, len(standards), passed_checks, len(checks),
    )
    return result


# ─── Standards ───────────────────────────────────────────────────────────────


def assumed_thickness_mm(height_mm: float) -> float:
    return min(10.0, max(2.0, height_mm / 15.0))


def check_standards(
    request: DisplayRequest,
    placement: PlacementResult,
    material: DisplayMaterial,
) -> List[StandardResult]:
    target = request.target_dimensions_mm()
    within = all(
        low <= value <= high
        for value, (low, high) in (
            (target.width, DIMENSION_LIMITS_MM["width"]),
            (target.height, DIMENSION_LIMITS_MM["height"]),
            (target.depth, DIMENSION_LIMITS_MM["depth"]),
        )
    )
    thickness = assumed_thickness_mm(target.height)
    thickness_ok = material.min_thickness_mm <= thickness <= material.max_thickness_mm
    most_per_shelf = max((len(s.products) for s in placement.shelves), default=0)

    return [
        StandardResult(
            standard="ISO 2768-1",
            requirement="Dimensional Accuracy",
            passed=within,
            severity="high",
            details=f"{target.width:.0f}x{target.height:.0f}x{target.depth:.0f}mm",
        ),
        StandardResult(
            standard=", ".join(material.standards) or "Material Thickness",
            requirement="Material Thickness",
            passed=thickness_ok,
            severity="critical",
            details=(
                f"{thickness:.1f}mm within {material.min_thickness_mm:g}-"
                f"{material.max_thickness_mm:g}mm for {material.name}"
            ),
        ),
        StandardResult(
            standard="EN 1991-1-1",
            requirement="Structural Integrity",
            passed=placement.overall_utilization < 85,
            severity="critical",
            details=f"Utilization {placement.overall_utilization:.1f}%",
        ),
        StandardResult(
            standard="DFA",
            requirement="Assembly Requirements",
            passed=request.shelf_count <= 5 and most_per_shelf <= 10,
            severity="medium",
            details=f"{request.shelf_count} shelves, up to {most_per_shelf} products each",
        ),
        StandardResult(
            standard="ISO 9001",
            requirement="Production Readiness",
            passed=True,
            severity="medium",
        ),
    ]


# ─── Quality checks ──────────────────────────────────────────────────────────


def run_quality_checks(request: DisplayRequest, placement: PlacementResult) -> List[QualityCheck]:
    target = request.target_dimensions_mm()
    unit = placement.length_unit_mm
    envelope = f"{target.width:.0f}x{target.depth:.0f}x{target.height:.0f}mm"

    heights_mm = np.array([s.position[1] for s in placement.shelves]) * unit
    gaps = np.diff(heights_mm)
    spread = float(gaps.max() - gaps.min()) if gaps.size else 0.0

    counts = [len(s.products) for s in placement.shelves] or [0]
    load_spread = max(counts) - min(counts)
    top_shelf = float(heights_mm.max()) if heights_mm.size else 0.0

    return [
        QualityCheck("Overall Dimensions", envelope, envelope, 0.5, True),
        QualityCheck(
            "Shelf Spacing", "Uniform within 5mm", f"{spread:.1f}mm variation", 2.0, spread <= 5.0,
        ),
        QualityCheck(
            "Load Distribution", "At most 2 products difference",
            f"{load_spread} products difference", 15.0, load_spread <= 2,
        ),
        QualityCheck(
            "Material Utilization", "Below 90%",
            f"{placement.overall_utilization:.1f}%", 5.0, placement.overall_utilization < 90,
        ),
        QualityCheck(
            "Accessibility", "All shelves at or below 1800mm",
            f"Top shelf at {top_shelf:.0f}mm", 0.0, top_shelf <= 1800,
        ),
    ]


def check_compliance(request: DisplayRequest) -> ComplianceFlags:
    return ComplianceFlags(
        iso9001=True,
        ce_marking=request.target_dimensions_mm().height <= 2000,
        rohs_compliant=True,
        reach_compliant=resolve_material(request.primary_material) is not None,
    )


def _certifications(score: int, compliance: ComplianceFlags) -> List[str]:
    certs = []
    if score >= 90 and compliance.iso9001:
        certs.append("ISO 9001 Quality Management")
    if compliance.ce_marking:
        certs.append("CE Marking")
    if compliance.rohs_compliant:
        certs.append("RoHS Compliant")
    if score >= 85:
        certs.append("Manufacturing Excellence")
    return certs


# ─── Recommendations ─────────────────────────────────────────────────────────


def _recommendations(
    placement: PlacementResult,
    material: DisplayMaterial,
    physics: Optional[PhysicsSimulationResult],
) -> Dict[str, List[str]]:
    immediate: List[str] = []
    optimization: List[str] = []
    cost: List[str] = []

    utilization = placement.overall_utilization
    if utilization > 90:
        immediate.append("Reduce products per shelf; utilization is above 90%")
    if physics is not None:
        if physics.collisions.has_collisions:
            immediate.append("Resolve product collisions before production")
        if not physics.structural.certified:
            immediate.append("Reinforce shelves; structural analysis is not certified")
    if utilization < 60:
        optimization.append("Increase product density to use shelf space better")
    optimization.append("Standardize shelf heights to share cutting programs")
    optimization.append("Nest flat parts to reduce sheet offcuts")

    cost.append("Order material in full sheets for volume pricing")
    cost.append("Combine print runs for header and side graphics")
    if material.material_type != MaterialType.ACRYLIC:
        cost.append("Consider acrylic shelves for a lighter premium finish")

    return {"immediate": immediate, "optimization": optimization, "cost_reduction": cost}


def assess_manufacturability(
    request: DisplayRequest,
    placement: PlacementResult,
    material: DisplayMaterial,
) -> ManufacturabilitySummary:
    target = request.target_dimensions_mm()
    difficulty = 1.0
    if target.width % 50:
        difficulty += 0.5
    if target.height % 25:
        difficulty += 0.5
    difficulty += 0.3 * request.shelf_count
    difficulty += 0.1 * placement.total_products
    difficulty = round(min(10.0, difficulty), 1)

    alternatives = [
        m.name for m in MATERIALS.values()
        if m.material_type != material.material_type and m.lead_time_days <= material.lead_time_days
    ]
    optimizations = ["Batch identical shelves in one cutting run"]
    if material.material_type == MaterialType.METAL:
        optimizations.append("Use laser cutting with bend reliefs instead of welding")
    elif material.material_type == MaterialType.ACRYLIC:
        optimizations.append("Flame-polish edges instead of mechanical polishing")
    elif material.material_type == MaterialType.CARDBOARD:
        optimizations.append("Die-cut all panels from a single forme")
    if difficulty > 5:
        optimizations.append("Pre-assemble shelf modules at the factory")

    return ManufacturabilitySummary(
        feasible=difficulty <= 7 and material.lead_time_days <= 14,
        difficulty_score=difficulty,
        alternative_materials=alternatives,
        process_optimizations=optimizations,
    )
