"""
Template selection.

Maps a design request to an archetype, pre-checks it, picks the nearest
template of that archetype, validates it for manufacture and scores how
well it matches what was asked for.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from archetypes import Archetype, archetype_for_stand_type
from dfm_rules import (
    CRITICAL, WARNING, DFMConfig, ManufacturabilityReport,
    validate_form_data, validate_template,
)
from display import AssemblyComplexity, DisplayRequest, DisplayTemplate
from materials import material_matches
from scoring import Penalty, weighted_penalty_score
from templates import TemplateCatalog, default_catalog

logger = logging.getLogger(__name__)

MATCH_WEIGHTS = {
    "dimensions": 40.0,
    "shelf_count": 25.0,
    "material": 20.0,
    "complexity": 15.0,
}

MATERIAL_MISMATCH_SCORE = 0.3

COMPLEXITY_SCORES = {
    AssemblyComplexity.SIMPLE: 1.0,
    AssemblyComplexity.MODERATE: 0.7,
    AssemblyComplexity.COMPLEX: 0.4,
}

WIDTH_DEPTH_HINT_MM = 50.0
HEIGHT_HINT_MM = 100.0


@dataclass
class TemplateSelection:
    """A validated template chosen for a request."""
    template: DisplayTemplate
    archetype: Archetype
    report: ManufacturabilityReport
    match_score: float
    dissimilarity: float
    adjustments: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "template": self.template.to_dict(),
            "archetype": self.archetype.to_dict(),
            "report": self.report.to_dict(),
            "match_score": round(self.match_score, 2),
            "dissimilarity": round(self.dissimilarity, 4),
            "adjustments": list(self.adjustments),
        }


@dataclass
class TemplateSelectionError:
    """Why no template could be offered, and what to change."""
    error: str
    suggestions: List[str] = field(default_factory=list)
    fallback_options: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "suggestions": list(self.suggestions),
            "fallback_options": list(self.fallback_options),
        }


SelectionOutcome = Union[TemplateSelection, TemplateSelectionError]


def select_template(
    request: DisplayRequest,
    catalog: Optional[TemplateCatalog] = None,
    dfm_config: Optional[DFMConfig] = None,
) -> SelectionOutcome:
    """Choose, validate and score a template for a request.

    Returns a TemplateSelection, or a TemplateSelectionError when the request
    is invalid, nothing fits, or the nearest template cannot be built.
    """
    if catalog is None:
        catalog = default_catalog()
    try:
        return _select(request, catalog, dfm_config)
    except Exception as exc:
        logger.exception("Template selection failed for %r", request.stand_type)
        return TemplateSelectionError(
            error=f"Template selection failed: {exc}",
            suggestions=["Check the request values and try again"],
        )


def _select(
    request: DisplayRequest,
    catalog: TemplateCatalog,
    dfm_config: Optional[DFMConfig],
) -> SelectionOutcome:
    archetype = archetype_for_stand_type(request.stand_type)
    logger.info("Stand type %r -> archetype %s", request.stand_type, archetype.id.value)

    form_issues = validate_form_data(request, dfm_config)
    critical = [i for i in form_issues if i.severity == CRITICAL]
    if critical:
        return TemplateSelectionError(
            error="Request has critical issues: " + "; ".join(i.message for i in critical),
            suggestions=[i.suggestion for i in critical if i.suggestion],
        )

    target = request.target_dimensions_mm()
    match = catalog.find_best_template(archetype.id.value, target, request.shelf_count)
    if match is None:
        return TemplateSelectionError(
            error=f"No template available for {archetype.name}",
            suggestions=["Try a different display type"],
        )

    report = validate_template(match.template, dfm_config)
    if not report.is_manufacturable:
        return TemplateSelectionError(
            error=f"Template {match.template.id} is not manufacturable (score {report.score:.0f})",
            suggestions=[i.suggestion for i in report.critical_issues if i.suggestion],
        )

    score = calculate_match_score(match.template, request)
    adjustments = suggest_adjustments(match.template, request, report)
    logger.info(
        "Selected %s for %s: match %.1f, DFM %.0f",
        match.template.id, archetype.id.value, score, report.score,
    )
    return TemplateSelection(
        template=match.template,
        archetype=archetype,
        report=report,
        match_score=score,
        dissimilarity=match.dissimilarity,
        adjustments=adjustments,
    )


def calculate_match_score(template: DisplayTemplate, request: DisplayRequest) -> float:
    """Score 0-100 for how well a template fits a request.

    Weighted shortfalls: 40 for envelope (mean min/max ratio per axis),
    25 for shelf count, 20 for material and 15 for assembly complexity.
    """
    target = request.target_dimensions_mm()
    ratios = [
        min(actual, wanted) / max(actual, wanted) if max(actual, wanted) > 0 else 1.0
        for actual, wanted in zip(template.dimensions.as_tuple(), target.as_tuple())
    ]
    dim_match = sum(ratios) / len(ratios)

    wanted_shelves = request.shelf_count or 1
    shelf_diff = abs(template.product_capacity.shelf_count - request.shelf_count) / wanted_shelves
    shelf_match = max(0.0, 1.0 - shelf_diff)

    material_match = MATERIAL_MISMATCH_SCORE
    if any(material_matches(template.material.type, name) for name in request.materials):
        material_match = 1.0

    complexity_match = COMPLEXITY_SCORES[template.constraints.assembly_complexity]

    penalties = [
        Penalty(MATCH_WEIGHTS["dimensions"], 1.0 - dim_match, "dimensions"),
        Penalty(MATCH_WEIGHTS["shelf_count"], 1.0 - shelf_match, "shelf_count"),
        Penalty(MATCH_WEIGHTS["material"], 1.0 - material_match, "material"),
        Penalty(MATCH_WEIGHTS["complexity"], 1.0 - complexity_match, "complexity"),
    ]
    return weighted_penalty_score(penalties)


def suggest_adjustments(
    template: DisplayTemplate,
    request: DisplayRequest,
    report: ManufacturabilityReport,
) -> List[str]:
    """Human-readable differences between the template and the request."""
    hints = []
    target = request.target_dimensions_mm()
    dims = template.dimensions
    if abs(dims.width - target.width) > WIDTH_DEPTH_HINT_MM:
        hints.append(f"Width adjusted from {target.width:.0f}mm to {dims.width:.0f}mm")
    if abs(dims.height - target.height) > HEIGHT_HINT_MM:
        hints.append(f"Height adjusted from {target.height:.0f}mm to {dims.height:.0f}mm")
    if abs(dims.depth - target.depth) > WIDTH_DEPTH_HINT_MM:
        hints.append(f"Depth adjusted from {target.depth:.0f}mm to {dims.depth:.0f}mm")
    template_shelves = template.product_capacity.shelf_count
    if template_shelves != request.shelf_count:
        hints.append(f"Shelf count adjusted from {request.shelf_count} to {template_shelves}")
    hints.extend(i.suggestion for i in report.by_severity(WARNING) if i.suggestion)
    return hints


def validate_requirements(request: DisplayRequest) -> Tuple[bool, List[str]]:
    """Plain-language list of request problems that block template search."""
    problems = [i.message for i in validate_form_data(request) if i.severity == CRITICAL]
    return (not problems, problems)


def get_template_by_id(
    template_id: str,
    catalog: Optional[TemplateCatalog] = None,
) -> Optional[DisplayTemplate]:
    return (catalog or default_catalog()).get_template(template_id)


def get_templates_for_stand_type(
    stand_type: str,
    catalog: Optional[TemplateCatalog] = None,
) -> List[DisplayTemplate]:
    archetype = archetype_for_stand_type(stand_type)
    return (catalog or default_catalog()).templates_for_archetype(archetype.id.value)
