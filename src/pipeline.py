"""Display design pipeline: request -> template -> layout -> physics -> validation -> run artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from dfm_rules import CRITICAL, DFMConfig, validate_form_data, validate_template
from display import DisplayRequest, DisplayTemplate
from manufacturing_validator import ManufacturingValidationResult, validate_manufacturing
from placement import PlacementConfig, PlacementResult, generate_placement, validate_placement
from run_protocol import RunFolder, mark_latest, write_json, write_text
from simulator import PhysicsConfig, PhysicsSimulationResult, run_simulation, summarize
from smart_positioning import (
    PositioningConstraints, SmartPositioningConfig, SmartPositionResult,
    optimize_product_placement,
)
from template_selector import TemplateSelection, TemplateSelectionError, select_template
from templates import TemplateCatalog, default_catalog

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    runs_dir: str = "runs"
    write_artifacts: bool = False
    smart_positioning: bool = True
    design_name: Optional[str] = None
    dfm: DFMConfig = field(default_factory=DFMConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    positioning: SmartPositioningConfig = field(default_factory=SmartPositioningConfig)
    positioning_constraints: PositioningConstraints = field(default_factory=PositioningConstraints)


@dataclass
class DesignBundle:
    request: DisplayRequest
    selection: TemplateSelection
    placement: PlacementResult
    physics: PhysicsSimulationResult
    validation: ManufacturingValidationResult
    positioning: Optional[SmartPositionResult] = None
    final_placement: Optional[PlacementResult] = None
    placement_warnings: List[str] = field(default_factory=list)
    run_id: Optional[str] = None
    run_dir: Optional[str] = None

    @property
    def template(self) -> DisplayTemplate:
        return self.selection.template

    def metrics(self) -> Dict[str, Any]:
        final = self.final_placement or self.placement
        return {
            "template_id": self.template.id,
            "archetype": self.selection.archetype.id.value,
            "match_score": round(self.selection.match_score, 2),
            "dfm_score": self.selection.report.score,
            "estimated_cost": round(self.selection.report.estimated_cost, 2),
            "lead_time_days": self.selection.report.estimated_lead_time_days,
            "shelves": len(final.shelves),
            "total_products": final.total_products,
            "overall_utilization": round(final.overall_utilization, 2),
            "physics": summarize(self.physics),
            "positioning_adjustments": self.positioning.auto_adjustments if self.positioning else 0,
            "manufacturing_score": self.validation.score,
            "manufacturing_grade": self.validation.grade,
            "manufacturing_passed": self.validation.passed,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "request": self.request.to_dict(),
            "selection": self.selection.to_dict(),
            "placement": self.placement.to_dict(),
            "physics": self.physics.to_dict(),
            "positioning": self.positioning.to_dict() if self.positioning else None,
            "final_placement": self.final_placement.to_dict() if self.final_placement else None,
            "placement_warnings": list(self.placement_warnings),
            "validation": self.validation.to_dict(),
            "metrics": self.metrics(),
        }


PipelineOutcome = Union[DesignBundle, TemplateSelectionError]


def run_design_pipeline(
    request: DisplayRequest,
    config: Optional[PipelineConfig] = None,
    catalog: Optional[TemplateCatalog] = None,
) -> PipelineOutcome:
    """Run every stage for a request.

    Returns a DesignBundle, or the TemplateSelectionError that stopped the
    run. Unexpected failures are logged and reported the same way.
    """
    if config is None:
        config = PipelineConfig()
    try:
        return _run(request, config, catalog or default_catalog())
    except Exception as exc:
        logger.exception("Design pipeline failed")
        return TemplateSelectionError(
            error=f"Design pipeline failed: {exc}",
            suggestions=["Check the request values and try again"],
        )


def _run(
    request: DisplayRequest,
    config: PipelineConfig,
    catalog: TemplateCatalog,
) -> PipelineOutcome:
    started = time.perf_counter()
    selection = select_template(request, catalog, config.dfm)
    if isinstance(selection, TemplateSelectionError):
        logger.warning("No template selected: %s", selection.error)
        return selection

    placement = generate_placement(request, config.placement)
    physics = run_simulation(placement, request, config.physics)
    working = physics.corrected_placement or placement

    positioning = None
    final = working
    if config.smart_positioning:
        positioning = optimize_product_placement(
            working, request, config.positioning, config.positioning_constraints,
        )
        final = positioning.as_placement(working)

    validation = validate_manufacturing(request, final, physics)
    bundle = DesignBundle(
        request=request,
        selection=selection,
        placement=placement,
        physics=physics,
        validation=validation,
        positioning=positioning,
        final_placement=final,
        placement_warnings=validate_placement(final, config.placement),
    )
    elapsed = time.perf_counter() - started
    logger.info(
        "Pipeline done in %.3fs: %s, manufacturing %d (%s)",
        elapsed, selection.template.id, validation.score, validation.grade,
    )

    if config.write_artifacts:
        _write_artifacts(bundle, config, elapsed)
    return bundle


def _write_artifacts(bundle: DesignBundle, config: PipelineConfig, elapsed_s: float) -> None:
    design_name = config.design_name or f"{bundle.selection.archetype.id.value}-{bundle.template.id}"
    folder = RunFolder.create(config.runs_dir, design_name)
    bundle.run_id = folder.run_id
    bundle.run_dir = str(folder.root)

    write_json(folder.request_path, bundle.request.to_dict())
    write_json(folder.bundle_path, bundle.to_dict())
    write_json(folder.metrics_path, bundle.metrics())
    write_text(folder.summary_path, _build_summary(bundle, elapsed_s))

    manifest = {
        "run_id": folder.run_id,
        "design_name": design_name,
        "template_id": bundle.template.id,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": {
            "smart_positioning": config.smart_positioning,
            "dfm": asdict(config.dfm),
            "placement": asdict(config.placement),
            "physics": asdict(config.physics),
            "positioning": asdict(config.positioning),
            "positioning_constraints": asdict(config.positioning_constraints),
        },
        "artifacts": folder.artifact_index(),
    }
    write_json(folder.manifest_path, manifest)
    mark_latest(config.runs_dir, folder)
    logger.info("Wrote run %s", folder.root)


def _build_summary(bundle: DesignBundle, elapsed_s: float) -> str:
    report = bundle.selection.report
    validation = bundle.validation
    final = bundle.final_placement or bundle.placement
    lines = [
        f"# Run {bundle.run_id}",
        "",
        f"- Template: **{bundle.template.name}** ({bundle.template.id})",
        f"- Archetype: {bundle.selection.archetype.name}",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Match score: {bundle.selection.match_score:.1f}",
        f"- DFM score: {report.score:.0f} ({len(report.issues)} issues)",
        f"- Estimated cost: ${report.estimated_cost:.2f}, lead time {report.estimated_lead_time_days} days",
        f"- Shelves: {len(final.shelves)}, products: {final.total_products}",
        f"- Physics: certified={bundle.physics.structural.certified}, "
        f"collisions={len(bundle.physics.collisions.collision_pairs)}",
        f"- Manufacturing: **{validation.score} ({validation.grade})**, "
        f"passed={validation.passed}",
        "",
        "## Adjustments",
    ]
    lines.extend(f"- {hint}" for hint in bundle.selection.adjustments or ["None"])
    lines.extend(["", "## DFM Issues"])
    if not report.issues:
        lines.append("- None")
    else:
        for issue in report.issues[:12]:
            lines.append(f"- [{issue.severity}] {issue.rule_name}: {issue.message}")
    lines.extend(["", "## Immediate Actions"])
    lines.extend(f"- {r}" for r in validation.recommendations["immediate"] or ["None"])
    return "\n".join(lines) + "\n"


def validate_manufacturability(
    request: DisplayRequest,
    catalog: Optional[TemplateCatalog] = None,
) -> Dict[str, Any]:
    """Quick check of a request against its nearest template, without layout."""
    issues = validate_form_data(request)
    critical = [i for i in issues if i.severity == CRITICAL]
    if critical:
        return {
            "is_valid": False,
            "score": 0,
            "issues": [i.to_dict() for i in critical],
            "template": None,
        }
    selection = select_template(request, catalog)
    if isinstance(selection, TemplateSelectionError):
        return {
            "is_valid": False,
            "score": 0,
            "issues": [{"severity": CRITICAL, "message": selection.error}],
            "template": None,
        }
    report = validate_template(selection.template)
    return {
        "is_valid": report.is_manufacturable,
        "score": report.score,
        "issues": [i.to_dict() for i in issues + report.issues],
        "template": selection.template.id,
    }
