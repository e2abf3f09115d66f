"""Tests for dfm_rules module."""
from dataclasses import replace

import pytest

from dfm_rules import (
    _JOINERY_CHECKS, CRITICAL, INFO, WARNING,
    validate_form_data, validate_template,
)
from display import (
    AssemblyComplexity, Dimensions, JoinerySpec, JoineryType, ModuleSpec, ModuleType,
    PackingSpec, PrintZone, TemplateConstraints,
)


def _rules(report, severity=None):
    return [i.rule_name for i in report.issues if severity is None or i.severity == severity]


class TestValidateTemplate:
    """Whole-template scoring."""

    def test_clean_template_scores_100(self, counter_template):
        report = validate_template(counter_template)
        assert report.issues == []
        assert report.score == 100
        assert report.is_manufacturable

    def test_standard_floor_unit(self, fsu_template):
        report = validate_template(fsu_template)
        assert sorted(_rules(report)) == ["material_thickness", "stability_ratio"]
        assert report.score == 80
        assert report.is_manufacturable
        assert report.estimated_cost == pytest.approx(669.12)
        assert report.estimated_lead_time_days == 4

    def test_deterministic(self, fsu_template):
        assert validate_template(fsu_template).to_dict() == validate_template(fsu_template).to_dict()

    def test_score_formula_for_every_template(self, catalog):
        for template in catalog.templates:
            report = validate_template(template)
            c = len(report.by_severity(CRITICAL))
            w = len(report.by_severity(WARNING))
            i = len(report.by_severity(INFO))
            assert report.score == max(0, 100 - 25 * c - 10 * w - 2 * i)
            assert report.is_manufacturable == (report.score >= 70 and c == 0)

    def test_lead_time_for_complex_metal(self, catalog):
        report = validate_template(catalog.get_template("exhibition_modular_wall"))
        assert report.estimated_lead_time_days == 3 + 2 + 2 + 1


class TestStructureChecks:

    def test_tall_narrow_template_is_critical(self, fsu_template):
        tall = replace(fsu_template, dimensions=Dimensions(600, 1600, 400))
        report = validate_template(tall)
        critical = report.by_severity(CRITICAL)
        assert len(critical) == 1
        assert critical[0].message.startswith("Stability ratio too high")
        assert not report.is_manufacturable

    def test_long_shelf_exceeds_span(self, counter_template):
        wide_shelf = ModuleSpec("shelf_wide", ModuleType.SHELF, 600, 250)
        template = replace(counter_template, modules=counter_template.modules + (wide_shelf,))
        assert "shelf_span" in _rules(validate_template(template), CRITICAL)

    def test_thin_material_for_load(self, counter_template):
        heavy = replace(
            counter_template,
            constraints=TemplateConstraints(8, 1.6, AssemblyComplexity.SIMPLE),
        )
        assert "material_thickness" in _rules(validate_template(heavy), WARNING)


class TestJoineryChecks:

    def test_every_joinery_type_is_checked(self):
        assert set(_JOINERY_CHECKS) == set(JoineryType)

    def test_tight_slot_is_critical(self, counter_template):
        template = replace(counter_template, joinery=JoinerySpec(JoineryType.SLOT_TAB, 4.0, 8))
        assert "slot_width" in _rules(validate_template(template), CRITICAL)

    def test_loose_slot_is_warning(self, counter_template):
        template = replace(counter_template, joinery=JoinerySpec(JoineryType.SLOT_TAB, 4.6, 8))
        assert "slot_width" in _rules(validate_template(template), WARNING)

    def test_too_few_tabs(self, counter_template):
        template = replace(counter_template, joinery=JoinerySpec(JoineryType.SLOT_TAB, 4.2, 4))
        assert "tab_count" in _rules(validate_template(template), WARNING)

    def test_screws_without_hardware(self, counter_template):
        template = replace(counter_template, joinery=JoinerySpec(JoineryType.SCREWS))
        assert _rules(validate_template(template)) == ["hardware_list"]

    def test_adhesive_has_no_checks(self, counter_template):
        template = replace(counter_template, joinery=JoinerySpec(JoineryType.ADHESIVE))
        assert validate_template(template).issues == []


class TestPrintZoneChecks:

    def _with_header_zone(self, template, zone):
        header = replace(template.modules[0], print_zone=zone)
        return replace(template, modules=(header,) + template.modules[1:])

    def test_zone_past_width(self, counter_template):
        template = self._with_header_zone(counter_template, PrintZone(20, 10, 300, 60))
        assert _rules(validate_template(template)) == ["print_zone_width"]

    def test_zone_past_height(self, counter_template):
        template = self._with_header_zone(counter_template, PrintZone(20, 10, 260, 75))
        assert _rules(validate_template(template)) == ["print_zone_height"]

    def test_small_margin_warning(self, counter_template):
        template = self._with_header_zone(counter_template, PrintZone(5, 10, 260, 60))
        assert _rules(validate_template(template), WARNING) == ["print_margin"]


class TestPackingAndAssembly:

    def test_oversized_flat_pack(self, counter_template):
        template = replace(counter_template, packing=PackingSpec(1300, 270, 15, 5, 8, 0.8))
        assert "flat_pack_size" in _rules(validate_template(template), CRITICAL)

    def test_loose_packing(self, counter_template):
        template = replace(counter_template, packing=PackingSpec(1000, 1000, 15, 5, 8, 0.8))
        assert "packing_efficiency" in _rules(validate_template(template), WARNING)

    def test_heavy_slow_many_pieces(self, counter_template):
        template = replace(counter_template, packing=PackingSpec(320, 270, 15, 16, 45, 25))
        rules = _rules(validate_template(template), WARNING)
        assert {"shipping_weight", "assembly_time", "piece_count"} <= set(rules)

    def test_complex_assembly_outside_exhibition(self, counter_template, catalog):
        complex_counter = replace(
            counter_template,
            constraints=TemplateConstraints(3, 1.6, AssemblyComplexity.COMPLEX),
        )
        assert "assembly_complexity" in _rules(validate_template(complex_counter))
        exhibition = catalog.get_template("exhibition_modular_wall")
        assert "assembly_complexity" not in _rules(validate_template(exhibition))


class TestValidateFormData:

    def test_floor_request_has_no_criticals(self, floor_request):
        issues = validate_form_data(floor_request)
        assert not [i for i in issues if i.severity == CRITICAL]
        assert "request_stability_needs_base" in [i.rule_name for i in issues]

    def test_out_of_bounds_width(self, floor_request):
        floor_request.stand_width = 5
        rules = [i.rule_name for i in validate_form_data(floor_request)]
        assert rules == ["request_width"]

    def test_too_many_shelves(self, floor_request):
        floor_request.shelf_count = 9
        issues = validate_form_data(floor_request)
        assert [i.severity for i in issues] == [CRITICAL]

    def test_no_material(self, floor_request):
        floor_request.materials = []
        assert [i.rule_name for i in validate_form_data(floor_request)] == ["request_materials"]

    def test_cramped_shelves(self, floor_request):
        floor_request.stand_height = 50
        issues = validate_form_data(floor_request)
        assert ("request_shelf_height", WARNING) in [(i.rule_name, i.severity) for i in issues]

    def test_sparse_shelves_info(self, floor_request):
        floor_request.stand_width = 100
        floor_request.stand_depth = 80
        floor_request.stand_height = 200
        floor_request.shelf_count = 1
        issues = validate_form_data(floor_request)
        assert [(i.rule_name, i.severity) for i in issues] == [("request_shelf_height", INFO)]

    def test_tall_request_defers_to_template_base(self, floor_request):
        issue = next(
            i for i in validate_form_data(floor_request)
            if i.rule_name == "request_stability_needs_base"
        )
        assert issue.severity == WARNING
        assert "template's base" in issue.message
        assert "ratio 4.00" in issue.message
