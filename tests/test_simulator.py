"""Tests for simulator module."""
import math

import pytest

from conftest import make_placement, make_product
from display import DisplayRequest
from placement import generate_placement, update_product_position
from simulator import PhysicsConfig, detect_collisions, optimize_placement, run_simulation


class TestCollisions:

    def test_identical_positions_collide_critically(self):
        placement = make_placement([make_product("a", 0.0), make_product("b", 0.0)])
        data = detect_collisions(placement)
        assert len(data.collision_pairs) == 1
        pair = data.collision_pairs[0]
        assert pair.overlap == pytest.approx(10.0)
        assert pair.severity == "critical"
        assert data.recommendations == ["Increase spacing between products on shelf 1"]

    @pytest.mark.parametrize("offset,severity", [(7.0, "minor"), (4.0, "moderate")])
    def test_severity_bands(self, offset, severity):
        placement = make_placement([make_product("a", 0.0), make_product("b", offset)])
        assert detect_collisions(placement).collision_pairs[0].severity == severity

    def test_overlap_reported_in_placement_units(self):
        placement = make_placement(
            [make_product("a", 0.0, width=1.0), make_product("b", 0.0, width=1.0)],
            unit_mm=10.0,
        )
        pair = detect_collisions(placement).collision_pairs[0]
        assert pair.overlap == pytest.approx(1.0)
        assert pair.severity == "minor"

    def test_stacked_products_on_generated_placement(self):
        request = DisplayRequest(
            stand_width=60, stand_height=150, stand_depth=40, shelf_count=3,
            materials=["cardboard"], product_width=10, product_height=20, product_depth=10,
            front_face_count=6, back_to_back_count=1,
        )
        placement = generate_placement(request)
        first = placement.shelves[0].products[0]
        stacked = update_product_position(placement, "product-0-1", first.position)
        data = detect_collisions(stacked)
        assert len(data.collision_pairs) == 1
        assert data.collision_pairs[0].overlap == pytest.approx(10.0)
        assert data.collision_pairs[0].severity == "critical"
        assert data.recommendations == ["Increase spacing between products on shelf 1"]

    def test_depth_offset_does_not_hide_overlap(self):
        placement = make_placement([make_product("a", 0.0, z=-10.0), make_product("b", 0.0, z=10.0)])
        pair = detect_collisions(placement).collision_pairs[0]
        assert pair.overlap == pytest.approx(10.0)
        assert pair.severity == "critical"

    def test_spaced_products_report_no_collisions(self):
        placement = make_placement([make_product("a", -20.0), make_product("b", 20.0)])
        data = detect_collisions(placement)
        assert not data.has_collisions
        assert data.recommendations == ["No collisions detected"]

    def test_back_to_back_rows_collide(self, floor_placement):
        data = detect_collisions(floor_placement)
        # 4 shelves, 3 columns of two products one behind the other
        assert len(data.collision_pairs) == 12
        assert all(p.overlap == pytest.approx(7.5) for p in data.collision_pairs)
        assert {p.severity for p in data.collision_pairs} == {"moderate"}
        assert data.recommendations == []

    def test_single_row_is_collision_free(self, floor_placement):
        corrected = optimize_placement(floor_placement)
        assert not detect_collisions(corrected).has_collisions


class TestRunSimulation:

    def test_floor_stand(self, floor_placement, floor_request):
        result = run_simulation(floor_placement, floor_request)
        assert result.structural.certified
        assert result.structural.warnings == []
        assert result.collisions.has_collisions
        assert result.corrected_placement is not None
        assert not detect_collisions(result.corrected_placement).has_collisions
        assert result.corrected_placement.overall_utilization == pytest.approx(75.0)
        assert len(result.structural.shelf_loads_kg) == 4
        # 6 products of 810 cm³ at 500 kg/m³
        assert result.structural.shelf_loads_kg[0] == pytest.approx(6 * 0.405)

    def test_constraints(self, floor_placement, floor_request):
        constraints = run_simulation(floor_placement, floor_request).constraints
        inertia = 0.4 * 0.01 ** 3 / 12
        moment = 270e6 * inertia / 0.005
        assert constraints.max_weight_kg == pytest.approx(8 * moment / 0.6 ** 2 / 9.81)
        assert constraints.max_products == 12
        assert constraints.deflection_limit_mm == pytest.approx(2.0)
        assert constraints.stability_factor == pytest.approx(0.3)

    def test_viability(self, floor_placement, floor_request):
        viability = run_simulation(floor_placement, floor_request).viability
        assert viability.complexity_factor == pytest.approx(1.5)
        assert viability.feasible
        assert viability.cost_factor == pytest.approx(2.5 * 1.5)
        assert viability.production_hours == pytest.approx(4.5)
        assert "Sheet Metal Press" in viability.required_tooling
        assert "Large Format Tooling" in viability.required_tooling

    def test_overloaded_shelf_is_corrected(self):
        request = DisplayRequest(
            stand_width=100, stand_height=150, stand_depth=40, shelf_count=1,
            materials=["plastic"], product_width=20, product_height=30, product_depth=15,
            front_face_count=5, back_to_back_count=1,
        )
        placement = generate_placement(request)
        result = run_simulation(placement, request)
        assert not result.structural.certified
        assert any("deflects" in w for w in result.structural.warnings)
        assert result.corrected_placement is not None

    def test_empty_shelves_have_infinite_safety(self, floor_request):
        placement = make_placement([])
        result = run_simulation(placement, floor_request)
        assert math.isinf(result.structural.safety_factor)
        assert result.structural.to_dict()["safety_factor"] is None


class TestOptimizePlacement:

    def test_respaces_colliding_products(self):
        placement = make_placement([make_product("a", 0.0), make_product("b", 0.0)])
        corrected = optimize_placement(placement, PhysicsConfig())
        xs = sorted(p.position[0] for p in corrected.shelves[0].products)
        assert xs == pytest.approx([-50 + 80 / 3 + 5, 50 - 80 / 3 - 5])
        assert not detect_collisions(corrected).has_collisions
        assert [p.position[0] for p in placement.shelves[0].products] == [0.0, 0.0]

    def test_keeps_structure(self, floor_placement):
        corrected = optimize_placement(floor_placement)
        assert len(corrected.shelves) == len(floor_placement.shelves)
        assert corrected.total_products == floor_placement.total_products
        for shelf in corrected.shelves:
            assert all(p.shelf_index == shelf.index for p in shelf.products)
            assert all(p.priority > 0 for p in shelf.products)
        assert 0 <= corrected.overall_utilization <= 100

    def test_heaviest_first(self):
        products = [
            make_product("small", -20.0, width=5.0),
            make_product("big", 20.0, width=5.0, height=40.0),
        ]
        corrected = optimize_placement(make_placement(products))
        assert [p.id for p in corrected.shelves[0].products] == ["big", "small"]

    def test_overflow_is_reported(self):
        products = [make_product(f"p{i}", 0.0) for i in range(6)]
        corrected = optimize_placement(make_placement(products, shelf_width=60.0))
        assert corrected.placement_errors
