"""Tests for smart_positioning module."""
import math

import pytest

from conftest import make_placement, make_product
from placement import ShelfStructure
from smart_positioning import (
    PositioningConstraints, SmartPositioningConfig, auto_position_for_client,
    calculate_optimal_grid, optimize_for_professional, optimize_product_placement,
)


def _shelf(width, depth):
    return ShelfStructure(id="shelf-0", index=0, position=(0.0, 10.0, 0.0), dimensions=(width, 2.0, depth))


class TestOptimalGrid:

    def test_single_row_when_it_fits(self):
        assert calculate_optimal_grid(6, _shelf(60, 40), 7.5, 6, PositioningConstraints()) == (1, 6)

    def test_row_length_is_capped(self):
        assert calculate_optimal_grid(10, _shelf(100, 40), 7.5, 6, PositioningConstraints()) == (2, 8)

    def test_rows_clamped_to_shelf_depth(self):
        constraints = PositioningConstraints(max_products_per_row=4)
        assert calculate_optimal_grid(10, _shelf(60, 8), 7.5, 6, constraints) == (1, 10)


class TestOptimizeProductPlacement:

    def test_first_pass_snaps_every_product(self, floor_placement, floor_request):
        result = optimize_product_placement(floor_placement, floor_request)
        assert result.auto_adjustments == 24
        assert "Made 24 automatic positioning improvements" in result.improvements
        for shelf in result.shelves:
            for product in shelf.products:
                assert product.position[1] == pytest.approx(shelf.top + 9 + 0.5)
                assert product.orientation == "front"

    def test_idempotent(self, floor_placement, floor_request):
        first = optimize_product_placement(floor_placement, floor_request)
        second = optimize_product_placement(first.as_placement(floor_placement), floor_request)
        assert second.auto_adjustments == 0
        assert second.improvements == []
        assert [p.position for p in second.products] == [p.position for p in first.products]

    def test_grid_is_centred(self, floor_placement, floor_request):
        result = optimize_product_placement(floor_placement, floor_request)
        xs = [p.position[0] for p in result.shelves[0].products]
        assert sum(xs) / len(xs) == pytest.approx(0.0)
        assert xs[1] - xs[0] == pytest.approx(7.5 + 0.8)

    def test_input_untouched(self, floor_placement, floor_request):
        before = [p.position for p in floor_placement.all_products()]
        optimize_product_placement(floor_placement, floor_request)
        assert [p.position for p in floor_placement.all_products()] == before

    def test_overlapping_pair_pushed_apart(self, floor_request):
        placement = make_placement([make_product("a", 0.0), make_product("b", 0.4)])
        config = SmartPositioningConfig(auto_distribute_products=False, auto_snap_to_shelves=False)
        result = optimize_product_placement(placement, floor_request, config)
        a, b = result.products
        assert result.auto_adjustments == 1
        assert math.dist(a.position, b.position) == pytest.approx(0.8)

    def test_coincident_pair_pushed_along_x(self, floor_request):
        placement = make_placement([make_product("a", 0.0), make_product("b", 0.0)])
        config = SmartPositioningConfig(auto_distribute_products=False, auto_snap_to_shelves=False)
        a, b = optimize_product_placement(placement, floor_request, config).products
        assert (a.position[0], b.position[0]) == pytest.approx((-0.4, 0.4))

    def test_utilization_from_footprint(self, floor_placement, floor_request):
        result = optimize_product_placement(floor_placement, floor_request)
        expected = 6 * (1.3 + 0.8) * (0.25 + 0.8) / (58 * 38) * 100
        assert result.shelves[0].utilization == pytest.approx(expected)
        placement = result.as_placement(floor_placement)
        assert placement.overall_utilization == pytest.approx(expected)
        assert placement.total_products == 24

    def test_client_tips(self, floor_placement, floor_request):
        tips = optimize_product_placement(floor_placement, floor_request).client_tips
        assert tips[0] == "24 products automatically positioned on 4 shelves"
        assert any("eye level" in t for t in tips)


class TestPresets:

    def test_client_preset_uses_tighter_clearance(self, floor_placement, floor_request):
        result = auto_position_for_client(floor_placement, floor_request)
        shelf = result.shelves[0]
        assert shelf.products[0].position[1] == pytest.approx(shelf.top + 9 + 0.3)
        assert result.client_tips

    def test_professional_preset_has_no_tips(self, floor_placement, floor_request):
        result = optimize_for_professional(floor_placement, floor_request)
        assert result.client_tips == []
        assert result.auto_adjustments == 24
