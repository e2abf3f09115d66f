"""Tests for placement module."""
import pytest

from display import DisplayRequest
from placement import (
    calculate_grid_layout, generate_placement, shelf_spacing,
    update_product_position, validate_placement,
)


def _request(**overrides):
    values = dict(
        stand_width=60, stand_height=150, stand_depth=40, shelf_count=3,
        materials=["cardboard"], product_width=10, product_height=20, product_depth=10,
        front_face_count=3, back_to_back_count=1,
    )
    values.update(overrides)
    return DisplayRequest(**values)


class TestShelves:

    def test_shelf_spacing(self):
        request = _request()
        assert shelf_spacing(request) == pytest.approx(max(24.0, 45.0))
        placement = generate_placement(request)
        heights = [s.position[1] for s in placement.shelves]
        assert len(placement.shelves) == 3
        assert heights == sorted(heights)
        assert heights == pytest.approx([22.5, 67.5, 112.5])

    def test_tall_products_set_the_pitch(self):
        request = _request(product_height=50)
        assert shelf_spacing(request) == pytest.approx(60.0)

    def test_products_rest_on_shelf(self, floor_placement, floor_request):
        for shelf in floor_placement.shelves:
            for product in shelf.products:
                assert product.position[1] == pytest.approx(
                    shelf.position[1] + 1.0 + floor_request.product_height / 2
                )


class TestGrid:

    def test_layout_matches_shelf_aspect(self):
        layout = calculate_grid_layout(6, 60, 40, 7.5, 6)
        assert (layout.rows, layout.cols) == (2, 3)
        assert layout.spacing_x == pytest.approx(18.75)
        assert layout.spacing_z == pytest.approx(28.0)

    def test_grid_fills_the_shelf(self, floor_placement):
        shelf = floor_placement.shelves[0]
        xs = [p.position[0] for p in shelf.products]
        zs = [p.position[2] for p in shelf.products]
        assert max(xs) + 7.5 / 2 == pytest.approx(30.0)
        assert min(xs) - 7.5 / 2 == pytest.approx(-30.0)
        assert max(zs) + 6 / 2 == pytest.approx(20.0)
        assert shelf.products[5].grid_position == (1, 2)

    def test_no_feasible_grid(self):
        request = _request(
            stand_width=10, stand_height=50, stand_depth=10, shelf_count=1,
            product_width=8, product_height=5, product_depth=8, front_face_count=4,
        )
        placement = generate_placement(request)
        assert placement.placement_errors
        assert placement.total_products == 4
        assert {p.grid_position[0] for p in placement.all_products()} == {0}


class TestPlacementResult:

    def test_totals(self, floor_placement, floor_request):
        assert len(floor_placement.shelves) == floor_request.shelf_count
        assert floor_placement.total_products == 4 * 6
        assert floor_placement.overall_utilization == pytest.approx(100.0)
        assert all(s.capacity == 6 for s in floor_placement.shelves)

    def test_every_product_on_its_shelf(self, floor_placement):
        for shelf in floor_placement.shelves:
            assert all(p.shelf_index == shelf.index for p in shelf.products)
        ids = [p.id for p in floor_placement.all_products()]
        assert len(ids) == len(set(ids))
        assert ids[0] == "product-0-0"

    def test_support_frame(self, floor_placement):
        specs = floor_placement.manufacturing_specs
        assert len(specs.vertical_supports) == 4
        assert len(specs.horizontal_beams) == 16
        assert specs.shelf_material == pytest.approx(4 * 60 * 40)
        assert specs.support_material == pytest.approx(4 * 160 + 4 * 200)
        assert specs.shelf_spacing == pytest.approx(36.0)


class TestEditing:

    def test_update_returns_copy(self, floor_placement):
        moved = update_product_position(floor_placement, "product-0-0", (1.0, 2.0, 3.0))
        assert moved.shelves[0].products[0].position == (1.0, 2.0, 3.0)
        assert floor_placement.shelves[0].products[0].position != (1.0, 2.0, 3.0)

    def test_update_unknown_product(self, floor_placement):
        moved = update_product_position(floor_placement, "product-9-9", (0.0, 0.0, 0.0))
        assert moved.placement_errors == ["Product product-9-9 not found"]
        assert floor_placement.placement_errors == []

    def test_validate_flags_stacked_products(self, floor_placement):
        target = floor_placement.shelves[0].products[1].position
        moved = update_product_position(floor_placement, "product-0-0", target)
        errors = validate_placement(moved)
        assert any("too close" in e for e in errors)

    def test_validate_flags_full_shelves(self, floor_placement):
        errors = validate_placement(floor_placement)
        assert sum("overcrowded" in e for e in errors) == 4


class TestUnbuildableRequests:

    @pytest.mark.parametrize("overrides,message", [
        ({"shelf_count": 0}, "Shelf count"),
        ({"stand_depth": 0}, "Shelf size"),
        ({"shelf_width": -5}, "Shelf size"),
        ({"product_height": 0}, "Product dimensions"),
    ])
    def test_returns_empty_placement_with_error(self, overrides, message):
        placement = generate_placement(_request(**overrides))
        assert placement.shelves == []
        assert placement.total_products == 0
        assert placement.overall_utilization == 0.0
        assert len(placement.placement_errors) == 1
        assert placement.placement_errors[0].startswith(message)

    def test_spacing_without_shelves(self):
        assert shelf_spacing(_request(shelf_count=0)) == pytest.approx(24.0)

    def test_flat_shelf_has_no_grid(self):
        layout = calculate_grid_layout(4, 60, 0, 10, 10)
        assert not layout.fits
        assert (layout.rows, layout.cols) == (1, 4)
