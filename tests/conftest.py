"""
Shared test fixtures for the display design pipeline tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from display import DisplayRequest
from dfm_rules import DFMConfig
from placement import (
    ManufacturingSpecs, PlacementResult, ProductInstance, ShelfStructure,
    generate_placement,
)
from templates import default_catalog


@pytest.fixture
def floor_request():
    """60x160x40cm metal floor stand, 4 shelves of 6 products."""
    return DisplayRequest(
        stand_type="Floor Stand",
        stand_width=60,
        stand_height=160,
        stand_depth=40,
        shelf_count=4,
        materials=["metal"],
        product_width=7.5,
        product_height=18,
        product_depth=6,
        front_face_count=6,
        back_to_back_count=4,
    )


@pytest.fixture
def counter_request():
    """Request matching the compact counter template exactly."""
    return DisplayRequest(
        stand_type="Tabletop",
        stand_width=30,
        stand_height=40,
        stand_depth=25,
        shelf_count=2,
        materials=["cardboard"],
        product_width=6,
        product_height=12,
        product_depth=4,
        front_face_count=4,
        back_to_back_count=2,
    )


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def fsu_template(catalog):
    return catalog.get_template("fsu_standard_4tier")


@pytest.fixture
def counter_template(catalog):
    return catalog.get_template("counter_compact_2tier")


@pytest.fixture
def dfm_config():
    return DFMConfig()


@pytest.fixture
def floor_placement(floor_request):
    return generate_placement(floor_request)


def make_placement(products, shelf_width=100.0, shelf_depth=40.0, unit_mm=1.0):
    """Single-shelf placement around hand-placed products."""
    shelf = ShelfStructure(
        id="shelf-0",
        index=0,
        position=(0.0, 10.0, 0.0),
        dimensions=(shelf_width, 2.0, shelf_depth),
        products=list(products),
        capacity=len(products),
        utilization=100.0,
    )
    specs = ManufacturingSpecs(
        shelf_spacing=20.0,
        product_spacing={"x": 0.0, "z": 0.0},
        vertical_supports=[],
        horizontal_beams=[],
        shelf_material=shelf_width * shelf_depth,
        support_material=0.0,
    )
    return PlacementResult(
        shelves=[shelf],
        total_products=len(products),
        overall_utilization=100.0,
        manufacturing_specs=specs,
        length_unit_mm=unit_mm,
    )


def make_product(product_id, x, z=0.0, width=10.0, height=10.0, depth=10.0):
    return ProductInstance(
        id=product_id,
        position=(x, 16.0, z),
        shelf_index=0,
        grid_position=(0, 0),
        dimensions=(width, height, depth),
    )
