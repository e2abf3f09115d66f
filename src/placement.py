"""
Product placement on display shelves.

Spaces shelves up the stand, lays the requested products out on each shelf
in a grid that fills the board, and derives the support frame a workshop
needs to build it. Coordinates are in request units (cm) with the stand
centred on x/z and y pointing up.
"""
import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from display import DisplayRequest

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


@dataclass
class PlacementConfig:
    """Shelf and grid spacing rules (request units)."""
    shelf_thickness: float = 2.0
    headroom_factor: float = 1.2  # shelf pitch >= product height * factor
    min_top_reserve: float = 4.0
    top_reserve_ratio: float = 0.1  # of stand height, kept free above the top shelf
    min_product_spacing: float = 0.5
    product_spacing_ratio: float = 0.1  # of the smaller product footprint side
    min_center_distance: float = 1.0
    overcrowded_utilization: float = 95.0
    beams_per_shelf: int = 4


@dataclass
class ProductInstance:
    id: str
    position: Vec3
    shelf_index: int
    grid_position: Tuple[int, int]  # (row, col)
    dimensions: Vec3  # (w, h, d)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    orientation: str = "front"  # "front", "side" or "angle"
    priority: float = 0.0

    @property
    def volume(self) -> float:
        w, h, d = self.dimensions
        return w * h * d

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "shelf_index": self.shelf_index,
            "grid_position": {"row": self.grid_position[0], "col": self.grid_position[1]},
            "dimensions": list(self.dimensions),
            "orientation": self.orientation,
            "priority": self.priority,
        }


@dataclass
class ShelfStructure:
    id: str
    index: int
    position: Vec3
    dimensions: Vec3  # (width, thickness, depth)
    products: List[ProductInstance] = field(default_factory=list)
    capacity: int = 0
    utilization: float = 0.0

    @property
    def width(self) -> float:
        return self.dimensions[0]

    @property
    def thickness(self) -> float:
        return self.dimensions[1]

    @property
    def depth(self) -> float:
        return self.dimensions[2]

    @property
    def top(self) -> float:
        return self.position[1] + self.thickness / 2

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "index": self.index,
            "position": list(self.position),
            "dimensions": list(self.dimensions),
            "products": [p.to_dict() for p in self.products],
            "capacity": self.capacity,
            "utilization": round(self.utilization, 2),
        }


@dataclass
class SupportElement:
    start: Vec3
    end: Vec3

    @property
    def length(self) -> float:
        return float(np.linalg.norm(np.subtract(self.end, self.start)))

    def to_dict(self) -> dict:
        return {"start": list(self.start), "end": list(self.end), "length": round(self.length, 3)}


@dataclass
class ManufacturingSpecs:
    shelf_spacing: float
    product_spacing: Dict[str, float]
    vertical_supports: List[SupportElement]
    horizontal_beams: List[SupportElement]
    shelf_material: float  # area
    support_material: float  # linear length

    def to_dict(self) -> dict:
        return {
            "shelf_spacing": self.shelf_spacing,
            "product_spacing": dict(self.product_spacing),
            "support_structure": {
                "vertical_supports": [s.to_dict() for s in self.vertical_supports],
                "horizontal_beams": [b.to_dict() for b in self.horizontal_beams],
            },
            "material_usage": {
                "shelf_material": self.shelf_material,
                "support_material": self.support_material,
            },
        }


@dataclass
class PlacementResult:
    shelves: List[ShelfStructure]
    total_products: int
    overall_utilization: float
    manufacturing_specs: ManufacturingSpecs
    placement_errors: List[str] = field(default_factory=list)
    length_unit_mm: float = 10.0  # size of one coordinate unit

    def all_products(self) -> List[ProductInstance]:
        return [p for shelf in self.shelves for p in shelf.products]

    def to_dict(self) -> dict:
        return {
            "shelves": [s.to_dict() for s in self.shelves],
            "total_products": self.total_products,
            "overall_utilization": round(self.overall_utilization, 2),
            "manufacturing_specs": self.manufacturing_specs.to_dict(),
            "placement_errors": list(self.placement_errors),
            "length_unit_mm": self.length_unit_mm,
        }


@dataclass
class GridLayout:
    rows: int
    cols: int
    spacing_x: float  # gap between neighbouring products
    spacing_z: float
    fits: bool = True

    @property
    def capacity(self) -> int:
        return self.rows * self.cols


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def shelf_spacing(request: DisplayRequest, config: Optional[PlacementConfig] = None) -> float:
    """Vertical pitch between shelves."""
    if config is None:
        config = PlacementConfig()
    reserve = max(config.min_top_reserve, config.top_reserve_ratio * request.stand_height)
    if request.shelf_count <= 0:
        return request.product_height * config.headroom_factor
    even = (request.stand_height - reserve) / request.shelf_count
    return max(request.product_height * config.headroom_factor, even)


def calculate_grid_layout(
    target: int,
    shelf_width: float,
    shelf_depth: float,
    product_width: float,
    product_depth: float,
    config: Optional[PlacementConfig] = None,
) -> GridLayout:
    """Rows x cols for ``target`` products whose aspect best matches the shelf."""
    if config is None:
        config = PlacementConfig()
    min_spacing = max(
        config.min_product_spacing,
        config.product_spacing_ratio * min(product_width, product_depth),
    )
    max_cols = int(shelf_width // (product_width + min_spacing))
    max_rows = int(shelf_depth // (product_depth + min_spacing))
    shelf_aspect = shelf_width / shelf_depth if shelf_depth > 0 else math.inf

    best: Optional[Tuple[int, int]] = None
    best_error = math.inf
    for cols in range(1, min(max_cols, target) + 1):
        rows = math.ceil(target / cols)
        if rows > max_rows:
            continue
        error = abs(cols / rows - shelf_aspect)
        if error < best_error:
            best, best_error = (rows, cols), error

    fits = best is not None
    rows, cols = best if best is not None else (1, max(target, 1))

    def gap(count: int, shelf: float, product: float) -> float:
        if count > 1:
            return (shelf - count * product) / (count - 1)
        return product + min_spacing

    return GridLayout(
        rows=rows,
        cols=cols,
        spacing_x=gap(cols, shelf_width, product_width),
        spacing_z=gap(rows, shelf_depth, product_depth),
        fits=fits,
    )


def _grid_offsets(count: int, product: float, gap: float) -> np.ndarray:
    """Centre offsets of ``count`` products spread symmetrically about zero."""
    if count <= 1:
        return np.zeros(max(count, 1))
    pitch = product + gap
    return (np.arange(count) - (count - 1) / 2.0) * pitch


def generate_placement(
    request: DisplayRequest,
    config: Optional[PlacementConfig] = None,
) -> PlacementResult:
    """Lay out shelves and products for a request.

    Args:
        request: Stand envelope, shelf count and product box (cm).
        config: Spacing rules.

    Returns:
        PlacementResult with every shelf filled to its per-shelf target.
    """
    if config is None:
        config = PlacementConfig()

    problem = _layout_problem(request)
    if problem:
        logger.warning("No placement: %s", problem)
        return _empty_placement(problem)

    spacing = shelf_spacing(request, config)
    shelf_w = request.effective_shelf_width
    shelf_d = request.effective_shelf_depth
    pw, ph, pd = request.product_dimensions()
    target = request.products_per_shelf
    layout = calculate_grid_layout(target, shelf_w, shelf_d, pw, pd, config)

    errors: List[str] = []
    if not layout.fits:
        errors.append(
            f"Shelves of {shelf_w:g}x{shelf_d:g} cannot hold {target} products "
            f"of {pw:g}x{pd:g} in a grid"
        )

    x_offsets = _grid_offsets(layout.cols, pw, layout.spacing_x)
    z_offsets = _grid_offsets(layout.rows, pd, layout.spacing_z)

    shelves: List[ShelfStructure] = []
    for i in range(request.shelf_count):
        shelf = ShelfStructure(
            id=f"shelf-{i}",
            index=i,
            position=(0.0, (i + 0.5) * spacing, 0.0),
            dimensions=(shelf_w, config.shelf_thickness, shelf_d),
            capacity=layout.capacity,
        )
        y = shelf.top + ph / 2
        for n in range(target):
            row, col = divmod(n, layout.cols)
            shelf.products.append(ProductInstance(
                id=f"product-{i}-{n}",
                position=(float(x_offsets[col]), y, float(z_offsets[row])),
                shelf_index=i,
                grid_position=(row, col),
                dimensions=(pw, ph, pd),
            ))
        shelf.utilization = _clamp_percent(
            len(shelf.products) / layout.capacity * 100 if layout.capacity else 0.0
        )
        shelves.append(shelf)

    total = sum(len(s.products) for s in shelves)
    expected = request.shelf_count * target
    overall = _clamp_percent(total / expected * 100 if expected else 0.0)

    result = PlacementResult(
        shelves=shelves,
        total_products=total,
        overall_utilization=overall,
        manufacturing_specs=_manufacturing_specs(request, shelves, spacing, layout, config),
        placement_errors=errors,
    )
    logger.info(
        "Placed %d products on %d shelves (%dx%d grid, pitch %.1f)",
        total, len(shelves), layout.rows, layout.cols, spacing,
    )
    return result


def _layout_problem(request: DisplayRequest) -> Optional[str]:
    if request.shelf_count <= 0:
        return f"Shelf count must be at least 1, got {request.shelf_count}"
    if request.effective_shelf_width <= 0 or request.effective_shelf_depth <= 0:
        return (
            f"Shelf size {request.effective_shelf_width:g}x{request.effective_shelf_depth:g} "
            "must be positive"
        )
    if min(request.product_dimensions()) <= 0:
        return "Product dimensions must be positive"
    return None


def _empty_placement(error: str) -> PlacementResult:
    return PlacementResult(
        shelves=[],
        total_products=0,
        overall_utilization=0.0,
        manufacturing_specs=ManufacturingSpecs(
            shelf_spacing=0.0,
            product_spacing={"x": 0.0, "z": 0.0},
            vertical_supports=[],
            horizontal_beams=[],
            shelf_material=0.0,
            support_material=0.0,
        ),
        placement_errors=[error],
    )


def _manufacturing_specs(
    request: DisplayRequest,
    shelves: List[ShelfStructure],
    spacing: float,
    layout: GridLayout,
    config: PlacementConfig,
) -> ManufacturingSpecs:
    """Corner posts, perimeter beams and material totals for the frame."""
    half_w = request.effective_shelf_width / 2
    half_d = request.effective_shelf_depth / 2
    corners = [(-half_w, -half_d), (half_w, -half_d), (half_w, half_d), (-half_w, half_d)]

    verticals = [
        SupportElement(start=(x, 0.0, z), end=(x, request.stand_height, z))
        for x, z in corners
    ]
    beams = []
    for shelf in shelves:
        y = shelf.position[1]
        for k in range(config.beams_per_shelf):
            x0, z0 = corners[k % 4]
            x1, z1 = corners[(k + 1) % 4]
            beams.append(SupportElement(start=(x0, y, z0), end=(x1, y, z1)))

    support_length = sum(s.length for s in verticals) + sum(b.length for b in beams)
    return ManufacturingSpecs(
        shelf_spacing=spacing,
        product_spacing={"x": layout.spacing_x, "z": layout.spacing_z},
        vertical_supports=verticals,
        horizontal_beams=beams,
        shelf_material=len(shelves) * request.effective_shelf_width * request.effective_shelf_depth,
        support_material=support_length,
    )


def update_product_position(
    placement: PlacementResult,
    product_id: str,
    position: Vec3,
) -> PlacementResult:
    """Return a copy of the placement with one product moved."""
    updated = copy.deepcopy(placement)
    for product in updated.all_products():
        if product.id == product_id:
            product.position = tuple(float(v) for v in position)
            return updated
    updated.placement_errors.append(f"Product {product_id} not found")
    return updated


def validate_placement(
    placement: PlacementResult,
    config: Optional[PlacementConfig] = None,
) -> List[str]:
    """Products stacked on top of each other and overcrowded shelves."""
    if config is None:
        config = PlacementConfig()
    errors = []
    for shelf in placement.shelves:
        if len(shelf.products) > 1:
            points = np.array([p.position for p in shelf.products])
            deltas = points[:, None, :] - points[None, :, :]
            distances = np.linalg.norm(deltas, axis=-1)
            count = len(shelf.products)
            for i in range(count):
                for j in range(i + 1, count):
                    if distances[i, j] < config.min_center_distance:
                        errors.append(
                            f"Products {shelf.products[i].id} and {shelf.products[j].id} are too close"
                        )
        if shelf.utilization > config.overcrowded_utilization:
            errors.append(f"Shelf {shelf.id} is overcrowded ({shelf.utilization:.0f}%)")
    return errors
