"""
Smart product positioning.

Re-grids the products on every shelf inside a margin, pushes apart any
products closer than the minimum spacing, and snaps products down onto
their shelf. Running it again on its own output changes nothing.
"""
import copy
import logging
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from display import DisplayRequest
from placement import PlacementResult, ProductInstance, ShelfStructure

logger = logging.getLogger(__name__)

# Fixed product footprint used for utilization estimates
FOOTPRINT_WIDTH = 1.3
FOOTPRINT_DEPTH = 0.25
SNAP_TOLERANCE = 0.1  # 1 mm in cm units


@dataclass
class SmartPositioningConfig:
    auto_snap_to_shelves: bool = True
    auto_distribute_products: bool = True
    prevent_overlaps: bool = True
    maintain_proportions: bool = True
    client_friendly_mode: bool = True


@dataclass
class PositioningConstraints:
    """Spacing rules in request units (cm)."""
    shelf_margin: float = 1.0
    product_spacing: float = 0.8
    vertical_clearance: float = 0.5
    max_products_per_row: int = 8
    preferred_orientation: str = "front"


@dataclass
class SmartPositionResult:
    products: List[ProductInstance]
    shelves: List[ShelfStructure]
    improvements: List[str] = field(default_factory=list)
    client_tips: List[str] = field(default_factory=list)
    auto_adjustments: int = 0

    def as_placement(self, base: PlacementResult) -> PlacementResult:
        """Rebuild a PlacementResult around the positioned shelves."""
        shelves = copy.deepcopy(self.shelves)
        overall = float(np.mean([s.utilization for s in shelves])) if shelves else 0.0
        return replace(
            copy.deepcopy(base),
            shelves=shelves,
            total_products=sum(len(s.products) for s in shelves),
            overall_utilization=max(0.0, min(100.0, overall)),
        )

    def to_dict(self) -> dict:
        return {
            "products": [p.to_dict() for p in self.products],
            "shelves": [s.to_dict() for s in self.shelves],
            "improvements": list(self.improvements),
            "client_tips": list(self.client_tips),
            "auto_adjustments": self.auto_adjustments,
        }


def optimize_product_placement(
    placement: PlacementResult,
    request: DisplayRequest,
    config: Optional[SmartPositioningConfig] = None,
    constraints: Optional[PositioningConstraints] = None,
) -> SmartPositionResult:
    """Tidy every shelf of a placement.

    Args:
        placement: Layout to improve (not modified).
        request: Source request, for the product box.
        config: Which passes to run.
        constraints: Margins and spacing.

    Returns:
        SmartPositionResult with new shelves, a flat product list and the
        number of corrections the overlap and snap passes made.
    """
    if config is None:
        config = SmartPositioningConfig()
    if constraints is None:
        constraints = PositioningConstraints()

    pw, ph, pd = request.product_dimensions()
    shelves = copy.deepcopy(placement.shelves)
    improvements: List[str] = []
    total_adjustments = 0

    for shelf in shelves:
        if not shelf.products:
            shelf.utilization = 0.0
            continue
        if config.auto_distribute_products:
            _regrid_shelf(shelf, pw, pd, constraints)

        adjustments = 0
        if config.prevent_overlaps:
            adjustments += _separate_overlaps(shelf.products, constraints.product_spacing)
        if config.auto_snap_to_shelves:
            adjustments += _snap_to_shelf(shelf, ph, constraints.vertical_clearance)
        if adjustments:
            improvements.append(f"Fixed {adjustments} positioning issues on {shelf.id}")
        total_adjustments += adjustments
        shelf.utilization = shelf_utilization(shelf, constraints)

    if total_adjustments:
        improvements.append(f"Made {total_adjustments} automatic positioning improvements")

    products = [p for shelf in shelves for p in shelf.products]
    tips = _client_tips(shelves, len(products)) if config.client_friendly_mode else []
    logger.info(
        "Smart positioning: %d products on %d shelves, %d adjustments",
        len(products), len(shelves), total_adjustments,
    )
    return SmartPositionResult(
        products=products,
        shelves=shelves,
        improvements=improvements,
        client_tips=tips,
        auto_adjustments=total_adjustments,
    )


def calculate_optimal_grid(
    count: int,
    shelf: ShelfStructure,
    product_width: float,
    product_depth: float,
    constraints: PositioningConstraints,
) -> Tuple[int, int]:
    """(rows, cols) for ``count`` products inside the shelf margin."""
    spacing = constraints.product_spacing
    avail_w = shelf.width - 2 * constraints.shelf_margin
    avail_d = shelf.depth - 2 * constraints.shelf_margin
    max_cols = max(1, int((avail_w + spacing) // (product_width + spacing)))
    max_rows = max(1, int((avail_d + spacing) // (product_depth + spacing)))

    cols = max(1, min(max_cols, count, constraints.max_products_per_row))
    rows = math.ceil(count / cols)
    if rows > max_rows:
        rows = max_rows
        cols = math.ceil(count / rows)
    return rows, cols


def _regrid_shelf(
    shelf: ShelfStructure,
    product_width: float,
    product_depth: float,
    constraints: PositioningConstraints,
) -> None:
    """Re-seat products to grid cells centred on the shelf, facing front."""
    rows, cols = calculate_optimal_grid(
        len(shelf.products), shelf, product_width, product_depth, constraints,
    )
    spacing = constraints.product_spacing
    total_w = cols * product_width + (cols - 1) * spacing
    total_d = rows * product_depth + (rows - 1) * spacing
    start_x = shelf.position[0] - total_w / 2 + product_width / 2
    start_z = shelf.position[2] - total_d / 2 + product_depth / 2

    for n, product in enumerate(shelf.products):
        row, col = divmod(n, cols)
        x = start_x + col * (product_width + spacing)
        z = start_z + row * (product_depth + spacing)
        product.position = (float(x), product.position[1], float(z))
        product.grid_position = (row, col)
        product.rotation = (0.0, 0.0, 0.0)
        product.orientation = constraints.preferred_orientation


def _separate_overlaps(products: List[ProductInstance], min_spacing: float) -> int:
    """Push apart product pairs whose centres are closer than ``min_spacing``."""
    if len(products) < 2 or min_spacing <= 0:
        return 0
    points = np.array([(p.position[0], p.position[2]) for p in products])
    candidates = sorted(cKDTree(points).query_pairs(r=min_spacing))

    adjustments = 0
    for i, j in candidates:
        a, b = products[i], products[j]
        delta = np.array([b.position[0] - a.position[0], b.position[2] - a.position[2]])
        distance = float(np.linalg.norm(delta))
        if distance >= min_spacing:
            continue
        direction = delta / distance if distance > 0 else np.array([1.0, 0.0])
        push = direction * (min_spacing - distance) / 2
        a.position = (a.position[0] - push[0], a.position[1], a.position[2] - push[1])
        b.position = (b.position[0] + push[0], b.position[1], b.position[2] + push[1])
        adjustments += 1
    return adjustments


def _snap_to_shelf(shelf: ShelfStructure, product_height: float, clearance: float) -> int:
    expected_y = shelf.top + product_height / 2 + clearance
    adjustments = 0
    for product in shelf.products:
        if abs(product.position[1] - expected_y) > SNAP_TOLERANCE:
            product.position = (product.position[0], expected_y, product.position[2])
            adjustments += 1
    return adjustments


def shelf_utilization(shelf: ShelfStructure, constraints: PositioningConstraints) -> float:
    """Footprint-based fill estimate of the usable shelf area, in percent."""
    spacing = constraints.product_spacing
    usable = (shelf.width - 2 * constraints.shelf_margin) * (shelf.depth - 2 * constraints.shelf_margin)
    if usable <= 0:
        return 100.0
    used = len(shelf.products) * (FOOTPRINT_WIDTH + spacing) * (FOOTPRINT_DEPTH + spacing)
    return min(100.0, used / usable * 100.0)


def _client_tips(shelves: List[ShelfStructure], product_count: int) -> List[str]:
    tips = [f"{product_count} products automatically positioned on {len(shelves)} shelves"]
    if any(s.utilization > 80 for s in shelves):
        tips.append("Some shelves are crowded; consider fewer products per shelf")
    if len(shelves) > 3:
        tips.append("Multi-tier layout: place best sellers at eye level")
    return tips


# ─── Presets ─────────────────────────────────────────────────────────────────


def auto_position_for_client(
    placement: PlacementResult,
    request: DisplayRequest,
) -> SmartPositionResult:
    """Tighter spacing and friendly tips for client-facing previews."""
    return optimize_product_placement(
        placement,
        request,
        SmartPositioningConfig(client_friendly_mode=True),
        PositioningConstraints(
            shelf_margin=0.8,
            product_spacing=0.6,
            vertical_clearance=0.3,
            max_products_per_row=6,
        ),
    )


def optimize_for_professional(
    placement: PlacementResult,
    request: DisplayRequest,
) -> SmartPositionResult:
    """Default spacing without client tips."""
    return optimize_product_placement(
        placement,
        request,
        SmartPositioningConfig(client_friendly_mode=False),
        PositioningConstraints(),
    )
