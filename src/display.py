"""
Core data structures for retail display templates and design requests.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ModuleType(Enum):
    """Flat parts a display template is assembled from."""
    SIDE_PANEL = "side_panel"
    HEADER = "header"
    SHELF = "shelf"
    BASE_PLATE = "base_plate"
    BACK_PANEL = "back_panel"


class JoineryType(Enum):
    """How the modules of a template are joined."""
    SLOT_TAB = "slot_tab"
    SCREWS = "screws"
    ADHESIVE = "adhesive"
    CLIP_FIT = "clip_fit"


class MaterialType(Enum):
    """Sheet materials a template can be cut from."""
    CARDBOARD = "EB_flute_cardboard"
    MDF = "MDF"
    ACRYLIC = "acrylic"
    METAL = "metal"
    PLASTIC = "plastic"


class AssemblyComplexity(Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


# Whether a module carries product load. Every ModuleType must appear here.
LOAD_BEARING_MODULES: Dict[ModuleType, bool] = {
    ModuleType.SIDE_PANEL: False,
    ModuleType.HEADER: False,
    ModuleType.SHELF: True,
    ModuleType.BASE_PLATE: True,
    ModuleType.BACK_PANEL: False,
}


@dataclass(frozen=True)
class Dimensions:
    """Axis-aligned envelope in mm."""
    width: float
    height: float
    depth: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.width, self.height, self.depth)

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height, "depth": self.depth}


@dataclass(frozen=True)
class MaterialSpec:
    type: MaterialType
    thickness: float  # mm
    finish: str = "matte"
    color: str = "natural"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "thickness": self.thickness,
            "finish": self.finish,
            "color": self.color,
        }


@dataclass(frozen=True)
class PrintZone:
    """Printable rectangle in module coordinates (mm, origin at the module corner)."""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class ModuleSpec:
    """
    One flat part of a template.

    Attributes:
        id: Unique part name within the template
        type: Module kind
        width: Flat width in mm
        height: Flat height in mm (for horizontal parts, the shelf depth)
        depth: Thickness-direction extent in mm, if different from the sheet
        material: Material override (defaults to the template material)
        print_zone: Printable area, if the part carries graphics
    """
    id: str
    type: ModuleType
    width: float
    height: float
    depth: Optional[float] = None
    material: Optional[MaterialType] = None
    print_zone: Optional[PrintZone] = None

    @property
    def flat_area_mm2(self) -> float:
        return self.width * self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "width": self.width,
            "height": self.height,
            "depth": self.depth,
            "material": self.material.value if self.material else None,
            "print_zone": self.print_zone.to_dict() if self.print_zone else None,
        }


@dataclass(frozen=True)
class JoinerySpec:
    type: JoineryType
    slot_width: Optional[float] = None  # mm
    tab_count: Optional[int] = None
    hardware_required: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "slot_width": self.slot_width,
            "tab_count": self.tab_count,
            "hardware_required": list(self.hardware_required),
        }


@dataclass(frozen=True)
class PackingSpec:
    flat_width: float  # mm
    flat_height: float  # mm
    flat_depth: float  # mm
    piece_count: int
    assembly_time_minutes: float
    shipping_weight_kg: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flat_pack_dimensions": {
                "width": self.flat_width,
                "height": self.flat_height,
                "depth": self.flat_depth,
            },
            "piece_count": self.piece_count,
            "assembly_time_minutes": self.assembly_time_minutes,
            "shipping_weight_kg": self.shipping_weight_kg,
        }


@dataclass(frozen=True)
class ProductCapacity:
    shelf_count: int
    products_per_shelf: int
    max_product_dimensions: Dimensions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shelf_count": self.shelf_count,
            "products_per_shelf": self.products_per_shelf,
            "max_product_dimensions": self.max_product_dimensions.to_dict(),
        }


@dataclass(frozen=True)
class TemplateConstraints:
    max_shelf_load_kg: float
    stability_ratio: float
    assembly_complexity: AssemblyComplexity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_shelf_load_kg": self.max_shelf_load_kg,
            "stability_ratio": self.stability_ratio,
            "assembly_complexity": self.assembly_complexity.value,
        }


@dataclass(frozen=True)
class DisplayTemplate:
    """A concrete, buildable display design."""
    id: str
    name: str
    archetype_id: str
    dimensions: Dimensions
    material: MaterialSpec
    modules: Tuple[ModuleSpec, ...]
    joinery: JoinerySpec
    packing: PackingSpec
    product_capacity: ProductCapacity
    constraints: TemplateConstraints

    def modules_of_type(self, module_type: ModuleType) -> List[ModuleSpec]:
        return [m for m in self.modules if m.type == module_type]

    @property
    def shelf_modules(self) -> List[ModuleSpec]:
        return self.modules_of_type(ModuleType.SHELF)

    @property
    def has_print_zones(self) -> bool:
        return any(m.print_zone is not None for m in self.modules)

    def material_area_mm2(self) -> float:
        """Total flat sheet area of all modules."""
        return sum(m.flat_area_mm2 for m in self.modules)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "archetype_id": self.archetype_id,
            "dimensions": self.dimensions.to_dict(),
            "material": self.material.to_dict(),
            "modules": [m.to_dict() for m in self.modules],
            "joinery": self.joinery.to_dict(),
            "packing": self.packing.to_dict(),
            "product_capacity": self.product_capacity.to_dict(),
            "constraints": self.constraints.to_dict(),
        }


# ─── Design request ──────────────────────────────────────────────────────────

# snake_case field -> camelCase key accepted by from_dict
_CAMEL_KEYS = {
    "stand_type": "standType",
    "stand_width": "standWidth",
    "stand_height": "standHeight",
    "stand_depth": "standDepth",
    "shelf_count": "shelfCount",
    "shelf_width": "shelfWidth",
    "shelf_depth": "shelfDepth",
    "product_width": "productWidth",
    "product_height": "productHeight",
    "product_depth": "productDepth",
    "front_face_count": "frontFaceCount",
    "back_to_back_count": "backToBackCount",
    "brand_color": "standBaseColor",
}

_REQUIRED_FIELDS = (
    "stand_width", "stand_height", "stand_depth", "shelf_count",
    "product_width", "product_height", "product_depth",
)


@dataclass
class DisplayRequest:
    """
    What a brand asks for. All lengths are in cm.

    Attributes:
        stand_type: Free-text display type label (e.g. "Floor Stand")
        stand_width, stand_height, stand_depth: Requested envelope
        shelf_count: Number of product shelves
        materials: Preferred material names, first one is primary
        product_width, product_height, product_depth: One product's box
        front_face_count: Products facing the shopper per row
        back_to_back_count: Rows of products behind each facing
        shelf_width, shelf_depth: Shelf board size (defaults to the envelope)
        brand_color: Optional base color
    """
    stand_width: float
    stand_height: float
    stand_depth: float
    shelf_count: int
    product_width: float
    product_height: float
    product_depth: float
    stand_type: str = "Floor Stand"
    materials: List[str] = field(default_factory=list)
    front_face_count: int = 1
    back_to_back_count: int = 1
    shelf_width: Optional[float] = None
    shelf_depth: Optional[float] = None
    brand_color: Optional[str] = None

    @property
    def effective_shelf_width(self) -> float:
        return self.shelf_width if self.shelf_width else self.stand_width

    @property
    def effective_shelf_depth(self) -> float:
        return self.shelf_depth if self.shelf_depth else self.stand_depth

    @property
    def primary_material(self) -> str:
        return self.materials[0] if self.materials else "plastic"

    @property
    def total_products(self) -> int:
        return self.front_face_count * self.back_to_back_count

    @property
    def products_per_shelf(self) -> int:
        if self.shelf_count <= 0:
            return 0
        return math.ceil(self.total_products / self.shelf_count)

    def target_dimensions_mm(self) -> Dimensions:
        return Dimensions(
            width=self.stand_width * 10.0,
            height=self.stand_height * 10.0,
            depth=self.stand_depth * 10.0,
        )

    def product_dimensions(self) -> Tuple[float, float, float]:
        return (self.product_width, self.product_height, self.product_depth)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stand_type": self.stand_type,
            "stand_width": self.stand_width,
            "stand_height": self.stand_height,
            "stand_depth": self.stand_depth,
            "shelf_count": self.shelf_count,
            "materials": list(self.materials),
            "product_width": self.product_width,
            "product_height": self.product_height,
            "product_depth": self.product_depth,
            "front_face_count": self.front_face_count,
            "back_to_back_count": self.back_to_back_count,
            "shelf_width": self.shelf_width,
            "shelf_depth": self.shelf_depth,
            "brand_color": self.brand_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DisplayRequest":
        """Build a request from snake_case or camelCase keys.

        Raises:
            ValueError: If a required field is missing.
        """
        values: Dict[str, Any] = {}
        for name in list(_CAMEL_KEYS) + ["materials"]:
            camel = _CAMEL_KEYS.get(name, name)
            if name in data:
                values[name] = data[name]
            elif camel in data:
                values[name] = data[camel]

        missing = [name for name in _REQUIRED_FIELDS if values.get(name) is None]
        if missing:
            raise ValueError(f"Display request missing required fields: {', '.join(missing)}")

        materials = values.get("materials") or []
        if isinstance(materials, str):
            materials = [materials]
        values["materials"] = list(materials)
        values["shelf_count"] = int(values["shelf_count"])
        for count_field in ("front_face_count", "back_to_back_count"):
            if values.get(count_field) is not None:
                values[count_field] = int(values[count_field])
        return cls(**{k: v for k, v in values.items() if v is not None})
