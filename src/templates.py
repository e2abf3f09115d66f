"""
Display template library.

Concrete, buildable display designs grouped by archetype. The catalog is
built once and shared read-only; nearest-match lookup ranks templates of an
archetype by how far their envelope and shelf count are from a request.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from archetypes import ARCHETYPES, Archetype, ArchetypeId
from display import (
    AssemblyComplexity, Dimensions, DisplayTemplate, JoinerySpec, JoineryType,
    MaterialSpec, MaterialType, ModuleSpec, ModuleType, PackingSpec, PrintZone,
    ProductCapacity, TemplateConstraints,
)

logger = logging.getLogger(__name__)


def _shelves(count: int, width: float, depth: float) -> List[ModuleSpec]:
    return [
        ModuleSpec(id=f"shelf_{i + 1}", type=ModuleType.SHELF, width=width, height=depth)
        for i in range(count)
    ]


def _sides(count: int, width: float, height: float,
           zone: Optional[PrintZone] = None) -> List[ModuleSpec]:
    names = ["side_left", "side_right"] if count == 2 else [f"side_{i + 1}" for i in range(count)]
    return [
        ModuleSpec(id=name, type=ModuleType.SIDE_PANEL, width=width, height=height, print_zone=zone)
        for name in names
    ]


def build_default_templates() -> Tuple[DisplayTemplate, ...]:
    """All shipped templates, in catalog order."""
    return (
        DisplayTemplate(
            id="fsu_standard_4tier",
            name="Standard 4-Tier Floor Stand",
            archetype_id=ArchetypeId.FSU.value,
            dimensions=Dimensions(600, 1600, 560),
            material=MaterialSpec(MaterialType.CARDBOARD, 5, "matte", "white"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 600, 200,
                            print_zone=PrintZone(50, 25, 500, 150))]
                + _sides(2, 560, 1400, PrintZone(50, 50, 460, 1300))
                + _shelves(4, 590, 560)
                + [ModuleSpec("base", ModuleType.BASE_PLATE, 600, 560)]
            ),
            joinery=JoinerySpec(JoineryType.SLOT_TAB, slot_width=5.2, tab_count=16),
            packing=PackingSpec(650, 600, 25, piece_count=8,
                                assembly_time_minutes=15, shipping_weight_kg=3.6),
            product_capacity=ProductCapacity(4, 8, Dimensions(75, 180, 60)),
            constraints=TemplateConstraints(5, 2.86, AssemblyComplexity.SIMPLE),
        ),
        DisplayTemplate(
            id="fsu_compact_3tier",
            name="Compact 3-Tier Floor Stand",
            archetype_id=ArchetypeId.FSU.value,
            dimensions=Dimensions(500, 1200, 450),
            material=MaterialSpec(MaterialType.CARDBOARD, 6, "gloss", "white"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 500, 180,
                            print_zone=PrintZone(40, 20, 420, 140))]
                + _sides(2, 450, 1050, PrintZone(40, 40, 370, 970))
                + _shelves(3, 490, 450)
                + [ModuleSpec("base", ModuleType.BASE_PLATE, 500, 450)]
            ),
            joinery=JoinerySpec(JoineryType.SLOT_TAB, slot_width=6.2, tab_count=12),
            packing=PackingSpec(550, 500, 24, piece_count=7,
                                assembly_time_minutes=14, shipping_weight_kg=2.6),
            product_capacity=ProductCapacity(3, 6, Dimensions(80, 220, 70)),
            constraints=TemplateConstraints(4, 2.67, AssemblyComplexity.SIMPLE),
        ),
        DisplayTemplate(
            id="fsu_metal_5tier",
            name="Heavy-Duty 5-Tier Metal Floor Stand",
            archetype_id=ArchetypeId.FSU.value,
            dimensions=Dimensions(800, 1800, 600),
            material=MaterialSpec(MaterialType.METAL, 3, "powder_coated", "black"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 800, 250,
                            print_zone=PrintZone(60, 30, 680, 190))]
                + _sides(2, 600, 1550)
                + [ModuleSpec("back", ModuleType.BACK_PANEL, 800, 1550,
                              print_zone=PrintZone(50, 100, 700, 1300))]
                + _shelves(5, 790, 600)
                + [ModuleSpec("base", ModuleType.BASE_PLATE, 800, 600)]
            ),
            joinery=JoinerySpec(JoineryType.SCREWS,
                                hardware_required=("M4 machine screws", "Rivet nuts")),
            packing=PackingSpec(850, 650, 60, piece_count=10,
                                assembly_time_minutes=28, shipping_weight_kg=18),
            product_capacity=ProductCapacity(5, 10, Dimensions(100, 250, 100)),
            constraints=TemplateConstraints(12, 3.0, AssemblyComplexity.MODERATE),
        ),
        DisplayTemplate(
            id="counter_compact_2tier",
            name="Compact 2-Tier Counter Display",
            archetype_id=ArchetypeId.COUNTER.value,
            dimensions=Dimensions(300, 400, 250),
            material=MaterialSpec(MaterialType.CARDBOARD, 4, "gloss", "white"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 300, 80,
                            print_zone=PrintZone(20, 10, 260, 60))]
                + _sides(2, 250, 320)
                + _shelves(2, 294, 250)
            ),
            joinery=JoinerySpec(JoineryType.SLOT_TAB, slot_width=4.2, tab_count=8),
            packing=PackingSpec(320, 270, 15, piece_count=5,
                                assembly_time_minutes=8, shipping_weight_kg=0.8),
            product_capacity=ProductCapacity(2, 4, Dimensions(60, 120, 40)),
            constraints=TemplateConstraints(3, 1.6, AssemblyComplexity.SIMPLE),
        ),
        DisplayTemplate(
            id="counter_acrylic_3tier",
            name="Acrylic 3-Tier Counter Display",
            archetype_id=ArchetypeId.COUNTER.value,
            dimensions=Dimensions(350, 450, 280),
            material=MaterialSpec(MaterialType.ACRYLIC, 5, "polished", "clear"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 350, 90,
                            print_zone=PrintZone(20, 15, 310, 60))]
                + _sides(2, 280, 360)
                + [ModuleSpec("back", ModuleType.BACK_PANEL, 350, 360)]
                + _shelves(3, 340, 280)
            ),
            joinery=JoinerySpec(JoineryType.ADHESIVE),
            packing=PackingSpec(380, 300, 30, piece_count=7,
                                assembly_time_minutes=12, shipping_weight_kg=2.4),
            product_capacity=ProductCapacity(3, 4, Dimensions(60, 100, 50)),
            constraints=TemplateConstraints(3, 1.61, AssemblyComplexity.MODERATE),
        ),
        DisplayTemplate(
            id="shipper_medium_3tier",
            name="Medium 3-Tier Shipper",
            archetype_id=ArchetypeId.MODULAR_SHIPPER.value,
            dimensions=Dimensions(500, 1200, 420),
            material=MaterialSpec(MaterialType.CARDBOARD, 5, "matte", "kraft"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 500, 150,
                            print_zone=PrintZone(40, 20, 420, 110))]
                + _sides(2, 420, 1050, PrintZone(30, 30, 360, 990))
                + _shelves(3, 492, 420)
                + [ModuleSpec("base", ModuleType.BASE_PLATE, 500, 420)]
            ),
            joinery=JoinerySpec(JoineryType.SLOT_TAB, slot_width=5.2, tab_count=12),
            packing=PackingSpec(520, 440, 22, piece_count=7,
                                assembly_time_minutes=12, shipping_weight_kg=2.4),
            product_capacity=ProductCapacity(3, 6, Dimensions(70, 200, 60)),
            constraints=TemplateConstraints(4, 2.86, AssemblyComplexity.SIMPLE),
        ),
        DisplayTemplate(
            id="shelf_display_mdf",
            name="MDF 2-Shelf Display",
            archetype_id=ArchetypeId.SHELF.value,
            dimensions=Dimensions(560, 380, 320),
            material=MaterialSpec(MaterialType.MDF, 12, "laminated", "oak"),
            modules=tuple(
                _sides(2, 320, 380)
                + [ModuleSpec("back", ModuleType.BACK_PANEL, 536, 380,
                              print_zone=PrintZone(30, 30, 476, 320))]
                + _shelves(2, 536, 320)
            ),
            joinery=JoinerySpec(JoineryType.SCREWS, hardware_required=("Confirmat screws",)),
            packing=PackingSpec(600, 400, 70, piece_count=5,
                                assembly_time_minutes=18, shipping_weight_kg=7.5),
            product_capacity=ProductCapacity(2, 6, Dimensions(90, 150, 80)),
            constraints=TemplateConstraints(8, 1.19, AssemblyComplexity.MODERATE),
        ),
        DisplayTemplate(
            id="hanger_clip_2tier",
            name="Clip-Fit 2-Tier Wall Hanger",
            archetype_id=ArchetypeId.HANGER.value,
            dimensions=Dimensions(400, 280, 150),
            material=MaterialSpec(MaterialType.PLASTIC, 4, "matte", "white"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 400, 80,
                            print_zone=PrintZone(20, 10, 360, 60))]
                + [ModuleSpec("back", ModuleType.BACK_PANEL, 400, 280)]
                + _shelves(2, 390, 150)
            ),
            joinery=JoinerySpec(JoineryType.CLIP_FIT),
            packing=PackingSpec(420, 300, 20, piece_count=4,
                                assembly_time_minutes=5, shipping_weight_kg=0.9),
            product_capacity=ProductCapacity(2, 5, Dimensions(60, 100, 40)),
            constraints=TemplateConstraints(2, 1.87, AssemblyComplexity.SIMPLE),
        ),
        DisplayTemplate(
            id="island_quad_4tier",
            name="Four-Sided 4-Tier Island",
            archetype_id=ArchetypeId.ISLAND.value,
            dimensions=Dimensions(1000, 1600, 1000),
            material=MaterialSpec(MaterialType.MDF, 18, "laminated", "white"),
            modules=tuple(
                [ModuleSpec("header", ModuleType.HEADER, 1000, 250,
                            print_zone=PrintZone(50, 30, 900, 190))]
                + _sides(4, 960, 1400, PrintZone(60, 60, 840, 1100))
                + _shelves(4, 960, 960)
                + [ModuleSpec("base", ModuleType.BASE_PLATE, 1000, 1000)]
            ),
            joinery=JoinerySpec(JoineryType.SCREWS,
                                hardware_required=("Cam locks", "Wood dowels")),
            packing=PackingSpec(1100, 1050, 180, piece_count=10,
                                assembly_time_minutes=30, shipping_weight_kg=148),
            product_capacity=ProductCapacity(4, 16, Dimensions(120, 300, 120)),
            constraints=TemplateConstraints(15, 1.6, AssemblyComplexity.MODERATE),
        ),
        DisplayTemplate(
            id="exhibition_modular_wall",
            name="Modular Exhibition Wall",
            archetype_id=ArchetypeId.EXHIBITION.value,
            dimensions=Dimensions(2400, 2400, 1200),
            material=MaterialSpec(MaterialType.METAL, 5, "powder_coated", "grey"),
            modules=tuple(
                [ModuleSpec(f"header_{i + 1}", ModuleType.HEADER, 1200, 400,
                            print_zone=PrintZone(60, 40, 1080, 320)) for i in range(2)]
                + [ModuleSpec(f"back_{i + 1}", ModuleType.BACK_PANEL, 1190, 1000,
                              print_zone=PrintZone(50, 50, 1090, 900)) for i in range(4)]
                + _sides(4, 1190, 1000)
                + _shelves(3, 1160, 500)
                + [ModuleSpec(f"base_{i + 1}", ModuleType.BASE_PLATE, 1200, 1200) for i in range(2)]
            ),
            joinery=JoinerySpec(JoineryType.SCREWS,
                                hardware_required=("M6 bolts", "Panel connectors")),
            packing=PackingSpec(1200, 1100, 250, piece_count=15,
                                assembly_time_minutes=90, shipping_weight_kg=160),
            product_capacity=ProductCapacity(3, 20, Dimensions(200, 400, 200)),
            constraints=TemplateConstraints(25, 2.0, AssemblyComplexity.COMPLEX),
        ),
    )


@dataclass(frozen=True)
class TemplateMatch:
    """A template paired with its distance from the requested envelope."""
    template: DisplayTemplate
    dissimilarity: float


def dissimilarity(
    template: DisplayTemplate,
    target: Dimensions,
    shelf_count: int,
) -> float:
    """Mean per-axis relative difference plus relative shelf-count difference.

    Lower is better; 0 means an exact envelope and shelf match.
    """
    axes = zip(template.dimensions.as_tuple(), target.as_tuple())
    dim_diff = sum(abs(actual - wanted) / (wanted or 1.0) for actual, wanted in axes) / 3.0
    shelf_diff = abs(template.product_capacity.shelf_count - shelf_count) / (shelf_count or 1)
    return dim_diff + shelf_diff


@dataclass(frozen=True)
class TemplateCatalog:
    """Read-only registry of archetypes and templates."""

    archetypes: Tuple[Archetype, ...]
    templates: Tuple[DisplayTemplate, ...]

    def get_template(self, template_id: str) -> Optional[DisplayTemplate]:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

    def get_archetype(self, archetype_id: str) -> Optional[Archetype]:
        for archetype in self.archetypes:
            if archetype.id.value == archetype_id:
                return archetype
        return None

    def templates_for_archetype(self, archetype_id: str) -> List[DisplayTemplate]:
        return [t for t in self.templates if t.archetype_id == archetype_id]

    def rank_templates(
        self,
        archetype_id: str,
        target: Dimensions,
        shelf_count: int,
    ) -> List[TemplateMatch]:
        """All templates of an archetype, closest first. Ties keep catalog order."""
        matches = [
            TemplateMatch(t, dissimilarity(t, target, shelf_count))
            for t in self.templates_for_archetype(archetype_id)
        ]
        matches.sort(key=lambda m: m.dissimilarity)
        return matches

    def find_best_template(
        self,
        archetype_id: str,
        target: Dimensions,
        shelf_count: int,
    ) -> Optional[TemplateMatch]:
        ranked = self.rank_templates(archetype_id, target, shelf_count)
        if not ranked:
            logger.info("No templates registered for archetype %s", archetype_id)
            return None
        best = ranked[0]
        logger.debug(
            "Best %s template: %s (dissimilarity %.3f of %d candidates)",
            archetype_id, best.template.id, best.dissimilarity, len(ranked),
        )
        return best

    def template_index(self) -> Dict[str, List[str]]:
        """Archetype id -> template ids."""
        index: Dict[str, List[str]] = {a.id.value: [] for a in self.archetypes}
        for template in self.templates:
            index.setdefault(template.archetype_id, []).append(template.id)
        return index


@functools.lru_cache(maxsize=1)
def default_catalog() -> TemplateCatalog:
    """The shipped catalog, built on first use."""
    return TemplateCatalog(
        archetypes=tuple(ARCHETYPES.values()),
        templates=build_default_templates(),
    )
