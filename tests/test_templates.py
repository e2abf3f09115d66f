"""Tests for archetypes and the template library."""
import dataclasses

import pytest

from archetypes import (
    ARCHETYPES, ArchetypeId, archetype_for_stand_type, get_archetype, normalize_stand_type,
)
from display import Dimensions
from templates import TemplateCatalog, default_catalog, dissimilarity


class TestStandTypeMapping:

    def test_localized_label_uses_parenthesised_name(self):
        assert normalize_stand_type("Ayaklı Stant (Floor Stand)") == "floor_stand"

    @pytest.mark.parametrize("label,expected", [
        ("Floor Stand", ArchetypeId.FSU),
        ("Tabletop", ArchetypeId.COUNTER),
        ("Wall Mount", ArchetypeId.HANGER),
        ("Corner", ArchetypeId.FSU),
        ("Rotating", ArchetypeId.ISLAND),
        ("Multi-tier", ArchetypeId.MODULAR_SHIPPER),
        ("exhibition", ArchetypeId.EXHIBITION),
    ])
    def test_known_labels(self, label, expected):
        assert archetype_for_stand_type(label).id == expected

    def test_unknown_label_defaults_to_floor_unit(self):
        assert archetype_for_stand_type("hovering kiosk").id == ArchetypeId.FSU
        assert archetype_for_stand_type(None).id == ArchetypeId.FSU

    def test_get_archetype(self):
        assert get_archetype("counter").name == "Counter Display"
        assert get_archetype("nope") is None


class TestCatalog:

    def test_catalog_is_shared(self):
        assert default_catalog() is default_catalog()

    def test_template_ids_unique(self, catalog):
        ids = [t.id for t in catalog.templates]
        assert len(ids) == len(set(ids))

    def test_every_template_has_a_known_archetype(self, catalog):
        known = {a.value for a in ARCHETYPES}
        assert all(t.archetype_id in known for t in catalog.templates)

    def test_every_archetype_has_templates(self, catalog):
        index = catalog.template_index()
        assert all(index[a.value] for a in ArchetypeId)

    def test_templates_are_immutable(self, fsu_template):
        with pytest.raises(dataclasses.FrozenInstanceError):
            fsu_template.name = "changed"

    def test_lookup_by_id(self, catalog):
        assert catalog.get_template("counter_compact_2tier").archetype_id == "counter"
        assert catalog.get_template("missing") is None


class TestNearestMatch:

    def test_exact_match_has_zero_distance(self, fsu_template):
        assert dissimilarity(
            fsu_template, fsu_template.dimensions, fsu_template.product_capacity.shelf_count,
        ) == 0.0

    def test_floor_request_picks_standard_unit(self, catalog):
        match = catalog.find_best_template("fsu", Dimensions(600, 1600, 400), 4)
        assert match.template.id == "fsu_standard_4tier"
        assert match.dissimilarity == pytest.approx(160 / 400 / 3)

    def test_ranking_is_ascending(self, catalog):
        ranked = catalog.rank_templates("fsu", Dimensions(600, 1600, 400), 4)
        distances = [m.dissimilarity for m in ranked]
        assert distances == sorted(distances)
        assert len(ranked) == 3

    def test_empty_archetype(self):
        empty = TemplateCatalog(archetypes=tuple(ARCHETYPES.values()), templates=())
        assert empty.find_best_template("fsu", Dimensions(600, 1600, 400), 4) is None
