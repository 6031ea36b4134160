"""Tests for level routing, merging and queries."""

import itertools

import pytest
from shapely.geometry import LineString, Point, Polygon, box

from app.engine.features import Feature, feature_from_geojson
from app.engine.topology import TopologyEngine
from tests.conftest import door, room


def _corridor(fid: str = "c1") -> Feature:
    return Feature(id=fid, geometry=box(4, 1, 10, 3), tags={"indoor": "corridor", "level": "0"})


def test_disjoint_rooms_make_separate_levels():
    engine = TopologyEngine()
    engine.add_feature(room("a", 0, 0, 4, 4))
    engine.add_feature(room("b", 10, 0, 14, 4))
    assert engine.get_level_count(0) == 2


def test_bridging_feature_merges_levels():
    engine = TopologyEngine()
    engine.add_feature(room("a", 0, 0, 4, 4))
    engine.add_feature(room("b", 10, 0, 14, 4))
    first, second = engine.levels(0)
    members = set(first.members) | set(second.members)

    engine.add_feature(_corridor())

    assert engine.get_level_count(0) == 1
    survivor = engine.levels(0)[0]
    assert survivor.id == first.id
    assert set(survivor.members) == members | {2}
    assert survivor.dirty


def test_merge_is_order_independent():
    features = [room("a", 0, 0, 4, 4), room("b", 10, 0, 14, 4), _corridor()]
    areas = []
    for order in itertools.permutations(features):
        engine = TopologyEngine()
        engine.add_features(order)
        assert engine.get_level_count(0) == 1
        level = engine.levels(0)[0]
        assert sorted(level.members) == [0, 1, 2]
        areas.append(level.region.area)
    assert max(areas) - min(areas) == pytest.approx(0.0, abs=1e-9)


def test_merged_levels_never_split():
    engine = TopologyEngine()
    engine.add_features([room("a", 0, 0, 4, 4), room("b", 10, 0, 14, 4), _corridor()])
    engine.add_feature(room("far", 100, 100, 104, 104))
    assert engine.get_level_count(0) == 2
    assert len(engine.levels(0)[0].members) == 3


def test_multi_level_feature_joins_each_level():
    engine = TopologyEngine()
    engine.add_feature(room("stairs", 0, 0, 3, 3, level="0-2", room="stairs"))
    assert [lv.level_number for lv in engine.levels()] == [0, 1, 2]


def test_duplicate_id_is_ignored():
    engine = TopologyEngine()
    assert engine.add_feature(room("a", 0, 0, 4, 4))
    assert not engine.add_feature(room("a", 50, 50, 54, 54))
    assert engine.feature_count == 1
    assert engine.get_level_count(0) == 1


def test_empty_geometry_is_ignored():
    engine = TopologyEngine()
    assert not engine.add_feature(Feature(id="e", geometry=Point(), tags={"level": "0"}))
    assert engine.feature_count == 0


def test_unparseable_level_gives_no_membership():
    engine = TopologyEngine()
    engine.add_feature(room("a", 0, 0, 4, 4, level="ground"))
    assert engine.feature_count == 1
    assert engine.get_level_count() == 0


def test_whole_building_features_always_listed():
    engine = TopologyEngine()
    engine.add_feature(Feature(id="bldg", geometry=box(-1, -1, 20, 20), tags={"building": "yes"}))
    engine.add_feature(room("a", 0, 0, 4, 4))
    engine.add_feature(room("up", 0, 0, 4, 4, level="3"))
    assert "bldg" in [f.id for f in engine.features_in_extent(None, 0)]
    assert "bldg" in [f.id for f in engine.features_in_extent(None, 3)]


def test_features_in_extent_filters_and_orders():
    engine = TopologyEngine()
    engine.add_features([
        room("small", 0, 0, 2, 2),
        room("big", 2, 0, 8, 4),
        door("d", 2, 1),
        room("far", 100, 0, 104, 4),
    ])
    engine.rebuild_walls()

    nearby = engine.features_in_extent((-1, -1, 10, 10), 0)
    ids = [f.id for f in nearby]
    assert "far" not in ids
    assert ids.index("big") < ids.index("small") < ids.index("d")
    assert nearby[-1].get("generated-wall") == "yes"

    everything = engine.features_in_extent(None, 0)
    assert "far" in [f.id for f in everything]
    assert [f.id for f in engine.features_in_extent(None, 1)] == []


def test_displayed_members_are_clipped_copies():
    engine = TopologyEngine()
    original = room("a", 0, 0, 4, 4)
    engine.add_feature(original)
    engine.rebuild_walls()

    shown = next(f for f in engine.features_in_extent(None, 0) if f.id == "a")
    assert engine.get_feature("a") is original
    assert shown is not original
    assert original.geometry.equals(box(0, 0, 4, 4))
    assert shown.geometry.area < original.geometry.area
    assert shown.geometry_revision > original.geometry_revision
    assert shown.tags == original.tags


def test_level_numbers_in_extent():
    engine = TopologyEngine()
    engine.add_features([
        room("a", 0, 0, 4, 4, level="-1;0"),
        room("b", 50, 50, 54, 54, level="2"),
    ])
    assert engine.level_numbers_in_extent() == [-1, 0, 2]
    assert engine.level_numbers_in_extent((0, 0, 10, 10)) == [-1, 0]


def test_wall_polygons_after_rebuild():
    engine = TopologyEngine()
    engine.add_feature(room("a", 0, 0, 4, 4))
    assert engine.wall_polygons(0) == []
    engine.rebuild_walls()
    walls = engine.wall_polygons(0)
    assert len(walls) == 1
    assert walls[0].area > 0
    assert engine.wall_polygons(0, (50, 50, 60, 60)) == []


def test_line_members_are_not_buffered_into_region():
    engine = TopologyEngine()
    engine.add_feature(Feature(
        id="w",
        geometry=LineString([(0, 0), (10, 0)]),
        tags={"indoor": "wall", "level": "0"},
    ))
    engine.add_feature(room("a", 9, 0.5, 12, 3))
    assert engine.get_level_count(0) == 2


BOWTIE = [(1, 1), (3, 3), (3, 1), (1, 3), (1, 1)]


def test_self_intersecting_room_is_repaired_on_add():
    engine = TopologyEngine()
    engine.add_feature(room("a", 0, 0, 4, 4))
    bowtie = Feature(id="bow", geometry=Polygon(BOWTIE), tags={"indoor": "room", "level": "0"})
    assert engine.add_feature(bowtie)

    stored = engine.get_feature("bow")
    assert stored.geometry.is_valid
    assert stored.is_area
    assert not bowtie.geometry.is_valid

    assert engine.rebuild_walls() == 1
    level = engine.levels(0)[0]
    assert level.rebuild_error is None
    assert not level.dirty
    assert not level.wall.geometry.is_empty


def test_self_intersecting_geojson_is_repaired():
    feature = feature_from_geojson({
        "type": "Feature",
        "id": "bow",
        "properties": {"indoor": "room", "level": "0"},
        "geometry": {"type": "Polygon", "coordinates": [BOWTIE]},
    }, "feature/0")
    assert feature.geometry.is_valid
    assert feature.is_area
    assert feature.geometry.area == pytest.approx(2.0)


def test_display_copies_carry_their_level():
    engine = TopologyEngine()
    engine.add_feature(room("hall", 0, 0, 20, 10, level="0;1"))
    engine.rebuild_walls()
    levels = engine.levels()
    copies = [engine.member_features(lv)[0] for lv in levels]
    assert [c.id for c in copies] == ["hall", "hall"]
    assert [c.display_level for c in copies] == [lv.id for lv in levels]
    assert engine.get_feature("hall").display_level is None
