"""Tests for the per-feature label cache."""

from dataclasses import replace

from shapely.geometry import box

from app.engine.features import Feature
from app.engine.labels.cache import NO_FIT, LabelCache


def _feature(fid: str = "f") -> Feature:
    return Feature(id=fid, geometry=box(0, 0, 1, 1), tags={"name": "A"})


def test_entry_reused_while_revisions_match():
    cache = LabelCache()
    f = _feature()
    entry = cache.entry(f)
    entry.placements[30] = NO_FIT
    assert cache.entry(f) is entry


def test_tag_change_discards_entry():
    cache = LabelCache()
    f = _feature()
    entry = cache.entry(f)
    entry.placements[30] = NO_FIT
    f.set_tags(name="B")
    fresh = cache.entry(f)
    assert fresh is not entry
    assert fresh.placements == {}
    assert fresh.feature_revision == f.revision


def test_geometry_change_discards_entry():
    cache = LabelCache()
    f = _feature()
    entry = cache.entry(f)
    entry.anchor = (0.5, 0.5)
    f.set_geometry(box(0, 0, 2, 2))
    fresh = cache.entry(f)
    assert fresh.anchor is None
    assert fresh.geometry_revision == f.geometry_revision


def test_least_recently_used_evicted():
    cache = LabelCache(max_entries=2)
    a, b, c = _feature("a"), _feature("b"), _feature("c")
    cache.entry(a)
    cache.entry(b)
    cache.entry(a)
    cache.entry(c)
    assert len(cache) == 2
    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_invalidate_and_clear():
    cache = LabelCache()
    cache.entry(_feature("a"))
    cache.entry(_feature("b"))
    cache.invalidate("a")
    assert "a" not in cache
    cache.clear()
    assert len(cache) == 0


def test_display_copies_have_separate_entries():
    cache = LabelCache()
    f = _feature("stairs")
    lower = replace(f, geometry_revision=1, display_level=0)
    upper = replace(f, geometry_revision=1, display_level=1)
    lower_entry = cache.entry(lower)
    lower_entry.anchor = (0.5, 0.25)
    upper_entry = cache.entry(upper)
    assert upper_entry is not lower_entry
    assert upper_entry.anchor is None
    assert cache.entry(lower) is lower_entry
    assert len(cache) == 2

    cache.invalidate("stairs")
    assert "stairs" not in cache
    assert len(cache) == 0
