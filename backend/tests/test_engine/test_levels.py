"""Tests for level tag parsing."""

import logging

from shapely.geometry import Point

from app.engine.features import Feature
from app.engine.levels import LevelRange, level_numbers, parse_level


def _numbers(value: str | None) -> list[int]:
    return level_numbers(Feature(id="f", geometry=Point(0, 0), tags={"level": value} if value else {}))


def test_single_level():
    assert _numbers("3") == [3]


def test_range_is_inclusive():
    assert _numbers("0-3") == [0, 1, 2, 3]


def test_reversed_range():
    assert _numbers("3-1") == [1, 2, 3]


def test_negative_ranges():
    assert _numbers("-2--1") == [-2, -1]
    assert _numbers("-1-1") == [-1, 0, 1]


def test_semicolon_list():
    assert _numbers("-1;0;2") == [-1, 0, 2]
    assert _numbers("0;0-1") == [0, 1]


def test_whitespace_around_tokens():
    assert _numbers(" 1 - 3 ") == [1, 2, 3]


def test_fractional_levels():
    assert _numbers("0.5") == []
    assert _numbers("0.5-2") == [1, 2]


def test_missing_or_empty():
    assert _numbers(None) == []
    assert parse_level("") == []


def test_malformed_token_is_skipped(caplog):
    with caplog.at_level(logging.WARNING, logger="app.engine.levels"):
        ranges = parse_level("ground;1", feature_id="way/7")
    assert ranges == [LevelRange(1.0, 1.0)]
    assert "way/7" in caplog.text


def test_range_bounds():
    r = LevelRange(2.0, -1.0)
    assert r.low == -1.0
    assert r.high == 2.0
    assert list(r.levels()) == [-1, 0, 1, 2]
    assert r.covers(0.5)
    assert not r.covers(2.5)
