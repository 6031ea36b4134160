"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from shapely.geometry import Point, Polygon, box

from app.engine.features import Feature
from app.engine.labels.content import LabelContent
from app.engine.labels.measure import MeasuredLabel

SAMPLES_DIR = Path(__file__).resolve().parent.parent.parent / "samples"
OFFICE_FLOOR = SAMPLES_DIR / "office_floor.geojson"


def room(fid: str, x0: float, y0: float, x1: float, y1: float, level: str = "0", **tags: str) -> Feature:
    return Feature(
        id=fid,
        geometry=box(x0, y0, x1, y1),
        tags={"indoor": "room", "level": level, **tags},
    )


def door(fid: str, x: float, y: float, level: str = "0", **tags: str) -> Feature:
    return Feature(
        id=fid,
        geometry=Point(x, y),
        tags={"door": "yes", "level": level, **tags},
    )


def load_office_floor() -> dict:
    return json.loads(OFFICE_FLOOR.read_text(encoding="utf-8"))


class BoxMeasurer:
    """Deterministic measurer: every character is ``char_width`` px, no wrapping.

    Icon-only content measures as a square of ``icon_size``.
    """

    def __init__(self, char_width: float = 6.0, line_height: float = 14.0, icon_size: float = 16.0):
        self.char_width = char_width
        self.line_height = line_height
        self.icon_size = icon_size
        self.calls = 0

    def measure(self, content: LabelContent, max_width: float) -> MeasuredLabel:
        self.calls += 1
        result = MeasuredLabel(scroll_width=max_width)
        y = 0.0
        for line in content.lines:
            width = len(line.text) * self.char_width
            if content.icon is not None and y == 0.0:
                width += self.icon_size
            left = (max_width - width) / 2
            result.rects.append((left, y, left + width, y + self.line_height))
            result.scroll_width = max(result.scroll_width, width)
            y += self.line_height
        if content.icon is not None and not content.lines:
            left = (max_width - self.icon_size) / 2
            result.rects.append((left, 0.0, left + self.icon_size, self.icon_size))
            result.scroll_width = max(result.scroll_width, self.icon_size)
        return result


@pytest.fixture
def two_rooms() -> list[Feature]:
    """Two 4x4 rooms sharing the wall x=4, a door in the middle of it."""
    return [
        room("r1", 0, 0, 4, 4),
        room("r2", 4, 0, 8, 4),
        door("d1", 4, 2, width="1.2"),
    ]


@pytest.fixture
def office_floor() -> dict:
    return load_office_floor()


@pytest.fixture
def measurer() -> BoxMeasurer:
    return BoxMeasurer()


@pytest.fixture
def unit_square() -> Polygon:
    return box(0, 0, 1, 1)
