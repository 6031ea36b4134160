"""Level tag parsing.

A ``level`` tag is a ``;``-separated list of ``N`` or ``N-M`` tokens, e.g.
``"0"``, ``"-1;0"``, ``"0-3"``, ``"-2--1"``. Each integer level between the
two bounds (inclusive, in either order) is a membership.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.engine.features import Feature

logger = logging.getLogger(__name__)

_NUMBER = r"-?\d+(?:\.\d+)?"
_TOKEN_RE = re.compile(rf"^\s*({_NUMBER})\s*(?:-\s*({_NUMBER})\s*)?$")


@dataclass(frozen=True)
class LevelRange:
    start: float
    end: float

    @property
    def low(self) -> float:
        return min(self.start, self.end)

    @property
    def high(self) -> float:
        return max(self.start, self.end)

    def levels(self) -> Iterator[int]:
        """Every integer level covered by the range, ascending."""
        yield from range(math.ceil(self.low), math.floor(self.high) + 1)

    def covers(self, level: float) -> bool:
        return self.low <= level <= self.high


def parse_level(value: str | None, feature_id: str | None = None) -> list[LevelRange]:
    """Parse a level tag; malformed tokens are logged and skipped."""
    if not value:
        return []
    ranges: list[LevelRange] = []
    for token in value.split(";"):
        match = _TOKEN_RE.match(token)
        if match is None:
            logger.warning(
                "Level of feature %s cannot be parsed: %r (token %r)",
                feature_id,
                value,
                token,
            )
            continue
        start = float(match.group(1))
        end = float(match.group(2)) if match.group(2) is not None else start
        ranges.append(LevelRange(start, end))
    return ranges


def level_ranges(feature: Feature) -> list[LevelRange]:
    return parse_level(feature.get("level"), feature.id)


def level_numbers(feature: Feature) -> list[int]:
    """Sorted distinct integer levels the feature belongs to."""
    numbers: set[int] = set()
    for r in level_ranges(feature):
        numbers.update(r.levels())
    return sorted(numbers)

