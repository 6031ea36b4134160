"""TopologyEngine — routes features to Levels, merges Levels, exposes walls.

Levels of the same number are created per spatially disjoint cluster and
merged the moment a feature bridges two or more of them. Merges are never
undone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from shapely.geometry.base import BaseGeometry

from app.engine.config import TopologyConfig
from app.engine.features import Feature
from app.engine.level import Level
from app.engine.levels import level_numbers
from app.utils.geometry import bounds_intersect, repaired

logger = logging.getLogger(__name__)

Extent = tuple[float, float, float, float]


def _in_extent(geometry: BaseGeometry, extent: Extent | None) -> bool:
    if extent is None:
        return True
    if geometry.is_empty:
        return False
    return bounds_intersect(geometry.bounds, extent)


def display_order_key(feature: Feature) -> tuple[int, int, float]:
    """Sort key for drawing: walls last, areas before others, big areas first."""
    wall = 1 if feature.get("generated-wall") == "yes" else 0
    if feature.is_area:
        return (wall, 0, -feature.area)
    return (wall, 1, 0.0)


class TopologyEngine:
    """Owns the feature arena and every Level built from it."""

    def __init__(self, config: TopologyConfig | None = None) -> None:
        self.config = config or TopologyConfig()
        self._arena: list[Feature] = []
        self._index_by_id: dict[str, int] = {}
        self._levels: list[Level] = []
        self._whole_building: list[int] = []
        self._next_level_id = 0

    # ── Ingestion ──────────────────────────────────────────────────

    def add_feature(self, feature: Feature) -> bool:
        """Route a feature to its Levels. Returns False for a repeated id."""
        if feature.id in self._index_by_id:
            logger.debug("Feature %s already added, ignoring", feature.id)
            return False
        if feature.geometry is None or feature.geometry.is_empty:
            logger.warning("Feature %s has empty geometry, ignoring", feature.id)
            return False
        if not feature.geometry.is_valid:
            logger.warning(
                "Feature %s: invalid %s repaired", feature.id, feature.geometry.geom_type
            )
            feature = replace(feature, geometry=repaired(feature.geometry))

        index = len(self._arena)
        self._arena.append(feature)
        self._index_by_id[feature.id] = index

        numbers = level_numbers(feature)
        if not numbers:
            if feature.get("building") is not None:
                self._whole_building.append(index)
            return True

        for number in numbers:
            level = self._route(number, feature.geometry)
            level.attach(index, feature, self.config.outer_wall_width)
        return True

    def add_features(self, features: Iterable[Feature]) -> int:
        return sum(1 for f in features if self.add_feature(f))

    def _route(self, level_number: int, geometry: BaseGeometry) -> Level:
        matches = [
            level for level in self._levels
            if level.level_number == level_number and level.intersects(geometry)
        ]
        if not matches:
            level = Level(self._next_level_id, level_number, geometry)
            self._next_level_id += 1
            self._levels.append(level)
            logger.debug("Created level %d (#%d)", level_number, level.id)
            return level

        survivor = matches[0]
        if len(matches) > 1:
            for other in matches[1:]:
                survivor.merge_in(other)
            dropped = {id(m) for m in matches[1:]}
            self._levels = [lv for lv in self._levels if id(lv) not in dropped]
            logger.debug(
                "Merged %d levels at level %d into #%d",
                len(matches),
                level_number,
                survivor.id,
            )
        return survivor

    # ── Queries ────────────────────────────────────────────────────

    @property
    def feature_count(self) -> int:
        return len(self._arena)

    def get_feature(self, feature_id: str) -> Feature | None:
        index = self._index_by_id.get(feature_id)
        return self._arena[index] if index is not None else None

    def levels(self, level_number: int | None = None) -> list[Level]:
        if level_number is None:
            return list(self._levels)
        return [lv for lv in self._levels if lv.level_number == level_number]

    def get_level_count(self, level_number: int | None = None) -> int:
        return len(self.levels(level_number))

    def levels_in_view(
        self,
        level_number: int | None = None,
        extent: Extent | None = None,
    ) -> list[Level]:
        """Levels of a number whose region meets the extent, in creation order."""
        return [
            lv for lv in self.levels(level_number)
            if _in_extent(lv.region, extent)
        ]

    def level_numbers_in_extent(self, extent: Extent | None = None) -> list[int]:
        return sorted({lv.level_number for lv in self.levels_in_view(None, extent)})

    def features_in_extent(
        self,
        extent: Extent | None,
        level_number: int,
    ) -> list[Feature]:
        """Everything to draw for one level: members, walls, walkways, buildings."""
        result: list[Feature] = []
        seen: set[int] = set()
        for level in self.levels(level_number):
            for index in level.members:
                if index in seen:
                    continue
                seen.add(index)
                feature = level.displayed(index, self._arena[index])
                if _in_extent(feature.geometry, extent):
                    result.append(feature)
            result.extend(w for w in level.walkways if _in_extent(w.geometry, extent))
            if _in_extent(level.wall.geometry, extent):
                result.append(level.wall)

        for index in self._whole_building:
            feature = self._arena[index]
            if _in_extent(feature.geometry, extent):
                result.append(feature)

        result.sort(key=display_order_key)
        return result

    def wall_polygons(
        self,
        level_number: int,
        extent: Extent | None = None,
    ) -> list[BaseGeometry]:
        return [
            lv.wall.geometry for lv in self.levels(level_number)
            if _in_extent(lv.wall.geometry, extent)
        ]

    def dirty_levels(self) -> list[Level]:
        return [lv for lv in self._levels if lv.dirty]

    def member_features(self, level: Level) -> list[Feature]:
        """Displayed (clipped) members of one Level."""
        return [level.displayed(i, self._arena[i]) for i in level.members]

    # ── Rebuilding ─────────────────────────────────────────────────

    def rebuild_wall(self, level: Level, force: bool = False) -> Feature:
        return level.rebuild_wall(self._arena, self.config, force=force)

    def rebuild_walls(self) -> int:
        """Rebuild every dirty Level synchronously. Returns how many succeeded."""
        rebuilt = 0
        failed = 0
        for level in self._levels:
            if level.dirty:
                self.rebuild_wall(level)
                if level.rebuild_error is None:
                    rebuilt += 1
                else:
                    failed += 1
        logger.info(
            "Rebuilt walls of %d/%d levels (%d failed)", rebuilt, len(self._levels), failed
        )
        return rebuilt
