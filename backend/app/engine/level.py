"""Level — one spatially connected cluster of features on one building level.

A Level owns indices into the engine's feature arena rather than the
features themselves. Clipped room shapes are kept here as display overrides
so the caller's Feature objects are never modified.
"""

from __future__ import annotations

import logging
import time

from shapely.errors import GEOSException
from shapely.geometry import MultiLineString, Polygon
from shapely.geometry.base import BaseGeometry

from app.engine.config import TopologyConfig
from app.engine.features import Feature
from app.engine.walkways import generate_entrance_walkways, is_recognized_entrance
from app.engine.walls import clip_to_walls, is_explicit_wall, partition_members, synthesize_walls
from app.utils.geometry import buffer_flat, intersects

logger = logging.getLogger(__name__)


class Level:
    def __init__(self, level_id: int, level_number: int, seed: BaseGeometry) -> None:
        self.id = level_id
        self.level_number = level_number
        # Conservative envelope for overlap tests only, never rendered.
        self.region: BaseGeometry = seed
        self.members: list[int] = []
        self.dirty = True
        self.wall = Feature(
            id=f"wall/{level_id}",
            geometry=Polygon(),
            tags={"generated-wall": "yes", "level": str(level_number)},
        )
        self.skeleton: BaseGeometry = MultiLineString()
        self.door_openings: BaseGeometry = Polygon()
        self.clipped: dict[int, BaseGeometry] = {}
        self.walkways: list[Feature] = []
        self.processed_entrances: set[int] = set()
        self.rebuild_error: str | None = None
        self._member_set: set[int] = set()

    def __repr__(self) -> str:
        return (
            f"Level(id={self.id}, level_number={self.level_number}, "
            f"members={len(self.members)}, dirty={self.dirty})"
        )

    def intersects(self, geometry: BaseGeometry) -> bool:
        return intersects(self.region, geometry)

    def merge_in(self, other: Level) -> Level:
        self.region = self.region.union(other.region)
        for index in other.members:
            if index not in self._member_set:
                self.members.append(index)
                self._member_set.add(index)
        known = {w.id for w in self.walkways}
        self.walkways.extend(w for w in other.walkways if w.id not in known)
        self.processed_entrances |= other.processed_entrances
        self.dirty = True
        return self

    def attach(self, index: int, feature: Feature, outer_wall_width: float) -> None:
        if index in self._member_set:
            logger.warning(
                "Feature %s already belongs to level %d, not attaching twice",
                feature.id,
                self.level_number,
            )
            return
        self.members.append(index)
        self._member_set.add(index)
        if feature.is_area:
            grown = buffer_flat(feature.geometry, outer_wall_width)
        else:
            grown = feature.geometry
        self.region = self.region.union(grown)
        self.dirty = True

    def rebuild_wall(
        self,
        arena: list[Feature],
        config: TopologyConfig,
        force: bool = False,
    ) -> Feature:
        """Recompute wall, walkways and clipped room shapes; runs to completion.

        A GEOS failure leaves the previous wall in place (stale) and records
        the message in ``rebuild_error``; the Level is retried once it changes.
        """
        if not self.dirty and not force:
            return self.wall

        t0 = time.perf_counter()
        members = [arena[i] for i in self.members]
        fresh = [
            i for i in self.members
            if i not in self.processed_entrances and is_recognized_entrance(arena[i], config)
        ]
        try:
            sources = partition_members(members)
            result = synthesize_walls(sources, config)
            clipped = {
                i: clip_to_walls(arena[i].geometry, result.wall)
                for i in self.members
                if arena[i].is_area and not is_explicit_wall(arena[i])
            }
            walkways: list[Feature] = []
            if fresh:
                walkways = generate_entrance_walkways(
                    [arena[i] for i in fresh],
                    sources.walled_rooms,
                    self.level_number,
                    config,
                )
        except GEOSException as e:
            self.dirty = False
            self.rebuild_error = str(e)
            logger.warning(
                "Level %d (#%d): wall rebuild FAILED, keeping previous wall: %s",
                self.level_number,
                self.id,
                e,
            )
            return self.wall

        self.wall.set_geometry(result.wall)
        self.skeleton = result.skeleton
        self.door_openings = result.door_openings
        self.walkways.extend(walkways)
        self.processed_entrances.update(fresh)
        self.clipped = clipped
        self.rebuild_error = None

        self.dirty = False
        logger.debug(
            "Level %d (#%d): wall rebuilt from %d members in %.1fms",
            self.level_number,
            self.id,
            len(members),
            (time.perf_counter() - t0) * 1000,
        )
        return self.wall

    def displayed(self, index: int, feature: Feature) -> Feature:
        """The member as it should be drawn: clipped by walls when it is an area."""
        clipped = self.clipped.get(index)
        if clipped is None:
            return feature
        return Feature(
            id=feature.id,
            geometry=clipped,
            tags=feature.tags,
            revision=feature.revision,
            geometry_revision=feature.geometry_revision + self.wall.geometry_revision,
            display_level=self.id,
        )
