"""Wall synthesis — derive a wall-area polygon with door openings from rooms.

Pipeline:
  1. Partition level members into walled rooms, unwalled areas, explicit
     walls, doors and an optional floor outline.
  2. Collect the wall centerline skeleton: room boundary rings plus explicit
     wall lines. Only used to locate door openings.
  3. Buffer the room union outward by (outer - inner/2) with flat caps and
     mitred joins, so perimeter walls end up thicker than partitions.
  4. Union in the floor outline.
  5. Largest area first: add inner walls around rooms nested in already
     carved rooms, then carve each area's interior eroded by inner/2.
  6. Union in explicit wall polygons and explicit wall lines buffered by
     inner/2 with square caps.
  7. Cut doors where door discs meet the skeleton.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from shapely.geometry import MultiLineString, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from app.engine.config import TopologyConfig
from app.engine.features import Feature
from app.utils.geometry import (
    GeometryKind,
    buffer_flat,
    buffer_square,
    classify,
    disc,
    lines_of,
    polygonal,
    polygons_of,
    rings_of,
    union_all,
)

logger = logging.getLogger(__name__)

WALLED_INDOOR = ("room", "corridor")


@dataclass
class WallSources:
    """Level members grouped by the role they play in wall synthesis."""

    walled_rooms: list[Feature] = field(default_factory=list)
    unwalled_areas: list[Feature] = field(default_factory=list)
    wall_lines: list[Feature] = field(default_factory=list)
    wall_areas: list[Feature] = field(default_factory=list)
    doors: list[Feature] = field(default_factory=list)
    floor: Feature | None = None


@dataclass
class WallResult:
    wall: BaseGeometry
    skeleton: BaseGeometry
    door_openings: BaseGeometry


def is_explicit_wall(feature: Feature) -> bool:
    return feature.get("indoor") == "wall"


def is_door(feature: Feature) -> bool:
    door = feature.get("door")
    return (
        (door is not None and door != "no")
        or feature.get("indoor") == "door"
        or feature.get("entrance") is not None
    )


def partition_members(features: Iterable[Feature]) -> WallSources:
    sources = WallSources()
    for f in features:
        kind = classify(f.geometry)
        indoor = f.get("indoor")

        if is_door(f):
            if kind is not GeometryKind.EMPTY:
                sources.doors.append(f)
            continue

        if indoor == "wall":
            if kind is GeometryKind.AREA:
                sources.wall_areas.append(f)
            elif kind is GeometryKind.LINE:
                sources.wall_lines.append(f)
            elif kind is GeometryKind.POINT or kind is GeometryKind.EMPTY:
                logger.debug("Ignoring wall %s with %s geometry", f.id, kind.value)
            continue

        if kind is not GeometryKind.AREA:
            continue
        if indoor in WALLED_INDOOR:
            sources.walled_rooms.append(f)
        elif indoor == "area":
            sources.unwalled_areas.append(f)
        elif indoor == "level" and sources.floor is None:
            sources.floor = f
    return sources


def door_width(feature: Feature, default: float) -> float:
    raw = feature.get("width")
    if raw is None:
        return default
    try:
        width = float(raw)
    except ValueError:
        logger.debug("Door %s has unreadable width %r", feature.id, raw)
        return default
    if not math.isfinite(width):
        return default
    return width


def wall_skeleton(sources: WallSources) -> BaseGeometry:
    parts = []
    for room in sources.walled_rooms:
        parts.extend(rings_of(room.geometry))
    for wall in sources.wall_lines:
        parts.extend(lines_of(wall.geometry))
    if not parts:
        return MultiLineString()
    return unary_union(parts)


def door_openings(
    sources: WallSources,
    skeleton: BaseGeometry,
    config: TopologyConfig,
) -> BaseGeometry:
    """Areas to cut from the wall: skeleton pieces inside door discs, widened."""
    if not sources.doors or skeleton.is_empty:
        return Polygon()
    discs = union_all([
        disc(d.geometry, door_width(d, config.default_door_width) / 2 - config.door_margin)
        for d in sources.doors
    ])
    if discs.is_empty:
        return Polygon()
    door_lines = skeleton.intersection(discs)
    if door_lines.is_empty:
        return Polygon()
    return buffer_square(door_lines, config.door_margin)


def synthesize_walls(sources: WallSources, config: TopologyConfig) -> WallResult:
    inner_half = config.inner_wall_width / 2

    room_polys = [p for room in sources.walled_rooms for p in polygons_of(room.geometry)]
    skeleton = wall_skeleton(sources)

    wall = buffer_flat(union_all(room_polys), config.outer_wall_width - inner_half)

    if sources.floor is not None:
        wall = wall.union(polygonal(sources.floor.geometry))

    # sorted() is stable, so equal areas keep member order.
    carved = [(p, True) for p in room_polys]
    carved += [(p, False) for a in sources.unwalled_areas for p in polygons_of(a.geometry)]
    carved.sort(key=lambda item: -item[0].area)

    for poly, walled in carved:
        if walled and not wall.contains(poly):
            wall = wall.union(buffer_flat(poly, inner_half))
        wall = wall.difference(buffer_flat(poly, -inner_half))

    for w in sources.wall_areas:
        wall = wall.union(polygonal(w.geometry))
    for w in sources.wall_lines:
        wall = wall.union(buffer_square(w.geometry, inner_half))

    openings = door_openings(sources, skeleton, config)
    if not openings.is_empty:
        wall = wall.difference(openings)

    return WallResult(wall=polygonal(wall), skeleton=skeleton, door_openings=openings)


def clip_to_walls(geometry: BaseGeometry, wall: BaseGeometry) -> BaseGeometry:
    """Displayed shape of an area member: its geometry minus wall thickness."""
    if wall.is_empty:
        return geometry
    return polygonal(geometry.difference(wall))
