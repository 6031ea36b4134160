"""Entrance walkways — short footway stubs leading into building entrances.

For an entrance node sitting on a room outline, a small probe circle around
the node crosses the outline twice. The chord between the crossings follows
the wall; its perpendicular points out of the room. The walkway runs from one
unit outside the wall to the chord midpoint.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from shapely.geometry import LineString, Point

from app.engine.config import TopologyConfig
from app.engine.features import Feature
from app.utils.geometry import GeometryKind, classify, disc, points_of, polygons_of, rings_of
from app.utils.math_helpers import chord_normal, midpoint

logger = logging.getLogger(__name__)


def is_recognized_entrance(feature: Feature, config: TopologyConfig) -> bool:
    return (
        feature.get("entrance") in config.entrance_kinds
        and classify(feature.geometry) is GeometryKind.POINT
        and feature.geometry.geom_type == "Point"
    )


def walkway_for_entrance(
    entrance: Feature,
    rooms: Iterable[Feature],
    level_number: int,
    config: TopologyConfig,
) -> Feature | None:
    point: Point = entrance.geometry
    probe = disc(point, config.walkway_probe_radius).exterior

    for room in rooms:
        for poly in polygons_of(room.geometry):
            for ring in rings_of(poly):
                if ring.distance(point) > config.walkway_search_distance:
                    continue
                crossings = points_of(probe.intersection(ring))
                if len(crossings) < 2:
                    continue
                first = (crossings[0].x, crossings[0].y)
                last = (crossings[-1].x, crossings[-1].y)
                normal = chord_normal(first, last)
                if not normal.any():
                    continue
                mid = midpoint(first, last)
                start = mid + normal * config.walkway_length
                if room.geometry.contains(Point(start[0], start[1])):
                    start = mid - normal * config.walkway_length
                return Feature(
                    id=f"walkway/{level_number}/{entrance.id}",
                    geometry=LineString([tuple(start), tuple(mid)]),
                    tags={
                        "generated-walkway": "yes",
                        "highway": "footway",
                        "level": str(level_number),
                    },
                )
    return None


def generate_entrance_walkways(
    entrances: Iterable[Feature],
    rooms: list[Feature],
    level_number: int,
    config: TopologyConfig,
) -> list[Feature]:
    """One walkway per entrance with a qualifying room outline nearby."""
    walkways: list[Feature] = []
    for entrance in entrances:
        walkway = walkway_for_entrance(entrance, rooms, level_number, config)
        if walkway is None:
            logger.debug("No room outline near entrance %s, skipping walkway", entrance.id)
            continue
        walkways.append(walkway)
    return walkways
