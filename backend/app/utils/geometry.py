"""Leaf-node geometry helpers over the shapely kernel. No engine imports."""

from __future__ import annotations

import enum
import logging

from shapely.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPolygon,
    Point,
    Polygon,
)
from shapely.geometry.base import BaseGeometry
from shapely.ops import polylabel, unary_union
from shapely.validation import make_valid

logger = logging.getLogger(__name__)

# Buffer parameters shared by every wall operation: 8 segments per quadrant
# for round parts, mitred corners clipped at 5x the buffer distance.
QUAD_SEGS = 8
MITRE_LIMIT = 5.0


class GeometryKind(enum.Enum):
    POINT = "point"
    LINE = "line"
    AREA = "area"
    EMPTY = "empty"


_KIND_BY_TYPE = {
    "Point": GeometryKind.POINT,
    "MultiPoint": GeometryKind.POINT,
    "LineString": GeometryKind.LINE,
    "LinearRing": GeometryKind.LINE,
    "MultiLineString": GeometryKind.LINE,
    "Polygon": GeometryKind.AREA,
    "MultiPolygon": GeometryKind.AREA,
}

_KIND_RANK = {
    GeometryKind.EMPTY: 0,
    GeometryKind.POINT: 1,
    GeometryKind.LINE: 2,
    GeometryKind.AREA: 3,
}


def classify(geom: BaseGeometry | None) -> GeometryKind:
    """Map a shapely geometry onto the closed set of kinds the engine handles.

    Collections take the kind of their highest-dimensional part.
    """
    if geom is None or geom.is_empty:
        return GeometryKind.EMPTY
    geom_type = geom.geom_type
    if geom_type in _KIND_BY_TYPE:
        return _KIND_BY_TYPE[geom_type]
    if geom_type == "GeometryCollection":
        kinds = [classify(part) for part in geom.geoms]
        return max(kinds, key=lambda k: _KIND_RANK[k], default=GeometryKind.EMPTY)
    raise ValueError(f"Unsupported geometry type: {geom_type}")


def is_area(geom: BaseGeometry | None) -> bool:
    return classify(geom) is GeometryKind.AREA


def polygons_of(geom: BaseGeometry | None) -> list[Polygon]:
    """Every non-empty Polygon part of a geometry, in storage order."""
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        polys: list[Polygon] = []
        for part in geom.geoms:
            polys.extend(polygons_of(part))
        return polys
    return []


def lines_of(geom: BaseGeometry | None) -> list[LineString]:
    """Every LineString part (rings included as open lines)."""
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, LineString):
        return [LineString(geom.coords)]
    if isinstance(geom, (MultiLineString, GeometryCollection)):
        lines: list[LineString] = []
        for part in geom.geoms:
            lines.extend(lines_of(part))
        return lines
    return []


def rings_of(geom: BaseGeometry | None) -> list[LineString]:
    """Boundary rings of every polygon part as LineStrings (exterior first)."""
    rings: list[LineString] = []
    for poly in polygons_of(geom):
        rings.append(LineString(poly.exterior.coords))
        rings.extend(LineString(hole.coords) for hole in poly.interiors)
    return rings


def points_of(geom: BaseGeometry | None) -> list[Point]:
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Point):
        return [geom]
    if hasattr(geom, "geoms"):
        points: list[Point] = []
        for part in geom.geoms:
            points.extend(points_of(part))
        return points
    return []


def polygonal(geom: BaseGeometry | None) -> BaseGeometry:
    """Drop lower-dimensional leftovers of an overlay, keeping polygon parts.

    Returns a Polygon, a MultiPolygon or an empty Polygon.
    """
    polys = polygons_of(geom)
    if not polys:
        return Polygon()
    if len(polys) == 1:
        return polys[0]
    return MultiPolygon(polys)


def repaired(geom: BaseGeometry) -> BaseGeometry:
    """Valid equivalent of a geometry. Areas stay areas: lower-dimensional
    leftovers of the repair (collapsed spikes, zero-width slivers) are dropped.
    """
    if geom.is_empty or geom.is_valid:
        return geom
    fixed = make_valid(geom)
    if classify(geom) is GeometryKind.AREA:
        area = polygonal(fixed)
        if not area.is_empty:
            return area
    return fixed


def union_all(geoms: list[BaseGeometry]) -> BaseGeometry:
    geoms = [g for g in geoms if g is not None and not g.is_empty]
    if not geoms:
        return Polygon()
    return unary_union(geoms)


def buffer_flat(geom: BaseGeometry, distance: float) -> BaseGeometry:
    """Buffer with flat end caps and mitred joins."""
    if geom.is_empty:
        return Polygon()
    return geom.buffer(
        distance,
        quad_segs=QUAD_SEGS,
        cap_style="flat",
        join_style="mitre",
        mitre_limit=MITRE_LIMIT,
    )


def buffer_square(geom: BaseGeometry, distance: float) -> BaseGeometry:
    """Buffer with square end caps and mitred joins."""
    if geom.is_empty:
        return Polygon()
    return geom.buffer(
        distance,
        quad_segs=QUAD_SEGS,
        cap_style="square",
        join_style="mitre",
        mitre_limit=MITRE_LIMIT,
    )


def disc(geom: BaseGeometry, radius: float) -> BaseGeometry:
    """Round buffer; non-positive radii around points give an empty polygon."""
    if geom.is_empty:
        return Polygon()
    return geom.buffer(radius, quad_segs=QUAD_SEGS)


def bounds_intersect(
    a: tuple[float, float, float, float],
    b: tuple[float, float, float, float],
) -> bool:
    """Check if two (xmin, ymin, xmax, ymax) boxes intersect (touching counts)."""
    return not (a[2] < b[0] or b[2] < a[0] or a[3] < b[1] or b[3] < a[1])


def envelopes_intersect(a: BaseGeometry, b: BaseGeometry) -> bool:
    if a.is_empty or b.is_empty:
        return False
    return bounds_intersect(a.bounds, b.bounds)


def intersects(a: BaseGeometry, b: BaseGeometry) -> bool:
    """Envelope test first, exact test only when the boxes meet."""
    return envelopes_intersect(a, b) and a.intersects(b)


def pole_of_inaccessibility(geom: BaseGeometry, tolerance: float = 0.1) -> tuple[float, float]:
    """Point inside the largest polygon part furthest from its boundary."""
    polys = polygons_of(geom)
    if not polys:
        c = geom.centroid
        return (c.x, c.y)
    largest = max(polys, key=lambda p: p.area)
    try:
        pole = polylabel(largest, tolerance=tolerance)
    except Exception as e:
        logger.debug("polylabel failed (%s), using representative point", e)
        pole = largest.representative_point()
    return (pole.x, pole.y)
