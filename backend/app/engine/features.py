"""Feature — a tagged geometry record supplied by the caller.

Tags are OSM-style string key/value pairs. Revisions let caches detect change
without holding on to object identity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry

from app.utils.geometry import is_area, repaired

logger = logging.getLogger(__name__)


@dataclass
class Feature:
    id: str
    geometry: BaseGeometry
    tags: dict[str, str] = field(default_factory=dict)
    revision: int = 0
    geometry_revision: int = 0
    # Level id of a per-Level display copy (clipped geometry); None for the
    # feature as supplied.
    display_level: int | None = None

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.tags.get(key, default)

    def set_geometry(self, geometry: BaseGeometry) -> None:
        self.geometry = geometry
        self.geometry_revision += 1

    def set_tags(self, **tags: str) -> None:
        self.tags.update(tags)
        self.revision += 1

    @property
    def is_area(self) -> bool:
        return is_area(self.geometry)

    @property
    def area(self) -> float:
        return float(self.geometry.area) if self.is_area else 0.0


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def feature_from_geojson(obj: dict[str, Any], fallback_id: str) -> Feature:
    """Build a Feature from a GeoJSON Feature dict.

    Raises ValueError when the geometry is missing or unreadable.
    """
    geometry = obj.get("geometry")
    if not geometry:
        raise ValueError("Feature has no geometry")
    try:
        geom = shape(geometry)
    except Exception as e:
        raise ValueError(f"Unreadable geometry: {e}") from e

    properties = obj.get("properties") or {}
    tags = {str(k): _stringify(v) for k, v in properties.items() if v is not None}

    fid = obj.get("id")
    if fid is None:
        fid = properties.get("@id", properties.get("id", fallback_id))

    if not geom.is_valid:
        logger.warning("Feature %s: invalid %s repaired", fid, geom.geom_type)
        geom = repaired(geom)
    return Feature(id=str(fid), geometry=geom, tags=tags)


def feature_to_geojson(feature: Feature) -> dict[str, Any]:
    return {
        "type": "Feature",
        "id": feature.id,
        "geometry": mapping(feature.geometry),
        "properties": dict(feature.tags),
    }
