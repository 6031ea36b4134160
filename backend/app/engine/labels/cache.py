"""Per-feature label cache keyed by feature id, validated by revisions.

Entries are replaced whole when the feature or geometry revision changes.
Per-Level display copies of one feature (``Feature.display_level``) get
entries of their own, since their clipped shapes differ. Placements are
stored per zoom bucket; a bucket may hold a Placement, the NO_FIT marker, or
nothing. Least recently used entries are evicted.
"""

from __future__ import annotations

import enum
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from shapely.geometry.base import BaseGeometry

if TYPE_CHECKING:
    from app.engine.features import Feature
    from app.engine.labels.content import LabelContent


class _NoFit(enum.Enum):
    NO_FIT = "no-fit"


NO_FIT = _NoFit.NO_FIT

CacheKey = tuple[str, Union[int, None]]


@dataclass
class Placement:
    """A label footprint relative to its anchor, in screen pixels."""

    shape: BaseGeometry
    width: float
    height: float
    content: LabelContent
    variant: str


CachedPlacement = Union[Placement, _NoFit]


@dataclass
class CacheEntry:
    feature_revision: int
    geometry_revision: int
    anchor: tuple[float, float] | None = None
    placements: dict[int, CachedPlacement] = field(default_factory=dict)


def cache_key(feature: Feature) -> CacheKey:
    return (feature.id, feature.display_level)


class LabelCache:
    def __init__(self, max_entries: int = 4096) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, feature_id: str) -> bool:
        return any(key[0] == feature_id for key in self._entries)

    def entry(self, feature: Feature) -> CacheEntry:
        """Valid entry for the feature's current revisions, created if needed."""
        key = cache_key(feature)
        existing = self._entries.get(key)
        if (
            existing is not None
            and existing.feature_revision == feature.revision
            and existing.geometry_revision == feature.geometry_revision
        ):
            self._entries.move_to_end(key)
            return existing

        created = CacheEntry(
            feature_revision=feature.revision,
            geometry_revision=feature.geometry_revision,
        )
        self._entries[key] = created
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return created

    def invalidate(self, feature_id: str) -> None:
        """Drop every entry of a feature, display copies included."""
        for key in [k for k in self._entries if k[0] == feature_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()
