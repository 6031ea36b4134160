"""LabelPlacementEngine — collision-free label boxes for a frame.

Per candidate, in label order:
  1. Cached placement for the zoom bucket: re-occupy it at the current anchor.
  2. Otherwise search: measure the variant in a box, build the footprint
     around the anchor, accept when it sits inside the geometry (areas) and
     clears both occupancy sets, else shrink the box and retry.
  3. A variant that cannot fit hands over to its fallback variant.
  4. Placements and geometric no-fits are cached per zoom bucket.

All footprints are in screen pixels; cached shapes are relative to the anchor.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from shapely.affinity import translate
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from app.engine.config import LabelConfig
from app.engine.features import Feature
from app.engine.labels.cache import NO_FIT, CachedPlacement, CacheEntry, LabelCache, Placement
from app.engine.labels.content import LabelContent, LabelProvider, default_label_provider
from app.engine.labels.measure import MeasuredLabel, PillowTextMeasurer, TextMeasurer
from app.engine.labels.occupancy import OccupancySet
from app.engine.view import ViewState
from app.utils.geometry import GeometryKind, classify, polygons_of, pole_of_inaccessibility

logger = logging.getLogger(__name__)


@dataclass
class PlacedLabel:
    feature_id: str
    x: float  # anchor, screen pixels
    y: float
    width: float
    height: float
    variant: str
    content: LabelContent
    footprint: BaseGeometry
    from_cache: bool = False

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return self.footprint.bounds


@dataclass
class LabelPlacementResult:
    placed: list[PlacedLabel] = field(default_factory=list)
    omitted: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


class _Collided:
    """Search outcome: every failure was a collision, nothing to cache."""


_COLLIDED = _Collided()


def label_order_key(feature: Feature) -> tuple[int, float]:
    """Areas before points, smaller areas before larger ones."""
    if feature.is_area:
        return (0, feature.area)
    return (1, 0.0)


def footprint_from_rects(
    measured: MeasuredLabel,
    box_width: float,
    anchor: tuple[float, float],
) -> BaseGeometry:
    """Union of measured rects, the label box centred on the anchor."""
    ox = anchor[0] - box_width / 2
    oy = anchor[1] - measured.height / 2
    top = min((r[1] for r in measured.rects), default=0.0)
    rects = [
        box(ox + left, oy + t - top, ox + right, oy + b - top)
        for left, t, right, b in measured.rects
        if right > left and b > t
    ]
    return unary_union(rects)


class LabelPlacementEngine:
    def __init__(
        self,
        provider: LabelProvider = default_label_provider,
        measurer: TextMeasurer | None = None,
        config: LabelConfig | None = None,
        cache: LabelCache | None = None,
    ) -> None:
        self.provider = provider
        self.measurer = measurer or PillowTextMeasurer()
        self.config = config or LabelConfig()
        self.cache = cache if cache is not None else LabelCache(self.config.cache_size)
        self._placed = OccupancySet()
        self._external = OccupancySet()

    def label_order(self, features: Iterable[Feature]) -> list[Feature]:
        return sorted(features, key=label_order_key)

    # ── Frame ──────────────────────────────────────────────────────

    def place_labels(
        self,
        candidates: Iterable[Feature],
        view: ViewState,
        occupied_externally: Iterable[BaseGeometry] = (),
    ) -> LabelPlacementResult:
        """Place labels for one frame. ``occupied_externally`` is in screen space."""
        start = time.perf_counter()
        self._placed.clear()
        self._external = OccupancySet(occupied_externally)
        bucket = view.bucket
        result = LabelPlacementResult()

        for feature in self.label_order(candidates):
            try:
                placed = self._place_feature(feature, view, bucket)
            except Exception as e:
                result.errors[feature.id] = str(e)
                logger.warning("Label for %s FAILED: %s", feature.id, e)
                continue
            if placed is None:
                result.omitted.append(feature.id)
            else:
                result.placed.append(placed)

        logger.debug(
            "Placed %d labels (%d omitted, %d errors) in %.1fms",
            len(result.placed),
            len(result.omitted),
            len(result.errors),
            (time.perf_counter() - start) * 1000,
        )
        return result

    # ── Per feature ────────────────────────────────────────────────

    def _place_feature(
        self,
        feature: Feature,
        view: ViewState,
        bucket: int,
    ) -> PlacedLabel | None:
        kind = classify(feature.geometry)
        if kind not in (GeometryKind.POINT, GeometryKind.AREA):
            return None

        entry = self.cache.entry(feature)
        cached = entry.placements.get(bucket)
        if cached is NO_FIT:
            return None

        anchor = view.to_screen_point(self._anchor(entry, feature, kind))
        if isinstance(cached, Placement):
            placed = self._try_occupy(feature, anchor, cached, from_cache=True)
            if placed is not None:
                return placed

        if kind is GeometryKind.POINT:
            outcome = self._search_point(feature, view, anchor)
        else:
            outcome = self._search_area(feature, view, anchor)

        if outcome is NO_FIT:
            entry.placements[bucket] = NO_FIT
            return None
        if not isinstance(outcome, Placement):
            entry.placements.pop(bucket, None)
            return None
        entry.placements[bucket] = outcome
        return self._try_occupy(feature, anchor, outcome)

    def _anchor(
        self,
        entry: CacheEntry,
        feature: Feature,
        kind: GeometryKind,
    ) -> tuple[float, float]:
        if kind is GeometryKind.POINT:
            p = feature.geometry.representative_point()
            entry.anchor = (p.x, p.y)
        elif entry.anchor is None:
            entry.anchor = pole_of_inaccessibility(
                feature.geometry, self.config.pole_tolerance
            )
        return entry.anchor

    def _collides(self, footprint: BaseGeometry) -> bool:
        return self._placed.intersects(footprint) or self._external.intersects(footprint)

    def _try_occupy(
        self,
        feature: Feature,
        anchor: tuple[float, float],
        placement: Placement,
        from_cache: bool = False,
    ) -> PlacedLabel | None:
        footprint = translate(placement.shape, anchor[0], anchor[1])
        if self._collides(footprint):
            return None
        self._placed.add(footprint)
        return PlacedLabel(
            feature_id=feature.id,
            x=anchor[0],
            y=anchor[1],
            width=placement.width,
            height=placement.height,
            variant=placement.variant,
            content=placement.content,
            footprint=footprint,
            from_cache=from_cache,
        )

    def _variants(self, feature: Feature, view: ViewState):
        """Yield ``(variant, content)`` along the fallback chain; None on empty content."""
        variant: str | None = self.config.default_variant
        seen: set[str] = set()
        while variant is not None and variant not in seen:
            seen.add(variant)
            content = self.provider(feature, variant, view)
            if content is None or content.is_empty:
                yield variant, None
                return
            yield variant, content
            variant = content.fallback_variant

    def _overflows(self, measured: MeasuredLabel, max_width: float) -> bool:
        return measured.scroll_width - self.config.scroll_tolerance > max_width

    def _search_point(
        self,
        feature: Feature,
        view: ViewState,
        anchor: tuple[float, float],
    ) -> CachedPlacement | _Collided:
        cfg = self.config
        collided = False

        for variant, content in self._variants(feature, view):
            if content is None:
                return _COLLIDED if collided else NO_FIT
            max_width = cfg.point_max_width
            measured = self.measurer.measure(content, max_width)
            if not content.allow_extending_geometry and self._overflows(measured, max_width):
                continue

            for _ in range(cfg.max_iterations):
                footprint = footprint_from_rects(measured, max_width, anchor)
                if footprint.is_empty:
                    break
                if not self._collides(footprint):
                    minx, miny, maxx, maxy = footprint.bounds
                    return Placement(
                        shape=translate(footprint, -anchor[0], -anchor[1]),
                        width=maxx - minx,
                        height=maxy - miny,
                        content=content,
                        variant=variant,
                    )
                collided = True
                max_width = measured.width - cfg.point_shrink_margin
                if max_width < cfg.min_width:
                    break
                measured = self.measurer.measure(content, max_width)

        return _COLLIDED if collided else NO_FIT

    def _search_area(
        self,
        feature: Feature,
        view: ViewState,
        anchor: tuple[float, float],
    ) -> CachedPlacement | _Collided:
        cfg = self.config
        parts = polygons_of(feature.geometry)
        if not parts:
            return NO_FIT
        screen = view.to_screen(max(parts, key=lambda p: p.area))
        minx, miny, maxx, maxy = screen.bounds
        initial_width = math.floor(maxx - minx)
        geometry_height = maxy - miny
        if initial_width < cfg.min_width:
            return NO_FIT

        collided = False
        for variant, content in self._variants(feature, view):
            if content is None:
                return _COLLIDED if collided else NO_FIT
            extending = content.allow_extending_geometry
            max_width = initial_width
            measured = self.measurer.measure(content, max_width)

            for _ in range(cfg.max_iterations):
                if not measured.rects or measured.width == 0:
                    break
                if not extending and (
                    self._overflows(measured, max_width)
                    or measured.height > geometry_height
                ):
                    break

                footprint = footprint_from_rects(measured, max_width, anchor)
                contained = extending or screen.contains(footprint)
                colliding = self._collides(footprint)
                if contained and not colliding:
                    return Placement(
                        shape=translate(footprint, -anchor[0], -anchor[1]),
                        width=max_width,
                        height=measured.height,
                        content=content,
                        variant=variant,
                    )
                if contained:
                    collided = True

                inside = screen.intersection(footprint)
                if inside.is_empty:
                    break
                ix0, _, ix1, _ = inside.bounds
                max_width = min(
                    max_width - cfg.area_shrink_margin,
                    math.floor(ix1 - ix0) - cfg.area_shrink_margin,
                )
                if max_width < cfg.min_width:
                    break
                measured = self.measurer.measure(content, max_width)

        return _COLLIDED if collided else NO_FIT
