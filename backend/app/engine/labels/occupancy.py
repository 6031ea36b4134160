"""Occupancy set: regions a new label footprint must not touch."""

from __future__ import annotations

from collections.abc import Iterable

from shapely.geometry.base import BaseGeometry

from app.utils.geometry import bounds_intersect


class OccupancySet:
    def __init__(self, geometries: Iterable[BaseGeometry] = ()) -> None:
        self._items: list[tuple[tuple[float, float, float, float], BaseGeometry]] = []
        for g in geometries:
            self.add(g)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return (g for _, g in self._items)

    def add(self, geometry: BaseGeometry) -> None:
        if geometry is None or geometry.is_empty:
            return
        self._items.append((geometry.bounds, geometry))

    def clear(self) -> None:
        self._items.clear()

    def intersects(self, geometry: BaseGeometry) -> bool:
        """Bounds pre-test, exact intersection only for candidates."""
        if geometry.is_empty:
            return False
        bounds = geometry.bounds
        for item_bounds, item in self._items:
            if bounds_intersect(item_bounds, bounds) and item.intersects(geometry):
                return True
        return False
