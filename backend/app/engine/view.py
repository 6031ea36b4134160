"""ViewState — world-to-screen transform and zoom bucketing for label placement."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property

import numpy as np
from numpy.typing import NDArray
from shapely.affinity import affine_transform
from shapely.geometry.base import BaseGeometry

from app.utils.math_helpers import apply_affine, compose_affine, invert_affine, to_shapely_affine

# Resolution (map units per pixel) of zoom 0 in web mercator with 256px tiles.
ZOOM0_RESOLUTION = 156543.03392804097


def zoom_bucket(zoom: float) -> int:
    """Two buckets per integer zoom: the lower and upper half of the step."""
    upper_half = math.ceil(zoom * 10) % 10 >= 5
    return 2 * math.floor(zoom) + (1 if upper_half else 0)


@dataclass(frozen=True)
class ViewState:
    center: tuple[float, float]
    resolution: float
    size: tuple[float, float]
    rotation: float = 0.0
    zoom: float | None = None

    @cached_property
    def matrix(self) -> NDArray[np.float64]:
        """World → screen: shift by -center, rotate, scale with y flipped, centre in pixels."""
        sx = 1 / self.resolution
        return compose_affine(
            self.size[0] / 2,
            self.size[1] / 2,
            sx,
            -sx,
            -self.rotation,
            -self.center[0],
            -self.center[1],
        )

    @property
    def zoom_level(self) -> float:
        if self.zoom is not None:
            return self.zoom
        return math.log2(ZOOM0_RESOLUTION / self.resolution)

    @property
    def bucket(self) -> int:
        return zoom_bucket(self.zoom_level)

    @property
    def extent(self) -> tuple[float, float, float, float]:
        """World bounding box of the viewport (rotation included)."""
        inverse = invert_affine(self.matrix)
        w, h = self.size
        corners = [apply_affine(inverse, x, y) for x, y in ((0, 0), (w, 0), (w, h), (0, h))]
        xs = [c[0] for c in corners]
        ys = [c[1] for c in corners]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_screen(self, geometry: BaseGeometry) -> BaseGeometry:
        return affine_transform(geometry, to_shapely_affine(self.matrix))

    def to_screen_point(self, xy: tuple[float, float]) -> tuple[float, float]:
        return apply_affine(self.matrix, xy[0], xy[1])
