"""Math helpers — chord normals, affine composition. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


def midpoint(a: tuple[float, float], b: tuple[float, float]) -> NDArray[np.float64]:
    return (np.asarray(a, dtype=float) + np.asarray(b, dtype=float)) / 2


def chord_normal(a: tuple[float, float], b: tuple[float, float]) -> NDArray[np.float64]:
    """Unit vector perpendicular to the chord a→b (rotated +90°).

    Zero vector for a degenerate chord.
    """
    d = np.asarray(b, dtype=float) - np.asarray(a, dtype=float)
    length = float(np.hypot(d[0], d[1]))
    if length < 1e-12:
        return np.zeros(2)
    return np.array([-d[1], d[0]]) / length


def compose_affine(
    dx1: float,
    dy1: float,
    sx: float,
    sy: float,
    angle: float,
    dx2: float,
    dy2: float,
) -> NDArray[np.float64]:
    """3x3 matrix for translate(dx1, dy1) · scale(sx, sy) · rotate(angle) · translate(dx2, dy2).

    Applied right to left: the point is first shifted by (dx2, dy2).
    """
    t1 = np.array([[1.0, 0.0, dx1], [0.0, 1.0, dy1], [0.0, 0.0, 1.0]])
    s = np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])
    cos, sin = math.cos(angle), math.sin(angle)
    r = np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])
    t2 = np.array([[1.0, 0.0, dx2], [0.0, 1.0, dy2], [0.0, 0.0, 1.0]])
    return t1 @ s @ r @ t2


def to_shapely_affine(matrix: NDArray[np.float64]) -> list[float]:
    """3x3 matrix → [a, b, d, e, xoff, yoff] for shapely.affinity.affine_transform."""
    return [
        float(matrix[0, 0]),
        float(matrix[0, 1]),
        float(matrix[1, 0]),
        float(matrix[1, 1]),
        float(matrix[0, 2]),
        float(matrix[1, 2]),
    ]


def apply_affine(matrix: NDArray[np.float64], x: float, y: float) -> tuple[float, float]:
    v = matrix @ np.array([x, y, 1.0])
    return (float(v[0]), float(v[1]))


def invert_affine(matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.linalg.inv(matrix)
