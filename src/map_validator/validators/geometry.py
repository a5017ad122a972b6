"""Small vector helpers shared by the geometric checks."""

from __future__ import annotations

import math
from collections.abc import Sequence

from map_validator.map_model.lanelet_map import LineString3d, Point3d

Vector3 = tuple[float, float, float]


def linestring_vector(linestring: LineString3d | Sequence[Point3d]) -> Vector3:
    """Vector from the first to the last point."""
    points = linestring.points if isinstance(linestring, LineString3d) else tuple(linestring)
    if len(points) < 2:
        return (0.0, 0.0, 0.0)
    front, back = points[0], points[-1]
    return (back.x - front.x, back.y - front.y, back.z - front.z)


def subtract(a: Vector3, b: Vector3) -> Vector3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def norm(vector: Vector3) -> float:
    return math.sqrt(vector[0] ** 2 + vector[1] ** 2 + vector[2] ** 2)


def dot(a: Vector3, b: Vector3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cosine(a: Vector3, b: Vector3) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 when either is degenerate."""
    length = norm(a) * norm(b)
    if length == 0.0:
        return 0.0
    return dot(a, b) / length


__all__ = ["Vector3", "cosine", "dot", "linestring_vector", "norm", "subtract"]
