"""In-memory map builders for validator tests."""

from __future__ import annotations

from map_validator.map_model import (
    Lanelet,
    LineString3d,
    Point3d,
    Polygon3d,
    RegulatoryElement,
)


def point(point_id: int, x: float, y: float, z: float | None = None) -> Point3d:
    attributes = {} if z is None else {"ele": str(z)}
    return Point3d(id=point_id, x=x, y=y, z=0.0 if z is None else z, attributes=attributes)


def line(line_id: int, *points: Point3d, **tags: str) -> LineString3d:
    return LineString3d(id=line_id, points=points, attributes=tags)


def area(area_id: int, *points: Point3d, **tags: str) -> Polygon3d:
    return Polygon3d(id=area_id, points=points, attributes=tags)


def lanelet(
    lanelet_id: int,
    left: LineString3d,
    right: LineString3d,
    *,
    regulatory_element_ids: tuple[int, ...] = (),
    **tags: str,
) -> Lanelet:
    return Lanelet(
        id=lanelet_id,
        left_bound=left,
        right_bound=right,
        regulatory_element_ids=regulatory_element_ids,
        attributes={"type": "lanelet", **tags},
    )


def straight_lanelet(
    lanelet_id: int,
    x0: float,
    x1: float,
    *,
    base_id: int,
    regulatory_element_ids: tuple[int, ...] = (),
    **tags: str,
) -> Lanelet:
    """Lanelet running along +x from ``x0`` to ``x1`` between y=0 (right) and y=3 (left)."""

    left = line(base_id + 10, point(base_id + 1, x0, 3.0), point(base_id + 2, x1, 3.0))
    right = line(base_id + 11, point(base_id + 3, x0, 0.0), point(base_id + 4, x1, 0.0))
    return lanelet(
        lanelet_id, left, right, regulatory_element_ids=regulatory_element_ids, **tags
    )


def traffic_light_element(
    element_id: int, lights: tuple[LineString3d, ...], stop_line: LineString3d | None
) -> RegulatoryElement:
    return RegulatoryElement(
        id=element_id,
        refers=lights,
        ref_lines=() if stop_line is None else (stop_line,),
        attributes={"type": "regulatory_element", "subtype": "traffic_light"},
    )


__all__ = [
    "area",
    "lanelet",
    "line",
    "point",
    "straight_lanelet",
    "traffic_light_element",
]
