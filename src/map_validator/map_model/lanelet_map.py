"""Read-only in-memory Lanelet2 map primitives."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, TypeVar

ATTR_TYPE: Final[str] = "type"
ATTR_SUBTYPE: Final[str] = "subtype"
ATTR_ELEVATION: Final[str] = "ele"

_EMPTY: Mapping[str, str] = MappingProxyType({})


def _frozen(attributes: Mapping[str, str] | None) -> Mapping[str, str]:
    if not attributes:
        return _EMPTY
    return MappingProxyType(dict(attributes))


class _Attributed:
    __slots__ = ()

    attributes: Mapping[str, str]

    def has_attribute(self, key: str) -> bool:
        return key in self.attributes

    def attribute(self, key: str, default: str | None = None) -> str | None:
        return self.attributes.get(key, default)

    @property
    def type(self) -> str | None:
        return self.attributes.get(ATTR_TYPE)

    @property
    def subtype(self) -> str | None:
        return self.attributes.get(ATTR_SUBTYPE)


@dataclass(frozen=True, slots=True)
class Point3d(_Attributed):
    id: int
    x: float
    y: float
    z: float = 0.0
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _frozen(self.attributes))

    @property
    def has_elevation(self) -> bool:
        return ATTR_ELEVATION in self.attributes

    def xyz(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True, slots=True)
class LineString3d(_Attributed):
    id: int
    points: tuple[Point3d, ...]
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        object.__setattr__(self, "attributes", _frozen(self.attributes))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point3d]:
        return iter(self.points)

    def front(self) -> Point3d:
        return self.points[0]

    def back(self) -> Point3d:
        return self.points[-1]


@dataclass(frozen=True, slots=True)
class Polygon3d(_Attributed):
    id: int
    points: tuple[Point3d, ...]
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        object.__setattr__(self, "attributes", _frozen(self.attributes))

    def bounding_box(self) -> BoundingBox2d:
        return BoundingBox2d.from_points(self.points)


@dataclass(frozen=True, slots=True)
class RegulatoryElement(_Attributed):
    id: int
    refers: tuple[LineString3d, ...] = ()
    ref_lines: tuple[LineString3d, ...] = ()
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "refers", tuple(self.refers))
        object.__setattr__(self, "ref_lines", tuple(self.ref_lines))
        object.__setattr__(self, "attributes", _frozen(self.attributes))


@dataclass(frozen=True, slots=True)
class Lanelet(_Attributed):
    id: int
    left_bound: LineString3d
    right_bound: LineString3d
    regulatory_element_ids: tuple[int, ...] = ()
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regulatory_element_ids", tuple(self.regulatory_element_ids))
        object.__setattr__(self, "attributes", _frozen(self.attributes))

    def bound_points(self) -> tuple[Point3d, ...]:
        return self.left_bound.points + self.right_bound.points


@dataclass(frozen=True, slots=True)
class BoundingBox2d:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_points(cls, points: Iterable[Point3d]) -> BoundingBox2d:
        materialized = tuple(points)
        if not materialized:
            raise ValueError("bounding box needs at least one point")
        xs = [point.x for point in materialized]
        ys = [point.y for point in materialized]
        return cls(min(xs), min(ys), max(xs), max(ys))

    def contains(self, point: Point3d) -> bool:
        return self.min_x <= point.x <= self.max_x and self.min_y <= point.y <= self.max_y

    def intersects(self, other: BoundingBox2d) -> bool:
        return not (
            other.min_x > self.max_x
            or other.max_x < self.min_x
            or other.min_y > self.max_y
            or other.max_y < self.min_y
        )


_PrimitiveT = TypeVar(
    "_PrimitiveT", Point3d, LineString3d, Polygon3d, Lanelet, RegulatoryElement
)


class LaneletMap:
    """Immutable layer view of a loaded map, shared read-only by all validators."""

    __slots__ = ("points", "linestrings", "polygons", "lanelets", "regulatory_elements")

    def __init__(
        self,
        *,
        points: Iterable[Point3d] = (),
        linestrings: Iterable[LineString3d] = (),
        polygons: Iterable[Polygon3d] = (),
        lanelets: Iterable[Lanelet] = (),
        regulatory_elements: Iterable[RegulatoryElement] = (),
    ) -> None:
        self.points: Mapping[int, Point3d] = _layer(points)
        self.linestrings: Mapping[int, LineString3d] = _layer(linestrings)
        self.polygons: Mapping[int, Polygon3d] = _layer(polygons)
        self.lanelets: Mapping[int, Lanelet] = _layer(lanelets)
        self.regulatory_elements: Mapping[int, RegulatoryElement] = _layer(regulatory_elements)

    def __repr__(self) -> str:
        return (
            f"LaneletMap(points={len(self.points)}, linestrings={len(self.linestrings)}, "
            f"polygons={len(self.polygons)}, lanelets={len(self.lanelets)}, "
            f"regulatory_elements={len(self.regulatory_elements)})"
        )

    def lanelets_referring(self, regulatory_element_id: int) -> tuple[Lanelet, ...]:
        """Lanelets that list ``regulatory_element_id`` among their regulatory elements."""
        return tuple(
            lanelet
            for lanelet in self.lanelets.values()
            if regulatory_element_id in lanelet.regulatory_element_ids
        )

    def search_lanelets(self, bbox: BoundingBox2d) -> tuple[Lanelet, ...]:
        """Lanelets whose bound points' bounding box intersects ``bbox``."""
        return tuple(
            lanelet
            for lanelet in self.lanelets.values()
            if BoundingBox2d.from_points(lanelet.bound_points()).intersects(bbox)
        )


def _layer(items: Iterable[_PrimitiveT]) -> Mapping[int, _PrimitiveT]:
    layer: dict[int, _PrimitiveT] = {}
    for item in items:
        if item.id in layer:
            raise ValueError(f"duplicate primitive id {item.id} in layer")
        layer[item.id] = item
    return MappingProxyType(layer)


__all__ = [
    "ATTR_ELEVATION",
    "ATTR_SUBTYPE",
    "ATTR_TYPE",
    "BoundingBox2d",
    "Lanelet",
    "LaneletMap",
    "LineString3d",
    "Point3d",
    "Polygon3d",
    "RegulatoryElement",
]
