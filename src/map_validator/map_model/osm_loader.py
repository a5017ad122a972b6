"""
map-validator — Lanelet2 OSM map loader.

File: src/map_validator/map_model/osm_loader.py

Purpose
- Parse a Lanelet2 ``.osm`` file into a read-only ``LaneletMap``.

Conventions
- ``node`` elements become points. Local metric coordinates (``local_x``,
  ``local_y``) are preferred; ``lon``/``lat`` are the fallback. ``ele`` gives z.
- ``way`` elements become linestrings, or polygons when tagged ``area=yes``.
- ``relation`` elements typed ``lanelet`` need ``left``/``right`` way members and may
  reference ``regulatory_element`` relations. Relations typed
  ``regulatory_element`` collect their ``refers`` and ``ref_line`` way members.
- The whole file is loaded at once; any dangling reference is a ``MapLoadError``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from pathlib import Path
from typing import Final, NoReturn, TypeVar

from map_validator.errors import MapLoadError
from map_validator.map_model.lanelet_map import (
    ATTR_ELEVATION,
    ATTR_TYPE,
    Lanelet,
    LaneletMap,
    LineString3d,
    Point3d,
    Polygon3d,
    RegulatoryElement,
)

_LANELET_TYPE: Final[str] = "lanelet"
_REGULATORY_ELEMENT_TYPE: Final[str] = "regulatory_element"
_AREA_TAG: Final[str] = "area"

_T = TypeVar("_T")


def load_lanelet_map(path: str | Path) -> LaneletMap:
    """Load a Lanelet2 OSM map file."""

    resolved = Path(path)
    if not resolved.is_file():
        raise MapLoadError(f"map file doesn't exist or is not a file: {resolved}")
    try:
        tree = ET.parse(resolved)
    except ET.ParseError as exc:
        raise MapLoadError(f"invalid OSM XML in {resolved}: {exc}") from exc
    except OSError as exc:
        raise MapLoadError(f"unable to read map file {resolved}: {exc}") from exc
    return parse_lanelet_map(tree.getroot(), source=resolved.as_posix())


def parse_lanelet_map(root: ET.Element, *, source: str = "<memory>") -> LaneletMap:
    """Build a ``LaneletMap`` from an already parsed ``<osm>`` root element."""

    if root.tag != "osm":
        raise MapLoadError(f"{source}: expected <osm> root element, got <{root.tag}>")

    points: dict[int, Point3d] = {}
    for element in root.iter("node"):
        point = _parse_point(element, source)
        points[point.id] = point

    linestrings: dict[int, LineString3d] = {}
    polygons: dict[int, Polygon3d] = {}
    for element in root.iter("way"):
        way_id = _parse_id(element, source)
        tags = _parse_tags(element)
        refs = [_parse_ref(nd, source, f"way {way_id}") for nd in element.iter("nd")]
        way_points = tuple(_lookup(points, ref, source, f"way {way_id} node") for ref in refs)
        if tags.get(_AREA_TAG) == "yes":
            polygons[way_id] = Polygon3d(id=way_id, points=way_points, attributes=tags)
        else:
            linestrings[way_id] = LineString3d(id=way_id, points=way_points, attributes=tags)

    relations = [
        (element, _parse_id(element, source), _parse_tags(element))
        for element in root.iter("relation")
    ]

    regulatory_elements: dict[int, RegulatoryElement] = {}
    for element, relation_id, tags in relations:
        if tags.get(ATTR_TYPE) != _REGULATORY_ELEMENT_TYPE:
            continue
        members = _way_members(element, source, relation_id)
        regulatory_elements[relation_id] = RegulatoryElement(
            id=relation_id,
            refers=tuple(
                _lookup(linestrings, ref, source, f"relation {relation_id} refers")
                for role, ref in members
                if role == "refers"
            ),
            ref_lines=tuple(
                _lookup(linestrings, ref, source, f"relation {relation_id} ref_line")
                for role, ref in members
                if role == "ref_line"
            ),
            attributes=tags,
        )

    lanelets: list[Lanelet] = []
    for element, relation_id, tags in relations:
        if tags.get(ATTR_TYPE) != _LANELET_TYPE:
            continue
        lanelets.append(
            _build_lanelet(element, relation_id, tags, linestrings, regulatory_elements, source)
        )

    return LaneletMap(
        points=points.values(),
        linestrings=linestrings.values(),
        polygons=polygons.values(),
        lanelets=lanelets,
        regulatory_elements=regulatory_elements.values(),
    )


def _build_lanelet(
    element: ET.Element,
    relation_id: int,
    tags: Mapping[str, str],
    linestrings: Mapping[int, LineString3d],
    regulatory_elements: Mapping[int, RegulatoryElement],
    source: str,
) -> Lanelet:
    bounds: dict[str, LineString3d] = {}
    regulatory_ids: list[int] = []
    for member in element.iter("member"):
        role = member.get("role", "")
        ref = _parse_ref(member, source, f"relation {relation_id}")
        if role in {"left", "right"}:
            bounds[role] = _lookup(linestrings, ref, source, f"lanelet {relation_id} {role}")
        elif role == "regulatory_element":
            _lookup(regulatory_elements, ref, source, f"lanelet {relation_id} regulatory_element")
            regulatory_ids.append(ref)

    missing = sorted({"left", "right"} - set(bounds))
    if missing:
        raise MapLoadError(f"{source}: lanelet {relation_id} is missing bound(s): {missing}")

    return Lanelet(
        id=relation_id,
        left_bound=bounds["left"],
        right_bound=bounds["right"],
        regulatory_element_ids=tuple(regulatory_ids),
        attributes=tags,
    )


def _parse_point(element: ET.Element, source: str) -> Point3d:
    point_id = _parse_id(element, source)
    tags = _parse_tags(element)
    context = f"node {point_id}"
    x = _parse_float(tags.get("local_x", element.get("lon")), source, f"{context} x")
    y = _parse_float(tags.get("local_y", element.get("lat")), source, f"{context} y")
    raw_z = tags.get(ATTR_ELEVATION)
    z = _parse_float(raw_z, source, f"{context} ele") if raw_z is not None else 0.0
    return Point3d(id=point_id, x=x, y=y, z=z, attributes=tags)


def _way_members(element: ET.Element, source: str, relation_id: int) -> list[tuple[str, int]]:
    return [
        (member.get("role", ""), _parse_ref(member, source, f"relation {relation_id}"))
        for member in element.iter("member")
        if member.get("type") == "way"
    ]


def _parse_tags(element: ET.Element) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in element.iter("tag"):
        key = tag.get("k")
        value = tag.get("v")
        if key is not None and value is not None:
            tags[key] = value
    return tags


def _parse_id(element: ET.Element, source: str) -> int:
    raw = element.get("id")
    if raw is None:
        _missing(source, f"<{element.tag}> without id")
    try:
        return int(raw)
    except ValueError as exc:
        raise MapLoadError(f"{source}: <{element.tag}> has non-integer id {raw!r}") from exc


def _parse_ref(element: ET.Element, source: str, context: str) -> int:
    raw = element.get("ref")
    if raw is None:
        _missing(source, f"{context}: <{element.tag}> without ref")
    try:
        return int(raw)
    except ValueError as exc:
        raise MapLoadError(f"{source}: {context}: non-integer ref {raw!r}") from exc


def _parse_float(raw: str | None, source: str, context: str) -> float:
    if raw is None:
        _missing(source, f"{context} is missing")
    try:
        return float(raw)
    except ValueError as exc:
        raise MapLoadError(f"{source}: {context} is not a number: {raw!r}") from exc


def _lookup(layer: Mapping[int, _T], ref: int, source: str, context: str) -> _T:
    try:
        return layer[ref]
    except KeyError as exc:
        raise MapLoadError(f"{source}: {context} references unknown id {ref}") from exc


def _missing(source: str, message: str) -> NoReturn:
    raise MapLoadError(f"{source}: {message}")


__all__ = ["load_lanelet_map", "parse_lanelet_map"]
