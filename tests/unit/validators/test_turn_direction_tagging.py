"""Unit tests for the turn direction tagging check."""

from __future__ import annotations

from map_validator.domain import Primitive, Severity
from map_validator.map_model import LaneletMap, Polygon3d
from map_validator.validators import TurnDirectionTaggingValidator

from . import area, point, straight_lanelet


def _intersection(area_id: int, x0: float, x1: float, **tags: str) -> Polygon3d:
    return area(
        area_id,
        point(area_id + 1, x0, -1.0),
        point(area_id + 2, x1, -1.0),
        point(area_id + 3, x1, 5.0),
        point(area_id + 4, x0, 5.0),
        **({"type": "intersection_area"} | tags),
    )


def test_lanelets_inside_intersection_need_valid_turn_direction() -> None:
    lanelet_map = LaneletMap(
        polygons=[_intersection(9000, 0.0, 10.0)],
        lanelets=[
            straight_lanelet(1, 1.0, 9.0, base_id=100),
            straight_lanelet(2, 1.0, 9.0, base_id=200, turn_direction="left"),
            straight_lanelet(3, 1.0, 9.0, base_id=300, turn_direction="u_turn"),
            straight_lanelet(4, 5.0, 20.0, base_id=400),
            straight_lanelet(5, 50.0, 60.0, base_id=500),
        ],
    )

    issues = list(TurnDirectionTaggingValidator().validate(lanelet_map, {}))

    assert [(issue.id, issue.severity, issue.primitive) for issue in issues] == [
        (1, Severity.ERROR, Primitive.LANELET),
        (3, Severity.ERROR, Primitive.LANELET),
    ]
    assert issues[0].message == (
        "[TurnDirectionTagging-001] This lanelet is missing a turn_direction tag."
    )
    assert issues[1].message == (
        "[TurnDirectionTagging-002] Invalid turn_direction tag is found (u_turn)."
    )


def test_overlapping_intersections_report_a_lanelet_once() -> None:
    lanelet_map = LaneletMap(
        polygons=[_intersection(9000, 0.0, 10.0), _intersection(9100, -5.0, 12.0)],
        lanelets=[straight_lanelet(1, 1.0, 9.0, base_id=100)],
    )

    issues = list(TurnDirectionTaggingValidator().validate(lanelet_map, {}))

    assert [issue.id for issue in issues] == [1]


def test_other_polygons_are_ignored() -> None:
    lanelet_map = LaneletMap(
        polygons=[_intersection(9000, 0.0, 10.0, type="parking_lot")],
        lanelets=[straight_lanelet(1, 1.0, 9.0, base_id=100)],
    )

    assert list(TurnDirectionTaggingValidator().validate(lanelet_map, {})) == []
