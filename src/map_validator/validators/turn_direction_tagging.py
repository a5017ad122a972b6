"""Lanelets inside an intersection area must declare a valid turn direction."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from map_validator.domain.models import Issue, Primitive
from map_validator.map_model.lanelet_map import ATTR_TYPE, Lanelet, LaneletMap
from map_validator.validators.base import ValidatorParameters, with_issue_code

INTERSECTION_AREA_TYPE: Final[str] = "intersection_area"
TURN_DIRECTION_TAG: Final[str] = "turn_direction"
VALID_TURN_DIRECTIONS: Final[frozenset[str]] = frozenset({"left", "straight", "right"})


class TurnDirectionTaggingValidator:
    name = "mapping.intersection.turn_direction_tagging"

    def validate(self, lanelet_map: LaneletMap, parameters: ValidatorParameters) -> Iterable[Issue]:
        issues: list[Issue] = []
        reported: set[int] = set()
        for polygon in lanelet_map.polygons.values():
            if polygon.attribute(ATTR_TYPE) != INTERSECTION_AREA_TYPE or not polygon.points:
                continue
            bbox = polygon.bounding_box()
            for lanelet in lanelet_map.search_lanelets(bbox):
                # A lanelet covered by overlapping areas is reported once.
                if lanelet.id in reported:
                    continue
                if not all(bbox.contains(point) for point in lanelet.bound_points()):
                    continue
                reported.add(lanelet.id)
                issues.extend(self._check_lanelet(lanelet))
        return issues

    def _check_lanelet(self, lanelet: Lanelet) -> list[Issue]:
        turn_direction = lanelet.attribute(TURN_DIRECTION_TAG)
        if turn_direction is None:
            return [
                Issue.error(
                    with_issue_code(self.name, 1, "This lanelet is missing a turn_direction tag."),
                    primitive=Primitive.LANELET,
                    element_id=lanelet.id,
                )
            ]
        if turn_direction not in VALID_TURN_DIRECTIONS:
            return [
                Issue.error(
                    with_issue_code(
                        self.name, 2, f"Invalid turn_direction tag is found ({turn_direction})."
                    ),
                    primitive=Primitive.LANELET,
                    element_id=lanelet.id,
                )
            ]
        return []


__all__ = ["TurnDirectionTaggingValidator", "VALID_TURN_DIRECTIONS"]
