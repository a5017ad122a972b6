"""
map-validator — traffic light facing check.

File: src/map_validator/validators/traffic_light_facing.py

Purpose
- A red/yellow/green traffic light linestring must point the same way as the stop line
  of the lanelets that refer to its regulatory element.

Method
- For each traffic light regulatory element, take the starting edge of every referring
  lanelet (the end of the lanelet closest to the stop line) as a pseudo stop line.
- The light is judged correct when its direction has a positive cosine with the first
  pseudo stop line and wrong otherwise. Divergent pseudo stop lines are a warning.
- A light never judged, judged only wrong, or judged both ways is reported once, after
  all regulatory elements were visited.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Final

from map_validator.domain.models import Issue, Primitive
from map_validator.map_model.lanelet_map import (
    Lanelet,
    LaneletMap,
    LineString3d,
    Point3d,
)
from map_validator.validators.base import ValidatorParameters, with_issue_code
from map_validator.validators.geometry import (
    Vector3,
    cosine,
    linestring_vector,
    norm,
    subtract,
)

TRAFFIC_LIGHT: Final[str] = "traffic_light"
RED_YELLOW_GREEN: Final[str] = "red_yellow_green"
STOP_LINE: Final[str] = "stop_line"


@dataclass(slots=True)
class _Judgement:
    correct: bool = False
    wrong: bool = False


def is_red_yellow_green_traffic_light(linestring: LineString3d) -> bool:
    return linestring.type == TRAFFIC_LIGHT and linestring.subtype == RED_YELLOW_GREEN


def starting_edge(lanelet: Lanelet, reference: LineString3d | None) -> tuple[Point3d, Point3d]:
    """Pick the lanelet end (front or back) whose left/right points sit closest to ``reference``."""

    left, right = lanelet.left_bound, lanelet.right_bound
    front = (left.front(), right.front())
    back = (left.back(), right.back())
    if reference is None or len(reference) < 2:
        return front

    ref_first = reference.front().xyz()
    ref_last = reference.back().xyz()

    def distance(first: Point3d, second: Point3d) -> float:
        return norm(subtract(first.xyz(), ref_first)) + norm(subtract(second.xyz(), ref_last))

    front_min = min(distance(*front), distance(front[1], front[0]))
    back_min = min(distance(*back), distance(back[1], back[0]))
    return front if front_min <= back_min else back


class TrafficLightFacingValidator:
    name = "mapping.traffic_light.correct_facing"

    def validate(self, lanelet_map: LaneletMap, parameters: ValidatorParameters) -> Iterable[Issue]:
        issues: list[Issue] = []
        judgements: dict[int, _Judgement] = {
            linestring.id: _Judgement()
            for linestring in lanelet_map.linestrings.values()
            if is_red_yellow_green_traffic_light(linestring)
        }

        for regulatory_element in lanelet_map.regulatory_elements.values():
            if regulatory_element.subtype != TRAFFIC_LIGHT:
                continue
            stop_line = next(
                (line for line in regulatory_element.ref_lines if line.type == STOP_LINE), None
            )
            referring = lanelet_map.lanelets_referring(regulatory_element.id)

            for light in regulatory_element.refers:
                if not is_red_yellow_green_traffic_light(light):
                    continue
                if not referring:
                    issues.append(
                        self._issue(
                            Issue.warning,
                            1,
                            light.id,
                            "Regulatory element of traffic light must be referred by at least "
                            "one lanelet.",
                        )
                    )
                    continue

                pseudo_stop_line = _edge_vector(starting_edge(referring[0], stop_line))
                for other in referring[1:]:
                    comparing = _edge_vector(starting_edge(other, stop_line))
                    if cosine(pseudo_stop_line, comparing) < 0:
                        issues.append(
                            self._issue(
                                Issue.warning,
                                2,
                                light.id,
                                "Lanelets referring this traffic_light have several divergent "
                                "starting points.",
                            )
                        )

                judgement = judgements.setdefault(light.id, _Judgement())
                if cosine(pseudo_stop_line, linestring_vector(light)) > 0:
                    judgement.correct = True
                else:
                    judgement.wrong = True

        for light_id in sorted(judgements):
            judgement = judgements[light_id]
            if not judgement.correct and not judgement.wrong:
                issues.append(
                    self._issue(
                        Issue.error,
                        3,
                        light_id,
                        "This traffic light is not referred by any traffic light regulatory "
                        "element that lanelets refer to.",
                    )
                )
            elif judgement.wrong and not judgement.correct:
                issues.append(
                    self._issue(
                        Issue.error, 4, light_id, "The linestring direction seems to be wrong."
                    )
                )
            elif judgement.wrong and judgement.correct:
                issues.append(
                    self._issue(
                        Issue.warning,
                        5,
                        light_id,
                        "The linestring direction has been judged as both correct and wrong.",
                    )
                )
        return issues

    def _issue(
        self, factory: Callable[..., Issue], number: int, element_id: int, message: str
    ) -> Issue:
        return factory(
            with_issue_code(self.name, number, message),
            primitive=Primitive.LINESTRING,
            element_id=element_id,
        )


def _edge_vector(edge: tuple[Point3d, Point3d]) -> Vector3:
    return linestring_vector(edge)


__all__ = [
    "TrafficLightFacingValidator",
    "is_red_yellow_green_traffic_light",
    "starting_edge",
]
