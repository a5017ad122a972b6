"""Lanelet bound points must carry an explicit elevation inside configured limits.

Parameters (``validators.point_height_settings`` in the config file):

- ``require_elevation`` (bool, default true): warn about points without an ``ele`` tag.
- ``min_height`` / ``max_height`` (number, optional): elevations outside the closed
  interval are errors.
"""

from __future__ import annotations

from collections.abc import Iterable

from map_validator.domain.models import Issue, Primitive
from map_validator.map_model.lanelet_map import LaneletMap, Point3d
from map_validator.validators.base import ValidatorParameters, with_issue_code


class PointHeightSettingsValidator:
    name = "mapping.lanelet.point_height_settings"

    def validate(self, lanelet_map: LaneletMap, parameters: ValidatorParameters) -> Iterable[Issue]:
        require_elevation = parameters.get("require_elevation", True)
        if not isinstance(require_elevation, bool):
            raise TypeError("require_elevation must be a boolean")
        min_height = _optional_number(parameters, "min_height")
        max_height = _optional_number(parameters, "max_height")
        if min_height is not None and max_height is not None and min_height > max_height:
            raise ValueError(f"min_height {min_height} is greater than max_height {max_height}")

        points: dict[int, Point3d] = {}
        for lanelet in lanelet_map.lanelets.values():
            for point in lanelet.bound_points():
                points.setdefault(point.id, point)

        issues: list[Issue] = []
        for point_id in sorted(points):
            point = points[point_id]
            if not point.has_elevation:
                if require_elevation:
                    issues.append(
                        Issue.warning(
                            with_issue_code(self.name, 1, "This point has no elevation (ele) tag."),
                            primitive=Primitive.POINT,
                            element_id=point_id,
                        )
                    )
                continue
            if min_height is not None and point.z < min_height:
                issues.append(self._out_of_range(point, f"is below min_height {min_height}"))
            elif max_height is not None and point.z > max_height:
                issues.append(self._out_of_range(point, f"is above max_height {max_height}"))
        return issues

    def _out_of_range(self, point: Point3d, detail: str) -> Issue:
        return Issue.error(
            with_issue_code(self.name, 2, f"Elevation {point.z} {detail}."),
            primitive=Primitive.POINT,
            element_id=point.id,
        )


def _optional_number(parameters: ValidatorParameters, key: str) -> float | None:
    value = parameters.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a number")
    return float(value)


__all__ = ["PointHeightSettingsValidator"]
