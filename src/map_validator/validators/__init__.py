"""Validator catalog and the built-in checks."""

from __future__ import annotations

from typing import Final

from map_validator.validators.base import (
    Validator,
    ValidatorFactory,
    ValidatorParameters,
    ValidatorRegistration,
    ValidatorRegistry,
    compile_checks_filter,
    issue_code,
    short_name,
    snake_to_upper_camel,
    validator_parameters,
    with_issue_code,
)
from map_validator.validators.point_height_settings import PointHeightSettingsValidator
from map_validator.validators.traffic_light_facing import TrafficLightFacingValidator
from map_validator.validators.turn_direction_tagging import TurnDirectionTaggingValidator

BUILTIN_VALIDATORS: Final[tuple[type[Validator], ...]] = (
    TurnDirectionTaggingValidator,
    TrafficLightFacingValidator,
    PointHeightSettingsValidator,
)


def build_default_registry() -> ValidatorRegistry:
    """Fresh catalog holding every built-in check."""

    registry = ValidatorRegistry()
    for validator_cls in BUILTIN_VALIDATORS:
        registry.register(validator_cls.name, validator_cls)
    return registry


__all__ = [
    "BUILTIN_VALIDATORS",
    "PointHeightSettingsValidator",
    "TrafficLightFacingValidator",
    "TurnDirectionTaggingValidator",
    "Validator",
    "ValidatorFactory",
    "ValidatorParameters",
    "ValidatorRegistration",
    "ValidatorRegistry",
    "build_default_registry",
    "compile_checks_filter",
    "issue_code",
    "short_name",
    "snake_to_upper_camel",
    "validator_parameters",
    "with_issue_code",
]
