"""
map-validator — validator interface and catalog.

File: src/map_validator/validators/base.py

Purpose
- Define the capability every check implements: inspect a read-only map, return issues.
- Provide the catalog the orchestrator is constructed with; there is no global lookup.

Contracts
- ``Validator.validate`` must not mutate the map and must be a pure function of the
  map and its parameters.
- Names are dotted (``mapping.<category>.<check>``); the last component is the short
  name used for parameter tables and issue codes.
- Checks filters are comma separated regular expressions searched against names.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from map_validator.domain.models import Issue
from map_validator.errors import UnknownValidatorError
from map_validator.map_model.lanelet_map import LaneletMap

ValidatorParameters = Mapping[str, object]
ValidatorFactory = Callable[[], "Validator"]

_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


@runtime_checkable
class Validator(Protocol):
    """Check protocol implemented by every registered validator."""

    name: str

    def validate(
        self, lanelet_map: LaneletMap, parameters: ValidatorParameters
    ) -> Iterable[Issue]: ...


@dataclass(frozen=True, slots=True)
class ValidatorRegistration:
    name: str
    factory: ValidatorFactory


class ValidatorRegistry:
    """Deterministic name → implementation catalog injected into the orchestrator."""

    def __init__(self) -> None:
        self._registrations: dict[str, ValidatorRegistration] = {}
        self._instances: dict[str, Validator] = {}

    def register(self, name: str, factory: ValidatorFactory) -> None:
        normalized = name.strip()
        if not _NAME_PATTERN.fullmatch(normalized):
            raise ValueError(f"invalid validator name {name!r}; expected dotted snake_case")
        if not callable(factory):
            raise TypeError("validator factory must be callable")
        if normalized in self._registrations:
            raise ValueError(f"validator {normalized!r} is already registered")
        self._registrations[normalized] = ValidatorRegistration(normalized, factory)

    def contains(self, name: str) -> bool:
        return name in self._registrations

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._registrations))

    def available_names(self, pattern: str = "") -> tuple[str, ...]:
        """Registered names matching a comma separated list of regular expressions."""
        matchers = compile_checks_filter(pattern)
        if not matchers:
            return self.names()
        return tuple(
            name for name in self.names() if any(matcher.search(name) for matcher in matchers)
        )

    def get(self, name: str) -> Validator:
        instance = self._instances.get(name)
        if instance is not None:
            return instance
        registration = self._registrations.get(name)
        if registration is None:
            raise UnknownValidatorError(name)
        created = registration.factory()
        if not isinstance(created, Validator):
            raise TypeError(f"factory for {name!r} did not return a Validator")
        self._instances[name] = created
        return created

    def run(
        self,
        name: str,
        lanelet_map: LaneletMap,
        config: Mapping[str, object] | None = None,
    ) -> tuple[Issue, ...]:
        """Invoke one named check against the map with its configured parameters."""
        validator = self.get(name)
        parameters = validator_parameters(config, name)
        issues = tuple(validator.validate(lanelet_map, parameters))
        for index, item in enumerate(issues):
            if not isinstance(item, Issue):
                raise TypeError(
                    f"validator {name!r} returned {type(item).__name__} at position {index}"
                )
        return issues


def compile_checks_filter(pattern: str) -> tuple[re.Pattern[str], ...]:
    """Split ``pattern`` on commas and compile each non-empty part."""

    compiled: list[re.Pattern[str]] = []
    for part in pattern.split(","):
        stripped = part.strip()
        if not stripped:
            continue
        try:
            compiled.append(re.compile(stripped))
        except re.error as exc:
            raise ValueError(f"invalid checks filter {stripped!r}: {exc}") from exc
    return tuple(compiled)


def short_name(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def snake_to_upper_camel(snake_case: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in snake_case.split("_") if part)


def issue_code(validator_name: str, number: int) -> str:
    """Stable code such as ``TurnDirectionTagging-001`` for a validator's n-th issue kind."""
    return f"{snake_to_upper_camel(short_name(validator_name))}-{number:03d}"


def with_issue_code(validator_name: str, number: int, message: str) -> str:
    return f"[{issue_code(validator_name, number)}] {message}"


def validator_parameters(config: Mapping[str, object] | None, name: str) -> ValidatorParameters:
    if not config:
        return {}
    section = config.get("validators")
    if not isinstance(section, Mapping):
        return {}
    parameters = section.get(short_name(name))
    if not isinstance(parameters, Mapping):
        return {}
    return parameters


__all__ = [
    "Validator",
    "ValidatorFactory",
    "ValidatorParameters",
    "ValidatorRegistration",
    "ValidatorRegistry",
    "compile_checks_filter",
    "issue_code",
    "short_name",
    "snake_to_upper_camel",
    "validator_parameters",
    "with_issue_code",
]
