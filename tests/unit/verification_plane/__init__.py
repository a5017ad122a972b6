"""Shared builders for verification-plane tests."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from map_validator.domain import Issue, Primitive, Severity
from map_validator.map_model import LaneletMap
from map_validator.validators import ValidatorParameters, ValidatorRegistry

Behavior = Severity | BaseException | None


@dataclass(slots=True)
class ScriptedValidator:
    """Check that records every invocation and returns (or raises) a fixed result."""

    name: str
    behavior: Behavior = None
    calls: list[str] = field(default_factory=list)

    def validate(self, lanelet_map: LaneletMap, parameters: ValidatorParameters) -> list[Issue]:
        self.calls.append(self.name)
        if isinstance(self.behavior, BaseException):
            raise self.behavior
        if self.behavior is None or self.behavior is Severity.NONE:
            return []
        return [Issue(self.behavior, Primitive.LANELET, 7, f"{self.name} finding")]


def make_registry(
    behaviors: Mapping[str, Behavior], calls: list[str] | None = None
) -> tuple[ValidatorRegistry, list[str]]:
    """Registry of scripted checks sharing one invocation log."""

    log = calls if calls is not None else []
    registry = ValidatorRegistry()
    for name in sorted(behaviors):
        registry.register(
            name,
            lambda name=name: ScriptedValidator(name, behaviors[name], log),
        )
    return registry, log


def validator(name: str, *prerequisites: str | tuple[str, bool]) -> dict[str, object]:
    entry: dict[str, object] = {"name": name}
    if prerequisites:
        edges: list[dict[str, object]] = []
        for item in prerequisites:
            if isinstance(item, tuple):
                edges.append({"name": item[0], "forgive_warnings": item[1]})
            else:
                edges.append({"name": item})
        entry["prerequisites"] = edges
    return entry


def document(
    *requirements: tuple[str, Sequence[dict[str, object]]],
) -> dict[str, object]:
    return {
        "requirements": [
            {"id": requirement_id, "validators": list(validators)}
            for requirement_id, validators in requirements
        ]
    }


def empty_map() -> LaneletMap:
    return LaneletMap()


def issue_messages(issues: Iterable[Issue]) -> list[str]:
    return [issue.message for issue in issues]


__all__ = [
    "Behavior",
    "ScriptedValidator",
    "document",
    "empty_map",
    "issue_messages",
    "make_registry",
    "validator",
]
