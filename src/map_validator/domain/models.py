"""Domain models for requirement-driven validation runs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from map_validator.errors import ValidatorRunStateError

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class Severity(StrEnum):
    """Issue classification; compare with :attr:`rank`, never with ``<`` on values."""

    NONE = "None"
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def blocks_unconditionally(self) -> bool:
        return self is Severity.ERROR

    @classmethod
    def worst(cls, severities: Iterable[Severity]) -> Severity:
        """Return the highest severity under ERROR > WARNING > INFO > NONE."""

        result = cls.NONE
        for item in severities:
            if item.rank > result.rank:
                result = item
        return result

    @classmethod
    def parse(cls, raw: str) -> Severity:
        normalized = raw.strip().lower()
        for item in cls:
            if item.value.lower() == normalized:
                return item
        raise ValueError(f"unknown severity {raw!r}")


SEVERITY_ORDER: Final[tuple[Severity, ...]] = (
    Severity.NONE,
    Severity.INFO,
    Severity.WARNING,
    Severity.ERROR,
)
_SEVERITY_RANK: Final[dict[Severity, int]] = {
    item: index for index, item in enumerate(SEVERITY_ORDER)
}


class Primitive(StrEnum):
    """Kind of map element an issue points at."""

    POINT = "point"
    LINESTRING = "linestring"
    POLYGON = "polygon"
    LANELET = "lanelet"
    AREA = "area"
    REGULATORY_ELEMENT = "regulatory element"
    PRIMITIVE = "primitive"


class RunOutcome(StrEnum):
    """How a validator run was finalized during an orchestration pass."""

    PENDING = "pending"
    EXECUTED = "executed"
    SKIPPED = "skipped"
    EXCLUDED = "excluded"


@dataclass(frozen=True, slots=True)
class Issue:
    """One finding reported against a map element."""

    severity: Severity
    primitive: Primitive
    id: int
    message: str

    def __post_init__(self) -> None:
        if self.severity is Severity.NONE:
            raise ValueError("Issue.severity must not be NONE")
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise TypeError("Issue.id must be an integer")
        if not isinstance(self.message, str):
            raise TypeError("Issue.message must be a string")

    @classmethod
    def error(
        cls, message: str, *, primitive: Primitive = Primitive.PRIMITIVE, element_id: int = 0
    ) -> Issue:
        return cls(Severity.ERROR, primitive, element_id, message)

    @classmethod
    def warning(
        cls, message: str, *, primitive: Primitive = Primitive.PRIMITIVE, element_id: int = 0
    ) -> Issue:
        return cls(Severity.WARNING, primitive, element_id, message)

    @classmethod
    def info(
        cls, message: str, *, primitive: Primitive = Primitive.PRIMITIVE, element_id: int = 0
    ) -> Issue:
        return cls(Severity.INFO, primitive, element_id, message)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "severity": self.severity.value,
            "primitive": self.primitive.value,
            "id": self.id,
            "message": self.message,
        }

    def render(self) -> str:
        return f"{self.severity.value} [{self.primitive.value} {self.id}]: {self.message}"


@dataclass(frozen=True, slots=True)
class PrerequisiteEdge:
    """Dependency of one validator on another."""

    name: str
    forgive_warnings: bool = False

    def blocks(self, severity: Severity) -> bool:
        if severity.blocks_unconditionally:
            return True
        return severity is Severity.WARNING and not self.forgive_warnings


@dataclass(slots=True, eq=False)
class ValidatorRun:
    """Single owned record for a validator name, shared by every requirement naming it."""

    name: str
    prerequisites: tuple[PrerequisiteEdge, ...] = ()
    declaration_index: int = 0
    severity: Severity = Severity.NONE
    passed: bool = False
    issues: tuple[Issue, ...] = ()
    outcome: RunOutcome = RunOutcome.PENDING

    @property
    def finalized(self) -> bool:
        return self.outcome is not RunOutcome.PENDING

    @property
    def prerequisite_names(self) -> tuple[str, ...]:
        return tuple(edge.name for edge in self.prerequisites)

    def finalize(self, outcome: RunOutcome, issues: Iterable[Issue]) -> None:
        """Record the single outcome of this run; a second call is a state error."""

        if outcome is RunOutcome.PENDING:
            raise ValueError("cannot finalize a run as pending")
        if self.finalized:
            raise ValidatorRunStateError(
                f"validator run {self.name!r} was already finalized as {self.outcome.value}"
            )
        collected = tuple(issues)
        self.issues = collected
        self.severity = Severity.worst(item.severity for item in collected)
        self.passed = outcome is RunOutcome.EXECUTED and not collected
        self.outcome = outcome


@dataclass(frozen=True, slots=True)
class Requirement:
    id: str
    validators: tuple[ValidatorRun, ...]

    @property
    def passed(self) -> bool:
        return all(run.passed for run in self.validators)

    @property
    def validator_names(self) -> tuple[str, ...]:
        return tuple(run.name for run in self.validators)


@dataclass(frozen=True, slots=True)
class RequirementSet:
    """Parsed requirements document.

    ``runs`` maps every declared validator name to its one ``ValidatorRun`` in
    declaration order. ``document`` keeps the raw input so the output document can
    mirror it.
    """

    requirements: tuple[Requirement, ...]
    runs: Mapping[str, ValidatorRun]
    document: Mapping[str, object] = field(default_factory=dict)
    source: str = "<memory>"

    @property
    def passed(self) -> bool:
        return all(requirement.passed for requirement in self.requirements)

    def run(self, name: str) -> ValidatorRun:
        return self.runs[name]

    def prerequisite_map(self) -> dict[str, tuple[PrerequisiteEdge, ...]]:
        return {name: run.prerequisites for name, run in self.runs.items()}


__all__ = [
    "Issue",
    "JSONScalar",
    "JSONValue",
    "PrerequisiteEdge",
    "Primitive",
    "Requirement",
    "RequirementSet",
    "RunOutcome",
    "SEVERITY_ORDER",
    "Severity",
    "ValidatorRun",
]
