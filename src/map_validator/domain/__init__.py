"""Domain models: severities, issues, validator runs, and requirements."""

from map_validator.domain.models import (
    SEVERITY_ORDER,
    Issue,
    JSONScalar,
    JSONValue,
    PrerequisiteEdge,
    Primitive,
    Requirement,
    RequirementSet,
    RunOutcome,
    Severity,
    ValidatorRun,
)

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
