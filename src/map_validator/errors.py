"""Exception taxonomy for map validation runs."""

from __future__ import annotations

from collections.abc import Iterable


class MapValidatorError(Exception):
    """Base class for all map-validator failures."""


class RequirementsFormatError(MapValidatorError, ValueError):
    """Raised when a requirements document is malformed.

    ``problems`` keeps every structural issue found, each prefixed with the
    document location it refers to (for example ``requirements[0].validators[1].name``).
    """

    def __init__(self, source: str, problems: Iterable[str]) -> None:
        self.source = source
        self.problems = tuple(problems)
        if not self.problems:
            rendered = "unknown format error"
        elif len(self.problems) == 1:
            rendered = self.problems[0]
        else:
            rendered = "\n" + "\n".join(f"- {item}" for item in self.problems)
        super().__init__(f"invalid requirements document {source}: {rendered}")


class MapLoadError(MapValidatorError):
    """Raised when a map file cannot be read or parsed."""


class UnknownValidatorError(MapValidatorError, KeyError):
    """Raised when a validator name is not present in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"no validator named {self.name!r} is available"


class ValidatorExecutionFault(MapValidatorError):
    """Raised when a validator raises while fault containment is disabled."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"validator {name!r} raised {type(cause).__name__}: {cause}")


class ValidatorRunStateError(MapValidatorError, RuntimeError):
    """Raised when a validator run is finalized more than once in a pass."""


__all__ = [
    "MapLoadError",
    "MapValidatorError",
    "RequirementsFormatError",
    "UnknownValidatorError",
    "ValidatorExecutionFault",
    "ValidatorRunStateError",
]
