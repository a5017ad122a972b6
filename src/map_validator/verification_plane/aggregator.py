"""Result aggregation: global counters and per-requirement rollup."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from map_validator.domain.models import Issue, RequirementSet, Severity, ValidatorRun


@dataclass(frozen=True, slots=True)
class IssueTotals:
    errors: int = 0
    warnings: int = 0
    infos: int = 0

    @property
    def failing(self) -> int:
        """Issues that make the run fail; INFO findings are informational only."""
        return self.errors + self.warnings

    def to_dict(self) -> dict[str, int]:
        return {"errors": self.errors, "warnings": self.warnings, "infos": self.infos}


@dataclass(slots=True)
class ResultAggregator:
    """Accumulates counters as runs are finalized, synthetic issues included."""

    errors: int = 0
    warnings: int = 0
    infos: int = 0
    _recorded: set[str] = field(default_factory=set)

    def record(self, run: ValidatorRun) -> None:
        if not run.finalized:
            raise ValueError(f"run {run.name!r} must be finalized before it is aggregated")
        if run.name in self._recorded:
            raise ValueError(f"run {run.name!r} was already aggregated")
        self._recorded.add(run.name)
        self.add_issues(run.issues)

    def add_issues(self, issues: Iterable[Issue]) -> None:
        for issue in issues:
            if issue.severity is Severity.ERROR:
                self.errors += 1
            elif issue.severity is Severity.WARNING:
                self.warnings += 1
            elif issue.severity is Severity.INFO:
                self.infos += 1

    def totals(self) -> IssueTotals:
        return IssueTotals(errors=self.errors, warnings=self.warnings, infos=self.infos)


def totals_for(requirement_set: RequirementSet) -> IssueTotals:
    """Recount totals from finalized runs; each shared run is counted once."""

    aggregator = ResultAggregator()
    for run in requirement_set.runs.values():
        if run.finalized:
            aggregator.record(run)
    return aggregator.totals()


__all__ = ["IssueTotals", "ResultAggregator", "totals_for"]
