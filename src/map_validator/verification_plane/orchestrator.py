"""
map-validator — requirement-based validation orchestrator.

File: src/map_validator/verification_plane/orchestrator.py

Purpose
- Run every declared validator of a ``RequirementSet`` at most once, in prerequisite
  order, and finalize each ``ValidatorRun`` exactly once.

Pass structure
1. Build the prerequisite graph over all declared names and schedule it (Kahn,
   declaration-order tie-break).
2. Nodes the scheduler cannot place (dangling prerequisite, cycle, or downstream of
   either) are finalized immediately with a synthetic ERROR issue and never invoked.
3. For each node in order the gate inspects the finalized prerequisite severities and
   either skips the node with a synthetic ERROR issue or invokes the check.
4. Every finalized run feeds the global counters.

Fault handling
- With ``contain_faults`` an exception raised by a check becomes a synthetic ERROR
  issue on that run only. Without it the pass aborts with ``ValidatorExecutionFault``.
- A name absent from the catalog is finalized with a synthetic ERROR issue.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from map_validator.constants import MISSING_OR_CYCLIC_MESSAGE, PREREQUISITES_FAILED_MESSAGE
from map_validator.domain.models import Issue, RequirementSet, RunOutcome, ValidatorRun
from map_validator.errors import (
    UnknownValidatorError,
    ValidatorExecutionFault,
    ValidatorRunStateError,
)
from map_validator.map_model.lanelet_map import LaneletMap
from map_validator.planning.dependency_graph import DependencyGraph, ExclusionReason
from map_validator.validators.base import ValidatorRegistry
from map_validator.verification_plane.aggregator import IssueTotals, ResultAggregator
from map_validator.verification_plane.gate import evaluate_gate


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Finalized requirement set plus what the pass decided about each node."""

    requirement_set: RequirementSet
    totals: IssueTotals
    order: tuple[str, ...]
    excluded: tuple[str, ...] = ()
    exclusion_reasons: Mapping[str, ExclusionReason] = field(default_factory=dict)
    invoked: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        """True iff the run produced no warnings and no errors."""
        return self.totals.failing == 0


class ValidationOrchestrator:
    """Single-pass, single-threaded scheduler over an injected validator catalog."""

    def __init__(
        self,
        registry: ValidatorRegistry,
        *,
        contain_faults: bool = True,
        config: Mapping[str, object] | None = None,
        logger: Any | None = None,
    ) -> None:
        self._registry = registry
        self._contain_faults = contain_faults
        self._config = config
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def run(self, requirement_set: RequirementSet, lanelet_map: LaneletMap) -> ValidationOutcome:
        runs = requirement_set.runs
        already_final = [name for name, run in runs.items() if run.finalized]
        if already_final:
            raise ValidatorRunStateError(
                f"requirement set was already orchestrated; finalized runs: {already_final}"
            )

        graph = DependencyGraph.from_prerequisites(
            {name: run.prerequisite_names for name, run in runs.items()}
        )
        schedule = graph.schedule()
        aggregator = ResultAggregator()

        reasons = graph.diagnose(schedule.excluded) if schedule.excluded else {}
        dangling = graph.dangling_prerequisites()
        for name in schedule.excluded:
            run = runs[name]
            run.finalize(RunOutcome.EXCLUDED, (Issue.error(MISSING_OR_CYCLIC_MESSAGE),))
            aggregator.record(run)
            self._logger.warning(
                "validation_node_excluded",
                validator=name,
                reason=reasons[name].value,
                missing_prerequisites=list(dangling.get(name, ())),
            )

        invoked: list[str] = []
        for name in schedule.order:
            run = runs[name]
            decision = evaluate_gate(run, runs)
            if not decision.should_execute:
                run.finalize(RunOutcome.SKIPPED, (Issue.error(PREREQUISITES_FAILED_MESSAGE),))
                self._logger.info(
                    "validation_gate_skipped", validator=name, **decision.to_dict()
                )
            elif not self._registry.contains(name):
                run.finalize(RunOutcome.SKIPPED, (Issue.error(str(UnknownValidatorError(name))),))
                self._logger.warning("validation_unknown_validator", validator=name)
            else:
                invoked.append(name)
                self._execute(run, lanelet_map)
            aggregator.record(run)
            self._log_run(run)

        totals = aggregator.totals()
        self._logger.info(
            "validation_pass_completed",
            source=requirement_set.source,
            order=list(schedule.order),
            excluded=list(schedule.excluded),
            **totals.to_dict(),
        )
        return ValidationOutcome(
            requirement_set=requirement_set,
            totals=totals,
            order=schedule.order,
            excluded=schedule.excluded,
            exclusion_reasons=reasons,
            invoked=tuple(invoked),
        )

    def _execute(self, run: ValidatorRun, lanelet_map: LaneletMap) -> None:
        try:
            issues = self._registry.run(run.name, lanelet_map, self._config)
        except Exception as exc:  # noqa: BLE001
            if not self._contain_faults:
                raise ValidatorExecutionFault(run.name, exc) from exc
            self._logger.error(
                "validation_fault_contained",
                validator=run.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            issues = (Issue.error(f"validator raised {type(exc).__name__}: {exc}"),)
        run.finalize(RunOutcome.EXECUTED, issues)

    def _log_run(self, run: ValidatorRun) -> None:
        self._logger.info(
            "validation_run_finalized",
            validator=run.name,
            outcome=run.outcome.value,
            severity=run.severity.value,
            passed=run.passed,
            issue_count=len(run.issues),
        )


__all__ = ["ValidationOrchestrator", "ValidationOutcome"]
