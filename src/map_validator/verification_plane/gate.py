"""
map-validator — prerequisite gate.

File: src/map_validator/verification_plane/gate.py

Purpose
- Decide, immediately before a validator's turn, whether it runs or is skipped.

Policy
- A prerequisite at ERROR always blocks.
- A prerequisite at WARNING blocks unless that edge sets ``forgive_warnings``.
- INFO and NONE never block.
- Every prerequisite must already be finalized; topological order guarantees this and
  the gate refuses to decide otherwise.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from map_validator.domain.models import Severity, ValidatorRun
from map_validator.errors import ValidatorRunStateError


class GateVerdict(StrEnum):
    """Binary execute/skip decision."""

    EXECUTE = "execute"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class BlockingPrerequisite:
    name: str
    severity: Severity
    forgive_warnings: bool


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Verdict plus the prerequisites that caused a skip, in edge order."""

    verdict: GateVerdict
    blocking: tuple[BlockingPrerequisite, ...] = ()

    @property
    def should_execute(self) -> bool:
        return self.verdict is GateVerdict.EXECUTE

    def to_dict(self) -> dict[str, object]:
        return {
            "verdict": self.verdict.value,
            "blocking": [
                {
                    "name": item.name,
                    "severity": item.severity.value,
                    "forgive_warnings": item.forgive_warnings,
                }
                for item in self.blocking
            ],
        }


def evaluate_gate(run: ValidatorRun, runs: Mapping[str, ValidatorRun]) -> GateDecision:
    """Apply the gate policy to ``run`` given the already finalized ``runs``."""

    blocking: list[BlockingPrerequisite] = []
    for edge in run.prerequisites:
        prerequisite = runs.get(edge.name)
        if prerequisite is None or not prerequisite.finalized:
            raise ValidatorRunStateError(
                f"prerequisite {edge.name!r} of {run.name!r} is not finalized before its turn"
            )
        if edge.blocks(prerequisite.severity):
            blocking.append(
                BlockingPrerequisite(
                    name=edge.name,
                    severity=prerequisite.severity,
                    forgive_warnings=edge.forgive_warnings,
                )
            )

    if blocking:
        return GateDecision(verdict=GateVerdict.SKIP, blocking=tuple(blocking))
    return GateDecision(verdict=GateVerdict.EXECUTE)


__all__ = ["BlockingPrerequisite", "GateDecision", "GateVerdict", "evaluate_gate"]
