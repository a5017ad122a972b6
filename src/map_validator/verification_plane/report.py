"""
map-validator — report builder.

File: src/map_validator/verification_plane/report.py

Purpose
- Console summary of a finished pass.
- Output document mirroring the input requirements, annotated with ``passed`` and
  ``issues``; byte-identical across repeated runs on the same inputs.
- Machine-readable summary for ``--json``.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping, MutableMapping
from pathlib import Path

from map_validator.constants import DEFAULT_OUTPUT_FILENAME
from map_validator.domain.models import JSONValue, ValidatorRun
from map_validator.verification_plane.orchestrator import ValidationOutcome

NO_ISSUES_MESSAGE = "No issues were found."


def _status(passed: bool) -> str:
    return "Passed" if passed else "Failed"


def render_console_report(outcome: ValidationOutcome) -> list[str]:
    """Per requirement header, per validator line with its issues, then totals."""

    lines: list[str] = []
    for requirement in outcome.requirement_set.requirements:
        lines.append(f"[{requirement.id}] {_status(requirement.passed)}")
        for run in requirement.validators:
            lines.append(f"  - {run.name}: {_status(run.passed)}")
            lines.extend(f"      {issue.render()}" for issue in run.issues)

    totals = outcome.totals
    if totals.failing == 0 and totals.infos == 0:
        lines.append(NO_ISSUES_MESSAGE)
        return lines
    lines.append(f"Total errors: {totals.errors}")
    lines.append(f"Total warnings: {totals.warnings}")
    if totals.infos:
        lines.append(f"Total infos: {totals.infos}")
    return lines


def build_output_document(outcome: ValidationOutcome) -> dict[str, object]:
    """Copy of the input document with results attached in place.

    Keys the input already has keep their position; ``passed`` and ``issues`` are
    appended (or overwritten) on each requirement and validator entry.
    """

    requirement_set = outcome.requirement_set
    document = copy.deepcopy(dict(requirement_set.document))
    raw_requirements = document.get("requirements")
    if not isinstance(raw_requirements, list):
        raise ValueError("output document requires the parsed requirements list")

    for requirement, raw_requirement in zip(
        requirement_set.requirements, raw_requirements, strict=True
    ):
        if not isinstance(raw_requirement, MutableMapping):
            raise ValueError(f"requirement {requirement.id!r} is not an object")
        raw_requirement["passed"] = requirement.passed
        raw_validators = raw_requirement.get("validators")
        if not isinstance(raw_validators, list):
            raise ValueError(f"requirement {requirement.id!r} has no validators list")
        for raw_validator in raw_validators:
            if not isinstance(raw_validator, MutableMapping):
                raise ValueError(f"requirement {requirement.id!r} has a non-object validator")
            run = requirement_set.run(str(raw_validator["name"]).strip())
            raw_validator["passed"] = run.passed
            raw_validator["issues"] = [issue.to_dict() for issue in run.issues]
    return document


def render_output_document(document: Mapping[str, object]) -> str:
    return json.dumps(document, indent=4, ensure_ascii=False) + "\n"


def write_output_document(
    outcome: ValidationOutcome,
    output_dir: str | Path,
    filename: str = DEFAULT_OUTPUT_FILENAME,
) -> Path:
    """Write the annotated document; OSError propagates to the caller."""

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / filename
    target.write_text(render_output_document(build_output_document(outcome)), encoding="utf-8")
    return target


def _run_summary(run: ValidatorRun) -> dict[str, JSONValue]:
    return {
        "name": run.name,
        "outcome": run.outcome.value,
        "severity": run.severity.value,
        "passed": run.passed,
        "issues": [issue.to_dict() for issue in run.issues],
    }


def summary_payload(outcome: ValidationOutcome) -> dict[str, JSONValue]:
    """Deterministic JSON-ready summary used by ``validate --json``."""

    requirement_set = outcome.requirement_set
    return {
        "source": requirement_set.source,
        "passed": outcome.passed,
        "requirements": [
            {
                "id": requirement.id,
                "passed": requirement.passed,
                "validators": [_run_summary(run) for run in requirement.validators],
            }
            for requirement in requirement_set.requirements
        ],
        "order": list(outcome.order),
        "excluded": [
            {"name": name, "reason": outcome.exclusion_reasons[name].value}
            for name in outcome.excluded
        ],
        "totals": dict(outcome.totals.to_dict()),
    }


__all__ = [
    "NO_ISSUES_MESSAGE",
    "build_output_document",
    "render_console_report",
    "render_output_document",
    "summary_payload",
    "write_output_document",
]
