"""
map-validator — requirements document ingestion.

File: src/map_validator/spec_ingestion/requirements.py

Purpose
- Parse a JSON or YAML requirements document into a ``RequirementSet``.

Document shape
- ``requirements``: ordered list of ``{id, validators}``.
- ``validators``: ordered list of ``{name, prerequisites?}``.
- ``prerequisites``: list of ``{name, forgive_warnings?}``.

Behavior
- Every structural problem is collected and reported together in one
  ``RequirementsFormatError``; nothing is scheduled from a malformed document.
- A validator name is global: repeated declarations share one ``ValidatorRun``.
  Prerequisites from every declaration of a name are unioned by target.
- Unknown keys are kept in ``RequirementSet.document`` so the output document can
  mirror the input.
- Prerequisite targets are *not* resolved here; dangling names are the scheduler's
  concern.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, cast

import yaml

from map_validator.constants import FILTER_REQUIREMENT_ID
from map_validator.domain.models import PrerequisiteEdge, Requirement, RequirementSet, ValidatorRun
from map_validator.errors import RequirementsFormatError

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})


@dataclass(slots=True)
class _RunDraft:
    name: str
    index: int
    forgiveness: dict[str, bool] = field(default_factory=dict)

    def merge(self, edges: Sequence[PrerequisiteEdge]) -> None:
        # Same target from several declarations forgives only if every one does.
        for edge in edges:
            self.forgiveness[edge.name] = (
                self.forgiveness.get(edge.name, True) and edge.forgive_warnings
            )

    def edges(self) -> tuple[PrerequisiteEdge, ...]:
        return tuple(
            PrerequisiteEdge(name=target, forgive_warnings=forgive)
            for target, forgive in self.forgiveness.items()
        )


@dataclass(slots=True)
class _Problems:
    items: list[str] = field(default_factory=list)

    def add(self, location: str, message: str) -> None:
        self.items.append(f"{location}: {message}")


def load_requirements(path: str | Path) -> RequirementSet:
    """Read and parse a requirements document from ``path``."""

    resolved = Path(path)
    source = resolved.as_posix()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RequirementsFormatError(source, ("file not found",)) from exc
    except OSError as exc:
        raise RequirementsFormatError(source, (f"unable to read file: {exc}",)) from exc

    if resolved.suffix.lower() in _YAML_SUFFIXES:
        try:
            loaded = cast("object", yaml.safe_load(text))
        except yaml.YAMLError as exc:
            raise RequirementsFormatError(source, (f"invalid YAML ({exc})",)) from exc
    else:
        try:
            loaded = cast("object", json.loads(text))
        except json.JSONDecodeError as exc:
            raise RequirementsFormatError(source, (f"invalid JSON ({exc})",)) from exc

    return parse_requirements(loaded, source=source)


def parse_requirements(document: object, *, source: str = "<memory>") -> RequirementSet:
    """Validate a decoded requirements document and build the shared run records."""

    problems = _Problems()
    if not isinstance(document, Mapping):
        raise RequirementsFormatError(
            source, (f"<root>: expected object, got {type(document).__name__}",)
        )

    raw_requirements = document.get("requirements")
    if raw_requirements is None:
        raise RequirementsFormatError(source, ("requirements: missing required field",))
    if not _is_list(raw_requirements):
        raise RequirementsFormatError(
            source, (f"requirements: expected list, got {type(raw_requirements).__name__}",)
        )

    drafts: dict[str, _RunDraft] = {}
    parsed_requirements: list[tuple[str, tuple[str, ...]]] = []
    seen_requirement_ids: set[str] = set()

    for req_index, raw_requirement in enumerate(cast("Sequence[object]", raw_requirements)):
        location = f"requirements[{req_index}]"
        if not isinstance(raw_requirement, Mapping):
            problems.add(location, f"expected object, got {type(raw_requirement).__name__}")
            continue

        requirement_id = _required_name(raw_requirement, "id", location, problems)
        if requirement_id is not None:
            if requirement_id in seen_requirement_ids:
                problems.add(f"{location}.id", f"duplicate requirement id {requirement_id!r}")
            seen_requirement_ids.add(requirement_id)

        names = _parse_validators(raw_requirement, location, drafts, problems)
        if requirement_id is not None and names is not None:
            parsed_requirements.append((requirement_id, names))

    if problems.items:
        raise RequirementsFormatError(source, problems.items)

    runs: dict[str, ValidatorRun] = {}
    for draft in sorted(drafts.values(), key=lambda item: item.index):
        runs[draft.name] = ValidatorRun(
            name=draft.name,
            prerequisites=draft.edges(),
            declaration_index=draft.index,
        )

    requirements = tuple(
        Requirement(id=requirement_id, validators=tuple(runs[name] for name in names))
        for requirement_id, names in parsed_requirements
    )
    return RequirementSet(
        requirements=requirements,
        runs=runs,
        document=copy.deepcopy(dict(document)),
        source=source,
    )


def requirements_from_names(
    names: Sequence[str], *, requirement_id: str = FILTER_REQUIREMENT_ID
) -> RequirementSet:
    """Single requirement of independent runs, used when no document is given."""

    document = {
        "requirements": [
            {"id": requirement_id, "validators": [{"name": name} for name in names]}
        ]
    }
    return parse_requirements(document, source=f"<{requirement_id}>")


def _parse_validators(
    raw_requirement: Mapping[object, object],
    location: str,
    drafts: dict[str, _RunDraft],
    problems: _Problems,
) -> tuple[str, ...] | None:
    raw_validators = raw_requirement.get("validators")
    validators_location = f"{location}.validators"
    if raw_validators is None:
        problems.add(validators_location, "missing required field")
        return None
    if not _is_list(raw_validators):
        problems.add(
            validators_location, f"expected list, got {type(raw_validators).__name__}"
        )
        return None

    names: list[str] = []
    for index, raw_validator in enumerate(cast("Sequence[object]", raw_validators)):
        item_location = f"{validators_location}[{index}]"
        if not isinstance(raw_validator, Mapping):
            problems.add(item_location, f"expected object, got {type(raw_validator).__name__}")
            continue

        name = _required_name(raw_validator, "name", item_location, problems)
        if name is None:
            continue
        if name in names:
            problems.add(f"{item_location}.name", f"validator {name!r} is listed twice")
            continue
        names.append(name)

        draft = drafts.get(name)
        if draft is None:
            draft = _RunDraft(name=name, index=len(drafts))
            drafts[name] = draft

        if "prerequisites" not in raw_validator:
            continue
        edges = _parse_prerequisites(
            raw_validator["prerequisites"], f"{item_location}.prerequisites", problems
        )
        if edges is not None:
            draft.merge(edges)

    return tuple(names)


def _parse_prerequisites(
    raw: object, location: str, problems: _Problems
) -> tuple[PrerequisiteEdge, ...] | None:
    if not _is_list(raw):
        problems.add(location, f"expected list, got {type(raw).__name__}")
        return None

    edges: list[PrerequisiteEdge] = []
    valid = True
    for index, raw_edge in enumerate(cast("Sequence[object]", raw)):
        edge_location = f"{location}[{index}]"
        if not isinstance(raw_edge, Mapping):
            problems.add(edge_location, f"expected object, got {type(raw_edge).__name__}")
            valid = False
            continue
        target = _required_name(raw_edge, "name", edge_location, problems)
        forgive = raw_edge.get("forgive_warnings", False)
        if not isinstance(forgive, bool):
            problems.add(
                f"{edge_location}.forgive_warnings",
                f"expected boolean, got {type(forgive).__name__}",
            )
            valid = False
            continue
        if target is None:
            valid = False
            continue
        edges.append(PrerequisiteEdge(name=target, forgive_warnings=forgive))

    return tuple(edges) if valid else None


def _required_name(
    payload: Mapping[object, object], key: str, location: str, problems: _Problems
) -> str | None:
    field_location = f"{location}.{key}"
    if key not in payload:
        problems.add(field_location, "missing required field")
        return None
    value = payload[key]
    if not isinstance(value, str):
        problems.add(field_location, f"expected string, got {type(value).__name__}")
        return None
    stripped = value.strip()
    if not stripped:
        problems.add(field_location, "must not be empty")
        return None
    return stripped


def _is_list(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


__all__ = ["load_requirements", "parse_requirements", "requirements_from_names"]
