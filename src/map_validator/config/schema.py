"""
map-validator — configuration schema and validation.

File: src/map_validator/config/schema.py

Purpose
- Built-in defaults and strict validation of the effective config.

What is included in this file
- One field table per section; every section, profile overlays included, is checked by
  the same routine, so an overlay accepts exactly the fields the base config accepts.
- Free-form ``validators.<short name>`` parameter tables (scalars only, never secrets).
- Schema versioning with migration guidance, deep merge, and redaction.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final, Literal, TypedDict

from map_validator.constants import CONFIG_SCHEMA_VERSION, DEFAULT_OUTPUT_FILENAME

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
BUILTIN_PROFILE_NAMES: Final[tuple[str, ...]] = ("strict", "permissive")

_PROFILE_NAME = re.compile(r"^[a-z][a-z0-9_-]*$")
_VALIDATOR_SHORT_NAME = re.compile(r"^[a-z][a-z0-9_]*$")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[^a-z0-9]+")

_SECRET_WORDS: Final[frozenset[str]] = frozenset(
    {"secret", "token", "password", "passwd", "apikey", "private", "credential", "credentials"}
)
_SECRET_PHRASES: Final[tuple[str, ...]] = ("api_key", "access_token", "client_secret")
_REDACTED: Final[str] = "<redacted>"

# Config paths that are normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("paths", "output_dir"),
    ("observability", "log_dir"),
)

ParameterValue = str | int | float | bool


class MetaConfig(TypedDict):
    schema_version: int


class ValidationConfig(TypedDict):
    checks_filter: str
    contain_faults: bool
    output_filename: str


class PathsConfig(TypedDict, total=False):
    output_dir: str | None


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]
    log_dir: str
    log_to_file: bool


class ProfileOverlay(TypedDict, total=False):
    validation: dict[str, object]
    paths: dict[str, object]
    observability: dict[str, object]
    validators: dict[str, object]


class MapValidatorConfig(TypedDict):
    meta: MetaConfig
    validation: ValidationConfig
    paths: PathsConfig
    observability: ObservabilityConfig
    validators: dict[str, dict[str, ParameterValue]]
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[MapValidatorConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "validation": {
        "checks_filter": "",
        "contain_faults": True,
        "output_filename": DEFAULT_OUTPUT_FILENAME,
    },
    "paths": {
        "output_dir": None,
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "json",
        "log_dir": "logs/",
        "log_to_file": False,
    },
    "validators": {},
    "profiles": {
        "strict": {
            "validation": {"contain_faults": False},
        },
        "permissive": {
            "observability": {"log_level": "ERROR"},
        },
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """One problem found in a config payload, addressed by dotted path."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {issue.path}: {issue.message}" for issue in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "- <root>: invalid"))


@dataclass(slots=True)
class _IssueCollector:
    items: list[ConfigValidationIssue] = field(default_factory=list)

    def add(self, path: str, message: str) -> None:
        self.items.append(ConfigValidationIssue(path=path, message=message))

    def __bool__(self) -> bool:
        return bool(self.items)


def default_config() -> MapValidatorConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "rewrite map_validator.toml for the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "install a newer map-validator"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``; keys come out sorted."""

    merged = {key: copy.deepcopy(base[key]) for key in sorted(base)}
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = merge_config(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = copy.deepcopy(value)
    return dict(sorted(merged.items()))


def apply_profile_overlay(config: Mapping[str, object], profile: str | None) -> dict[str, Any]:
    """Merge the named overlay from ``profiles`` and re-validate."""

    name = (profile or "").strip()
    if not name:
        return merge_config({}, config)

    profiles = config.get("profiles")
    overlay = profiles.get(name) if isinstance(profiles, Mapping) else None
    if overlay is None:
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {name!r} is not defined"),)
        )
    if not isinstance(overlay, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"profiles.{name}", "profile overlay must be an object"),)
        )
    return assert_valid_config(merge_config(config, overlay), active_profile=name)


def validate_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> ConfigValidationResult:
    """Check every section; the normalized config is returned only when nothing failed."""

    issues = _IssueCollector()
    root = _object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=tuple(issues.items))

    normalized = _check_root(root, issues)
    profile = (active_profile or "").strip()
    if profile and not issues and profile not in normalized.get("profiles", {}):
        issues.add("profiles", f"profile {profile!r} is not defined")

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues.items))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> dict[str, Any]:
    result = validate_config(config, active_profile=active_profile)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def redact_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Copy of ``config`` with every secret-looking key's value replaced, at any depth."""

    if not isinstance(config, Mapping):
        return {}
    return {
        str(key): _REDACTED if _is_secret_key(str(key)) else _redact(config[key])
        for key in sorted(config, key=str)
    }


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

_Parser = Callable[[object, str, _IssueCollector], object | None]


def _text(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    if not value.strip():
        issues.add(path, "must not be empty")
        return None
    return value.strip()


def _boolean(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _choice(*options: str) -> _Parser:
    def parse(value: object, path: str, issues: _IssueCollector) -> str | None:
        parsed = _text(value, path, issues)
        if parsed is not None and parsed not in options:
            issues.add(
                path, f"invalid value {parsed!r}; expected one of: {', '.join(sorted(options))}"
            )
            return None
        return parsed

    return parse


def _path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _text(value, path, issues)
    if parsed is not None and "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _file_name(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _path_text(value, path, issues)
    if parsed is not None and (parsed in {".", ".."} or any(sep in parsed for sep in "/\\")):
        issues.add(path, "must be a bare file name")
        return None
    return parsed


def _checks_filter(value: object, path: str, issues: _IssueCollector) -> str | None:
    # An empty filter is valid and selects every check.
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    for part in value.split(","):
        try:
            re.compile(part.strip())
        except re.error as exc:
            issues.add(path, f"invalid pattern {part!r}: {exc}")
    return value.strip()


def _schema_version(value: object, path: str, issues: _IssueCollector) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if value != ConfigSchemaVersion:
        issues.add(path, migration_guidance(value))
    return value


@dataclass(frozen=True, slots=True)
class _Field:
    parse: _Parser
    nullable: bool = False


_SECTION_FIELDS: Final[dict[str, dict[str, _Field]]] = {
    "meta": {"schema_version": _Field(_schema_version)},
    "validation": {
        "checks_filter": _Field(_checks_filter),
        "contain_faults": _Field(_boolean),
        "output_filename": _Field(_file_name),
    },
    "paths": {"output_dir": _Field(_path_text, nullable=True)},
    "observability": {
        "log_level": _Field(_choice("DEBUG", "INFO", "WARNING", "ERROR")),
        "log_format": _Field(_choice("json", "text")),
        "log_dir": _Field(_path_text),
        "log_to_file": _Field(_boolean),
    },
}
_REQUIRED_SECTIONS: Final[frozenset[str]] = frozenset(_SECTION_FIELDS)
_OVERLAY_SECTIONS: Final[frozenset[str]] = frozenset({*_SECTION_FIELDS, "validators"}) - {"meta"}


# ---------------------------------------------------------------------------
# Section checks
# ---------------------------------------------------------------------------


def _check_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    _flag_unknown(payload, {*_SECTION_FIELDS, "validators", "profiles"}, "", issues)

    out: dict[str, Any] = {}
    for name in sorted(_REQUIRED_SECTIONS):
        if name not in payload:
            issues.add(name, "missing required field")
            continue
        section = _object(payload[name], name, issues)
        if section is not None:
            out[name] = _check_section(section, _SECTION_FIELDS[name], name, issues, partial=False)

    validators = _object(payload.get("validators", {}), "validators", issues)
    out["validators"] = _check_validators(validators or {}, "validators", issues)

    if payload.get("profiles") is not None:
        profiles = _object(payload["profiles"], "profiles", issues)
        if profiles is not None:
            out["profiles"] = _check_profiles(profiles, issues)
    return out


def _check_section(
    payload: Mapping[str, object],
    fields: Mapping[str, _Field],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    """Parse one table; ``partial`` tables (profile overlays) may omit any field."""

    _flag_unknown(payload, set(fields), path, issues)
    out: dict[str, Any] = {}
    for name in sorted(fields):
        spec = fields[name]
        if name not in payload or (spec.nullable and payload[name] is None):
            if spec.nullable and not partial:
                out[name] = None
            elif not partial:
                issues.add(f"{path}.{name}", "missing required field")
            continue
        parsed = spec.parse(payload[name], f"{path}.{name}", issues)
        if parsed is not None:
            out[name] = parsed
    return out


def _check_validators(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, dict[str, ParameterValue]]:
    out: dict[str, dict[str, ParameterValue]] = {}
    for short_name in sorted(payload):
        table_path = f"{path}.{short_name}"
        if not _VALIDATOR_SHORT_NAME.fullmatch(short_name):
            issues.add(table_path, "validator section must be a snake_case short name")
            continue
        table = _object(payload[short_name], table_path, issues)
        if table is None:
            continue
        parameters: dict[str, ParameterValue] = {}
        for key in sorted(table):
            value = table[key]
            if _is_secret_key(key):
                issues.add(f"{table_path}.{key}", "embedded secret values are forbidden")
            elif isinstance(value, float) and not math.isfinite(value):
                issues.add(f"{table_path}.{key}", "must be finite")
            elif isinstance(value, (str, int, float, bool)):
                parameters[key] = value
            else:
                issues.add(
                    f"{table_path}.{key}",
                    f"expected string, number or boolean, got {type(value).__name__}",
                )
        out[short_name] = parameters
    return out


def _check_profiles(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name in sorted(payload):
        path = f"profiles.{name}"
        if not _PROFILE_NAME.fullmatch(name):
            issues.add(path, "profile name must match ^[a-z][a-z0-9_-]*$")
            continue
        overlay = _object(payload[name], path, issues)
        if overlay is None:
            continue
        _flag_unknown(overlay, set(_OVERLAY_SECTIONS), path, issues)
        checked: dict[str, Any] = {}
        for section_name in sorted(key for key in overlay if key in _OVERLAY_SECTIONS):
            section_path = f"{path}.{section_name}"
            section = _object(overlay[section_name], section_path, issues)
            if section is None:
                continue
            if section_name == "validators":
                checked[section_name] = _check_validators(section, section_path, issues)
            else:
                checked[section_name] = _check_section(
                    section, _SECTION_FIELDS[section_name], section_path, issues, partial=True
                )
        out[name] = checked
    return out


def _object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    bad_keys = sorted(type(key).__name__ for key in value if not isinstance(key, str))
    for type_name in bad_keys:
        issues.add(path, f"object key must be string, got {type_name}")
    return {key: item for key, item in value.items() if isinstance(key, str)}


def _flag_unknown(
    payload: Mapping[str, object], allowed: set[str], path: str, issues: _IssueCollector
) -> None:
    for key in sorted(set(payload) - allowed):
        message = "embedded secret values are forbidden" if _is_secret_key(key) else "unknown field"
        issues.add(f"{path}.{key}" if path else key, message)


def _is_secret_key(key: str) -> bool:
    snake = _SEPARATORS.sub("_", _CAMEL_BOUNDARY.sub(r"\1_\2", key.strip()).lower()).strip("_")
    if any(phrase in snake for phrase in _SECRET_PHRASES):
        return True
    return not _SECRET_WORDS.isdisjoint(snake.split("_"))


def _redact(value: object) -> object:
    if isinstance(value, Mapping):
        return redact_config(value)
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


__all__ = [
    "BUILTIN_PROFILE_NAMES",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "MapValidatorConfig",
    "PATH_FIELDS",
    "ProfileOverlay",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "redact_config",
    "validate_config",
]
