"""
map-validator — runtime config loader.

File: src/map_validator/config/loader.py

Purpose
- Build the effective config of one CLI run by layering, lowest first: built-in defaults,
  the TOML file, the selected profile overlay, ``MAP_VALIDATOR_*`` environment variables,
  and CLI overrides.

Notes
- The TOML file is optional unless a path is given explicitly.
- Environment variables are typed after the value they replace; a variable whose name
  matches no known scalar setting is ignored.
- Relative paths resolve against the directory of the config file.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any, Final

from map_validator.config.schema import (
    PATH_FIELDS,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
    redact_config,
)
from map_validator.constants import DEFAULT_CONFIG_FILE, ENV_PREFIX

_PROFILE_VARIABLE: Final[str] = f"{ENV_PREFIX}PROFILE"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

# Settings whose default is ``None`` still accept an environment override.
_NULLABLE_SETTINGS: Final[dict[tuple[str, ...], type]] = {("paths", "output_dir"): str}


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the validated effective config; CLI > env > profile > file > defaults."""

    source = _config_file_location(config_path)
    variables = os.environ if environ is None else environ
    overrides = dict(cli_overrides or {})
    active_profile = _select_profile(profile, overrides, variables)

    config = assert_valid_config(
        merge_config(default_config(), _read_toml(source, required=config_path is not None))
    )
    if active_profile is not None:
        config = apply_profile_overlay(config, active_profile)

    for layer in (_environment_layer(config, variables), _cli_layer(overrides)):
        config = merge_config(config, layer)
    config = assert_valid_config(config, active_profile=active_profile)

    return assert_valid_config(
        normalize_paths(config, base_dir=source.parent), active_profile=active_profile
    )


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve every configured path, profile overlays included, against ``base_dir``."""

    normalized = merge_config({}, config)
    for location in _path_locations(normalized):
        parent = _lookup(normalized, location[:-1])
        if isinstance(parent, dict) and isinstance(parent.get(location[-1]), str):
            parent[location[-1]] = _resolve_path(parent[location[-1]], base_dir)
    return normalized


def dump_effective_config(config: Mapping[str, object], *, indent: int | None = None) -> str:
    """Deterministic JSON of the redacted config; compact unless ``indent`` is given."""

    return json.dumps(
        redact_config(config),
        sort_keys=True,
        indent=indent,
        separators=(",", ":") if indent is None else (",", ": "),
        ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def _config_file_location(config_path: str | Path | None) -> Path:
    if config_path is None:
        return Path.cwd().joinpath(DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _select_profile(
    explicit: str | None,
    cli_overrides: Mapping[str, object],
    environ: Mapping[str, str],
) -> str | None:
    candidate: object = explicit
    if candidate is None:
        candidate = cli_overrides.get("profile")
    if candidate is None:
        candidate = environ.get(_PROFILE_VARIABLE)
    if candidate is None:
        return None
    if not isinstance(candidate, str):
        raise ConfigLoadError("cli override 'profile' must be a string")
    return candidate.strip() or None


# ---------------------------------------------------------------------------
# Environment and CLI layers
# ---------------------------------------------------------------------------


def _environment_layer(config: Mapping[str, object], environ: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    settings = _environment_settings(config)
    for variable in sorted(settings):
        raw = environ.get(variable)
        if raw is None:
            continue
        location, kind = settings[variable]
        _assign(layer, location, _coerce(raw, kind, f"{variable} -> {'.'.join(location)}"))
    return layer


def _environment_settings(
    config: Mapping[str, object],
) -> dict[str, tuple[tuple[str, ...], type]]:
    settings: dict[str, tuple[tuple[str, ...], type]] = {}
    for location, value in _scalar_leaves(config):
        if location[0] == "profiles" or type(value) not in _COERCERS:
            continue
        settings[_variable_name(location)] = (location, type(value))
    for location, kind in _NULLABLE_SETTINGS.items():
        settings.setdefault(_variable_name(location), (location, kind))
    return settings


def _cli_layer(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for dotted in sorted(key for key in cli_overrides if key != "profile"):
        location = tuple(part for part in dotted.split(".") if part)
        if not location:
            raise ConfigLoadError(f"invalid CLI override key {dotted!r}")
        _assign(layer, location, cli_overrides[dotted])
    return layer


def _variable_name(location: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(location).upper()


def _coerce(raw: str, kind: type, label: str) -> object:
    try:
        return _COERCERS[kind](raw.strip())
    except ValueError as exc:
        raise ConfigLoadError(f"{label} {exc}") from exc


def _to_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("must be a boolean (true/false/1/0/yes/no/on/off)")


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError("must be an integer") from None


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError("must be a number") from None


_COERCERS: Final[dict[type, Callable[[str], object]]] = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    str: str,
}


# ---------------------------------------------------------------------------
# Nested mapping helpers
# ---------------------------------------------------------------------------


def _scalar_leaves(
    payload: Mapping[str, object], prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], object]]:
    for key in sorted(payload):
        value = payload[key]
        if isinstance(value, Mapping):
            yield from _scalar_leaves(value, (*prefix, key))
        else:
            yield (*prefix, key), value


def _path_locations(config: Mapping[str, object]) -> Iterator[tuple[str, ...]]:
    yield from PATH_FIELDS
    profiles = config.get("profiles")
    if not isinstance(profiles, Mapping):
        return
    for name in sorted(profiles):
        for field in PATH_FIELDS:
            yield ("profiles", name, *field)


def _lookup(payload: Mapping[str, object], location: tuple[str, ...]) -> object | None:
    node: object = payload
    for part in location:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _assign(target: dict[str, Any], location: tuple[str, ...], value: object) -> None:
    node = target
    for part in location[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[location[-1]] = value


def _resolve_path(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "dump_effective_config",
    "load_config",
    "normalize_paths",
]
