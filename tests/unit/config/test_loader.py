"""
map-validator — unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Deterministic env var path mapping and type coercion.
- Profile selection from argument or environment.
- Path normalization relative to the config file.
- Redacted effective config dumping.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from map_validator.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _sha256_json(data: dict[str, object]) -> str:
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def test_defaults_apply_without_a_config_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    loaded = load_config(environ={})

    assert loaded["validation"] == {
        "checks_filter": "",
        "contain_faults": True,
        "output_filename": "lanelet2_validation_results.json",
    }
    assert loaded["paths"]["output_dir"] is None
    assert loaded["observability"]["log_level"] == "WARNING"
    assert loaded["validators"] == {}


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(
        config_path,
        """
[validation]
checks_filter = "traffic_light"
""".strip(),
    )
    env = {"MAP_VALIDATOR_VALIDATION_CHECKS_FILTER": "lanelet"}

    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ=env)
    cli_loaded = load_config(
        config_path, environ=env, cli_overrides={"validation.checks_filter": "intersection"}
    )

    assert file_loaded["validation"]["checks_filter"] == "traffic_light"
    assert env_loaded["validation"]["checks_filter"] == "lanelet"
    assert cli_loaded["validation"]["checks_filter"] == "intersection"


def test_env_mapping_coerces_scalar_types(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(
        config_path,
        """
[validators.point_height_settings]
min_height = -10.0
require_elevation = true
""".strip(),
    )

    loaded = load_config(
        config_path,
        environ={
            "MAP_VALIDATOR_VALIDATION_CONTAIN_FAULTS": "off",
            "MAP_VALIDATOR_VALIDATORS_POINT_HEIGHT_SETTINGS_MIN_HEIGHT": "-2.5",
            "MAP_VALIDATOR_VALIDATORS_POINT_HEIGHT_SETTINGS_REQUIRE_ELEVATION": "no",
            "MAP_VALIDATOR_PATHS_OUTPUT_DIR": "results",
        },
    )

    assert loaded["validation"]["contain_faults"] is False
    assert loaded["validators"]["point_height_settings"] == {
        "min_height": -2.5,
        "require_elevation": False,
    }
    assert loaded["paths"]["output_dir"] == (tmp_path / "results").as_posix()


def test_invalid_env_coercion_raises_actionable_error(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="MAP_VALIDATOR_OBSERVABILITY_LOG_TO_FILE"):
        load_config(config_path, environ={"MAP_VALIDATOR_OBSERVABILITY_LOG_TO_FILE": "maybe"})


def test_profiles_from_argument_and_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(
        config_path,
        """
[profiles.ci.validation]
checks_filter = "mapping"
""".strip(),
    )

    strict = load_config(config_path, profile="strict", environ={})
    from_env = load_config(config_path, environ={"MAP_VALIDATOR_PROFILE": "ci"})
    permissive = load_config(config_path, profile="permissive", environ={})

    assert strict["validation"]["contain_faults"] is False
    assert from_env["validation"]["checks_filter"] == "mapping"
    assert permissive["observability"]["log_level"] == "ERROR"


def test_unknown_profile_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigValidationError, match="profile 'nope' is not defined"):
        load_config(config_path, profile="nope", environ={})


def test_cli_override_with_invalid_filter_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigValidationError, match="validation.checks_filter"):
        load_config(
            config_path, environ={}, cli_overrides={"validation.checks_filter": "mapping.(bad"}
        )


def test_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "missing.toml", environ={})

    broken = tmp_path / "broken.toml"
    _write_config(broken, "[validation")
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(broken, environ={})


def test_loader_is_deterministic_for_same_inputs(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(config_path, "")
    env = {"MAP_VALIDATOR_OBSERVABILITY_LOG_LEVEL": "INFO"}
    cli = {"paths.output_dir": "out"}

    first = load_config(config_path, environ=env, cli_overrides=cli)
    second = load_config(config_path, environ=env, cli_overrides=cli)

    assert _sha256_json(first) == _sha256_json(second)


def test_path_normalization_is_relative_to_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "map_validator.toml"
    _write_config(
        config_path,
        """
[paths]
output_dir = "results"

[observability]
log_dir = "../logs"
""".strip(),
    )

    loaded = load_config(config_path, environ={})

    assert loaded["paths"]["output_dir"] == (config_path.parent / "results").as_posix()
    assert loaded["observability"]["log_dir"] == (tmp_path / "logs").as_posix()


def test_dump_effective_config_is_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "map_validator.toml"
    _write_config(config_path, "")

    loaded = load_config(config_path, environ={})
    first = dump_effective_config(loaded)

    assert first == dump_effective_config(loaded)
    assert json.loads(first)["validation"]["contain_faults"] is True
    assert dump_effective_config(loaded, indent=2).startswith("{\n  ")
