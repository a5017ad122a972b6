"""
map-validator — in-process CLI router tests

File: tests/unit/ui/test_cli.py

Purpose
- Exercise ``run_cli`` routing, exit codes, and stdout contracts without a subprocess.

What this test file should cover
- ``list`` with and without a pattern, including an invalid regular expression.
- ``config`` text and ``--json`` output, unknown profile rejection.
- ``validate`` against the sample map in requirements mode and filter mode.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from map_validator.main import ExitCode
from map_validator.ui.cli import CLIError, build_parser, run_cli

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
SAMPLE_MAP = DATA_DIR / "sample_map.osm"
REQUIREMENTS = DATA_DIR / "requirements.json"

ALL_CHECKS = (
    "mapping.intersection.turn_direction_tagging",
    "mapping.lanelet.point_height_settings",
    "mapping.traffic_light.correct_facing",
)


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("MAP_VALIDATOR_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("NO_COLOR", "1")


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_list_prints_every_check(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["list"]) == ExitCode.SUCCESS

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["The following checks are available:", *ALL_CHECKS]


def test_list_with_pattern(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["list", "traffic_light, point_height"]) == ExitCode.SUCCESS

    lines = capsys.readouterr().out.splitlines()
    assert lines[1:] == [
        "mapping.lanelet.point_height_settings",
        "mapping.traffic_light.correct_facing",
    ]


def test_list_without_matches(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["list", "^nothing$"]) == ExitCode.SUCCESS
    assert capsys.readouterr().out == "No checks found matching to '^nothing$'\n"


def test_list_with_invalid_pattern_is_an_input_error(
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert run_cli(["list", "["]) == ExitCode.INPUT_ERROR
    assert capsys.readouterr().err.startswith("error: invalid checks filter '['")


def test_config_json_reports_defaults(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["config", "--json"]) == ExitCode.SUCCESS

    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "config"
    assert payload["active_profile"] is None
    assert payload["config"]["validation"]["contain_faults"] is True


def test_config_text_with_profile(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["config", "--profile", "strict"]) == ExitCode.SUCCESS

    out = capsys.readouterr().out
    assert out.startswith("Active profile: strict\n")
    assert '"contain_faults": false' in out


def test_unknown_profile_is_an_input_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["config", "--profile", "nope"]) == ExitCode.INPUT_ERROR
    assert "profile 'nope' is not defined" in capsys.readouterr().err


def test_missing_explicit_config_file(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["config", "--config", "absent.toml"]) == ExitCode.INPUT_ERROR
    assert "config file not found" in capsys.readouterr().err


def test_validate_with_requirements_writes_annotated_document(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(
        [
            "validate",
            "--map-file",
            str(SAMPLE_MAP),
            "--requirements",
            str(REQUIREMENTS),
            "--output-dir",
            "out",
        ]
    )

    assert exit_code == ExitCode.SUCCESS
    target = (tmp_path / "out").resolve() / "lanelet2_validation_results.json"
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "[lanelet_geometry] Passed"
    assert "No issues were found." in lines
    assert lines[-1] == f"Results written to {target.as_posix()}"

    document = json.loads(target.read_text(encoding="utf-8"))
    assert [requirement["passed"] for requirement in document["requirements"]] == [True, True]
    facing = document["requirements"][1]["validators"][0]
    assert facing["name"] == "mapping.traffic_light.correct_facing"
    assert facing["issues"] == []


def test_validate_json_payload(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(
        ["validate", "-m", str(SAMPLE_MAP), "-i", str(REQUIREMENTS), "--json"]
    )

    assert exit_code == ExitCode.SUCCESS
    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "validate"
    assert payload["exit_code"] == 0
    assert payload["output_document"] is None
    assert payload["order"] == [
        "mapping.lanelet.point_height_settings",
        "mapping.intersection.turn_direction_tagging",
        "mapping.traffic_light.correct_facing",
    ]
    assert payload["excluded"] == []
    assert payload["totals"] == {"errors": 0, "warnings": 0, "infos": 0}


def test_validate_by_checks_filter(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["validate", "-m", str(SAMPLE_MAP), "-c", "traffic_light", "--json"])

    assert exit_code == ExitCode.SUCCESS
    payload = json.loads(capsys.readouterr().out)
    (requirement,) = payload["requirements"]
    assert requirement["id"] == "checks_filter"
    assert [run["name"] for run in requirement["validators"]] == [
        "mapping.traffic_light.correct_facing"
    ]


def test_verbose_sends_decision_logs_to_stderr_only(
    capsys: pytest.CaptureFixture[str],
) -> None:
    quiet_code = run_cli(["validate", "-m", str(SAMPLE_MAP), "-c", "traffic_light"])
    quiet = capsys.readouterr()
    verbose_code = run_cli(["validate", "-m", str(SAMPLE_MAP), "-c", "traffic_light", "-v"])
    verbose = capsys.readouterr()

    assert quiet_code == verbose_code == ExitCode.SUCCESS
    assert "validation_pass_completed" not in quiet.err
    assert "validation_pass_completed" in verbose.err
    assert verbose.out == quiet.out


def test_validate_filter_without_matches(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["validate", "-m", str(SAMPLE_MAP), "-c", "^nothing$"])

    assert exit_code == ExitCode.SUCCESS
    assert capsys.readouterr().out == "No checks found matching to '^nothing$'\n"


def test_validate_missing_map_is_an_input_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["validate", "-m", str(tmp_path / "absent.osm")])

    assert exit_code == ExitCode.INPUT_ERROR
    assert capsys.readouterr().err.startswith("error: ")


def test_validate_malformed_requirements_is_an_input_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text('{"requirements": [{"validators": []}]}', encoding="utf-8")

    exit_code = run_cli(["validate", "-m", str(SAMPLE_MAP), "-i", str(broken)])

    assert exit_code == ExitCode.INPUT_ERROR
    assert capsys.readouterr().out == ""


def test_cli_error_carries_exit_code() -> None:
    error = CLIError("boom", exit_code=3)
    assert str(error) == "boom"
    assert error.exit_code == 3
