"""Command-line interface router for map-validator."""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from map_validator.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
    redact_config,
)
from map_validator.errors import MapLoadError, RequirementsFormatError
from map_validator.main import ExitCode
from map_validator.map_model import load_lanelet_map
from map_validator.observability import setup_logging, shutdown_logging
from map_validator.spec_ingestion import load_requirements, requirements_from_names
from map_validator.ui.render import CLIRenderer, create_renderer
from map_validator.validators import build_default_registry
from map_validator.verification_plane import (
    ValidationOrchestrator,
    render_console_report,
    summary_payload,
    write_output_document,
)


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = int(ExitCode.INPUT_ERROR)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="map-validator",
        description=(
            "map-validator — requirement-based validation of Lanelet2 maps.\n\n"
            "Common workflows:\n"
            "  map-validator validate --map-file map.osm --requirements req.json\n"
            "  map-validator validate --map-file map.osm --checks-filter 'mapping\\..*'\n"
            "  map-validator list traffic_light\n"
            "  map-validator config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./map_validator.toml if present).",
    )
    common.add_argument(
        "--profile",
        default=None,
        help="Optional config profile overlay name.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show decision logs on stderr (log level INFO).",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Validate a map against a requirements document or a checks filter",
        description=(
            "Run validators against a Lanelet2 map.\n\n"
            "With --requirements, validators run in prerequisite order and the result is\n"
            "reported per requirement. Without it, every validator matching the checks\n"
            "filter runs independently.\n\n"
            "Exit status is 0 only when no warning or error was reported."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument(
        "--map-file", "-m", dest="map_file", required=True, help="Lanelet2 OSM map file"
    )
    validate_parser.add_argument(
        "--requirements",
        "-i",
        dest="requirements_file",
        default=None,
        help="Requirements document (JSON, or YAML by .yaml/.yml suffix)",
    )
    validate_parser.add_argument(
        "--checks-filter",
        "-c",
        dest="checks_filter",
        default=None,
        help="Comma separated regular expressions selecting validators",
    )
    validate_parser.add_argument(
        "--output-dir",
        "-o",
        dest="output_dir",
        default=None,
        help="Directory for the annotated results document",
    )
    validate_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    validate_parser.set_defaults(handler=_cmd_validate)

    # list ----------------------------------------------------------------
    list_parser = subparsers.add_parser(
        "list",
        parents=[common],
        help="List available validators",
        description="Print the validators whose names match PATTERN.",
    )
    list_parser.add_argument(
        "pattern",
        nargs="?",
        default="",
        help="Comma separated regular expressions (default: all)",
    )
    list_parser.set_defaults(handler=_cmd_list)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration (redacted)",
        description=(
            "Display the effective config after merging defaults, file, env, and profile.\n"
            "Sensitive values are redacted.\n\n"
            "Examples:\n"
            "  map-validator config\n"
            "  map-validator config --json\n"
            "  map-validator config --profile strict\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.INPUT_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    checks_filter = getattr(args, "checks_filter", None)
    if checks_filter is not None:
        overrides["validation.checks_filter"] = checks_filter
    output_dir = _optional_str(getattr(args, "output_dir", None))
    if output_dir is not None:
        overrides["paths.output_dir"] = Path(output_dir).expanduser().resolve().as_posix()
    config = _load_effective_config(args, overrides)

    validation = _section(config, "validation")
    observability = _section(config, "observability")
    handle = setup_logging(
        observability,
        run_id=_new_run_id(),
        level_override="INFO" if _flag(args, "verbose") else None,
    )
    try:
        return _run_validation(args, config, validation)
    finally:
        handle.shutdown()
        shutdown_logging()


def _run_validation(
    args: argparse.Namespace,
    config: Mapping[str, object],
    validation: Mapping[str, object],
) -> int:
    map_path = _require_str(getattr(args, "map_file", None), "map_file")
    try:
        lanelet_map = load_lanelet_map(map_path)
    except MapLoadError as exc:
        raise CLIError(str(exc)) from exc

    registry = build_default_registry()
    renderer = _get_renderer(args)
    requirements_file = _optional_str(getattr(args, "requirements_file", None))
    if requirements_file is not None:
        try:
            requirement_set = load_requirements(requirements_file)
        except RequirementsFormatError as exc:
            raise CLIError(str(exc)) from exc
    else:
        pattern = str(validation.get("checks_filter", ""))
        try:
            names = registry.available_names(pattern)
        except ValueError as exc:
            raise CLIError(str(exc)) from exc
        if not names:
            renderer.text(f"No checks found matching to '{pattern}'")
            return int(ExitCode.SUCCESS)
        requirement_set = requirements_from_names(names)

    orchestrator = ValidationOrchestrator(
        registry,
        contain_faults=bool(validation.get("contain_faults", True)),
        config=config,
    )
    outcome = orchestrator.run(requirement_set, lanelet_map)

    written: Path | None = None
    output_dir = _section(config, "paths").get("output_dir")
    if isinstance(output_dir, str):
        filename = str(validation.get("output_filename"))
        try:
            written = write_output_document(outcome, output_dir, filename)
        except OSError as exc:
            raise CLIError(f"unable to write results to {output_dir}: {exc}") from exc

    exit_code = ExitCode.SUCCESS if outcome.passed else ExitCode.VALIDATION_FAILED
    if _flag(args, "json"):
        payload: dict[str, object] = {
            "command": "validate",
            "exit_code": int(exit_code),
            "output_document": written.as_posix() if written is not None else None,
            **summary_payload(outcome),
        }
        _emit_json(payload)
        return int(exit_code)

    renderer.report(render_console_report(outcome))
    if written is not None:
        renderer.text(f"Results written to {written.as_posix()}")
    return int(exit_code)


def _cmd_list(args: argparse.Namespace) -> int:
    pattern = str(getattr(args, "pattern", "") or "")
    registry = build_default_registry()
    try:
        names = registry.available_names(pattern)
    except ValueError as exc:
        raise CLIError(str(exc)) from exc

    renderer = _get_renderer(args)
    if not names:
        renderer.text(f"No checks found matching to '{pattern}'")
        return int(ExitCode.SUCCESS)
    renderer.text("The following checks are available:")
    for name in names:
        renderer.text(name)
    return int(ExitCode.SUCCESS)


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    profile = _optional_str(getattr(args, "profile", None))

    if _flag(args, "json"):
        _emit_json(
            {"command": "config", "active_profile": profile, "config": redact_config(config)}
        )
        return int(ExitCode.SUCCESS)

    renderer = _get_renderer(args)
    renderer.kv("Active profile", profile or "(default)")
    renderer.text(dump_effective_config(config, indent=2))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"))


def _load_effective_config(
    args: argparse.Namespace, overrides: Mapping[str, object] | None = None
) -> dict[str, object]:
    config_path = _optional_str(getattr(args, "config_path", None))
    profile = _optional_str(getattr(args, "profile", None))
    try:
        return load_config(config_path, profile=profile, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc)) from exc


def _section(config: Mapping[str, object], key: str) -> Mapping[str, object]:
    section = config.get(key)
    if isinstance(section, Mapping):
        return section
    return {}


def _new_run_id() -> str:
    return f"{time.strftime('%Y%m%dT%H%M%SZ', time.gmtime())}-{os.getpid()}"


def _require_str(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CLIError(f"missing required argument: {name}")
    return value.strip()


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument")
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "run_cli"]
