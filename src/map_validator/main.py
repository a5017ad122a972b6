"""Process entrypoint: run the CLI and map every outcome to a stable exit code."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    SUCCESS = 0
    VALIDATION_FAILED = 1
    INPUT_ERROR = 2
    INTERNAL_ERROR = 3


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m map_validator`` and the console script."""

    try:
        from map_validator.ui.cli import run_cli

        return _as_exit_code(run_cli(argv))
    except SystemExit as exc:
        return _as_exit_code(exc.code)
    except BaseException as exc:  # noqa: BLE001
        exit_code = _route_exception(exc)
        if exit_code is ExitCode.INTERNAL_ERROR:
            traceback.print_exception(exc, file=sys.stderr)
        else:
            print(f"error: {str(exc).strip() or type(exc).__name__}", file=sys.stderr)
        return int(exit_code)


def _as_exit_code(raw: object) -> int:
    if raw is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw, int) and raw in {code.value for code in ExitCode}:
        return raw
    if isinstance(raw, str) and raw.strip():
        print(raw.strip(), file=sys.stderr)
    return int(ExitCode.INTERNAL_ERROR)


def _route_exception(exc: BaseException) -> ExitCode:
    """First decisive exception along the cause chain wins."""

    from map_validator.config import ConfigLoadError, ConfigValidationError
    from map_validator.errors import (
        MapLoadError,
        RequirementsFormatError,
        ValidatorExecutionFault,
        ValidatorRunStateError,
    )

    input_errors = (ConfigLoadError, ConfigValidationError, MapLoadError, RequirementsFormatError)
    for link in _cause_chain(exc):
        # A check's own exception is never an input problem, whatever its type.
        if isinstance(link, (ValidatorExecutionFault, ValidatorRunStateError)):
            return ExitCode.INTERNAL_ERROR
        if isinstance(link, (*input_errors, OSError)):
            return ExitCode.INPUT_ERROR
    return ExitCode.INTERNAL_ERROR


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    visited: set[int] = set()
    link: BaseException | None = exc
    while link is not None and id(link) not in visited:
        visited.add(id(link))
        yield link
        if link.__cause__ is not None:
            link = link.__cause__
        elif not link.__suppress_context__:
            link = link.__context__
        else:
            link = None


__all__ = ["ExitCode", "cli_entrypoint"]
