"""Output rendering for the map-validator CLI.

File: src/map_validator/ui/render.py

Purpose
- Thin rendering layer for the console report with optional ANSI color.
- Respect the NO_COLOR environment variable and the --no-color CLI flag.
- Color is only attempted on a TTY; captured output is always plain text.
"""

from __future__ import annotations

import os
import re
import sys
from typing import TYPE_CHECKING, Final, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

_RESET: Final[str] = "\033[0m"
_GREEN: Final[str] = "\033[32m"
_YELLOW: Final[str] = "\033[33m"
_RED: Final[str] = "\033[31m"
_CYAN: Final[str] = "\033[36m"
_BOLD: Final[str] = "\033[1m"

_STATUS_PATTERN: Final[re.Pattern[str]] = re.compile(r"\b(Passed|Failed)\b")
_SEVERITY_PREFIX: Final[dict[str, str]] = {
    "Error": _RED,
    "Warning": _YELLOW,
    "Info": _CYAN,
}


def _color_allowed(no_color_flag: bool, stream: TextIO) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class CLIRenderer:
    """Plain-text console renderer with optional status coloring."""

    def __init__(self, *, no_color: bool = False, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._color = _color_allowed(no_color, self._stream)

    @property
    def color_enabled(self) -> bool:
        return self._color

    def text(self, line: str) -> None:
        """Print a plain text line."""

        print(line, file=self._stream)

    def heading(self, text: str) -> None:
        print(self._paint(text, _BOLD), file=self._stream)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}", file=self._stream)

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}", file=self._stream)

    def report(self, lines: Sequence[str]) -> None:
        """Print report lines, coloring Passed/Failed markers and issue severities."""

        for line in lines:
            print(self.colorize_report_line(line), file=self._stream)

    def colorize_report_line(self, line: str) -> str:
        if not self._color:
            return line
        stripped = line.lstrip()
        for severity, color in _SEVERITY_PREFIX.items():
            if stripped.startswith(f"{severity} ["):
                return self._paint(line, color)
        return _STATUS_PATTERN.sub(
            lambda match: self._paint(
                match.group(1), _GREEN if match.group(1) == "Passed" else _RED
            ),
            line,
        )

    def _paint(self, text: str, color: str) -> str:
        if not self._color:
            return text
        return f"{color}{text}{_RESET}"


def create_renderer(*, no_color: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color)


__all__ = ["CLIRenderer", "create_renderer"]
