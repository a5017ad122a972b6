"""UI package exports for the CLI and its console rendering."""

from map_validator.ui.cli import CLIError, build_parser, run_cli
from map_validator.ui.render import CLIRenderer, create_renderer

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "create_renderer",
    "run_cli",
]
