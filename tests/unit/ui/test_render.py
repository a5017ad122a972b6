"""Console renderer: plain text when captured, ANSI coloring only on a TTY."""

from __future__ import annotations

import io

import pytest

from map_validator.ui.render import CLIRenderer, create_renderer


class _TTYStream(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def _no_color_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)


def test_captured_stream_is_plain_text() -> None:
    stream = io.StringIO()
    renderer = CLIRenderer(stream=stream)

    renderer.report(["[req] Failed", "      Error [Lanelet 7]: broken"])
    renderer.kv("Active profile", "strict")
    renderer.items(["a", "b"])

    assert not renderer.color_enabled
    assert stream.getvalue().splitlines() == [
        "[req] Failed",
        "      Error [Lanelet 7]: broken",
        "Active profile: strict",
        "  - a",
        "  - b",
    ]


def test_tty_stream_colors_status_markers_and_issue_lines() -> None:
    renderer = CLIRenderer(stream=_TTYStream())

    assert renderer.color_enabled
    assert renderer.colorize_report_line("  - a: Passed") == "  - a: \033[32mPassed\033[0m"
    assert renderer.colorize_report_line("[req] Failed") == "[req] \033[31mFailed\033[0m"
    warning = "      Warning [Lanelet 7]: missing tag"
    assert renderer.colorize_report_line(warning) == f"\033[33m{warning}\033[0m"
    assert renderer.colorize_report_line("Total errors: 0") == "Total errors: 0"


def test_no_color_flag_and_env_disable_coloring(monkeypatch: pytest.MonkeyPatch) -> None:
    assert not CLIRenderer(no_color=True, stream=_TTYStream()).color_enabled

    monkeypatch.setenv("NO_COLOR", "1")
    assert not CLIRenderer(stream=_TTYStream()).color_enabled


def test_create_renderer_writes_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    renderer = create_renderer()
    renderer.heading("Summary")

    assert capsys.readouterr().out == "Summary\n"
