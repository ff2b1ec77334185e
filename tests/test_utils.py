"""Unit tests for utility functions (buildtools.utils).

Tests cover:
- write_text (exact bytes, parent creation)
- relative_to_root
- format_duration
- STAGE_NAMES / STAGE_COLORS constants
- Rich output helpers (print_stage_header, print_summary_table, etc.)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from buildtools import utils
from buildtools.utils import (
    STAGE_COLORS,
    STAGE_NAMES,
    echo_process_line,
    format_duration,
    print_error,
    print_stage_header,
    print_step,
    print_success,
    print_summary_table,
    relative_to_root,
    write_text,
)

pytestmark = pytest.mark.unit


class TestWriteText:
    @pytest.mark.asyncio
    async def test_creates_parents(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "out.css"
        assert await write_text(target, "x") == target
        assert target.read_text() == "x"

    @pytest.mark.asyncio
    async def test_no_newline_translation(self, tmp_path: Path):
        target = tmp_path / "crlf.txt"
        await write_text(target, "one\r\ntwo\n")
        assert target.read_bytes() == b"one\r\ntwo\n"


class TestRelativeToRoot:
    def test_inside_root(self, tmp_path: Path):
        assert relative_to_root(tmp_path / "CssBundle" / "a.css", tmp_path) == str(Path("CssBundle") / "a.css")

    def test_outside_root_falls_back(self, tmp_path: Path):
        other = tmp_path.parent / "elsewhere"
        assert relative_to_root(other, tmp_path / "project") == str(other)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0.0, "0.0s"), (3.7, "3.7s"), (65.2, "1m 5s"), (3661.0, "1h 1m 1s"), (-1.0, "0.0s")],
    )
    def test_values(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


def test_stage_constants():
    assert [STAGE_NAMES[i] for i in (1, 2, 3)] == ["INITIALIZE", "GENERATE", "BUILD"]
    assert set(STAGE_COLORS) == set(STAGE_NAMES)


class TestRichHelpers:
    def test_output_helpers_print(self, capsys):
        print_stage_header(1, "initialize")
        print_step("Wrote template [bold]package.json[/bold]")
        print_success("done [ok]")
        print_summary_table({"Bundles": "css, js"}, title="Build Results")

        out = capsys.readouterr().out
        assert "Stage 1: INITIALIZE" in out
        assert "Wrote template package.json" in out
        assert "done [ok]" in out
        assert "Build Results" in out

    def test_error_goes_to_stderr(self, capsys):
        print_error("failed [x]")
        captured = capsys.readouterr()
        assert "failed [x]" in captured.err
        assert "failed" not in captured.out

    def test_process_lines_keep_brackets(self, capsys):
        echo_process_line("stdout", "[vite] built in 120ms")
        echo_process_line("stderr", "[vite] warning")
        captured = capsys.readouterr()
        assert "[vite] built in 120ms" in captured.out
        assert "[vite] warning" in captured.err


def test_public_helpers():
    public = {name for name, value in vars(utils).items() if callable(value) and not name.startswith("_")
              and getattr(value, "__module__", None) == utils.__name__}
    assert public == {
        "write_text",
        "relative_to_root",
        "format_duration",
        "print_stage_header",
        "print_summary_table",
        "print_step",
        "print_success",
        "print_error",
        "echo_process_line",
    }
