"""Shared utility functions for BuildTools.

Provides the Rich consoles used for progress output, stage headers, summary
tables and small file-system helpers used by the generation and template
stages.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content verbatim."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")


async def write_text(path: Path, content: str) -> Path:
    """Write *content* to *path* off the event loop.

    No newline translation is applied, so the bytes on disk are the UTF-8
    encoding of *content*.
    """
    await asyncio.to_thread(_write_file, path, content)
    return path


def relative_to_root(path: Path, root: Path) -> str:
    """Render *path* relative to *root* for display, falling back to the full path."""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_NAMES: dict[int, str] = {
    1: "INITIALIZE",
    2: "GENERATE",
    3: "BUILD",
}

STAGE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_green",
    3: "bright_yellow",
}


def print_stage_header(stage: int, name: str) -> None:
    """Print a full-width rule with the stage number and name."""
    color = STAGE_COLORS.get(stage, "white")
    console.print()
    console.print(
        Rule(
            f"[bold {color}] Stage {stage}: {name.upper()} [/bold {color}]",
            style=color,
        )
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_step(message: str) -> None:
    """Print an indented progress line."""
    console.print(f"  [cyan]-[/cyan] {message}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message on stderr."""
    err_console.print(f"[bold red]{escape(message)}[/bold red]", highlight=False)


def echo_process_line(stream: str, line: str) -> None:
    """Default output sink: echo one line of a child process verbatim.

    Lines are printed without markup so bracketed tool output is not eaten.
    """
    target = err_console if stream == "stderr" else console
    target.print(line, markup=False, highlight=False, soft_wrap=True)
