"""Shared utility functions for dashpack.

Provides the scoped working-directory switch, JSON I/O, file-system helpers
and Rich-based progress reporting used by every pipeline stage.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Working directory
# ---------------------------------------------------------------------------


@contextmanager
def working_directory(path: str | Path) -> Iterator[Path]:
    """Switch the process working directory for the duration of a block.

    The previous directory is restored on every exit path, including when the
    block raises.

    Yields:
        The directory that was switched to.
    """
    previous = Path.cwd()
    target = Path(path)
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(previous)


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file whose top level is an object.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the top-level value is not an object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at the top level of {path}")
    return data


def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically.  Nesting depth is preserved
    as-is; ``json`` has no depth limit on output.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False)
    file_path.write_text(content + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Script text I/O
# ---------------------------------------------------------------------------


def read_text_verbatim(path: str | Path, encoding: str = "utf-8") -> str:
    """Read a text file without newline translation (CRLF stays CRLF)."""
    with Path(path).open("r", encoding=encoding, newline="") as fh:
        return fh.read()


def write_text_verbatim(path: str | Path, text: str, encoding: str = "utf-8") -> None:
    """Write *text* exactly as given, with no newline translation."""
    with Path(path).open("w", encoding=encoding, newline="") as fh:
        fh.write(text)


def line_ending(text: str) -> str:
    """Return the newline convention used by *text* (``\\r\\n`` or ``\\n``)."""
    return "\r\n" if "\r\n" in text else "\n"


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def is_relative_to(path: Path, parent: Path) -> bool:
    """Return ``True`` if *path* is *parent* or lies somewhere beneath it."""
    try:
        path.resolve().relative_to(parent.resolve())
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Stage timing for the summary table: ``3.7s``, ``1m 5s``, ``1h 1m 1s``."""
    if seconds < 60:
        return f"{max(seconds, 0.0):.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_NAMES: dict[int, str] = {
    1: "RESOLVE",
    2: "SCAFFOLD",
    3: "INSTALL",
    4: "BOOTSTRAP",
    5: "PACKAGE",
}

STAGE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_green",
    3: "bright_yellow",
    4: "bright_magenta",
    5: "bright_blue",
}


def print_stage_header(stage: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    color = STAGE_COLORS.get(stage, "white")
    console.print()
    console.print(
        Rule(
            f"[bold {color}] Stage {stage}: {name.upper()} [/bold {color}]",
            style=color,
        )
    )


def print_summary_table(rows: dict[str, str], title: str = "Build Summary") -> None:
    """Print the end-of-build table (project, port, runtime, artifacts...)."""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column(overflow="fold")
    for label, value in rows.items():
        table.add_row(label, escape(str(value)))
    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
