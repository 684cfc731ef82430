"""Input resolution: turn caller-supplied paths into absolute, validated ones.

Nothing in this module writes to disk.  Every problem is raised as a
``PackagerError`` so the pipeline stops before scaffolding begins.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from ..errors import InputNotFoundError, PrerequisiteMissingError, SourceEncodingError
from ..models import ResolvedSource
from ..utils import read_text_verbatim

ENTRY_ENCODING = "utf-8-sig"


def check_prerequisites(commands: list[str]) -> None:
    """Ensure every launcher in *commands* can be found on PATH.

    Raises:
        PrerequisiteMissingError: Listing every command that is missing.
    """
    missing = [cmd for cmd in commands if shutil.which(cmd) is None]
    if missing:
        raise PrerequisiteMissingError(missing)


def _absolute(path: str | Path) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(str(path)))
    return Path(os.path.abspath(expanded))


def read_entry_script(path: Path) -> str:
    """Decode the entry script, keeping its line endings and dropping a BOM.

    Raises:
        SourceEncodingError: If the file is not valid UTF-8.
    """
    try:
        return read_text_verbatim(path, encoding=ENTRY_ENCODING)
    except UnicodeDecodeError as exc:
        raise SourceEncodingError(path, "utf-8", reason=f"byte {exc.start}: {exc.reason}") from exc


def resolve_source(path: str | Path, entry_file_name: str = "dashboard.ps1") -> ResolvedSource:
    """Resolve the build source to its entry script.

    A directory must contain *entry_file_name*; a file is used as-is.  The
    script is decoded here so an unreadable file fails before any scaffolding.

    Raises:
        InputNotFoundError: If the path or the entry file is missing.
        SourceEncodingError: If the entry script is not UTF-8.
    """
    source = _absolute(path)
    if source.is_dir():
        entry = source / entry_file_name
        if not entry.is_file():
            raise InputNotFoundError(
                f"Source directory {source} does not contain {entry_file_name}",
                path=entry,
            )
        return ResolvedSource(
            entry_file=entry,
            is_directory_source=True,
            assets_root=source,
            entry_text=read_entry_script(entry),
        )

    if source.is_file():
        return ResolvedSource(
            entry_file=source, is_directory_source=False, entry_text=read_entry_script(source)
        )

    raise InputNotFoundError(f"Source path not found: {source}", path=source)


def resolve_output_dir(path: str | Path | None, default: Path) -> Path:
    """Return *path* as an absolute directory, or *default* when not given."""
    if path is None or str(path) == "":
        return _absolute(default)
    return _absolute(path)


def resolve_branding_file(path: str | Path, label: str) -> Path:
    """Resolve a local branding asset (setup icon, loading gif).

    Raises:
        InputNotFoundError: If the file does not exist.
    """
    resolved = _absolute(path)
    if not resolved.is_file():
        raise InputNotFoundError(f"{label} not found: {resolved}", path=resolved)
    return resolved
