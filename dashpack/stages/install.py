"""Copy the user's dashboard and the bundled bridge file into the scaffold."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from ..models import ResolvedSource, ScaffoldedProject
from ..utils import console, is_relative_to
from .resolver import read_entry_script


@dataclass
class InstalledSource:
    """Files placed in the project's ``src`` folder."""

    entry_file: Path
    entry_text: str
    bridge_file: Path


def _exclude_dir(excluded: Path):
    """Build a ``copytree`` ignore callback that skips *excluded*."""
    excluded = excluded.resolve()

    def _ignore(directory: str, names: list[str]) -> set[str]:
        return {name for name in names if (Path(directory) / name).resolve() == excluded}

    return _ignore


class SourceInstaller:
    """Populates ``<project>/src`` for one build."""

    def __init__(self, bridge_template: Path, entry_file_name: str = "dashboard.ps1") -> None:
        self.bridge_template = Path(bridge_template)
        self.entry_file_name = entry_file_name

    def install(
        self,
        source: ResolvedSource,
        project: ScaffoldedProject,
        output_dir: Path | None = None,
    ) -> InstalledSource:
        """Copy the source, then the bridge file, then read the entry script.

        Args:
            source: The resolved build source.
            project: The freshly scaffolded project.
            output_dir: Build output directory.  Skipped during the copy when
                it is nested inside a directory source.

        Returns:
            The copied entry file, its text, and the copied bridge file.
        """
        source_dir = project.source_dir

        if source.is_directory_source and source.assets_root is not None:
            ignore = None
            if output_dir is not None and is_relative_to(output_dir, source.assets_root):
                ignore = _exclude_dir(output_dir)
            console.print(f"  Copying {source.assets_root} -> {source_dir}")
            shutil.copytree(source.assets_root, source_dir, ignore=ignore, dirs_exist_ok=True)
            entry_copy = source_dir / source.entry_file.relative_to(source.assets_root)
        else:
            # The bridge file launches the entry script by its configured name.
            entry_copy = source_dir / self.entry_file_name
            shutil.copy2(source.entry_file, entry_copy)

        bridge_copy = source_dir / self.bridge_template.name
        shutil.copyfile(self.bridge_template, bridge_copy)

        entry_text = source.entry_text
        if entry_text is None:
            entry_text = read_entry_script(source.entry_file)
        return InstalledSource(entry_file=entry_copy, entry_text=entry_text, bridge_file=bridge_copy)
