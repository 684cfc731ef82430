"""Scaffold the Electron shell project with ``create-electron-app``."""

from __future__ import annotations

import shutil
from pathlib import Path

from rich.panel import Panel

from ..errors import ExternalToolError
from ..models import ScaffoldedProject
from ..runner import CommandRunner
from ..utils import console, ensure_dir, working_directory


class ScaffoldInvoker:
    """Creates a fresh project directory for each build.

    An existing ``<output_dir>/<app_name>`` is removed first, so every build
    starts from a clean scaffold instead of merging into a previous one.
    """

    def __init__(
        self,
        runner: CommandRunner,
        command: list[str] | None = None,
        timeout: int = 600,
    ) -> None:
        self.runner = runner
        self.command = list(command or ["npx", "create-electron-app"])
        self.timeout = timeout

    def clean(self, output_dir: Path, app_name: str) -> Path:
        """Remove any previous project and make sure *output_dir* exists."""
        project_root = output_dir / app_name
        if project_root.exists():
            console.print(f"  [yellow]Removing previous build[/yellow] {project_root}")
            shutil.rmtree(project_root)
        ensure_dir(output_dir)
        return project_root

    def scaffold(self, output_dir: Path, app_name: str) -> ScaffoldedProject:
        """Generate the project and return its layout.

        Raises:
            ExternalToolError: If the tool fails or leaves no ``src`` folder.
        """
        project_root = self.clean(output_dir, app_name)

        console.print(f"  Scaffolding [bold]{app_name}[/bold] in {output_dir}...")
        with working_directory(output_dir):
            self.runner.check([*self.command, app_name], timeout=self.timeout)

        project = ScaffoldedProject(root_dir=project_root)
        if not project.source_dir.is_dir():
            raise ExternalToolError(
                f"Scaffolding finished but {project.source_dir} was not created",
                command=" ".join([*self.command, app_name]),
                returncode=0,
            )

        console.print(
            Panel(
                f"[green]Project scaffolded[/green]\n"
                f"  Root:   {project.root_dir}\n"
                f"  Source: {project.source_dir}",
                title="Scaffold Ready",
                border_style="green",
            )
        )
        return project
