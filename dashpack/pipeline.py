"""dashpack pipeline orchestrator.

Turns a PowerShell Universal Dashboard script into an Electron desktop app:

Stage 1: RESOLVE   -- Check npx/npm, resolve the source and output paths.
Stage 2: SCAFFOLD  -- Run ``npx create-electron-app <name>`` in a clean directory.
Stage 3: INSTALL   -- Copy the dashboard and the bundled ``index.js`` bridge file.
Stage 4: BOOTSTRAP -- Prepend the module preamble, fill in host and port tokens.
Stage 5: PACKAGE   -- Copy the runtime module, brand the installer, ``npm run make``.

Usage::

    dashpack ./my-dashboard --name my-app
    python -m dashpack.pipeline dashboard.ps1 --name my-app --host legacy --skip-build
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Any, Callable, Optional

from rich.markup import escape
from rich.panel import Panel

from .config import Config
from .errors import PackagerError
from .models import BuildRequest, BuildResult, ResolvedSource, ScaffoldedProject
from .runner import CommandRunner
from .stages import (
    AssetPatcher,
    InstalledSource,
    ScaffoldInvoker,
    SourceInstaller,
    build_preamble,
    check_prerequisites,
    detect_port,
    install_runtime,
    locate_runtime,
    patch_bridge_file,
    resolve_branding_file,
    resolve_output_dir,
    resolve_source,
    write_entry_script,
)
from .utils import (
    STAGE_NAMES,
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)


class Pipeline:
    """Runs the five build stages in order for one ``BuildRequest``.

    The pipeline is fail-fast: the first ``PackagerError`` stops the run and
    propagates.  Whatever was already written under the output directory is
    left in place for inspection.

    Attributes:
        config: Global configuration.
        runner: Executes the external Node.js tools.
    """

    def __init__(self, config: Config | None = None, runner: CommandRunner | None = None) -> None:
        self.config = config or Config()
        self.runner = runner or CommandRunner()
        console.quiet = self.config.quiet

        tools = self.config.tools
        self.scaffolder = ScaffoldInvoker(
            self.runner, command=tools.scaffold_command, timeout=tools.scaffold_timeout
        )
        self.installer = SourceInstaller(
            self.config.bridge_template_path, self.config.runtime.entry_file_name
        )
        self.patcher = AssetPatcher(
            self.runner,
            build_command=tools.build_command,
            timeout=tools.build_timeout,
            maker_pattern=self.config.runtime.maker_pattern,
        )

    # ------------------------------------------------------------------
    # Stage driver
    # ------------------------------------------------------------------

    def _stage(self, number: int, durations: dict[str, float], fn: Callable[[], Any]) -> Any:
        name = STAGE_NAMES[number]
        print_stage_header(number, name)
        start = time.monotonic()
        try:
            result = fn()
        except PackagerError:
            elapsed = time.monotonic() - start
            print_error(f"Stage {number} ({name}) FAILED after {format_duration(elapsed)}")
            raise
        elapsed = time.monotonic() - start
        durations[name] = elapsed
        print_success(f"Stage {number} ({name}) completed in {format_duration(elapsed)}")
        return result

    def build(self, request: BuildRequest) -> BuildResult:
        """Execute every stage for *request*.

        Returns:
            A ``BuildResult`` describing the project and where the artifacts
            were written.

        Raises:
            PackagerError: The first failure from any stage.
        """
        pipeline_start = time.monotonic()
        durations: dict[str, float] = {}
        runtime = self.config.runtime

        console.print(
            Panel(
                f"[bold bright_cyan]dashpack[/bold bright_cyan]\n"
                f"App     : {request.app_name}\n"
                f"Source  : {escape(str(request.source_path))}\n"
                f"Host    : {request.runtime_host.value}",
                title="[bold]Build Start[/bold]",
                border_style="bright_cyan",
            )
        )

        # Stage 1 -----------------------------------------------------------
        def _resolve() -> tuple[ResolvedSource, Path, Optional[Path], Optional[Path]]:
            check_prerequisites(self.config.tools.prerequisites)
            source = resolve_source(request.source_path, runtime.entry_file_name)
            output_dir = resolve_output_dir(request.output_dir, self.config.output_dir)
            setup_icon = (
                resolve_branding_file(request.setup_icon_path, "Setup icon")
                if request.setup_icon_path is not None
                else None
            )
            loading_image = (
                resolve_branding_file(request.loading_image_path, "Loading image")
                if request.loading_image_path is not None
                else None
            )
            console.print(f"  Entry file : {source.entry_file}")
            console.print(f"  Output dir : {output_dir}")
            return source, output_dir, setup_icon, loading_image

        source, output_dir, setup_icon, loading_image = self._stage(1, durations, _resolve)

        # Stage 2 -----------------------------------------------------------
        project: ScaffoldedProject = self._stage(
            2, durations, lambda: self.scaffolder.scaffold(output_dir, request.app_name)
        )

        # Stage 3 -----------------------------------------------------------
        installed: InstalledSource = self._stage(
            3, durations, lambda: self.installer.install(source, project, output_dir)
        )

        # Stage 4 -----------------------------------------------------------
        def _bootstrap() -> tuple[int, bool]:
            preamble = build_preamble(self.config.install_dir, runtime.module_name)
            write_entry_script(installed.entry_file, installed.entry_text, preamble)

            detected = detect_port(installed.entry_text, default=None)
            if request.port is not None:
                port = request.port
            elif detected is not None:
                port = detected
            else:
                port = runtime.default_port
                print_warning(f"  No -Port found on Start-UDDashboard -Wait; using {port}")
            patch_bridge_file(
                installed.bridge_file, request.runtime_host, port, installed.entry_file.name
            )
            console.print(f"  Host {request.runtime_host.value}, port {port}")
            return port, request.port is None and detected is not None

        port, port_detected = self._stage(4, durations, _bootstrap)

        # Stage 5 -----------------------------------------------------------
        def _package() -> tuple[Path, dict[str, str], bool]:
            runtime_dir = locate_runtime(runtime.module_name, override=runtime.module_path)
            install_runtime(runtime_dir, project.source_dir, runtime.module_name)
            branding = self.patcher.apply_branding(
                project,
                icon_url=request.icon_url,
                setup_icon=setup_icon,
                loading_image=loading_image,
                exclude=[project.source_dir / runtime.module_name],
            )
            if request.skip_build:
                console.print("  [yellow]Skipping build (--skip-build)[/yellow]")
                return runtime_dir, branding, False
            self.patcher.build(project)
            return runtime_dir, branding, True

        runtime_dir, branding, built = self._stage(5, durations, _package)

        result = BuildResult(
            project=project,
            port=port,
            port_detected=port_detected,
            runtime_dir=runtime_dir,
            branding=branding,
            built=built,
            stage_durations=durations,
        )
        self._print_final_summary(result, time.monotonic() - pipeline_start)
        return result

    def _print_final_summary(self, result: BuildResult, elapsed: float) -> None:
        summary = {
            "Project": str(result.project.root_dir),
            "Port": f"{result.port} ({'detected' if result.port_detected else 'not detected'})",
            "Runtime": str(result.runtime_dir),
            "Branding": ", ".join(result.branding) or "(none)",
            "Artifacts": str(result.artifact_dir) if result.built else "(build skipped)",
            "Duration": format_duration(elapsed),
        }
        print_summary_table(summary, title="Build Summary")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build(
    source_path: str | Path,
    app_name: str,
    output_dir: str | Path | None = None,
    runtime_host: str = "primary",
    icon_url: str | None = None,
    setup_icon_path: str | Path | None = None,
    loading_image_path: str | Path | None = None,
    *,
    port: int | None = None,
    skip_build: bool = False,
    config: Config | None = None,
    runner: CommandRunner | None = None,
) -> Path:
    """Package a dashboard script as an Electron app.

    Returns:
        The directory the build tool writes installers to
        (``<output_dir>/<app_name>/out/make``).

    Raises:
        PackagerError: On any failure; see ``dashpack.errors``.
        pydantic.ValidationError: If the arguments are malformed.
    """
    request = BuildRequest(
        source_path=Path(source_path),
        app_name=app_name,
        output_dir=Path(output_dir) if output_dir is not None else None,
        runtime_host=runtime_host,
        icon_url=icon_url,
        setup_icon_path=Path(setup_icon_path) if setup_icon_path is not None else None,
        loading_image_path=Path(loading_image_path) if loading_image_path is not None else None,
        port=port,
        skip_build=skip_build,
    )
    return Pipeline(config or Config.from_env(), runner).build(request).artifact_dir


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``dashpack`` and ``python -m dashpack.pipeline``."""
    import argparse

    from pydantic import ValidationError

    parser = argparse.ArgumentParser(
        prog="dashpack",
        description="Package a Universal Dashboard script as an Electron desktop app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  dashpack dashboard.ps1 --name my-app\n"
            "  dashpack ./my-dashboard --name my-app -o ./dist --host legacy\n"
            "  dashpack ./my-dashboard --name my-app --setup-icon ./icon.ico --skip-build\n"
        ),
    )
    parser.add_argument("source", help="Entry script, or a directory containing dashboard.ps1")
    parser.add_argument("--name", "-n", required=True, help="Application name")
    parser.add_argument("--output", "-o", default=None, help="Output directory")
    parser.add_argument(
        "--host",
        default="primary",
        help="PowerShell host: primary (pwsh) or legacy (powershell)",
    )
    parser.add_argument("--icon-url", default=None, help="Remote icon URL for the installer")
    parser.add_argument("--setup-icon", default=None, help="Local .ico used for Setup.exe")
    parser.add_argument("--loading-gif", default=None, help="Local gif shown while installing")
    parser.add_argument("--port", type=int, default=None, help="Dashboard port (skips detection)")
    parser.add_argument("--skip-build", action="store_true", help="Stop before npm run make")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress progress output")

    args = parser.parse_args(argv)

    config = Config.from_env()
    config.quiet = args.quiet

    try:
        artifact_dir = build(
            args.source,
            args.name,
            output_dir=args.output,
            runtime_host=args.host,
            icon_url=args.icon_url,
            setup_icon_path=args.setup_icon,
            loading_image_path=args.loading_gif,
            port=args.port,
            skip_build=args.skip_build,
            config=config,
        )
    except ValidationError as exc:
        console.quiet = False
        print_error(f"Invalid arguments: {escape(str(exc))}")
        sys.exit(2)
    except PackagerError as exc:
        console.quiet = False
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)

    print_success(f"Build complete: {artifact_dir}")


if __name__ == "__main__":
    main()
