"""Shared pytest fixtures for the dashpack test suite.

Provides reusable fixtures for:
- Sample dashboard sources (single file and directory)
- A fake installed runtime module on a fake PSModulePath
- A fake command runner that imitates create-electron-app and npm
- Config objects pointing everything at tmp_path
"""

from __future__ import annotations

import json
import os
import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from dashpack.config import Config, RuntimeConfig, ToolsConfig
from dashpack.runner import CommandResult, CommandRunner


# ---------------------------------------------------------------------------
# Sample dashboard sources
# ---------------------------------------------------------------------------

SAMPLE_DASHBOARD = textwrap.dedent(
    """\
    $Pages = @()
    $Pages += New-UDPage -Name 'Home' -Content {
        New-UDCard -Title 'Hello' -Text 'World'
    }
    $Dashboard = New-UDDashboard -Title 'Sample' -Pages $Pages
    Start-UDDashboard -Dashboard $Dashboard -Port 10000 -Wait
    """
)


@pytest.fixture
def dashboard_text() -> str:
    return SAMPLE_DASHBOARD


@pytest.fixture
def dashboard_file(tmp_path: Path) -> Path:
    """A standalone entry script with a non-default file name."""
    path = tmp_path / "input" / "my-dashboard.ps1"
    path.parent.mkdir(parents=True)
    path.write_text(SAMPLE_DASHBOARD, encoding="utf-8")
    return path


@pytest.fixture
def dashboard_dir(tmp_path: Path) -> Path:
    """A dashboard directory with dashboard.ps1 and sibling assets."""
    root = tmp_path / "dashboard-src"
    (root / "assets").mkdir(parents=True)
    (root / "dashboard.ps1").write_text(SAMPLE_DASHBOARD, encoding="utf-8")
    (root / "pages.ps1").write_text("# more pages\n", encoding="utf-8")
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG fake")
    (root / "assets" / "setup.ico").write_bytes(b"ICO fake")
    (root / "index.js").write_text("// user file that the bridge replaces\n", encoding="utf-8")
    return root


@pytest.fixture
def branding_files(tmp_path: Path) -> dict[str, Path]:
    """Local branding assets kept outside any dashboard source."""
    root = tmp_path / "branding"
    root.mkdir()
    icon = root / "app.ico"
    icon.write_bytes(b"ICO")
    gif = root / "loading.gif"
    gif.write_bytes(b"GIF89a")
    return {"setup_icon": icon, "loading_gif": gif}


# ---------------------------------------------------------------------------
# Runtime module
# ---------------------------------------------------------------------------

RUNTIME_MODULE = "UniversalDashboard.Community"


@pytest.fixture
def module_root(tmp_path: Path) -> Path:
    """A PSModulePath entry holding two versions of the runtime module."""
    root = tmp_path / "Modules"
    for version in ("2.8.1", "2.9.0"):
        base = root / RUNTIME_MODULE / version
        (base / "bin").mkdir(parents=True)
        (base / f"{RUNTIME_MODULE}.psd1").write_text(f"@{{ ModuleVersion = '{version}' }}\n")
        (base / "bin" / "UniversalDashboard.dll").write_bytes(b"dll")
    return root


@pytest.fixture
def runtime_dir(module_root: Path) -> Path:
    return module_root / RUNTIME_MODULE / "2.9.0"


# ---------------------------------------------------------------------------
# package.json as written by create-electron-app
# ---------------------------------------------------------------------------


def forge_package_json(app_name: str) -> dict[str, Any]:
    return {
        "name": app_name,
        "productName": app_name,
        "version": "1.0.0",
        "main": "src/index.js",
        "scripts": {
            "start": "electron-forge start",
            "package": "electron-forge package",
            "make": "electron-forge make",
        },
        "config": {
            "forge": {
                "packagerConfig": {},
                "makers": [
                    {"name": "@electron-forge/maker-zip", "platforms": ["darwin"]},
                    {"name": "@electron-forge/maker-squirrel", "config": {"name": app_name}},
                    {"name": "@electron-forge/maker-deb", "config": {}},
                ],
            }
        },
        "dependencies": {"electron-squirrel-startup": "^1.0.0"},
    }


@pytest.fixture
def package_json() -> dict[str, Any]:
    return forge_package_json("sample-app")


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


class FakeRunner(CommandRunner):
    """Records commands and imitates the Node.js tools on disk.

    ``create-electron-app <name>`` creates ``<cwd>/<name>/src/index.js`` and a
    Forge ``package.json``; ``npm run make`` creates ``out/make``.  Set
    ``fail_on`` to a program argument (e.g. ``"create-electron-app"``) to make
    that command exit with code 1 instead.
    """

    def __init__(self, fail_on: str | None = None) -> None:
        super().__init__(echo=False)
        self.fail_on = fail_on
        self.calls: list[dict[str, Any]] = []

    def run(self, cmd, cwd=None, timeout=600) -> CommandResult:
        workdir = Path(cwd) if cwd else Path.cwd()
        self.calls.append({"cmd": list(cmd), "cwd": workdir, "timeout": timeout})

        if self.fail_on and self.fail_on in cmd:
            return CommandResult(command=list(cmd), returncode=1, stderr="npm ERR! simulated failure")

        if any(arg.startswith("create-electron-app") for arg in cmd):
            app_name = cmd[-1]
            src = workdir / app_name / "src"
            src.mkdir(parents=True)
            (src / "index.js").write_text("// scaffold main process\n")
            (src / "index.html").write_text("<html></html>\n")
            (workdir / app_name / "package.json").write_text(
                json.dumps(forge_package_json(app_name), indent=2)
            )
        elif cmd[-1] == "make":
            (workdir / "out" / "make" / "squirrel.windows" / "x64").mkdir(parents=True)

        return CommandResult(command=list(cmd), returncode=0, stdout="ok")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory for runners configured with ``fail_on``."""
    return FakeRunner


@pytest.fixture
def tools_on_path():
    """Pretend every prerequisite launcher is installed."""
    with patch("dashpack.stages.resolver.shutil.which", side_effect=lambda name: f"/usr/bin/{name}"):
        yield


@pytest.fixture
def config(tmp_path: Path, runtime_dir: Path) -> Config:
    """Config writing under tmp_path with the runtime pinned to the fixture module."""
    return Config(
        output_dir=tmp_path / "out",
        install_dir=tmp_path / "install",
        tools=ToolsConfig(),
        runtime=RuntimeConfig(module_path=runtime_dir.parent),
        quiet=True,
    )


@pytest.fixture(autouse=True)
def _restore_cwd():
    """Guard against a test leaving the process in another directory."""
    before = os.getcwd()
    yield
    os.chdir(before)
