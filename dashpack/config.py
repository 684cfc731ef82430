"""dashpack configuration.

Centralised, typed configuration for the build pipeline.  All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

# Directory this package is installed in.  Used as the default output
# location and as the module path added to the generated entry script.
INSTALL_DIR = Path(__file__).resolve().parent


class ToolsConfig(BaseModel):
    """Command lines for the external Node.js tooling."""

    scaffold_command: list[str] = Field(default=["npx", "create-electron-app"])
    build_command: list[str] = Field(default=["npm", "run", "make"])
    prerequisites: list[str] = Field(
        default=["npx", "npm"],
        description="Launchers that must be on PATH before anything is written",
    )
    scaffold_timeout: int = Field(default=600, ge=10, description="Scaffold timeout in seconds")
    build_timeout: int = Field(default=1800, ge=10, description="Build timeout in seconds")


class RuntimeConfig(BaseModel):
    """Names and defaults tied to the dashboard runtime and the bridge file."""

    module_name: str = Field(default="UniversalDashboard.Community")
    module_path: Optional[Path] = Field(
        default=None,
        description="Explicit runtime location; skips the PSModulePath search",
    )
    entry_file_name: str = Field(default="dashboard.ps1")
    bridge_file_name: str = Field(default="index.js")
    default_port: int = Field(default=80, ge=1, le=65535)
    maker_pattern: str = Field(default="squirrel")


class Config(BaseModel):
    """Global dashpack configuration.

    Created once by the CLI (or by ``dashpack.build``) and handed to the
    ``Pipeline``, which passes the relevant parts on to each stage.
    """

    output_dir: Path = Field(default=INSTALL_DIR)
    install_dir: Path = Field(default=INSTALL_DIR)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    quiet: bool = Field(default=False)

    @property
    def bridge_template_path(self) -> Path:
        """Path to the bundled bridge file template."""
        return INSTALL_DIR / "templates" / self.runtime.bridge_file_name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            DASHPACK_OUTPUT_DIR, DASHPACK_RUNTIME_MODULE, DASHPACK_RUNTIME_PATH,
            DASHPACK_DEFAULT_PORT, DASHPACK_SCAFFOLD_TIMEOUT, DASHPACK_BUILD_TIMEOUT.
        """
        tools_kwargs: dict[str, Any] = {}
        if os.environ.get("DASHPACK_SCAFFOLD_TIMEOUT"):
            tools_kwargs["scaffold_timeout"] = int(os.environ["DASHPACK_SCAFFOLD_TIMEOUT"])
        if os.environ.get("DASHPACK_BUILD_TIMEOUT"):
            tools_kwargs["build_timeout"] = int(os.environ["DASHPACK_BUILD_TIMEOUT"])

        runtime_kwargs: dict[str, Any] = {}
        if os.environ.get("DASHPACK_RUNTIME_MODULE"):
            runtime_kwargs["module_name"] = os.environ["DASHPACK_RUNTIME_MODULE"]
        if os.environ.get("DASHPACK_RUNTIME_PATH"):
            runtime_kwargs["module_path"] = Path(os.environ["DASHPACK_RUNTIME_PATH"])
        if os.environ.get("DASHPACK_DEFAULT_PORT"):
            runtime_kwargs["default_port"] = int(os.environ["DASHPACK_DEFAULT_PORT"])

        kwargs: dict[str, Any] = {}
        if os.environ.get("DASHPACK_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["DASHPACK_OUTPUT_DIR"])

        return cls(
            tools=ToolsConfig(**tools_kwargs),
            runtime=RuntimeConfig(**runtime_kwargs),
            **kwargs,
        )
