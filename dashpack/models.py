"""Data models for a single dashpack build.

``BuildRequest`` is the validated caller input (Pydantic v2).  The remaining
types are plain dataclasses produced by the pipeline stages and consumed by
the next one; none of them outlive a single build.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_APP_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_APP_NAME_MAX = 214


class RuntimeHost(str, Enum):
    """PowerShell host executable the packaged app launches the dashboard with."""

    PRIMARY = "pwsh"
    LEGACY = "powershell"

    @classmethod
    def parse(cls, value: "str | RuntimeHost") -> "RuntimeHost":
        """Accept a role name (``primary``/``legacy``) or an executable name."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key.endswith(".exe"):
            key = key[: -len(".exe")]
        for member in cls:
            if key in (member.name.lower(), member.value):
                return member
        valid = ", ".join(f"{m.name.lower()}/{m.value}" for m in cls)
        raise ValueError(f"Unknown runtime host '{value}' (expected one of: {valid})")


class BuildRequest(BaseModel):
    """Everything the caller supplies for one build."""

    source_path: Path = Field(..., description="Entry script, or a directory containing it")
    app_name: str = Field(..., description="Project name passed to create-electron-app")
    output_dir: Optional[Path] = Field(default=None, description="Parent directory of the project")
    runtime_host: RuntimeHost = Field(default=RuntimeHost.PRIMARY)
    icon_url: Optional[str] = Field(default=None, description="Remote icon URL for the installer")
    setup_icon_path: Optional[Path] = Field(default=None, description="Local .ico for Setup.exe")
    loading_image_path: Optional[Path] = Field(default=None, description="Local install splash gif")
    port: Optional[int] = Field(default=None, ge=1, le=65535, description="Overrides port detection")
    skip_build: bool = Field(default=False, description="Stop before running the build tool")

    @field_validator("app_name")
    @classmethod
    def _validate_app_name(cls, value: str) -> str:
        value = value.strip()
        if not value or value in (".", ".."):
            raise ValueError("app_name must not be empty")
        if len(value) > _APP_NAME_MAX:
            raise ValueError(f"app_name must be at most {_APP_NAME_MAX} characters")
        if not _APP_NAME_RE.match(value):
            raise ValueError(
                f"app_name '{value}' may only contain letters, digits, '.', '_' and '-' "
                "and must start with a letter or digit"
            )
        return value

    @field_validator("runtime_host", mode="before")
    @classmethod
    def _parse_runtime_host(cls, value: object) -> RuntimeHost:
        return RuntimeHost.parse(value)  # type: ignore[arg-type]

    @field_validator("icon_url")
    @classmethod
    def _strip_icon_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


@dataclass(frozen=True)
class ResolvedSource:
    """The entry script and, for directory sources, the tree around it.

    ``entry_text`` is the decoded script, read once during resolution.
    """

    entry_file: Path
    is_directory_source: bool
    assets_root: Path | None = None
    entry_text: str | None = None


@dataclass(frozen=True)
class ScaffoldedProject:
    """Layout of the project generated by ``create-electron-app``."""

    root_dir: Path

    @property
    def source_dir(self) -> Path:
        return self.root_dir / "src"

    @property
    def build_config_path(self) -> Path:
        return self.root_dir / "package.json"

    @property
    def artifact_dir(self) -> Path:
        """Where Electron Forge's ``make`` writes installers."""
        return self.root_dir / "out" / "make"


@dataclass
class BuildResult:
    """Outcome of a completed pipeline run."""

    project: ScaffoldedProject
    port: int
    port_detected: bool
    runtime_dir: Path
    branding: dict[str, str] = field(default_factory=dict)
    built: bool = False
    stage_durations: dict[str, float] = field(default_factory=dict)

    @property
    def artifact_dir(self) -> Path:
        return self.project.artifact_dir
