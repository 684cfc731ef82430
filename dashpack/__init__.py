"""dashpack -- package a Universal Dashboard script as an Electron desktop app.

Quick usage::

    import dashpack

    artifacts = dashpack.build("./my-dashboard", "my-app", icon_url="https://example.com/app.ico")

Key classes:
    Pipeline       - Runs the five build stages for one request
    BuildRequest   - Validated caller input
    Config         - Tool command lines, timeouts, runtime names
    CommandRunner  - Blocking subprocess execution for npx/npm
"""

from .config import Config
from .errors import (
    ConfigPatchError,
    DependencyMissingError,
    ExternalToolError,
    InputNotFoundError,
    PackagerError,
    PrerequisiteMissingError,
    SourceEncodingError,
)
from .models import BuildRequest, BuildResult, ResolvedSource, RuntimeHost, ScaffoldedProject
from .pipeline import Pipeline, build
from .runner import CommandResult, CommandRunner

__version__ = "0.1.0"

__all__ = [
    "build",
    "Pipeline",
    "Config",
    "BuildRequest",
    "BuildResult",
    "ResolvedSource",
    "ScaffoldedProject",
    "RuntimeHost",
    "CommandRunner",
    "CommandResult",
    # Errors
    "PackagerError",
    "PrerequisiteMissingError",
    "InputNotFoundError",
    "DependencyMissingError",
    "ExternalToolError",
    "ConfigPatchError",
    "SourceEncodingError",
]
