"""Exception hierarchy for the dashpack build pipeline.

Every failure the pipeline can report is a ``PackagerError`` subclass so the
CLI can turn it into a one-line error message and a non-zero exit code.
Unexpected exceptions are left alone and propagate with their traceback.
"""

from __future__ import annotations

from pathlib import Path


class PackagerError(Exception):
    """Base class for all dashpack build failures."""


class PrerequisiteMissingError(PackagerError):
    """Raised when a required launcher (``npx``, ``npm``) is not on PATH.

    Detected before the pipeline touches the filesystem.
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        names = ", ".join(self.missing)
        super().__init__(
            f"Missing prerequisite command(s): {names}. "
            "Install Node.js (which provides npm and npx) and make sure it is on PATH."
        )


class InputNotFoundError(PackagerError):
    """Raised when the source path or its expected entry file does not exist."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = Path(path) if path else None
        super().__init__(message)


class SourceEncodingError(PackagerError):
    """Raised when the entry script cannot be decoded as UTF-8.

    Windows PowerShell 5 saves scripts in the ANSI code page by default; such
    a file has to be re-saved as UTF-8 before it can be packaged.
    """

    def __init__(self, path: str | Path, encoding: str = "utf-8", reason: str = "") -> None:
        self.path = Path(path)
        self.encoding = encoding
        message = f"Entry script {self.path} is not valid {encoding.upper()}"
        if reason:
            message += f" ({reason})"
        super().__init__(message + ". Re-save it as UTF-8 and try again.")


class DependencyMissingError(PackagerError):
    """Raised when the dashboard runtime module is not installed locally."""

    def __init__(self, module_name: str, searched: list[Path] | None = None) -> None:
        self.module_name = module_name
        self.searched = list(searched or [])
        message = f"Runtime module '{module_name}' is not installed on this machine."
        if self.searched:
            locations = "\n".join(f"  - {p}" for p in self.searched)
            message += f"\nSearched:\n{locations}"
        super().__init__(message)


class ExternalToolError(PackagerError):
    """Raised when the scaffolding or build tool exits with a non-zero code."""

    def __init__(self, message: str, command: str = "", returncode: int = -1, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ConfigPatchError(PackagerError):
    """Raised when the scaffold's ``package.json`` cannot be patched."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = Path(path) if path else None
        super().__init__(message)
