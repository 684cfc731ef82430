"""Blocking subprocess execution for the external Node.js tools.

``CommandRunner`` is the only place dashpack starts processes.  Stages take a
runner instance so tests can hand them a fake that records commands instead
of spawning ``npx``/``npm``.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from .errors import ExternalToolError
from .utils import console


@dataclass
class CommandResult:
    """Structured result of one external command."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def command_str(self) -> str:
        return " ".join(self.command)

    def tail(self, lines: int = 20) -> str:
        """Last *lines* lines of stderr, falling back to stdout."""
        text = self.stderr or self.stdout
        return "\n".join(text.splitlines()[-lines:])


def _resolve_executable(cmd: list[str]) -> list[str]:
    """Replace the launcher with its full path.

    On Windows ``npx``/``npm`` are ``.cmd`` shims that ``CreateProcess`` will
    not find by bare name, so the PATH lookup has to happen here.
    """
    if not cmd:
        raise ValueError("Empty command")
    resolved = shutil.which(cmd[0])
    if resolved is None:
        return list(cmd)
    return [resolved, *cmd[1:]]


class CommandRunner:
    """Runs external commands synchronously and captures their output."""

    def __init__(self, echo: bool = True) -> None:
        self.echo = echo

    def run(
        self,
        cmd: list[str],
        cwd: str | Path | None = None,
        timeout: int = 600,
    ) -> CommandResult:
        """Run *cmd* to completion.

        Args:
            cmd: Program and arguments.  No shell is involved.
            cwd: Working directory for the child; ``None`` inherits ours.
            timeout: Seconds before the child is killed.

        Returns:
            A ``CommandResult``.  A timeout yields ``returncode == -1`` and
            ``timed_out == True`` rather than an exception.
        """
        if self.echo:
            console.print(f"  [dim]$ {escape(' '.join(cmd))}[/dim]")

        start = time.monotonic()
        try:
            completed = subprocess.run(
                _resolve_executable(cmd),
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                command=list(cmd),
                returncode=-1,
                stdout=_as_text(exc.stdout),
                stderr=f"Command timed out after {timeout}s: {' '.join(cmd)}",
                duration_seconds=time.monotonic() - start,
                timed_out=True,
            )

        return CommandResult(
            command=list(cmd),
            returncode=completed.returncode,
            stdout=(completed.stdout or "").strip(),
            stderr=(completed.stderr or "").strip(),
            duration_seconds=time.monotonic() - start,
        )

    def check(
        self,
        cmd: list[str],
        cwd: str | Path | None = None,
        timeout: int = 600,
    ) -> CommandResult:
        """Like ``run`` but raise ``ExternalToolError`` on failure."""
        result = self.run(cmd, cwd=cwd, timeout=timeout)
        if not result.success:
            raise ExternalToolError(
                f"Command failed (exit {result.returncode}): {result.command_str}\n{result.tail()}",
                command=result.command_str,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result


def _as_text(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip()
    return value.strip()
