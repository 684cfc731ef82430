"""Bootstrap injection for the copied entry script and bridge file.

The entry script gets a two-line preamble that makes the dashboard runtime
importable.  The bridge file (the Electron main process) has its
``$PowerShellHost``, ``$Port`` and ``$EntryScript`` placeholders replaced with
literal values.  Both files keep their original line endings.
"""

from __future__ import annotations

import re
from pathlib import Path

from ..models import RuntimeHost
from ..utils import line_ending, read_text_verbatim, write_text_verbatim

HOST_TOKEN = "$PowerShellHost"
PORT_TOKEN = "$Port"
ENTRY_TOKEN = "$EntryScript"

DEFAULT_PORT = 80

# Start-UDDashboard ... -Wait ... -Port 1234 (flags in any order, one line).
_PORT_RE = re.compile(
    r"Start-UDDashboard\b(?=[^\r\n]*\s-Wait\b)[^\r\n]*?\s-Port\s+(\d+)",
    re.IGNORECASE,
)


def build_preamble(install_dir: str | Path, module_name: str) -> str:
    """Return the lines prepended to the entry script.

    PSModulePath is always ';'-separated here since the packaged app targets
    Windows regardless of where it is built.
    """
    return (
        f'$Env:PSModulePath = $Env:PSModulePath + ";{install_dir}"\n'
        f"Import-Module {module_name}\n"
    )


def inject_preamble(text: str, preamble: str) -> str:
    """Prepend *preamble* to *text*; the original text is left untouched."""
    if preamble and not preamble.endswith("\n"):
        preamble += "\n"
    return preamble + text


def detect_port(text: str, default: int | None = DEFAULT_PORT) -> int | None:
    """Find the port passed to ``Start-UDDashboard -Wait``.

    Only literal ``-Port <digits>`` arguments on the same line as the call are
    recognised; variables, splatting and multi-line argument lists fall back
    to *default*.  Pass ``default=None`` to tell a miss from a detected port.
    """
    match = _PORT_RE.search(text)
    if match is None:
        return default
    return int(match.group(1))


def substitute_tokens(text: str, replacements: dict[str, str]) -> str:
    """Replace every literal occurrence of each token.

    Longer tokens go first so ``$Port`` cannot eat the front of a longer
    ``$PortSomething`` token.
    """
    for token in sorted(replacements, key=len, reverse=True):
        text = text.replace(token, replacements[token])
    return text


def bridge_replacements(
    host: RuntimeHost, port: int, entry_name: str = "dashboard.ps1"
) -> dict[str, str]:
    return {HOST_TOKEN: host.value, PORT_TOKEN: str(port), ENTRY_TOKEN: entry_name}


def write_entry_script(path: Path, original_text: str, preamble: str) -> str:
    """Write the bootstrapped entry script to *path* and return its text.

    The preamble follows the script's own newline convention and the original
    text is written back byte for byte.
    """
    newline = line_ending(original_text)
    combined = inject_preamble(original_text, preamble.replace("\n", newline))
    write_text_verbatim(path, combined)
    return combined


def patch_bridge_file(
    path: Path, host: RuntimeHost, port: int, entry_name: str = "dashboard.ps1"
) -> str:
    """Substitute the bridge tokens in place and return the new text."""
    replacements = bridge_replacements(host, port, entry_name)
    patched = substitute_tokens(read_text_verbatim(path), replacements)
    write_text_verbatim(path, patched)
    return patched
