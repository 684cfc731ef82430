"""dashpack pipeline stages.

Each module implements one step of turning a dashboard script into an
Electron desktop app.

Key classes and functions:
    resolver   - check_prerequisites, resolve_source, resolve_output_dir
    scaffold   - ScaffoldInvoker (create-electron-app)
    install    - SourceInstaller (entry script + bridge file)
    bootstrap  - preamble injection, port detection, token substitution
    assets     - runtime copy, installer branding, npm run make
"""

from .assets import AssetPatcher, install_runtime, locate_runtime, patch_installer_config
from .bootstrap import (
    build_preamble,
    detect_port,
    inject_preamble,
    patch_bridge_file,
    substitute_tokens,
    write_entry_script,
)
from .install import InstalledSource, SourceInstaller
from .resolver import (
    check_prerequisites,
    read_entry_script,
    resolve_branding_file,
    resolve_output_dir,
    resolve_source,
)
from .scaffold import ScaffoldInvoker

__all__ = [
    # Input resolution
    "check_prerequisites",
    "resolve_source",
    "read_entry_script",
    "resolve_output_dir",
    "resolve_branding_file",
    # Scaffolding
    "ScaffoldInvoker",
    # Source installation
    "SourceInstaller",
    "InstalledSource",
    # Bootstrap injection
    "build_preamble",
    "inject_preamble",
    "detect_port",
    "substitute_tokens",
    "write_entry_script",
    "patch_bridge_file",
    # Assets and build
    "AssetPatcher",
    "locate_runtime",
    "install_runtime",
    "patch_installer_config",
]
