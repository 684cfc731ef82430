"""Runtime copy, installer branding, and the final Electron Forge build.

The dashboard runtime is found the way PowerShell finds modules: each
``PSModulePath`` entry may hold ``<Module>/<Module>.psd1`` or
``<Module>/<version>/<Module>.psd1``.  Branding is written into the Squirrel
maker's ``config`` block of the scaffold's ``package.json``.
"""

from __future__ import annotations

import filecmp
import os
import re
import shutil
from pathlib import Path
from typing import Any

from ..errors import ConfigPatchError, DependencyMissingError
from ..models import ScaffoldedProject
from ..runner import CommandRunner
from ..utils import console, is_relative_to, load_json, save_json

ICON_URL_KEY = "iconUrl"
SETUP_ICON_KEY = "setupIcon"
LOADING_GIF_KEY = "loadingGif"


# ---------------------------------------------------------------------------
# Runtime module discovery
# ---------------------------------------------------------------------------


def module_search_paths(env: dict[str, str] | None = None) -> list[Path]:
    """Split ``PSModulePath`` into directories, dropping empty entries."""
    environ = os.environ if env is None else env
    raw = environ.get("PSModulePath", "")
    return [Path(entry) for entry in raw.split(os.pathsep) if entry.strip()]


def _version_key(name: str) -> tuple[int, ...]:
    parts = re.findall(r"\d+", name)
    return tuple(int(p) for p in parts) if parts else (0,)


def find_module_base(module_dir: Path, module_name: str) -> Path | None:
    """Return the directory holding ``<module_name>.psd1``, if any.

    Checks *module_dir* itself, then its version subdirectories (highest
    version wins).
    """
    manifest = f"{module_name}.psd1"
    if not module_dir.is_dir():
        return None
    if (module_dir / manifest).is_file():
        return module_dir

    versions = [
        child for child in module_dir.iterdir()
        if child.is_dir() and (child / manifest).is_file()
    ]
    if not versions:
        return None
    return max(versions, key=lambda child: _version_key(child.name))


def locate_runtime(
    module_name: str,
    search_paths: list[Path] | None = None,
    override: Path | None = None,
) -> Path:
    """Locate the installed dashboard runtime module.

    Args:
        module_name: Module folder and manifest name.
        search_paths: Module roots to scan; defaults to ``PSModulePath``.
        override: Explicit module directory.  When given, nothing else is
            searched.

    Raises:
        DependencyMissingError: If no installed copy is found.
    """
    if override is not None:
        base = find_module_base(Path(override), module_name)
        if base is None:
            raise DependencyMissingError(module_name, [Path(override)])
        return base

    roots = module_search_paths() if search_paths is None else list(search_paths)
    searched: list[Path] = []
    for root in roots:
        candidate = root / module_name
        searched.append(candidate)
        base = find_module_base(candidate, module_name)
        if base is not None:
            return base

    raise DependencyMissingError(module_name, searched)


def install_runtime(runtime_dir: Path, source_dir: Path, module_name: str) -> Path:
    """Copy the runtime module into ``<source_dir>/<module_name>``."""
    target = source_dir / module_name
    if target.exists():
        shutil.rmtree(target)
    console.print(f"  Copying runtime {runtime_dir} -> {target}")
    shutil.copytree(runtime_dir, target)
    return target


# ---------------------------------------------------------------------------
# Installer branding
# ---------------------------------------------------------------------------


def stage_branding_file(
    path: Path,
    project: ScaffoldedProject,
    exclude: list[Path] | None = None,
) -> str:
    """Make a branding asset available inside ``src`` and return its reference.

    The file is looked up by name under the source folder (a directory source
    may already have brought it along); otherwise it is copied in.  Trees in
    *exclude* (the copied runtime module) are never searched, and a match with
    the same bytes as *path* is preferred over a same-named stranger.  The
    returned value is relative to the project root so it survives relocation.
    """
    source_dir = project.source_dir
    skipped = [Path(p) for p in exclude or []]
    matches = sorted(
        p for p in source_dir.rglob(path.name)
        if p.is_file() and not any(is_relative_to(p, root) for root in skipped)
    )
    identical = [p for p in matches if filecmp.cmp(p, path, shallow=False)]
    if identical:
        located = identical[0]
    elif matches:
        located = matches[0]
    else:
        located = source_dir / path.name
        shutil.copy2(path, located)
    return located.relative_to(project.root_dir).as_posix()


def find_maker(document: dict[str, Any], pattern: str) -> dict[str, Any] | None:
    """Return the first Forge maker whose ``name`` contains *pattern*."""
    config = document.get("config")
    forge = config.get("forge") if isinstance(config, dict) else None
    if not isinstance(forge, dict):
        return None
    makers = forge.get("makers")
    if not isinstance(makers, list):
        return None
    for maker in makers:
        if isinstance(maker, dict) and pattern in str(maker.get("name", "")):
            return maker
    return None


def patch_installer_config(
    document: dict[str, Any],
    branding: dict[str, str],
    maker_pattern: str = "squirrel",
    path: Path | None = None,
) -> dict[str, Any]:
    """Add *branding* keys to the matching maker's ``config`` block.

    Only the keys present in *branding* are added.  An empty mapping leaves
    the document exactly as it was.

    Raises:
        ConfigPatchError: If branding is requested but no maker matches.
    """
    if not branding:
        return document

    maker = find_maker(document, maker_pattern)
    if maker is None:
        raise ConfigPatchError(
            f"No installer maker matching '{maker_pattern}' in config.forge.makers",
            path=path or "",
        )

    maker_config = maker.setdefault("config", {})
    if not isinstance(maker_config, dict):
        raise ConfigPatchError(
            f"Maker '{maker.get('name')}' has a non-object config block",
            path=path or "",
        )
    maker_config.update(branding)
    return document


class AssetPatcher:
    """Final stage: runtime copy, branding, and ``npm run make``."""

    def __init__(
        self,
        runner: CommandRunner,
        build_command: list[str] | None = None,
        timeout: int = 1800,
        maker_pattern: str = "squirrel",
    ) -> None:
        self.runner = runner
        self.build_command = list(build_command or ["npm", "run", "make"])
        self.timeout = timeout
        self.maker_pattern = maker_pattern

    def apply_branding(
        self,
        project: ScaffoldedProject,
        icon_url: str | None = None,
        setup_icon: Path | None = None,
        loading_image: Path | None = None,
        exclude: list[Path] | None = None,
    ) -> dict[str, str]:
        """Patch ``package.json`` with whichever branding inputs were given.

        Local files are staged with :func:`stage_branding_file`; *exclude*
        lists trees under ``src`` that must not satisfy the lookup.

        Returns:
            The keys and values that were written (empty when none).
        """
        branding: dict[str, str] = {}
        if icon_url:
            branding[ICON_URL_KEY] = icon_url
        if setup_icon is not None:
            branding[SETUP_ICON_KEY] = stage_branding_file(setup_icon, project, exclude)
        if loading_image is not None:
            branding[LOADING_GIF_KEY] = stage_branding_file(loading_image, project, exclude)

        if not branding:
            return branding

        config_path = project.build_config_path
        try:
            document = load_json(config_path)
        except (OSError, ValueError) as exc:
            raise ConfigPatchError(f"Cannot read {config_path}: {exc}", path=config_path) from exc

        patch_installer_config(document, branding, self.maker_pattern, path=config_path)
        save_json(document, config_path)
        console.print(f"  Branding written to {config_path.name}: {', '.join(branding)}")
        return branding

    def build(self, project: ScaffoldedProject) -> Path:
        """Run the build tool in the project root and return the artifact dir.

        Raises:
            ExternalToolError: If the build tool fails.
        """
        self.runner.check(self.build_command, cwd=project.root_dir, timeout=self.timeout)
        return project.artifact_dir
