"""Shared scratch workspace: directory layout, install prefixes and entry files.

All requests share one workspace root and one installer cache, so package
tarballs are fetched once and reused between measurements. Each package name
installs into its own prefix under ``installs/``; npm prunes anything its
manifest does not list, so a shared ``node_modules`` would lose one package
while another was being installed.
"""

import json
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from pkgcost.config import settings
from pkgcost.exceptions import EntryPointError
from pkgcost.logging_config import get_logger
from pkgcost.utils.file_handling import sanitize_filename

logger = get_logger(__name__)

ROOT_MANIFEST = {"dependencies": {}}


def safe_package_name(package_name: str) -> str:
    """Filesystem-safe, collision-free form of a package name.

    ``+`` never appears in npm package names, so ``@a/bc`` and ``@ab/c``
    stay distinct (``@a+bc`` and ``@ab+c``).
    """
    return sanitize_filename(package_name.replace("/", "+"))


class Workspace:
    """Filesystem layout rooted at the shared scratch directory."""

    def __init__(self, root: Optional[Path | str] = None):
        self.root = Path(root or settings.workspace_path).resolve()

    @property
    def cache_dir(self) -> Path:
        return self.root / "cache"

    @property
    def entries_dir(self) -> Path:
        return self.root / "entries"

    @property
    def installs_dir(self) -> Path:
        return self.root / "installs"

    def install_dir(self, package_name: str) -> Path:
        """Install prefix owned by one package name."""
        return self.installs_dir / safe_package_name(package_name)

    def node_modules(self, package_name: str) -> Path:
        return self.install_dir(package_name) / "node_modules"

    def manifest_path(self, package_name: str) -> Path:
        return self.install_dir(package_name) / "package.json"

    def package_dir(self, package_name: str) -> Path:
        """Directory of an installed package (scoped names nest one level)."""
        return self.node_modules(package_name).joinpath(*package_name.split("/"))

    def entry_point_path(self, package_name: str) -> Path:
        return self.entries_dir / f"index-{safe_package_name(package_name)}.js"

    async def ensure(self) -> None:
        """Create the root, entries and installs directories if missing."""
        for directory in (self.root, self.entries_dir, self.installs_dir):
            await aiofiles.os.makedirs(directory, exist_ok=True)

    async def write_root_manifest(self, package_name: str) -> None:
        """Reset the prefix manifest so installs never inherit ambient dependencies."""
        await aiofiles.os.makedirs(self.install_dir(package_name), exist_ok=True)
        async with aiofiles.open(self.manifest_path(package_name), "w", encoding="utf-8") as handle:
            await handle.write(json.dumps(ROOT_MANIFEST))

    async def write_entry_point(self, package_name: str) -> Path:
        """
        Write the synthetic program that imports ``package_name``.

        Args:
            package_name: Bare package name (no version)

        Returns:
            Absolute path of the entry file

        Raises:
            EntryPointError: If the file cannot be written
        """
        entry_path = self.entry_point_path(package_name)
        try:
            async with aiofiles.open(entry_path, "w", encoding="utf-8") as handle:
                await handle.write(render_entry_source(package_name))
        except OSError as exc:
            raise EntryPointError(exc) from exc
        logger.debug("entry written %s -> %s", package_name, entry_path)
        return entry_path

    async def remove_entry_point(self, entry_path: Path) -> None:
        """Best-effort removal of an entry file."""
        try:
            await aiofiles.os.remove(entry_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove entry file %s: %s", entry_path, exc)


def render_entry_source(package_name: str) -> str:
    """One-line program forcing the bundler to include the package's public entry."""
    return f"const p = require({json.dumps(package_name)}); console.log(p)\n"
