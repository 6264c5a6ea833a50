"""Measures a package end to end: install, inspect, build, size.

Requests for different packages run concurrently against the shared
workspace. Requests for the same package name are serialized so they never
race on the installed tree or on the generated entry file.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Dict, Optional

from pkgcost.logging_config import get_logger
from pkgcost.schemas.stats import PackageStats
from pkgcost.services.bundler import BundleBuilder
from pkgcost.services.installer import PackageInstaller
from pkgcost.services.manifest import get_externals, read_manifest
from pkgcost.services.size_extractor import extract_size
from pkgcost.services.workspace import Workspace
from pkgcost.utils.package_string import parse_package_string

logger = get_logger(__name__)


class NameLocks:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._locks


class PackageStatsService:
    """Sequences workspace, installer, manifest inspector and bundler."""

    def __init__(
        self,
        workspace: Optional[Workspace] = None,
        *,
        installer: Optional[PackageInstaller] = None,
        builder: Optional[BundleBuilder] = None,
    ):
        self.workspace = workspace or Workspace()
        self.installer = installer or PackageInstaller(self.workspace)
        self.builder = builder or BundleBuilder(self.workspace)
        self._locks = NameLocks()

    async def get_package_stats(self, package_string: str) -> PackageStats:
        """
        Install, build and measure ``package_string``.

        Args:
            package_string: Registry specifier; any version constraint is kept for install

        Returns:
            PackageStats merging manifest details with bundle sizes

        Raises:
            ValueError: If the specifier is malformed
            InstallError: If npm fails
            EntryPointError: If the entry file cannot be written
            BuildError: If webpack fails or emits no canonical asset
            OSError, json.JSONDecodeError: If the installed manifest is missing or broken
        """
        specifier = parse_package_string(package_string)
        name = specifier.name

        async with self._locks.hold(name):
            await self.workspace.ensure()
            await self.workspace.write_root_manifest(name)
            await self.installer.install(specifier.raw)

            externals = await get_externals(self.workspace, name)
            details, output = await _gather_or_cancel(
                read_manifest(self.workspace, name),
                self.builder.build(name, externals),
            )

        stats = PackageStats.merge(details, extract_size(output.assets, output.store))
        logger.info("measured %s: size=%s gzip=%s", specifier.raw, stats.size, stats.gzip)
        return stats


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Like asyncio.gather, but a failure cancels and awaits the siblings first."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


_default_service: Optional[PackageStatsService] = None


def get_default_service() -> PackageStatsService:
    global _default_service
    if _default_service is None:
        _default_service = PackageStatsService()
    return _default_service


async def get_package_stats(package_string: str) -> PackageStats:
    """Measure ``package_string`` with the process-wide service."""
    return await get_default_service().get_package_stats(package_string)
