"""Package installation through the npm CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pkgcost.config import settings
from pkgcost.exceptions import InstallError
from pkgcost.logging_config import get_logger
from pkgcost.services.commands import CommandResult, CommandRunner, run_command
from pkgcost.services.workspace import Workspace
from pkgcost.utils.package_string import parse_package_string

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallFlags:
    """Versioned npm flag set for fast, deterministic, side-effect-free installs."""

    cache_dir: Path
    version: int = 1
    package_lock: bool = False
    shrinkwrap: bool = False
    optional: bool = False
    bin_links: bool = False
    prefer_offline: bool = True
    progress: bool = False
    loglevel: str = "error"
    ignore_scripts: bool = True
    save_exact: bool = True
    fetch_retries: int = 0
    fetch_retry_factor: int = 0
    json: bool = True

    def to_args(self) -> list[str]:
        # The cache must live inside the workspace for concurrent installs to work.
        args = [f"--cache={self.cache_dir}"]
        if not self.package_lock:
            args.append("--no-package-lock")
        if not self.shrinkwrap:
            args.append("--no-shrinkwrap")
        if not self.optional:
            args.append("--omit=optional")
        if not self.bin_links:
            args.append("--no-bin-links")
        if self.prefer_offline:
            args.append("--prefer-offline")
        args.append(f"--progress={str(self.progress).lower()}")
        args.append(f"--loglevel={self.loglevel}")
        if self.ignore_scripts:
            args.append("--ignore-scripts")
        if self.save_exact:
            args.append("--save-exact")
        args.append(f"--fetch-retries={self.fetch_retries}")
        args.append(f"--fetch-retry-factor={self.fetch_retry_factor}")
        if self.json:
            args.append("--json")
        return args


class PackageInstaller:
    """Installs each package into its own prefix, sharing the workspace cache."""

    def __init__(
        self,
        workspace: Workspace,
        *,
        npm_command: Optional[str] = None,
        flags: Optional[InstallFlags] = None,
        runner: CommandRunner = run_command,
        timeout: Optional[float] = None,
    ):
        self.workspace = workspace
        self.npm_command = npm_command or settings.npm_command
        self.flags = flags or InstallFlags(cache_dir=workspace.cache_dir)
        self._runner = runner
        self.timeout = timeout if timeout is not None else settings.install_timeout_seconds

    def command(self, package_specifier: str) -> list[str]:
        return [self.npm_command, "install", package_specifier, *self.flags.to_args()]

    async def install(self, package_specifier: str) -> CommandResult:
        """
        Install ``package_specifier`` (version constraint preserved) into its prefix.

        The prefix manifest must already exist (``Workspace.write_root_manifest``).

        Raises:
            InstallError: carrying the CommandResult when npm fails or times out
        """
        package_name = parse_package_string(package_specifier).name
        logger.debug("install start %s", package_specifier)
        result = await self._runner(
            self.command(package_specifier),
            cwd=self.workspace.install_dir(package_name),
            timeout=self.timeout,
        )
        if not result.ok:
            logger.warning(
                "install failed %s (exit %s%s)",
                package_specifier,
                result.returncode,
                ", timed out" if result.timed_out else "",
            )
            raise InstallError(result, f"InstallError: {package_specifier}: {_summary(result)}")
        logger.debug("install finish %s", package_specifier)
        return result


def _summary(result: CommandResult) -> str:
    if result.timed_out:
        return "installer timed out"
    text = result.output
    return text.splitlines()[0][:200] if text else f"exit status {result.returncode}"
