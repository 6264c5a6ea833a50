"""Tests for npm installation."""

from pathlib import Path

import pytest

from pkgcost.exceptions import InstallError
from pkgcost.services.commands import CommandResult
from pkgcost.services.installer import InstallFlags, PackageInstaller
from pkgcost.services.workspace import Workspace
from tests.fakes import FakeRunner


def test_flags_render_locked_down_install():
    flags = InstallFlags(cache_dir=Path("/ws/cache"))

    assert flags.to_args() == [
        "--cache=/ws/cache",
        "--no-package-lock",
        "--no-shrinkwrap",
        "--omit=optional",
        "--no-bin-links",
        "--prefer-offline",
        "--progress=false",
        "--loglevel=error",
        "--ignore-scripts",
        "--save-exact",
        "--fetch-retries=0",
        "--fetch-retry-factor=0",
        "--json",
    ]
    assert flags.version == 1


def test_flags_can_be_relaxed():
    flags = InstallFlags(cache_dir=Path("/c"), prefer_offline=False, json=False, ignore_scripts=False)
    args = flags.to_args()
    assert "--prefer-offline" not in args
    assert "--json" not in args
    assert "--ignore-scripts" not in args


@pytest.mark.asyncio
async def test_install_runs_npm_in_package_prefix(tmp_path):
    workspace = Workspace(tmp_path)
    runner = FakeRunner()
    installer = PackageInstaller(workspace, npm_command="npm", runner=runner, timeout=30)

    await installer.install("react@^16.0.0")

    call = runner.calls[0]
    assert call["args"][:3] == ["npm", "install", "react@^16.0.0"]
    assert f"--cache={workspace.cache_dir}" in call["args"]
    assert call["cwd"] == workspace.install_dir("react")
    assert call["timeout"] == 30


@pytest.mark.asyncio
async def test_install_failure_keeps_raw_output(tmp_path):
    failure = CommandResult(
        args=("npm",),
        returncode=1,
        stdout='{"error": {"code": "E404"}}',
        stderr="npm ERR! 404 Not Found - GET https://registry.npmjs.org/nope",
    )
    installer = PackageInstaller(Workspace(tmp_path), npm_command="npm", runner=FakeRunner(failure))

    with pytest.raises(InstallError) as excinfo:
        await installer.install("nope")

    assert excinfo.value.cause is failure
    assert "E404" in str(excinfo.value)


@pytest.mark.asyncio
async def test_install_timeout_is_an_install_error(tmp_path):
    timed_out = CommandResult(args=("npm",), returncode=-9, stderr="Timed out after 1 seconds", timed_out=True)
    installer = PackageInstaller(Workspace(tmp_path), runner=FakeRunner(timed_out))

    with pytest.raises(InstallError, match="timed out"):
        await installer.install("slow-package")


@pytest.mark.asyncio
async def test_scoped_installs_share_cache_but_not_prefix(tmp_path):
    workspace = Workspace(tmp_path)
    runner = FakeRunner()
    installer = PackageInstaller(workspace, npm_command="npm", runner=runner)

    await installer.install("@a/bc@1.0.0")
    await installer.install("@ab/c")

    first, second = runner.calls
    assert first["cwd"] == workspace.install_dir("@a/bc")
    assert second["cwd"] == workspace.install_dir("@ab/c")
    assert first["cwd"] != second["cwd"]
    assert f"--cache={workspace.cache_dir}" in first["args"]
    assert f"--cache={workspace.cache_dir}" in second["args"]
