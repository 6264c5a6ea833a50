"""Reads an installed package's own package.json."""

import json
from typing import Any

import aiofiles

from pkgcost.logging_config import get_logger
from pkgcost.schemas.stats import Externals, ManifestDetails
from pkgcost.services.workspace import Workspace

logger = get_logger(__name__)

# Node built-ins the bundler resolves to empty modules instead of externals.
STUBBED_BUILT_INS = ("fs", "net", "tls", "module", "child_process", "dns", "timers")

NODE_BUILT_INS = (
    "assert",
    "async_hooks",
    "buffer",
    "child_process",
    "cluster",
    "console",
    "constants",
    "crypto",
    "dgram",
    "diagnostics_channel",
    "dns",
    "domain",
    "events",
    "fs",
    "http",
    "http2",
    "https",
    "inspector",
    "module",
    "net",
    "os",
    "path",
    "perf_hooks",
    "process",
    "punycode",
    "querystring",
    "readline",
    "repl",
    "stream",
    "string_decoder",
    "sys",
    "timers",
    "tls",
    "trace_events",
    "tty",
    "url",
    "util",
    "v8",
    "vm",
    "wasi",
    "worker_threads",
    "zlib",
)


async def load_manifest(workspace: Workspace, package_name: str) -> dict[str, Any]:
    """Parse ``node_modules/<name>/package.json``; IO and JSON errors propagate."""
    manifest_path = workspace.package_dir(package_name) / "package.json"
    async with aiofiles.open(manifest_path, "r", encoding="utf-8") as handle:
        contents = await handle.read()
    return json.loads(contents)


def _module_flag(value: Any) -> Any:
    return value or False


def _names(field: Any) -> list[str]:
    """Key names the way JavaScript's Object.keys sees them."""
    if isinstance(field, dict):
        return list(field.keys())
    if isinstance(field, (list, str)):
        return [str(index) for index in range(len(field))]
    return []


def details_from_manifest(manifest: dict[str, Any]) -> ManifestDetails:
    return ManifestDetails(
        dependency_count=len(_names(manifest.get("dependencies"))),
        has_jsnext=_module_flag(manifest.get("jsnext:main")),
        has_js_module=_module_flag(manifest.get("module")),
        peer_dependencies=_names(manifest.get("peerDependencies")),
    )


def externals_from_manifest(manifest: dict[str, Any]) -> Externals:
    """Peer dependencies plus the Node built-ins the package does not depend on."""
    dependencies = set(_names(manifest.get("dependencies")))
    built_ins = [
        name
        for name in NODE_BUILT_INS
        if name not in dependencies and name not in STUBBED_BUILT_INS
    ]
    return Externals(packages=_names(manifest.get("peerDependencies")), built_ins=built_ins)


async def read_manifest(workspace: Workspace, package_name: str) -> ManifestDetails:
    details = details_from_manifest(await load_manifest(workspace, package_name))
    logger.debug("manifest %s: %s", package_name, details.model_dump(by_alias=True))
    return details


async def get_externals(workspace: Workspace, package_name: str) -> Externals:
    return externals_from_manifest(await load_manifest(workspace, package_name))
