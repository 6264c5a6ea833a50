"""Toolchain validation and health checks."""

import logging
from pathlib import Path

from pkgcost.config import settings
from pkgcost.services.commands import CommandRunner, run_command

logger = logging.getLogger("pkgcost.startup")

# Packages the generated build program loads from the toolchain.
TOOLCHAIN_PACKAGES = (
    "webpack",
    "memfs",
    "mini-css-extract-plugin",
    "css-loader",
    "postcss-loader",
    "sass-loader",
    "sass",
    "autoprefixer",
    "terser-webpack-plugin",
    "css-minimizer-webpack-plugin",
)


def validate_configuration() -> list[str]:
    """Validate settings that make every build fail when wrong.

    Returns:
        List of configuration errors (fatal)
    """
    errors = []

    toolchain = Path(settings.toolchain_path)
    if not toolchain.is_dir():
        errors.append(f"TOOLCHAIN_PATH does not exist: {toolchain}")
    else:
        modules = toolchain / "node_modules"
        missing = [name for name in TOOLCHAIN_PACKAGES if not (modules / name).is_dir()]
        if missing:
            errors.append(
                f"Toolchain at {toolchain} is missing: {', '.join(missing)}. "
                "Run `npm install` inside the toolchain directory."
            )

    workspace = Path(settings.workspace_path)
    if workspace.exists() and not workspace.is_dir():
        errors.append(f"WORKSPACE_PATH is not a directory: {workspace}")

    return errors


async def validate_environment(runner: CommandRunner = run_command) -> list[str]:
    """Probe the external executables.

    Returns:
        List of validation warnings (not fatal)
    """
    warnings = []
    probes = {
        "node": [settings.node_command, "--version"],
        "npm": [settings.npm_command, "--version"],
    }
    for label, command in probes.items():
        result = await runner(command, timeout=15)
        if result.ok:
            logger.debug("%s version: %s", label, result.stdout.strip().splitlines()[:1])
        elif result.timed_out:
            warnings.append(f"{label} did not answer `--version` within 15 seconds")
        else:
            warnings.append(f"{label} is not available or not working correctly: {result.output}")

    return warnings


async def run_startup_checks(runner: CommandRunner = run_command) -> None:
    """Run all startup validation checks.

    Raises:
        RuntimeError: If critical configuration errors are found
    """
    logger.info("Running startup validation checks...")

    config_errors = validate_configuration()
    if config_errors:
        logger.error("Configuration validation failed:")
        for error in config_errors:
            logger.error(f"  - {error}")
        raise RuntimeError(
            f"Configuration validation failed with {len(config_errors)} error(s). "
            "Fix configuration and restart."
        )

    logger.info("Configuration validation passed")

    env_warnings = await validate_environment(runner)
    if env_warnings:
        logger.warning("Environment checks found issues:")
        for warning in env_warnings:
            logger.warning(f"  - {warning}")
    else:
        logger.info("Environment validation passed")

    logger.info("Startup validation completed")
