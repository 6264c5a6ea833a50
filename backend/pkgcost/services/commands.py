"""Asynchronous subprocess boundary for the external installer and bundler."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from pkgcost.logging_config import get_logger

logger = get_logger(__name__)

# Shell convention for "command not found".
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one subprocess run; never raised, always returned."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Combined stdout/stderr for diagnostics."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(
    args: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    timeout: Optional[float] = None,
    env: Optional[dict[str, str]] = None,
    input: Optional[bytes] = None,
) -> CommandResult:
    """
    Run a command without a shell and capture its output.

    Args:
        args: Executable followed by its arguments
        cwd: Working directory for the child process
        timeout: Seconds to wait before killing the child (None waits forever)
        env: Full environment for the child (None inherits ours)
        input: Bytes written to the child's stdin (None leaves stdin closed)

    Returns:
        CommandResult; a missing executable yields returncode 127
    """
    argv = tuple(str(arg) for arg in args)
    logger.debug("exec %s (cwd=%s)", " ".join(argv), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        return CommandResult(args=argv, returncode=COMMAND_NOT_FOUND, stderr=str(exc))

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(input), timeout=timeout)
    except asyncio.CancelledError:
        await _kill(process)
        raise
    except asyncio.TimeoutError:
        await _kill(process)
        logger.warning("Command timed out after %ss: %s", timeout, argv[0])
        return CommandResult(
            args=argv,
            returncode=process.returncode if process.returncode is not None else -1,
            stderr=f"Timed out after {timeout} seconds",
            timed_out=True,
        )

    return CommandResult(
        args=argv,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )


async def _kill(process: asyncio.subprocess.Process) -> None:
    with suppress(ProcessLookupError):
        process.kill()
    await asyncio.shield(process.wait())


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""
