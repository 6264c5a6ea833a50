"""Typed failures raised by the measuring pipeline."""

from typing import Any


class PackageCostError(Exception):
    """Base error carrying the failing step's raw diagnostic as ``cause``."""

    name = "PackageCostError"

    def __init__(self, cause: Any = None, message: str | None = None):
        self.cause = cause
        super().__init__(message or f"{self.name}: {_describe(cause)}")


class EntryPointError(PackageCostError):
    """The synthetic entry file could not be written."""

    name = "EntryPointError"


class InstallError(PackageCostError):
    """The installer failed to run or exited non-zero."""

    name = "InstallError"


class BuildError(PackageCostError):
    """The bundler failed, reported compile errors, or emitted no canonical asset."""

    name = "BuildError"


def _describe(cause: Any) -> str:
    if cause is None:
        return "no details"
    if isinstance(cause, list):
        return f"{len(cause)} error(s)"
    text = str(cause).strip()
    first_line = text.splitlines()[0] if text else repr(cause)
    return first_line[:200]
