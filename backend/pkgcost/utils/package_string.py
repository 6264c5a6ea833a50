"""Parsing of registry package specifiers (``name``, ``name@range``, ``@scope/name@range``)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


# npm package name rules: lowercase-ish url-safe characters, optional @scope/ prefix.
_NAME_PART = r"[a-zA-Z0-9][a-zA-Z0-9._~-]*"
_PACKAGE_NAME = re.compile(rf"^(?:@{_NAME_PART}/)?{_NAME_PART}$")
MAX_NAME_LENGTH = 214


@dataclass(frozen=True)
class PackageSpecifier:
    """A parsed specifier; ``raw`` is passed to the installer untouched."""

    raw: str
    name: str
    version: Optional[str] = None

    @property
    def scoped(self) -> bool:
        return self.name.startswith("@")


def parse_package_string(package_string: str) -> PackageSpecifier:
    """
    Split a specifier into package name and optional version constraint.

    Args:
        package_string: e.g. ``react``, ``react@^16.0.0``, ``@babel/core@7.0.0``

    Returns:
        PackageSpecifier with the bare package name

    Raises:
        ValueError: If no valid package name can be extracted
    """
    if not isinstance(package_string, str):
        raise ValueError(f"Package specifier must be a string, got {type(package_string).__name__}")

    raw = package_string.strip()
    if not raw:
        raise ValueError("Package specifier is empty")

    # The version separator is the first "@" that is not the scope marker.
    search_from = 1 if raw.startswith("@") else 0
    at_index = raw.find("@", search_from)
    if at_index == -1:
        name, version = raw, None
    else:
        name, version = raw[:at_index], raw[at_index + 1 :] or None

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Package name exceeds {MAX_NAME_LENGTH} characters: {name[:40]}...")
    if not _PACKAGE_NAME.match(name):
        raise ValueError(f"Invalid package name in specifier: {package_string!r}")

    return PackageSpecifier(raw=raw, name=name, version=version)
