"""Filesystem-safe naming helpers for generated workspace files."""

import re

# Characters rejected by common filesystems, plus control characters.
_ILLEGAL_CHARS = re.compile(r'[/\\?<>:*|"\x00-\x1f\x80-\x9f]')
_RESERVED_NAMES = re.compile(r"^\.+$")
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING = re.compile(r"[. ]+$")

MAX_FILENAME_BYTES = 255


def sanitize_filename(filename: str, replacement: str = "") -> str:
    """
    Strip characters that are unsafe in a single path component.

    Args:
        filename: Candidate file name (may contain slashes, e.g. scoped packages)
        replacement: Text substituted for each rejected character

    Returns:
        A name safe to join onto a directory, truncated to 255 bytes
    """
    sanitized = _ILLEGAL_CHARS.sub(replacement, filename)
    sanitized = _RESERVED_NAMES.sub(replacement, sanitized)
    sanitized = _WINDOWS_RESERVED.sub(replacement, sanitized)
    sanitized = _WINDOWS_TRAILING.sub(replacement, sanitized)
    encoded = sanitized.encode("utf-8")[:MAX_FILENAME_BYTES]
    return encoded.decode("utf-8", errors="ignore")
