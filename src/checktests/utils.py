"""Utility functions for checktests."""

import os
import posixpath
import re

UNKNOWN_FILE = "UnknownFile"
SOURCE_EXTENSION = ".java"

# Checked in order; the first one found in the path wins.
SOURCE_ROOT_MARKERS = ("src/test/java/", "src/main/java/")

_DRIVE_RE = re.compile(r"^/?([A-Za-z]):")


def normalize_path(path: str) -> str:
    """
    Normalize a path to POSIX style.

    Backslashes become forward slashes and ``.``/``..`` segments are
    collapsed. On non-Windows hosts a leading drive letter (``C:`` or
    ``/C:``) is dropped so server paths recorded on Windows still compare.
    """
    if not path:
        return path
    unified = path.replace("\\", "/")
    normalized = posixpath.normpath(unified)
    if os.name != "nt":
        match = _DRIVE_RE.match(normalized)
        if match:
            normalized = normalized[match.end():] or "/"
    elif normalized.startswith("/") and not _DRIVE_RE.match(normalized):
        normalized = normalized[1:]
    return normalized


def relative_file_path(filepath: str | None, extension: str = SOURCE_EXTENSION) -> str:
    """
    Reduce a source path to its package-relative form.

    Examples:
        /repo/src/test/java/com/acme/FooTest.java -> com/acme/FooTest.java
        /repo/module/src/it/java/com/acme/BarIT.java -> com/acme/BarIT.java
        other/FooTest.java -> other/FooTest.java

    Returns:
        ``UnknownFile<extension>`` for a None or empty path.
    """
    if not filepath:
        return UNKNOWN_FILE + extension

    normalized = normalize_path(filepath)

    for marker in SOURCE_ROOT_MARKERS:
        index = normalized.find(marker)
        if index != -1:
            return normalized[index + len(marker):]

    if "src/" in normalized:
        java_index = normalized.rfind("/java/")
        if java_index != -1:
            return normalized[java_index + len("/java/"):]

    return normalized


def path_ends_with(path: str, suffix: str) -> bool:
    """True if ``suffix`` is a trailing run of whole segments of ``path``."""
    if not suffix:
        return False
    if path == suffix:
        return True
    return path.endswith("/" + suffix.lstrip("/"))


def truncate(text: str, length: int = 60) -> str:
    """Truncate long text for display."""
    return text[:length] + "..." if len(text) > length else text
