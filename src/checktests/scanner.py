"""Discovery of candidate Java test source files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator

from .errors import DirectoryError
from .utils import SOURCE_EXTENSION

logger = logging.getLogger(__name__)

EXCLUDED_DIRECTORIES = frozenset(
    {"target", "build", "out", "bin", "classes", "node_modules"}
)


class ScanProfile(str, Enum):
    """Which file names count as candidates."""

    PERMISSIVE = "permissive"  # any source file
    TEST_NAMING = "test-naming"  # *Test, *Tests, Test*


@dataclass
class _WalkState:
    """Per-call scan state; keeps the scanner itself reentrant."""

    root: Path
    visited: set[str] = field(default_factory=set)


class SourceTreeScanner:
    """Walks a directory tree and yields candidate source files.

    Skips build output, VCS and hidden directories, breaks symbolic link
    cycles, and never follows a link that points outside the directory
    holding it. Directory entries are visited in sorted order.
    """

    def __init__(
        self,
        profile: ScanProfile = ScanProfile.PERMISSIVE,
        extension: str = SOURCE_EXTENSION,
    ):
        self.profile = ScanProfile(profile)
        self.extension = extension

    def scan(self, root: str | Path) -> list[Path]:
        """
        Find all candidate files below ``root``.

        Raises:
            DirectoryError: If root does not exist, is not a directory,
                or cannot be read.
        """
        return list(self.iter_files(root))

    def iter_files(self, root: str | Path) -> Iterator[Path]:
        """Lazily yield candidate files; stop consuming to abort the walk."""
        root_path = Path(root).absolute()
        validate_directory(root_path)
        state = _WalkState(root=root_path.resolve())
        yield from self._scan_directory(root_path, state)

    def _scan_directory(self, directory: Path, state: _WalkState) -> Iterator[Path]:
        if not _is_accessible_directory(directory):
            return

        if directory.is_symlink() and not _link_within_parent(directory):
            logger.debug("Skipping symlink outside project: %s", directory)
            return

        try:
            canonical = str(directory.resolve())
        except OSError:
            canonical = str(directory)
        if canonical in state.visited:
            logger.debug("Skipping already visited directory: %s", directory)
            return
        state.visited.add(canonical)

        try:
            children = sorted(directory.iterdir())
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            return

        for child in children:
            if child.is_dir():
                if not should_skip_directory(child.name):
                    yield from self._scan_directory(child, state)
            elif self._is_candidate(child, state):
                yield child

    def _is_candidate(self, path: Path, state: _WalkState) -> bool:
        if not path.name.endswith(self.extension):
            return False
        if not path.is_file() or not os.access(path, os.R_OK):
            return False
        if path.is_symlink():
            try:
                target = path.resolve()
            except OSError:
                return False
            if not target.is_relative_to(state.root):
                logger.debug("Skipping file symlink outside project: %s", path)
                return False
        if self.profile is ScanProfile.TEST_NAMING:
            return matches_test_naming(path.name, self.extension)
        return True


def validate_directory(directory: Path) -> None:
    """
    Check that a scan root is usable.

    Raises:
        DirectoryError: If it is missing, not a directory, or unreadable.
    """
    if not directory.exists():
        raise DirectoryError(str(directory), "Directory does not exist")
    if not directory.is_dir():
        raise DirectoryError(str(directory), "Path is not a directory")
    if not os.access(directory, os.R_OK | os.X_OK):
        raise DirectoryError(str(directory), "Directory is not readable")


def should_skip_directory(name: str) -> bool:
    """Build output, VCS and IDE directories are never scanned."""
    return name in EXCLUDED_DIRECTORIES or name.startswith(".")


def matches_test_naming(file_name: str, extension: str = SOURCE_EXTENSION) -> bool:
    """``FooTest.java``, ``FooTests.java`` and ``TestFoo.java`` qualify."""
    if not file_name.endswith(extension):
        return False
    stem = file_name[: -len(extension)]
    return stem.endswith("Test") or stem.endswith("Tests") or stem.startswith("Test")


def _is_accessible_directory(directory: Path) -> bool:
    return directory.is_dir() and os.access(directory, os.R_OK | os.X_OK)


def _link_within_parent(link: Path) -> bool:
    """True if a symlinked directory resolves inside the directory holding it."""
    try:
        target = link.resolve()
        parent = link.parent.resolve()
    except OSError:
        return False
    return target.is_relative_to(parent)
