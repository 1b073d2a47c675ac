"""Data models for checktests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .java.syntax import Annotation, ImportDecl, MethodDecl, SourceFile

KEY_DELIMITER = "#"


class FrameworkDialect(str, Enum):
    """Test-framework convention family detected for a file."""

    JUNIT = "junit"
    TESTNG = "testng"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TestIdentity:
    """Canonical identity of a test method, used as the matching key."""

    __test__ = False  # not a pytest test class

    file_path: str
    type_name: str
    method_name: str

    @property
    def key(self) -> str:
        """Server key form: ``path#type#method``."""
        return KEY_DELIMITER.join((self.file_path, self.type_name, self.method_name))


@dataclass(frozen=True)
class TestRecord:
    """A test method as exported to the tracking server."""

    __test__ = False

    identity: TestIdentity
    name: str
    suites: tuple[str, ...]
    skipped: bool
    labels: tuple[str, ...]
    code: str
    file: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "suites": list(self.suites),
            "code": self.code,
            "file": self.file,
            "skipped": self.skipped,
            "labels": list(self.labels),
        }


@dataclass
class FileModification:
    """Pending marker changes for a single source file.

    Built by the reconciler, consumed once by the patcher.
    """

    source_file: SourceFile
    method_markers: dict[MethodDecl, str] = field(default_factory=dict)
    annotations_to_remove: list[Annotation] = field(default_factory=list)
    imports_to_remove: list[ImportDecl] = field(default_factory=list)
    needs_import: bool = False

    def add_marker(self, method: MethodDecl, marker: str) -> None:
        self.method_markers[method] = marker

    def remove_annotation(self, annotation: Annotation) -> None:
        self.annotations_to_remove.append(annotation)

    def remove_import(self, import_decl: ImportDecl) -> None:
        self.imports_to_remove.append(import_decl)

    def has_modifications(self) -> bool:
        return bool(
            self.method_markers
            or self.needs_import
            or self.annotations_to_remove
            or self.imports_to_remove
        )


class EditKind(str, Enum):
    INSERT = "insert"
    REPLACE = "replace"
    DELETE = "delete"


@dataclass(frozen=True)
class TextEdit:
    """A single line edit against the original line numbering (0-based)."""

    line_index: int
    kind: EditKind
    text: str | None = None


class Reconciliation(str, Enum):
    """Outcome of reconciling one method against its server marker."""

    ADDED = "added"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class MatchResult:
    """A mapping key resolved to a concrete method."""

    source_file: SourceFile
    method: MethodDecl
    strategy: str  # "file_name" | "path_suffix"


@dataclass
class SyncResult:
    """Outcome of one marker synchronization pass."""

    added: int = 0
    updated: int = 0
    unchanged: int = 0
    invalid_keys: int = 0
    not_found: int = 0
    modified_files: int = 0
    failed_files: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        """Mapping entries that resolved to a method."""
        return self.added + self.updated + self.unchanged

    @property
    def skipped(self) -> int:
        return self.invalid_keys + self.not_found


@dataclass(frozen=True)
class CleanupResult:
    """Marker annotations and imports removed (or found, in dry-run) in one file."""

    removed_annotations: int
    removed_imports: int

    def as_tuple(self) -> tuple[int, int]:
        return (self.removed_annotations, self.removed_imports)


@dataclass
class FilesProcessingResult:
    """Aggregate cleanup counts across files."""

    total_annotations: int = 0
    total_imports: int = 0
    modified_files: int = 0
    failed_files: list[str] = field(default_factory=list)

    def add_results(self, result: CleanupResult) -> None:
        self.total_annotations += result.removed_annotations
        self.total_imports += result.removed_imports
        self.modified_files += 1


@dataclass
class ExportResult:
    """Outcome of an export pass."""

    files_scanned: int
    files_skipped: int
    records: list[TestRecord]
    framework: FrameworkDialect | None
    dry_run: bool

    @property
    def exported(self) -> int:
        return 0 if self.dry_run else len(self.records)
