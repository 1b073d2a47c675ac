"""Decisions about marker annotations on matched methods."""

from __future__ import annotations

from typing import Collection

from .java.syntax import Annotation, ImportDecl, MethodDecl, SourceFile
from .models import CleanupResult, FileModification, Reconciliation

MARKER_ANNOTATION = "TestId"
MARKER_IMPORT = "io.testomat.core.annotation.TestId"
MARKER_PREFIX = "@T"


def clean_marker(marker: str) -> str:
    """Strip the server's transport prefix: ``@Tabc123`` -> ``abc123``."""
    if marker.startswith(MARKER_PREFIX):
        return marker[len(MARKER_PREFIX):]
    return marker


def is_marker(annotation: Annotation) -> bool:
    return annotation.name == MARKER_ANNOTATION


def marker_annotation(method: MethodDecl) -> Annotation | None:
    return next((a for a in method.annotations if is_marker(a)), None)


def marker_value(annotation: Annotation) -> str | None:
    """Literal value of a single-member marker, None for any other form."""
    if not annotation.is_single_member:
        return None
    return annotation.string_value()


def marker_imports(source_file: SourceFile) -> list[ImportDecl]:
    return [
        imp
        for imp in source_file.imports
        if not imp.is_static and not imp.is_wildcard and imp.name == MARKER_IMPORT
    ]


class MarkerReconciler:
    """Records marker additions, updates and removals into a FileModification."""

    def reconcile(
        self, modification: FileModification, method: MethodDecl, marker: str
    ) -> Reconciliation:
        """
        Decide what a method needs to carry ``marker``.

        Args:
            modification: Accumulator for the method's file.
            method: Matched method.
            marker: Raw server marker; the prefix is stripped here.

        Returns:
            UNCHANGED if the method already carries the same literal marker,
            UPDATED if it carries a different or non-literal one, ADDED otherwise.
        """
        value = clean_marker(marker)
        existing = marker_annotation(method)

        if existing is not None and marker_value(existing) == value:
            return Reconciliation.UNCHANGED

        modification.add_marker(method, value)
        if not modification.source_file.has_import(MARKER_IMPORT):
            modification.needs_import = True

        if existing is None:
            return Reconciliation.ADDED
        return Reconciliation.UPDATED

    def collect_removals(
        self,
        modification: FileModification,
        markers: Collection[str] | None = None,
    ) -> CleanupResult:
        """
        Schedule marker annotations and, when none would remain, their import.

        Args:
            modification: Accumulator for the file being cleaned.
            markers: If given, only annotations whose literal value is in it
                are removed; otherwise every marker annotation is.

        Returns:
            Counts of annotations and imports scheduled for removal.
        """
        source_file = modification.source_file
        found = [
            annotation
            for method in source_file.methods
            for annotation in method.annotations
            if is_marker(annotation)
        ]

        removed = [
            annotation
            for annotation in found
            if markers is None or marker_value(annotation) in markers
        ]
        for annotation in removed:
            modification.remove_annotation(annotation)

        imports: list[ImportDecl] = []
        remaining = len(found) - len(removed)
        if (removed or markers is None) and remaining == 0 and not _type_markers(
            source_file
        ):
            imports = marker_imports(source_file)
            for import_decl in imports:
                modification.remove_import(import_decl)

        return CleanupResult(len(removed), len(imports))


def _type_markers(source_file: SourceFile) -> bool:
    """True if a type declaration itself carries a marker annotation."""
    return any(is_marker(a) for decl in source_file.types for a in decl.annotations)
