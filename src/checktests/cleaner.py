"""Removal of marker annotations from Java sources."""

from __future__ import annotations

import logging
from typing import Collection, Iterable

from .errors import WriteError
from .java.syntax import SourceFile
from .models import CleanupResult, FileModification, FilesProcessingResult
from .patcher import MinimalTextPatcher
from .reconciler import MarkerReconciler

logger = logging.getLogger(__name__)


class AnnotationCleaner:
    """Strips ``@TestId`` annotations and the then-unused marker import."""

    def __init__(
        self,
        reconciler: MarkerReconciler | None = None,
        patcher: MinimalTextPatcher | None = None,
    ):
        self.reconciler = reconciler or MarkerReconciler()
        self.patcher = patcher or MinimalTextPatcher()

    def clean(
        self,
        source_file: SourceFile,
        dry_run: bool = False,
        markers: Collection[str] | None = None,
    ) -> CleanupResult:
        """
        Remove markers from one file.

        Args:
            source_file: Parsed file to clean.
            dry_run: Count only; never touch the file.
            markers: Restrict removal to these marker values.

        Returns:
            Counts of removed (or, in dry-run, removable) annotations and imports.

        Raises:
            WriteError: If the patched file cannot be written.
        """
        modification = FileModification(source_file)
        result = self.reconciler.collect_removals(modification, markers)
        if not dry_run and modification.has_modifications():
            self.patcher.apply(modification)
        return result

    def clean_files(
        self,
        files: Iterable[SourceFile],
        dry_run: bool = False,
        markers: Collection[str] | None = None,
    ) -> FilesProcessingResult:
        """Clean many files; a file that fails to write does not stop the rest."""
        total = FilesProcessingResult()
        for source_file in files:
            try:
                result = self.clean(source_file, dry_run, markers)
            except WriteError as e:
                logger.warning("%s", e)
                total.failed_files.append(e.path)
                continue

            if result.removed_annotations or result.removed_imports:
                verb = "Would remove" if dry_run else "Removed"
                logger.debug(
                    "%s: %s %d annotations, %d imports",
                    source_file.file_name,
                    verb,
                    result.removed_annotations,
                    result.removed_imports,
                )
                total.add_results(result)
        return total
