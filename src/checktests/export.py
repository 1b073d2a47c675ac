"""Export of local test methods to the tracking server."""

from __future__ import annotations

import logging
from pathlib import Path

from .classifier import FrameworkClassifier
from .client import TestomatClient
from .errors import ParseError
from .extractor import TestIdentityExtractor
from .java.parser import JavaSourceParser
from .models import ExportResult, FrameworkDialect, TestRecord
from .payload import ExportPayload
from .progress import progress_bar
from .scanner import SourceTreeScanner

logger = logging.getLogger(__name__)


class ExportPipeline:
    """Scan -> parse -> classify -> extract -> upload."""

    def __init__(
        self,
        scanner: SourceTreeScanner | None = None,
        parser: JavaSourceParser | None = None,
        classifier: FrameworkClassifier | None = None,
        extractor: TestIdentityExtractor | None = None,
        client: TestomatClient | None = None,
    ):
        self.scanner = scanner or SourceTreeScanner()
        self.parser = parser or JavaSourceParser()
        self.classifier = classifier or FrameworkClassifier()
        self.extractor = extractor or TestIdentityExtractor()
        self.client = client

    def run(
        self,
        root: str | Path,
        dry_run: bool = False,
        show_progress: bool = False,
    ) -> ExportResult:
        """
        Export every test method below ``root``.

        The first file that yields tests decides the payload's framework.
        Nothing is sent in dry-run mode or when no tests were found.

        Raises:
            DirectoryError: If root is not a readable directory.
            TransportError: If the upload fails.
        """
        paths = self.scanner.scan(root)
        logger.debug("Found %d candidate files", len(paths))

        records: list[TestRecord] = []
        framework: FrameworkDialect | None = None
        skipped = 0

        bar = progress_bar(len(paths), "Processing files", show_progress)
        try:
            for path in paths:
                file_records, dialect = self._process_file(path)
                bar.update(1)
                if dialect is None:
                    skipped += 1
                    continue
                if file_records and framework is None:
                    framework = dialect
                records.extend(file_records)
        finally:
            bar.close()

        result = ExportResult(
            files_scanned=len(paths),
            files_skipped=skipped,
            records=records,
            framework=framework,
            dry_run=dry_run,
        )
        if dry_run or not records:
            return result

        if self.client is None:
            raise ValueError("ExportPipeline needs a client unless dry_run is set")
        payload = ExportPayload.from_records(records, framework)
        self.client.load_tests(payload.to_wire())
        logger.info("Exported %d test methods", len(records))
        return result

    def _process_file(
        self, path: Path
    ) -> tuple[list[TestRecord], FrameworkDialect | None]:
        """Records of one file and its dialect; dialect None means skipped."""
        try:
            source_file = self.parser.parse_file(path)
        except ParseError as e:
            logger.debug("Skipped: %s", e)
            return [], None

        dialect = self.classifier.classify_file(source_file)
        if dialect is FrameworkDialect.UNKNOWN:
            logger.debug("Skipped %s: no test framework detected", path.name)
            return [], None
        return self.extractor.extract(source_file, dialect), dialect
