"""Synchronization of server markers into Java sources."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from .client import TestomatClient
from .errors import InvalidKeyError, MethodNotFoundError, WriteError
from .java.syntax import SourceFile
from .matcher import IdentityMatcher
from .models import FileModification, Reconciliation, SyncResult
from .patcher import MinimalTextPatcher
from .progress import progress_bar
from .reconciler import MarkerReconciler
from .remote import RemoteMappingParser

logger = logging.getLogger(__name__)


class TestIdSyncService:
    """Fetches the server mapping and writes its markers onto matching methods."""

    __test__ = False

    def __init__(
        self,
        client: TestomatClient | None = None,
        remote_parser: RemoteMappingParser | None = None,
        matcher: IdentityMatcher | None = None,
        reconciler: MarkerReconciler | None = None,
        patcher: MinimalTextPatcher | None = None,
        verbose: bool = False,
    ):
        self.client = client
        self.remote_parser = remote_parser or RemoteMappingParser()
        self.matcher = matcher or IdentityMatcher(verbose=verbose)
        self.reconciler = reconciler or MarkerReconciler()
        self.patcher = patcher or MinimalTextPatcher()
        self.verbose = verbose

    def sync(
        self,
        files: Sequence[SourceFile],
        dry_run: bool = False,
        show_progress: bool = False,
    ) -> SyncResult:
        """
        Fetch the mapping from the server and apply it.

        Raises:
            MalformedResponseError: If the listing cannot be interpreted.
            EmptyResultError: If the listing holds no tests.
            TransportError: If the server cannot be reached.
        """
        if self.client is None:
            raise ValueError("TestIdSyncService.sync needs a client")
        body = self.client.fetch_test_data()
        mapping = self.remote_parser.parse(body)
        logger.info("Received %d test entries from API", len(mapping))
        return self.apply_mapping(mapping, files, dry_run, show_progress)

    def apply_mapping(
        self,
        mapping: Mapping[str, str],
        files: Sequence[SourceFile],
        dry_run: bool = False,
        show_progress: bool = False,
    ) -> SyncResult:
        """
        Reconcile every mapping entry and patch the affected files.

        Malformed and unmatched keys are counted and skipped. In dry-run mode
        ``modified_files`` counts files that would change; nothing is written.
        """
        result = SyncResult()
        modifications: dict[SourceFile, FileModification] = {}

        bar = progress_bar(len(mapping), "Processing test IDs", show_progress)
        try:
            for key, marker in mapping.items():
                self._process_entry(key, marker, files, modifications, result)
                bar.update(1)
        finally:
            bar.close()

        if result.skipped:
            logger.warning(
                "Skipped %d test methods (not found or invalid)", result.skipped
            )

        pending = [m for m in modifications.values() if m.has_modifications()]
        if dry_run:
            result.modified_files = len(pending)
            return result

        for modification in pending:
            try:
                if self.patcher.apply(modification):
                    result.modified_files += 1
            except WriteError as e:
                logger.warning("%s", e)
                result.failed_files.append(e.path)
        return result

    def _process_entry(
        self,
        key: str,
        marker: str,
        files: Sequence[SourceFile],
        modifications: dict[SourceFile, FileModification],
        result: SyncResult,
    ) -> None:
        logger.debug("Processing test key: %s -> %s", key, marker)
        try:
            match = self.matcher.resolve(key, files)
        except InvalidKeyError as e:
            result.invalid_keys += 1
            logger.debug("  Skipped: %s", e)
            return
        except MethodNotFoundError:
            result.not_found += 1
            logger.debug("  Skipped: method not found in parsed files")
            return

        modification = modifications.get(match.source_file)
        if modification is None:
            modification = FileModification(match.source_file)
            modifications[match.source_file] = modification

        outcome = self.reconciler.reconcile(modification, match.method, marker)
        if outcome is Reconciliation.ADDED:
            result.added += 1
        elif outcome is Reconciliation.UPDATED:
            result.updated += 1
        else:
            result.unchanged += 1
        logger.debug("  %s marker on %s", outcome.value.capitalize(), match.method.name)
