"""Command-line interface for checktests."""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .cleaner import AnnotationCleaner
from .client import TestomatClient
from .config import Settings
from .errors import CheckTestsError
from .export import ExportPipeline
from .java.parser import JavaSourceParser, load_sources
from .java.syntax import SourceFile
from .models import FilesProcessingResult
from .remote import RemoteMappingParser
from .scanner import ScanProfile, SourceTreeScanner
from .sync import TestIdSyncService
from .utils import truncate


def make_client(settings: Settings) -> TestomatClient:
    """Create a client for the configured server; the key must be valid."""
    return TestomatClient(settings.server_url, settings.require_api_key())


def get_settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        api_key=getattr(args, "apikey", None), url=getattr(args, "url", None)
    )


def load_files(args: argparse.Namespace) -> list[SourceFile]:
    """Scan and parse the target directory; unparseable files are skipped."""
    scanner = SourceTreeScanner(ScanProfile(args.profile))
    paths = scanner.scan(args.directory)
    files, failures = load_sources(paths, JavaSourceParser(), workers=args.jobs)
    if failures:
        print(f"Skipped {len(failures)} files that could not be parsed", file=sys.stderr)
    return files


def show_progress(args: argparse.Namespace) -> bool:
    return not args.verbose and sys.stderr.isatty()


def cmd_export(args: argparse.Namespace) -> int:
    """Export test methods to the server."""
    try:
        settings = get_settings(args)
        dry_run = args.dry_run
        if not dry_run and not settings.has_api_key:
            print("TESTOMATIO API key not provided, running in dry-run mode")
            dry_run = True

        directory = Path(args.directory).absolute()
        print(f"Scanning for test files in: {directory}")

        client = None if dry_run else make_client(settings)
        pipeline = ExportPipeline(
            scanner=SourceTreeScanner(ScanProfile(args.profile)), client=client
        )
        try:
            result = pipeline.run(directory, dry_run, show_progress(args))
        finally:
            if client is not None:
                client.close()

        if not result.records:
            print("No test methods found across all files")
            return 0

        print(f"Found {len(result.records)} total test methods")
        if dry_run:
            print("All test methods found:")
            for record in result.records:
                labels = ", ".join(record.labels)
                print(f"  - {truncate(record.name)} [{labels}] ({record.file})")
        else:
            print(f"Successfully exported {result.exported} test methods")
        return 0

    except CheckTestsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_pull_ids(args: argparse.Namespace) -> int:
    """Write server test IDs onto matching test methods."""
    try:
        settings = get_settings(args)
        with make_client(settings) as client:
            files = load_files(args)
            if not files:
                print("No Java files found!")
                return 0

            service = TestIdSyncService(client, verbose=args.verbose)
            result = service.sync(files, args.dry_run, show_progress(args))

        prefix = "Would update" if args.dry_run else "Updated"
        print(f"Processed {result.processed} test methods")
        print(
            f"  added: {result.added}, updated: {result.updated}, "
            f"unchanged: {result.unchanged}"
        )
        if result.skipped:
            print(
                f"  skipped: {result.skipped} "
                f"(invalid keys: {result.invalid_keys}, not found: {result.not_found})"
            )
        print(f"{prefix} {result.modified_files} files")
        for path in result.failed_files:
            print(f"Failed to write: {path}", file=sys.stderr)
        return 1 if result.failed_files else 0

    except CheckTestsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_sync(args: argparse.Namespace) -> int:
    """Export, then pull IDs; stops at the first failure."""
    print("Step 1/2: exporting tests")
    status = cmd_export(args)
    if status != 0:
        return status
    print("Step 2/2: pulling test IDs")
    return cmd_pull_ids(args)


def cmd_purge(args: argparse.Namespace) -> int:
    """Remove every @TestId annotation and the unused import."""
    try:
        files = load_files(args)
        if not files:
            print("No Java files found!")
            return 0
        result = AnnotationCleaner().clean_files(files, dry_run=args.dry_run)
        print_cleanup_summary(result, args.dry_run)
        return 1 if result.failed_files else 0

    except CheckTestsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_clean_ids(args: argparse.Namespace) -> int:
    """Remove @TestId annotations whose IDs exist on the server."""
    try:
        settings = get_settings(args)
        dry_run = args.dry_run
        if not dry_run and not settings.has_url:
            print("TESTOMATIO_URL not provided, running in dry-run mode")
            dry_run = True

        markers = None
        if not dry_run:
            with make_client(settings) as client:
                markers = RemoteMappingParser().markers(client.fetch_test_data())
            print(f"Found {len(markers)} test IDs on server")

        files = load_files(args)
        if not files:
            print("No Java files found!")
            return 0
        result = AnnotationCleaner().clean_files(files, dry_run, markers)
        print_cleanup_summary(result, dry_run)
        return 1 if result.failed_files else 0

    except CheckTestsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def print_cleanup_summary(result: FilesProcessingResult, dry_run: bool) -> None:
    if dry_run:
        print("Dry run - no files were changed")
        print(f"Would remove {result.total_annotations} @TestId annotations")
        print(f"Would remove {result.total_imports} TestId imports")
        print(f"Files affected: {result.modified_files}")
    else:
        print(f"Removed {result.total_annotations} @TestId annotations")
        print(f"Removed {result.total_imports} TestId imports")
        print(f"Modified files: {result.modified_files}")
    for path in result.failed_files:
        print(f"Failed to write: {path}", file=sys.stderr)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--directory", "-d", default=".", help="Directory to scan (default: current)"
    )
    parser.add_argument(
        "--profile",
        choices=[p.value for p in ScanProfile],
        default=ScanProfile.PERMISSIVE.value,
        help="Which files count as test sources (default: permissive)",
    )
    parser.add_argument(
        "--jobs", "-j", type=int, default=1, help="Parallel parser threads (default: 1)"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Show what would change without writing"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show per-item diagnostics"
    )


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--apikey", "-key", help="API key (default: $TESTOMATIO)")
    parser.add_argument("--url", help="Server URL (default: $TESTOMATIO_URL)")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="checktests",
        description="Keep Java test methods and tracking-server test IDs in sync.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # export
    export_parser = subparsers.add_parser(
        "export", aliases=["import"], help="Export test methods to the server"
    )
    add_common_arguments(export_parser)
    add_server_arguments(export_parser)

    # pull-ids
    pull_parser = subparsers.add_parser(
        "pull-ids", aliases=["update-ids"], help="Write server test IDs into sources"
    )
    add_common_arguments(pull_parser)
    add_server_arguments(pull_parser)

    # sync
    sync_parser = subparsers.add_parser(
        "sync", aliases=["all"], help="Export tests, then pull test IDs"
    )
    add_common_arguments(sync_parser)
    add_server_arguments(sync_parser)

    # purge
    purge_parser = subparsers.add_parser(
        "purge", help="Remove all @TestId annotations and their import"
    )
    add_common_arguments(purge_parser)

    # clean-ids
    clean_parser = subparsers.add_parser(
        "clean-ids", help="Remove @TestId annotations for tests that exist on the server"
    )
    add_common_arguments(clean_parser)
    add_server_arguments(clean_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
    )

    commands = {
        "export": cmd_export,
        "import": cmd_export,
        "pull-ids": cmd_pull_ids,
        "update-ids": cmd_pull_ids,
        "sync": cmd_sync,
        "all": cmd_sync,
        "purge": cmd_purge,
        "clean-ids": cmd_clean_ids,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
