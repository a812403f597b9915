"""Command-line interface for Mail Indexer.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from mail_indexer import __version__
from mail_indexer.config import Settings, get_settings
from mail_indexer.exceptions import MailIndexerError
from mail_indexer.index import EmailRecordRepository
from mail_indexer.ingestion import IngestionSession
from mail_indexer.search import SearchService

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mail-indexer", description="Mail Indexer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Parse message files below ROOT (<user>/<folder>/<file>) into the local store",
    )
    ingest_parser.add_argument("root", type=Path, help="Root directory of the mail dump")
    ingest_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite store (default: settings index_db_path)",
    )
    ingest_parser.add_argument(
        "--max-skips",
        type=int,
        default=None,
        help="Abort after this many consecutive skipped files "
        "(default: settings max_consecutive_skips)",
    )
    ingest_parser.add_argument(
        "--glob",
        default=None,
        help="Message file pattern inside each folder (default: settings source_glob)",
    )

    search_parser = subparsers.add_parser("search", help="Search the local store")
    search_parser.add_argument("query", help="Free-text query: addresses, dates and keywords")
    search_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite store (default: settings index_db_path)",
    )
    search_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max results (default: settings search_limit)",
    )

    return parser


def _open_repository(settings: Settings, db: Path | None) -> EmailRecordRepository:
    repo = EmailRecordRepository(db or settings.index_db_path)
    repo.initialize(keyword_index=settings.keyword_index_enabled)
    return repo


def _cmd_ingest(args: argparse.Namespace, settings: Settings) -> int:
    repo = _open_repository(settings, args.db)

    # Built before any file is read so a bad threshold fails fast.
    session = IngestionSession(
        repo.add,
        max_consecutive_skips=(
            args.max_skips if args.max_skips is not None else settings.max_consecutive_skips
        ),
        source_glob=args.glob or settings.source_glob,
        encoding=settings.source_encoding,
    )
    report = session.run(args.root)

    print(
        f"Published {report.published} messages, skipped {report.skipped} "
        f"({report.read_failures} unreadable); store holds {repo.count()} records"
    )
    if report.aborted:
        print("Stopped early: too many consecutive skipped files.", file=sys.stderr)
        return 1
    return 0


def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    repo = _open_repository(settings, args.db)
    service = SearchService.from_settings(repo, settings)

    for record in service.search(args.query, limit=args.limit):
        date_part = record.normalized_date or "(no date)"
        from_part = record.from_addr or "(unknown sender)"
        print(f"{date_part}\t{from_part}\t{record.subject}")

    return 0


def configure_logging(settings: Settings) -> None:
    """Route structlog output through a level filter taken from settings."""

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mail Indexer CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings)

    logger.info("mail_indexer_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        if parsed.command == "ingest":
            return _cmd_ingest(parsed, settings)
        if parsed.command == "search":
            return _cmd_search(parsed, settings)
    except MailIndexerError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
