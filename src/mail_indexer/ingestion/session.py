"""Ingestion of maildir-style message folders.

Expected layout is ``<root>/<user>/<folder>/<message file>``. Each file is
parsed independently and every resulting record is handed to a publisher
callable supplied by the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import structlog

from mail_indexer.config import Settings
from mail_indexer.exceptions import (
    ConfigurationError,
    IngestionError,
    MailIndexerError,
    SourceReadError,
)
from mail_indexer.models import EmailRecord
from mail_indexer.parsing import parse_email

logger = structlog.get_logger()


Publisher = Callable[[EmailRecord], None]


@dataclass(frozen=True)
class IngestionReport:
    """Outcome of one ingestion run."""

    published: int
    skipped: int
    read_failures: int
    aborted: bool


class IngestionSession:
    """Feeds message files through the parser to a publisher.

    The session owns the consecutive-skip counter: every source that yields
    no record (unreadable, blank or rejected by the publisher)
    increments it, every published record resets it, and the run stops once
    it reaches ``max_consecutive_skips``.
    """

    def __init__(
        self,
        publish: Publisher,
        *,
        max_consecutive_skips: int,
        source_glob: str = "*.txt",
        encoding: str = "utf-8",
    ) -> None:
        """Create a session.

        Args:
            publish: Called once per parsed record.
            max_consecutive_skips: Abort threshold, at least 1.
            source_glob: Pattern selecting message files in each folder.
            encoding: Text encoding of message files.

        Raises:
            ConfigurationError: If the threshold is below 1.
        """

        if max_consecutive_skips < 1:
            raise ConfigurationError(
                f"max_consecutive_skips must be at least 1, got {max_consecutive_skips}"
            )

        self._publish = publish
        self._max_consecutive_skips = max_consecutive_skips
        self._source_glob = source_glob
        self._encoding = encoding

    @classmethod
    def from_settings(cls, publish: Publisher, settings: Settings) -> IngestionSession:
        return cls(
            publish,
            max_consecutive_skips=settings.max_consecutive_skips,
            source_glob=settings.source_glob,
            encoding=settings.source_encoding,
        )

    def run(self, root: Path) -> IngestionReport:
        """Ingest every message file below ``root``.

        Raises:
            IngestionError: If ``root`` is not a directory.
        """

        if not root.is_dir():
            raise IngestionError(f"Root directory not found: {root}")

        logger.info("ingestion_started", root=str(root))

        published = skipped = read_failures = consecutive = 0
        aborted = False

        for path in self._sources(root):
            try:
                record = self.ingest_file(path, root=root)
            except SourceReadError as exc:
                logger.warning("source_read_failed", path=str(path), error=str(exc))
                read_failures += 1
                record = None

            if record is not None:
                published += 1
                consecutive = 0
                continue

            skipped += 1
            consecutive += 1
            if consecutive >= self._max_consecutive_skips:
                logger.error(
                    "ingestion_aborted",
                    consecutive_skips=consecutive,
                    threshold=self._max_consecutive_skips,
                )
                aborted = True
                break

        report = IngestionReport(
            published=published,
            skipped=skipped,
            read_failures=read_failures,
            aborted=aborted,
        )
        logger.info(
            "ingestion_finished",
            published=report.published,
            skipped=report.skipped,
            read_failures=report.read_failures,
            aborted=report.aborted,
        )
        return report

    def ingest_file(self, path: Path, root: Path | None = None) -> EmailRecord | None:
        """Parse one file and publish its record.

        Args:
            path: Message file.
            root: Ingestion root; when given, the record's folder path is
                taken relative to it.

        Returns:
            The published record, or None when the file held no record or the
            publisher rejected it.

        Raises:
            SourceReadError: If the file cannot be read.
        """

        try:
            text = path.read_text(encoding=self._encoding, errors="replace")
        except OSError as exc:
            raise SourceReadError(f"Cannot read {path}: {exc}") from exc

        record = parse_email(text)
        if record is None:
            logger.debug("source_skipped", path=str(path))
            return None

        if root is not None:
            record = record.model_copy(
                update={"folder_path": path.parent.relative_to(root).as_posix()}
            )

        try:
            self._publish(record)
        except MailIndexerError as exc:
            logger.warning("record_publish_failed", path=str(path), error=str(exc))
            return None

        logger.debug("record_published", path=str(path), message_id=record.message_id)
        return record

    def _sources(self, root: Path) -> Iterator[Path]:
        for user_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            for folder in sorted(p for p in user_dir.iterdir() if p.is_dir()):
                for path in sorted(folder.glob(self._source_glob)):
                    if path.is_file():
                        yield path
