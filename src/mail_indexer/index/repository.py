"""SQLite-backed store for parsed email records.

The store is the publish target of ingestion and the ``find`` target of
search. Keyword search uses an FTS5 table over subject and body when one was
created at initialization; without it, keyword clauses are evaluated with a
``REGEXP`` function registered on every connection.
"""

from __future__ import annotations

import json
import re
import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path

import structlog

from mail_indexer.exceptions import StoreError
from mail_indexer.models import (
    AddressClause,
    DateClause,
    EmailRecord,
    FilterPlan,
    KeywordClause,
    KeywordStrategy,
)

logger = structlog.get_logger()


_SCHEMA_VERSION = 1

_FTS_TABLE = "email_records_fts"
_KEYWORD_COLUMNS: tuple[str, ...] = ("subject", "body")


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _regexp(pattern: str, value: str | None) -> bool:
    # SQLite rewrites "X REGEXP Y" as regexp(Y, X).
    if value is None:
        return False
    return _compile_pattern(pattern).search(value) is not None


def _placeholders(values: Sequence[object]) -> str:
    return ", ".join("?" for _ in values)


def _fts_query(phrase: str) -> str:
    # Any term may match; each term is quoted so FTS5 operators in user input
    # are treated as text.
    terms = ['"' + term.replace('"', '""') + '"' for term in phrase.split()]
    return " OR ".join(terms)


def _keyword_columns(clause: KeywordClause) -> tuple[str, ...]:
    unknown = set(clause.fields) - set(_KEYWORD_COLUMNS)
    if unknown:
        raise StoreError(f"Keyword search is not supported on fields: {sorted(unknown)}")
    return clause.fields


class EmailRecordRepository:
    """Repository for storing and querying parsed email records."""

    def __init__(self, db_path: Path) -> None:
        """Create a repository.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = db_path

    def initialize(self, keyword_index: bool = True) -> None:
        """Create the schema if needed.

        Args:
            keyword_index: Also create the full-text index over subject and
                body. An existing index is never dropped.
        """

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                logger.info("email_store_schema_created", version=_SCHEMA_VERSION)
            elif current_version != _SCHEMA_VERSION:
                raise StoreError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

            if keyword_index and not self._fts_exists(conn):
                self._create_keyword_index(conn)
                logger.info("email_store_keyword_index_created", table=_FTS_TABLE)

            conn.commit()

    def add(self, record: EmailRecord) -> None:
        """Persist one record. Usable directly as an ingestion publisher."""

        self.add_many([record])

    def add_many(self, records: Iterable[EmailRecord]) -> None:
        """Upsert a batch of records.

        Records sharing a Message-ID replace the stored one; records without a
        Message-ID are always inserted.
        """

        rows = [self._record_to_row(r) for r in records]
        if not rows:
            return

        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO email_records (
                    message_id,
                    normalized_date,
                    from_addr,
                    to_addrs_json,
                    cc_addrs_json,
                    bcc_addrs_json,
                    subject,
                    body,
                    folder_path,
                    processed_at_iso,
                    indexed,
                    updated_at_iso
                )
                VALUES (
                    :message_id,
                    :normalized_date,
                    :from_addr,
                    :to_addrs_json,
                    :cc_addrs_json,
                    :bcc_addrs_json,
                    :subject,
                    :body,
                    :folder_path,
                    :processed_at_iso,
                    1,
                    :updated_at_iso
                )
                ON CONFLICT(message_id) DO UPDATE SET
                    normalized_date=excluded.normalized_date,
                    from_addr=excluded.from_addr,
                    to_addrs_json=excluded.to_addrs_json,
                    cc_addrs_json=excluded.cc_addrs_json,
                    bcc_addrs_json=excluded.bcc_addrs_json,
                    subject=excluded.subject,
                    body=excluded.body,
                    folder_path=excluded.folder_path,
                    processed_at_iso=excluded.processed_at_iso,
                    indexed=1,
                    updated_at_iso=excluded.updated_at_iso
                """,
                rows,
            )
            conn.commit()

        logger.debug("email_records_stored", count=len(rows))

    def has_keyword_index(self, fields: Sequence[str] = _KEYWORD_COLUMNS) -> bool:
        """Whether a full-text index covering every one of ``fields`` exists."""

        with self._connect() as conn:
            if not self._fts_exists(conn):
                return False
            cursor = conn.execute(f"SELECT * FROM {_FTS_TABLE} LIMIT 0")
            columns = {d[0] for d in cursor.description}

        return set(fields) <= columns

    def find(self, plan: FilterPlan, limit: int | None = None) -> list[EmailRecord]:
        """Return stored records matching every clause of ``plan``.

        Args:
            plan: Compiled filter plan.
            limit: Max results (all when None).

        Returns:
            Matching records in insertion order.

        Raises:
            StoreError: If the plan asks for an index search and no keyword
                index exists, or on any database failure.
        """

        conditions: list[str] = []
        params: list[object] = []

        with self._connect() as conn:
            for clause in plan.clauses:
                if isinstance(clause, AddressClause):
                    marks = _placeholders(clause.addresses)
                    conditions.append(
                        f"""(
                            e.from_addr IN ({marks})
                            OR EXISTS (
                                SELECT 1 FROM json_each(e.to_addrs_json) AS r
                                WHERE r.value IN ({marks})
                            )
                        )"""
                    )
                    params.extend(clause.addresses)
                    params.extend(clause.addresses)
                elif isinstance(clause, DateClause):
                    conditions.append(f"e.normalized_date IN ({_placeholders(clause.dates)})")
                    params.extend(clause.dates)
                elif isinstance(clause, KeywordClause):
                    condition, values = self._keyword_condition(conn, clause)
                    conditions.append(condition)
                    params.extend(values)

            rows = conn.execute(
                f"""
                SELECT
                    e.message_id,
                    e.normalized_date,
                    e.from_addr,
                    e.to_addrs_json,
                    e.cc_addrs_json,
                    e.bcc_addrs_json,
                    e.subject,
                    e.body,
                    e.folder_path,
                    e.processed_at_iso,
                    e.indexed
                FROM email_records e
                WHERE {" AND ".join(conditions)}
                ORDER BY e.rowid
                LIMIT ?;
                """,
                (*params, -1 if limit is None else limit),
            ).fetchall()

        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        """Number of stored records."""

        with self._connect() as conn:
            (total,) = conn.execute("SELECT COUNT(*) FROM email_records;").fetchone()
        return int(total or 0)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(self._db_path)
            conn.row_factory = sqlite3.Row
            conn.create_function("regexp", 2, _regexp, deterministic=True)
            yield conn
        except sqlite3.Error as exc:
            logger.error("email_store_error", db_path=str(self._db_path), error=str(exc))
            raise StoreError(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    def _keyword_condition(
        self, conn: sqlite3.Connection, clause: KeywordClause
    ) -> tuple[str, list[object]]:
        columns = _keyword_columns(clause)

        if clause.strategy is KeywordStrategy.INDEX_SEARCH:
            if not self._fts_exists(conn):
                raise StoreError("Index search requested but the keyword index does not exist")
            query = _fts_query(clause.phrase or " ".join(clause.keywords))
            if set(columns) != set(_KEYWORD_COLUMNS):
                query = "{" + " ".join(columns) + "} : (" + query + ")"
            return (
                f"e.rowid IN (SELECT rowid FROM {_FTS_TABLE} WHERE {_FTS_TABLE} MATCH ?)",
                [query],
            )

        pattern = clause.pattern or "|".join(re.escape(k) for k in clause.keywords)
        if clause.case_insensitive:
            pattern = "(?i)" + pattern
        condition = " OR ".join(f"e.{column} REGEXP ?" for column in columns)
        return f"({condition})", [pattern] * len(columns)

    def _fts_exists(self, conn: sqlite3.Connection) -> bool:
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (_FTS_TABLE,),
        ).fetchone()
        return row is not None

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS email_records (
                rowid INTEGER PRIMARY KEY,
                message_id TEXT UNIQUE,
                normalized_date TEXT,
                from_addr TEXT NOT NULL,
                to_addrs_json TEXT NOT NULL,
                cc_addrs_json TEXT,
                bcc_addrs_json TEXT,
                subject TEXT NOT NULL,
                body TEXT NOT NULL,
                folder_path TEXT,
                processed_at_iso TEXT NOT NULL,
                indexed INTEGER NOT NULL,
                updated_at_iso TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_email_records_from_addr
                ON email_records(from_addr);

            CREATE INDEX IF NOT EXISTS idx_email_records_normalized_date
                ON email_records(normalized_date);
            """
        )

    def _create_keyword_index(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            f"""
            CREATE VIRTUAL TABLE IF NOT EXISTS {_FTS_TABLE} USING fts5(
                subject,
                body,
                content='email_records',
                content_rowid='rowid'
            );

            CREATE TRIGGER IF NOT EXISTS email_records_ai
            AFTER INSERT ON email_records
            BEGIN
                INSERT INTO {_FTS_TABLE}(rowid, subject, body)
                VALUES (new.rowid, new.subject, new.body);
            END;

            CREATE TRIGGER IF NOT EXISTS email_records_ad
            AFTER DELETE ON email_records
            BEGIN
                INSERT INTO {_FTS_TABLE}({_FTS_TABLE}, rowid, subject, body)
                VALUES('delete', old.rowid, old.subject, old.body);
            END;

            CREATE TRIGGER IF NOT EXISTS email_records_au
            AFTER UPDATE ON email_records
            BEGIN
                INSERT INTO {_FTS_TABLE}({_FTS_TABLE}, rowid, subject, body)
                VALUES('delete', old.rowid, old.subject, old.body);

                INSERT INTO {_FTS_TABLE}(rowid, subject, body)
                VALUES (new.rowid, new.subject, new.body);
            END;

            -- Pick up rows stored before the index existed.
            INSERT INTO {_FTS_TABLE}({_FTS_TABLE}) VALUES('rebuild');
            """
        )

    def _record_to_row(self, record: EmailRecord) -> dict[str, object]:
        return {
            "message_id": record.message_id,
            "normalized_date": record.normalized_date,
            "from_addr": record.from_addr,
            "to_addrs_json": json.dumps(record.to),
            "cc_addrs_json": json.dumps(sorted(record.cc)) if record.cc is not None else None,
            "bcc_addrs_json": json.dumps(sorted(record.bcc)) if record.bcc is not None else None,
            "subject": record.subject,
            "body": record.body,
            "folder_path": record.folder_path,
            "processed_at_iso": record.processed_at.isoformat(),
            "updated_at_iso": datetime.now(timezone.utc).isoformat(),
        }

    def _row_to_record(self, row: sqlite3.Row) -> EmailRecord:
        cc = json.loads(row["cc_addrs_json"]) if row["cc_addrs_json"] is not None else None
        bcc = json.loads(row["bcc_addrs_json"]) if row["bcc_addrs_json"] is not None else None

        return EmailRecord(
            message_id=row["message_id"],
            normalized_date=row["normalized_date"],
            from_addr=row["from_addr"],
            to=json.loads(row["to_addrs_json"]),
            cc=frozenset(cc) if cc is not None else None,
            bcc=frozenset(bcc) if bcc is not None else None,
            subject=row["subject"],
            body=row["body"],
            folder_path=row["folder_path"],
            processed_at=datetime.fromisoformat(row["processed_at_iso"]),
            indexed=bool(row["indexed"]),
        )
