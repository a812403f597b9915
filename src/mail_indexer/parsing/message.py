"""Helpers for parsing raw header/body message text into records.

Only five header fields are recognized, by exact case-sensitive prefix. Any
other line in the header block is dropped, which keeps the parser compatible
with records produced by earlier ingestion runs.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

import structlog

from mail_indexer.models import INVALID_DATE, EmailRecord

logger = structlog.get_logger()


MESSAGE_ID = "Message-ID: "
DATE = "Date: "
FROM = "From: "
TO = "To: "
SUBJECT = "Subject: "

HEADER_PREFIXES: tuple[str, ...] = (MESSAGE_ID, DATE, FROM, TO, SUBJECT)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_LAYOUT_TAIL = r" (?P<month>[A-Z][a-z]{2}) (?P<year>\d{4}) (?P<time>\d{2}:\d{2}:\d{2}) [+-]\d{4}$"

# Tried in order; the first one that matches wins.
DATE_LAYOUTS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?P<weekday>[A-Z][a-z]{2}), (?P<day>\d)" + _LAYOUT_TAIL),
    re.compile(r"^(?P<weekday>[A-Z][a-z]{2}), (?P<day>\d{2})" + _LAYOUT_TAIL),
)

_TRAILING_COMMENT = re.compile(r"\([^()]*\)\s*$")

CANONICAL_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _match_layout(value: str, layout: re.Pattern[str]) -> datetime | None:
    m = layout.match(value)
    if m is None:
        return None

    month = m.group("month")
    weekday = m.group("weekday")
    if month not in _MONTHS or weekday not in _WEEKDAYS:
        return None

    hour, minute, second = (int(part) for part in m.group("time").split(":"))
    try:
        parsed = datetime(
            int(m.group("year")),
            _MONTHS.index(month) + 1,
            int(m.group("day")),
            hour,
            minute,
            second,
        )
    except ValueError:
        return None

    if _WEEKDAYS[parsed.weekday()] != weekday:
        return None
    return parsed


def normalize_date(value: str) -> str:
    """Normalize a Date header value to ``YYYY-MM-DD HH:MM:SS``.

    The numeric UTC offset must be present but is not applied; the literal
    local time is reformatted as written.

    Args:
        value: Header value, e.g. ``"Wed, 9 May 2001 17:13:00 -0700 (PDT)"``.

    Returns:
        The canonical date string, or ``INVALID_DATE`` when no layout matches.
    """

    cleaned = _TRAILING_COMMENT.sub("", value).strip()
    for layout in DATE_LAYOUTS:
        parsed = _match_layout(cleaned, layout)
        if parsed is not None:
            return parsed.strftime(CANONICAL_DATE_FORMAT)
    return INVALID_DATE


def _parse_recipients(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _is_blank(line: str) -> bool:
    return not line.strip()


def _split_lines(text: str) -> list[str]:
    # Only "\n" separates lines; other Unicode line breaks stay in the text.
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_email(text: str) -> EmailRecord | None:
    """Convert raw message text to an EmailRecord.

    Lines up to the first blank line are headers; everything after it is the
    body, kept verbatim and joined with ``\\n``.

    Args:
        text: Raw message text, one message per call.

    Returns:
        EmailRecord, or None when the text is blank. Text without any
        recognized header still yields a record with empty header fields.
    """

    if not text or _is_blank(text):
        return None

    fields: dict[str, str] = {}
    body_lines: list[str] = []
    in_body = False

    for line in _split_lines(text):
        if in_body:
            body_lines.append(line)
            continue
        if _is_blank(line):
            in_body = True
            continue

        for prefix in HEADER_PREFIXES:
            if line.startswith(prefix):
                fields[prefix] = line[len(prefix):].strip()
                break

    raw_date = fields.get(DATE)
    normalized_date = normalize_date(raw_date) if raw_date is not None else None
    if normalized_date == INVALID_DATE:
        logger.debug("message_date_invalid", raw_date=raw_date)

    return EmailRecord(
        message_id=fields.get(MESSAGE_ID),
        raw_date=raw_date or "",
        normalized_date=normalized_date,
        from_addr=fields.get(FROM, ""),
        to=_parse_recipients(fields.get(TO, "")),
        subject=fields.get(SUBJECT, ""),
        body="\n".join(body_lines),
        processed_at=datetime.now(timezone.utc),
    )
