"""Split a free-text search query into addresses, dates and keywords."""

from __future__ import annotations

import re

import structlog

from mail_indexer.exceptions import ValidationError
from mail_indexer.models import QueryTokens

logger = structlog.get_logger()


ADDRESS_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

DATE_PATTERN = re.compile(
    r"\b\d{4}-\d{2}-\d{2}\b"  # 2001-05-09
    r"|\b\d{2}/\d{2}/\d{4}\b"  # 05/09/2001
    r"|\b[A-Za-z]{3,9} \d{1,2}, \d{4}\b"  # May 9, 2001
)


def _dedupe(items: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def _overlaps(span: tuple[int, int], taken: list[tuple[int, int]]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in taken)


def _remove_spans(text: str, spans: list[tuple[int, int]]) -> str:
    # Right to left so earlier offsets stay valid.
    for start, end in sorted(spans, reverse=True):
        text = text[:start] + " " + text[end:]
    return text


def _keywords(residual: str) -> tuple[str, ...]:
    tokens = (token.rstrip(",") for token in residual.split())
    return _dedupe([token for token in tokens if token])


def extract_entities(query: str) -> QueryTokens:
    """Extract typed entities from a search query.

    Matched addresses and dates are cut out of the query before the remainder
    is tokenized, so keywords never carry fragments of either.

    Args:
        query: Free-text query, e.g. ``"john@enron.com 2001-05-09 meeting notes"``.

    Returns:
        QueryTokens with deduplicated addresses, dates and keywords.

    Raises:
        ValidationError: If the query is empty or whitespace only.
    """

    if query is None or not query.strip():
        raise ValidationError("Query cannot be empty.")

    address_matches = list(ADDRESS_PATTERN.finditer(query))
    spans = [m.span() for m in address_matches]

    # A date written inside an address belongs to the address.
    date_matches = [m for m in DATE_PATTERN.finditer(query) if not _overlaps(m.span(), spans)]
    spans.extend(m.span() for m in date_matches)

    tokens = QueryTokens(
        addresses=_dedupe([m.group() for m in address_matches]),
        dates=_dedupe([m.group() for m in date_matches]),
        keywords=_keywords(_remove_spans(query, spans)),
    )
    logger.debug(
        "query_entities_extracted",
        addresses=tokens.addresses,
        dates=tokens.dates,
        keywords=tokens.keywords,
    )
    return tokens
