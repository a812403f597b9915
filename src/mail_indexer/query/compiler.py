"""Compile extracted query tokens into a filter plan."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import structlog

from mail_indexer.exceptions import ValidationError
from mail_indexer.models import (
    AddressClause,
    DateClause,
    FilterPlan,
    KeywordClause,
    KeywordStrategy,
    QueryTokens,
)

logger = structlog.get_logger()


KEYWORD_FIELDS: tuple[str, ...] = ("subject", "body")


def _keyword_clause(keywords: tuple[str, ...], keyword_index_available: bool) -> KeywordClause:
    if keyword_index_available:
        return KeywordClause(
            strategy=KeywordStrategy.INDEX_SEARCH,
            keywords=tuple(keywords),
            fields=KEYWORD_FIELDS,
            phrase=" ".join(keywords),
        )

    return KeywordClause(
        strategy=KeywordStrategy.REGEX_FALLBACK,
        keywords=tuple(keywords),
        fields=KEYWORD_FIELDS,
        pattern="|".join(re.escape(k) for k in keywords),
        case_insensitive=True,
    )


def compile_filter_plan(
    tokens: QueryTokens | Mapping[str, Any],
    keyword_index_available: bool,
) -> FilterPlan:
    """Build the filter plan for a set of query tokens.

    Clauses appear in a fixed order (address, date, keyword) so that equal
    inputs always give equal plans.

    Args:
        tokens: Output of ``extract_entities``, or a mapping with the
            ``addresses``, ``dates`` and ``keywords`` keys.
        keyword_index_available: Whether the store has a full-text index over
            subject and body.

    Returns:
        FilterPlan with one clause per non-empty token group.

    Raises:
        ValidationError: If every token group is empty.
    """

    if not isinstance(tokens, QueryTokens):
        tokens = QueryTokens.model_validate(dict(tokens))

    if tokens.is_empty():
        raise ValidationError("Query has no addresses, dates or keywords to search for.")

    clauses: list[AddressClause | DateClause | KeywordClause] = []
    if tokens.addresses:
        clauses.append(AddressClause(addresses=tuple(tokens.addresses)))
    if tokens.dates:
        clauses.append(DateClause(dates=tuple(tokens.dates)))
    if tokens.keywords:
        clauses.append(_keyword_clause(tokens.keywords, keyword_index_available))

    plan = FilterPlan(clauses=tuple(clauses))
    logger.debug(
        "filter_plan_compiled",
        clauses=[c.kind for c in plan.clauses],
        keyword_index_available=keyword_index_available,
    )
    return plan
