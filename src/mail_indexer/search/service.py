"""Free-text search over stored email records."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import structlog

from mail_indexer.config import Settings
from mail_indexer.models import EmailRecord, FilterPlan, KeywordStrategy
from mail_indexer.query import compile_filter_plan, extract_entities
from mail_indexer.query.compiler import KEYWORD_FIELDS

logger = structlog.get_logger()


class RecordStore(Protocol):
    """What search needs from a record store."""

    def has_keyword_index(self, fields: Sequence[str]) -> bool: ...

    def find(self, plan: FilterPlan, limit: int | None = None) -> list[EmailRecord]: ...


class SearchService:
    """Resolves search queries against a record store."""

    def __init__(self, store: RecordStore, limit: int | None = None) -> None:
        """Create a search service.

        Args:
            store: Record store that evaluates filter plans.
            limit: Default maximum number of results (unbounded when None).
        """

        self._store = store
        self._limit = limit

    @classmethod
    def from_settings(cls, store: RecordStore, settings: Settings) -> SearchService:
        return cls(store, limit=settings.search_limit)

    def plan(self, query: str) -> FilterPlan:
        """Compile ``query`` for the store's current capabilities.

        Raises:
            ValidationError: If the query is empty or yields no tokens.
        """

        tokens = extract_entities(query)
        keyword_index = self._store.has_keyword_index(KEYWORD_FIELDS)
        return compile_filter_plan(tokens, keyword_index)

    def search(self, query: str, limit: int | None = None) -> list[EmailRecord]:
        """Find the records matching ``query``.

        Args:
            query: Free-text query mixing addresses, dates and keywords.
            limit: Max results; defaults to the service limit.

        Returns:
            Matching records in store order.

        Raises:
            ValidationError: If the query is empty or yields no tokens.
            StoreError: If the store fails.
        """

        plan = self.plan(query)

        keyword_clause = plan.clause("keyword")
        if keyword_clause is not None and keyword_clause.strategy is KeywordStrategy.REGEX_FALLBACK:
            logger.warning("keyword_index_missing_using_regex_fallback")

        results = self._store.find(plan, limit=limit if limit is not None else self._limit)
        logger.info(
            "search_executed",
            clauses=[c.kind for c in plan.clauses],
            result_count=len(results),
        )
        return results
