"""Query token and filter plan models.

A ``FilterPlan`` is an ordered list of typed clauses. Clauses are AND-ed
together and the values inside one clause are OR-ed. Keyword clauses also
carry the strategy the store should use to evaluate them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class KeywordStrategy(str, Enum):
    """How a keyword clause is evaluated by the store."""

    INDEX_SEARCH = "index_search"
    REGEX_FALLBACK = "regex_fallback"


class QueryTokens(BaseModel):
    """Entities extracted from a free-text query.

    The three groups are disjoint and each is deduplicated in order of first
    occurrence.
    """

    model_config = ConfigDict(frozen=True)

    addresses: tuple[str, ...] = Field(default=(), description="Email addresses")
    dates: tuple[str, ...] = Field(default=(), description="Date literals")
    keywords: tuple[str, ...] = Field(default=(), description="Residual keywords")

    def is_empty(self) -> bool:
        return not (self.addresses or self.dates or self.keywords)


class AddressClause(BaseModel):
    """Sender is one of ``addresses`` OR any To recipient is."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["address"] = "address"
    addresses: tuple[str, ...] = Field(min_length=1)


class DateClause(BaseModel):
    """Normalized date equals one of ``dates`` exactly."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["date"] = "date"
    dates: tuple[str, ...] = Field(min_length=1)


class KeywordClause(BaseModel):
    """Keyword match over subject and body.

    ``phrase`` is set for index searches and is handed to the store's
    full-text search as is. ``pattern`` is set for the regex fallback and is a
    case-insensitive alternation of the escaped keywords.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["keyword"] = "keyword"
    strategy: KeywordStrategy
    keywords: tuple[str, ...] = Field(min_length=1)
    fields: tuple[str, ...] = ("subject", "body")
    phrase: str | None = None
    pattern: str | None = None
    case_insensitive: bool = True


Clause = Annotated[
    Union[AddressClause, DateClause, KeywordClause],
    Field(discriminator="kind"),
]


class FilterPlan(BaseModel):
    """AND-ed sequence of clauses. Never empty."""

    model_config = ConfigDict(frozen=True)

    clauses: tuple[Clause, ...] = Field(min_length=1)

    def clause(self, kind: str) -> AddressClause | DateClause | KeywordClause | None:
        """Return the clause of the given kind, if the plan has one."""
        for c in self.clauses:
            if c.kind == kind:
                return c
        return None

    def to_json(self) -> str:
        """Serialize deterministically (stable field and clause order)."""
        return self.model_dump_json()
