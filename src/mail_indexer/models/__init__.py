"""Data models for Mail Indexer.

This module contains Pydantic models for parsed records and search plans.
"""

from .email_record import INVALID_DATE, EmailRecord
from .filter_plan import (
    AddressClause,
    Clause,
    DateClause,
    FilterPlan,
    KeywordClause,
    KeywordStrategy,
    QueryTokens,
)

__all__ = [
    "INVALID_DATE",
    "AddressClause",
    "Clause",
    "DateClause",
    "EmailRecord",
    "FilterPlan",
    "KeywordClause",
    "KeywordStrategy",
    "QueryTokens",
]
