"""Unit tests for data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from mail_indexer.models import (
    INVALID_DATE,
    AddressClause,
    EmailRecord,
    FilterPlan,
    KeywordClause,
    KeywordStrategy,
    QueryTokens,
)


class TestEmailRecord:
    """Test suite for EmailRecord model."""

    def test_email_record_defaults(self) -> None:
        """Test creating an EmailRecord with only the required field."""
        record = EmailRecord(processed_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

        assert record.message_id is None
        assert record.normalized_date is None
        assert record.from_addr == ""
        assert record.to == ()
        assert record.cc is None
        assert record.indexed is False

    def test_raw_date_is_not_serialized(self, make_record) -> None:
        """Test that the raw Date literal stays out of serialized output."""
        record = make_record(raw_date="Mon, 14 May 2001 16:39:00 -0700 (PDT)")

        dumped = record.model_dump()
        assert "raw_date" not in dumped
        assert dumped["normalized_date"] == "2001-05-14 16:39:00"

    def test_has_valid_date(self, make_record) -> None:
        """Test the sentinel and missing dates are both treated as invalid."""
        assert make_record().has_valid_date is True
        assert make_record(normalized_date=INVALID_DATE).has_valid_date is False
        assert make_record(normalized_date=None).has_valid_date is False

    def test_model_copy_leaves_original_untouched(self, make_record) -> None:
        """Test enrichment produces a new record."""
        record = make_record()
        stored = record.model_copy(update={"indexed": True, "folder_path": "allen-p/inbox"})

        assert record.indexed is False
        assert record.folder_path is None
        assert stored.indexed is True
        assert stored.folder_path == "allen-p/inbox"

    def test_cc_is_order_insensitive(self, make_record) -> None:
        """Test cc recipients compare as a set."""
        a = make_record(cc=frozenset({"x@y.com", "z@y.com"}))
        b = make_record(cc=frozenset({"z@y.com", "x@y.com"}))

        assert a.cc == b.cc


class TestFilterPlan:
    """Test suite for FilterPlan and clause models."""

    def test_empty_plan_is_invalid(self) -> None:
        """Test that a plan needs at least one clause."""
        with pytest.raises(PydanticValidationError):
            FilterPlan(clauses=())

    def test_empty_address_clause_is_invalid(self) -> None:
        """Test that clauses need at least one value."""
        with pytest.raises(PydanticValidationError):
            AddressClause(addresses=())

    def test_plan_json_round_trip_keeps_clause_types(self) -> None:
        """Test the kind discriminator restores clause types."""
        plan = FilterPlan(
            clauses=(
                AddressClause(addresses=("a@x.com",)),
                KeywordClause(
                    strategy=KeywordStrategy.INDEX_SEARCH,
                    keywords=("gas",),
                    phrase="gas",
                ),
            )
        )

        restored = FilterPlan.model_validate_json(plan.to_json())
        assert restored == plan
        assert isinstance(restored.clauses[1], KeywordClause)


class TestQueryTokens:
    """Test suite for QueryTokens model."""

    def test_is_empty(self) -> None:
        assert QueryTokens().is_empty() is True
        assert QueryTokens(keywords=["gas"]).is_empty() is False

    def test_groups_are_tuples(self) -> None:
        tokens = QueryTokens(addresses=["a@x.com"], dates=["2001-05-09"], keywords=["gas"])

        assert tokens.addresses == ("a@x.com",)
        assert isinstance(tokens.dates, tuple)
        assert isinstance(tokens.keywords, tuple)
        with pytest.raises(AttributeError):
            tokens.keywords.append("power")  # type: ignore[attr-defined]
