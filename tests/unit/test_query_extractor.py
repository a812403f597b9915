"""Unit tests for query entity extraction."""

import pytest

from mail_indexer.exceptions import ValidationError
from mail_indexer.query import extract_entities


def test_extract_splits_addresses_dates_and_keywords() -> None:
    tokens = extract_entities("john@enron.com 2001-05-09 meeting notes")

    assert tokens.addresses == ("john@enron.com",)
    assert tokens.dates == ("2001-05-09",)
    assert tokens.keywords == ("meeting", "notes")


@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_extract_rejects_blank_query(query: str) -> None:
    with pytest.raises(ValidationError):
        extract_entities(query)


def test_extract_recognizes_all_date_shapes() -> None:
    tokens = extract_entities("2001-05-09 05/10/2001 May 11, 2001 September 1, 2000")

    assert tokens.dates == ("2001-05-09", "05/10/2001", "May 11, 2001", "September 1, 2000")
    assert tokens.keywords == ()


def test_extract_deduplicates_in_first_occurrence_order() -> None:
    tokens = extract_entities(
        "b@y.com a@x.com b@y.com gas power gas 2001-05-09 2001-05-09"
    )

    assert tokens.addresses == ("b@y.com", "a@x.com")
    assert tokens.dates == ("2001-05-09",)
    assert tokens.keywords == ("gas", "power")


def test_extract_strips_trailing_commas_from_keywords() -> None:
    tokens = extract_entities("gas, power,, , trading")

    assert tokens.keywords == ("gas", "power", "trading")


def test_extract_keywords_never_contain_address_fragments() -> None:
    tokens = extract_entities("from:john.arnold@enron.com about storage")

    assert tokens.addresses == ("john.arnold@enron.com",)
    assert tokens.keywords == ("from:", "about", "storage")
    assert not any("enron" in k for k in tokens.keywords)


def test_extract_requires_dotted_domain_with_alpha_tld() -> None:
    tokens = extract_entities("user@localhost admin@host.c ops@example.org")

    assert tokens.addresses == ("ops@example.org",)
    assert "user@localhost" in tokens.keywords


def test_extract_date_inside_address_belongs_to_address() -> None:
    tokens = extract_entities("2001-05-09@archive.com")

    assert tokens.addresses == ("2001-05-09@archive.com",)
    assert tokens.dates == ()
    assert tokens.keywords == ()


def test_extract_long_form_date_keeps_surrounding_keywords() -> None:
    tokens = extract_entities("budget review May 9, 2001 draft")

    assert tokens.dates == ("May 9, 2001",)
    assert tokens.keywords == ("budget", "review", "draft")


def test_extract_is_deterministic() -> None:
    query = "kate@enron.com 10/01/2001 west desk, positions"

    assert extract_entities(query) == extract_entities(query)


def test_extract_address_adjacent_comma() -> None:
    tokens = extract_entities("a@x.com, b@y.com, contract")

    assert tokens.addresses == ("a@x.com", "b@y.com")
    assert tokens.keywords == ("contract",)
