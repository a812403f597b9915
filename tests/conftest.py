"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest


@pytest.fixture
def mock_settings(tmp_path):
    """Provide mock settings for testing."""
    from mail_indexer.config import Settings

    return Settings(
        index_db_path=tmp_path / "store.sqlite3",
        max_consecutive_skips=3,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def sample_email_content() -> str:
    """Provide a raw Enron-style message for testing."""
    return (
        "Message-ID: <18782981.1075855378110.JavaMail.evans@thyme>\n"
        "Date: Mon, 14 May 2001 16:39:00 -0700 (PDT)\n"
        "From: phillip.allen@enron.com\n"
        "To: tim.belden@enron.com, john.lavorato@enron.com\n"
        "Subject: Forecast\n"
        "Mime-Version: 1.0\n"
        "X-From: Phillip K Allen\n"
        "X-To: Tim Belden <Tim Belden/Enron@EnronXGate>\n"
        "\n"
        "Here is our forecast\n"
        "\n"
        "From: someone quoted in the body\n"
    )


@pytest.fixture
def make_record():
    """Build EmailRecord instances with sensible defaults."""
    from mail_indexer.models import EmailRecord

    def _make(**overrides):
        values = {
            "message_id": None,
            "normalized_date": "2001-05-14 16:39:00",
            "from_addr": "phillip.allen@enron.com",
            "to": ["tim.belden@enron.com"],
            "subject": "Forecast",
            "body": "Here is our forecast",
            "processed_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return EmailRecord(**values)

    return _make


@pytest.fixture
def write_message(tmp_path):
    """Write a message file under <tmp>/maildir/<user>/<folder>/<name>."""

    root = tmp_path / "maildir"

    def _write(user: str, folder: str, name: str, content: str):
        path = root / user / folder / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    _write.root = root
    return _write
