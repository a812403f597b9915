"""Canonical email record model.

A record is built once by the message parser and never mutated afterwards.
Later stages that need to attach storage or source details work on copies
made with ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Stored in place of a Date header that could not be normalized. Distinct from
# a missing Date header, which leaves ``normalized_date`` as None.
INVALID_DATE = "Invalid Date"


class EmailRecord(BaseModel):
    """One parsed message: the five recognized headers plus the body."""

    model_config = ConfigDict(frozen=True)

    message_id: str | None = Field(default=None, description="Message-ID header")

    # Raw is kept for diagnostics on the parse result only; stores persist the
    # normalized form.
    raw_date: str = Field(default="", exclude=True, description="Date header as written")
    normalized_date: str | None = Field(
        default=None,
        description="Date as 'YYYY-MM-DD HH:MM:SS', or 'Invalid Date' when unparseable",
    )

    from_addr: str = Field(default="", description="From header")
    to: tuple[str, ...] = Field(default=(), description="Ordered To recipients")
    cc: frozenset[str] | None = Field(default=None, description="Cc recipients")
    bcc: frozenset[str] | None = Field(default=None, description="Bcc recipients")

    subject: str = Field(default="", description="Subject header")
    body: str = Field(default="", description="Everything after the first blank line")

    folder_path: str | None = Field(
        default=None, description="Mailbox folder ('<user>/<folder>') the source came from"
    )

    processed_at: datetime = Field(description="When parsing completed (UTC)")
    indexed: bool = Field(default=False, description="Whether the record has been persisted")

    @property
    def has_valid_date(self) -> bool:
        """True when the Date header was normalized successfully."""
        return self.normalized_date is not None and self.normalized_date != INVALID_DATE
