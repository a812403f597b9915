"""Local email record store.

This package persists parsed records in SQLite and evaluates compiled filter
plans against them, using a full-text index for keywords when one exists.
"""

from .repository import EmailRecordRepository

__all__ = ["EmailRecordRepository"]
