"""Message folder ingestion."""

from .session import IngestionReport, IngestionSession, Publisher

__all__ = ["IngestionReport", "IngestionSession", "Publisher"]
