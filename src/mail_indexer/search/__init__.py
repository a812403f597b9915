"""Search boundary: query string in, matching records out."""

from .service import RecordStore, SearchService

__all__ = ["RecordStore", "SearchService"]
