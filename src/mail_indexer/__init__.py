"""Mail Indexer - parse header-delimited email dumps and search them.

This package turns raw maildir-style message files into canonical records,
stores them locally, and resolves free-text queries into structured filters.
"""

__version__ = "0.1.0"

from mail_indexer.config import Settings, get_settings
from mail_indexer.parsing import parse_email
from mail_indexer.query import compile_filter_plan, extract_entities

__all__ = [
    "Settings",
    "get_settings",
    "parse_email",
    "extract_entities",
    "compile_filter_plan",
    "__version__",
]
