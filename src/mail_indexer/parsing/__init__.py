"""Raw message parsing."""

from .message import DATE_LAYOUTS, HEADER_PREFIXES, normalize_date, parse_email

__all__ = ["DATE_LAYOUTS", "HEADER_PREFIXES", "normalize_date", "parse_email"]
