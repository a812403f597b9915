"""Custom exceptions for Mail Indexer."""


class MailIndexerError(Exception):
    """Base exception for all Mail Indexer errors."""


class ConfigurationError(MailIndexerError):
    """Exception raised for configuration related errors."""


class ValidationError(MailIndexerError):
    """Exception raised when a search query or its tokens are unusable."""


class SourceReadError(MailIndexerError):
    """Exception raised when a raw message source cannot be read."""


class IngestionError(MailIndexerError):
    """Exception raised when an ingestion run cannot start."""


class StoreError(MailIndexerError):
    """Exception raised when the record store fails."""
