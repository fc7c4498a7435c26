class SourceError(Exception):
    """Base exception for all source-reference errors."""


class InvalidSourceError(SourceError):
    """Raised when a document's content is unreadable or no longer available."""
