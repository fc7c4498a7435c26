class AnalyzerError(Exception):
    """Base exception for all analyzer-related errors."""


class UnsupportedContentError(AnalyzerError):
    """Raised when an analyzer is asked to run on a document it does not apply to.

    The scheduler checks ``applies_to`` first and reports a skip instead, so
    this only surfaces when an analyzer is invoked directly.
    """


class OcrError(AnalyzerError):
    """Raised when an OCR engine fails to produce text."""
