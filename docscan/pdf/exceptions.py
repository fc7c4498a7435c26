from docscan.analyzers.exceptions import AnalyzerError


class PdfExtractionError(AnalyzerError):
    """Raised when text or document info cannot be read from a PDF."""
