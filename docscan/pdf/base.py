from abc import ABC, abstractmethod

from docscan.pdf.models import PdfInfo


class BasePdfExtractor(ABC):
    """Contract for all PDF adapters."""

    name: str = "base"

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract plain text from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Extracted text as a single normalized string.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """

    @abstractmethod
    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        """Read page count and the document info dictionary.

        Raises:
            PdfExtractionError: if the PDF cannot be opened.
        """
