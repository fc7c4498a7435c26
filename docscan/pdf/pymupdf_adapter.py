import pymupdf

from docscan.pdf.base import BasePdfExtractor
from docscan.pdf.exceptions import PdfExtractionError
from docscan.pdf.models import PdfInfo


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads PDFs using PyMuPDF."""

    name = "pymupdf"

    def extract(self, pdf_bytes: bytes) -> str:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return "\n".join(pages).strip()
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc

    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                info = doc.metadata or {}
                page_count = doc.page_count
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf inspection failed: {exc}") from exc
        return PdfInfo(
            page_count=page_count,
            author=info.get("author") or None,
            creator=info.get("creator") or None,
            producer=info.get("producer") or None,
            creation_date=info.get("creationDate") or None,
            modification_date=info.get("modDate") or None,
        )
