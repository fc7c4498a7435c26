import io

import pdfplumber

from docscan.pdf.base import BasePdfExtractor
from docscan.pdf.exceptions import PdfExtractionError
from docscan.pdf.models import PdfInfo


def _text_or_none(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip()
    return text or None


class PdfPlumberAdapter(BasePdfExtractor):
    """Reads PDFs using pdfplumber."""

    name = "pdfplumber"

    def extract(self, pdf_bytes: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return "\n".join(pages).strip()
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc

    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                info = pdf.metadata or {}
                page_count = len(pdf.pages)
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber inspection failed: {exc}") from exc
        return PdfInfo(
            page_count=page_count,
            author=_text_or_none(info.get("Author")),
            creator=_text_or_none(info.get("Creator")),
            producer=_text_or_none(info.get("Producer")),
            creation_date=_text_or_none(info.get("CreationDate")),
            modification_date=_text_or_none(info.get("ModDate")),
        )
