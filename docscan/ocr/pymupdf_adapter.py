import pymupdf

from docscan.analyzers.exceptions import OcrError
from docscan.ocr.base import BaseOcrEngine


class PyMuPdfTextLayerEngine(BaseOcrEngine):
    """Reads the embedded text layer of PDFs page by page."""

    name = "pymupdf"
    extensions = frozenset({"pdf"})

    def recognize(self, content: bytes, extension: str) -> str:
        try:
            with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise OcrError(f"pymupdf text layer read failed: {exc}") from exc
        return "\n".join(pages).strip()
