from docscan.config.settings import Settings
from docscan.logging.logger import Log
from docscan.pdf.base import BasePdfExtractor
from docscan.pdf.pdfplumber_adapter import PdfPlumberAdapter
from docscan.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the PDF adapter named by ``settings.pdf_engine``.

    The same adapter serves text extraction (full key-data scan) and
    document-info inspection (deep metadata).
    """

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        PdfPlumberAdapter.name: PdfPlumberAdapter,
        PyMuPdfAdapter.name: PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.strip().lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        Log.debug(f"Using {engine} for PDF text and document info")
        return adapter_cls()
