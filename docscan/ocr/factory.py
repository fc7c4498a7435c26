from docscan.config.settings import Settings
from docscan.ocr.base import BaseOcrEngine
from docscan.ocr.composite import RoutingOcrEngine
from docscan.ocr.pymupdf_adapter import PyMuPdfTextLayerEngine
from docscan.ocr.tesseract_adapter import TesseractOcrEngine


class OcrEngineFactory:
    """Creates the configured OCR engine."""

    ENGINES = ("auto", "tesseract", "pymupdf")

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrEngine:
        engine = settings.ocr_engine.lower()
        if engine == "tesseract":
            return TesseractOcrEngine(language=settings.ocr_language)
        if engine == "pymupdf":
            return PyMuPdfTextLayerEngine()
        if engine == "auto":
            return RoutingOcrEngine(
                [PyMuPdfTextLayerEngine(), TesseractOcrEngine(language=settings.ocr_language)]
            )
        raise ValueError(f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}")
