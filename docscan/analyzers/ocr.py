import asyncio
from datetime import datetime, timezone

from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.exceptions import UnsupportedContentError
from docscan.analyzers.models import AnalysisContext, AnalyzerOutcome, OcrUpdate, Stage
from docscan.analyzers.text_signals import make_preview
from docscan.ocr.base import BaseOcrEngine
from docscan.registry.models import Document, OcrResult
from docscan.sources.base import SourceRef


class OcrAnalyzer(BaseAnalyzer):
    """Recognizes text in OCR-eligible documents (PDFs and raster images)."""

    stage = Stage.OCR
    deterministic = False

    def __init__(self, engine: BaseOcrEngine, preview_chars: int) -> None:
        self._engine = engine
        self._preview_chars = preview_chars

    def applies_to(self, document: Document) -> bool:
        return document.facts.ocr_eligible and self._engine.supports(document.facts.extension)

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        if not self.applies_to(document):
            raise UnsupportedContentError(
                f"OCR does not support '.{document.facts.extension}' files"
            )
        extension = document.facts.extension
        content = await source.read_bytes()
        text = await asyncio.to_thread(self._engine.recognize, content, extension)
        return OcrUpdate(
            OcrResult(
                engine=self._engine.engine_name(extension),
                text=text,
                preview=make_preview(text, self._preview_chars) or "",
                processed_at=datetime.now(timezone.utc),
            )
        )
