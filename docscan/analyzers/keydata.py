import asyncio

from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.exceptions import UnsupportedContentError
from docscan.analyzers.models import AnalysisContext, AnalyzerOutcome, KeyDataUpdate, Stage
from docscan.analyzers.text_signals import extract_key_data
from docscan.pdf.base import BasePdfExtractor
from docscan.registry.models import Document, KeyData
from docscan.sources.base import SourceRef


class KeyDataQuickAnalyzer(BaseAnalyzer):
    """Regex scan over documents that can be read directly as text.

    Other formats yield empty but well-formed key data.
    """

    stage = Stage.KEYDATA_QUICK

    def __init__(self, text_extensions: list[str], max_text_bytes: int) -> None:
        self._text_extensions = frozenset(ext.lower() for ext in text_extensions)
        self._max_text_bytes = max_text_bytes

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        if document.facts.extension not in self._text_extensions:
            return KeyDataUpdate(KeyData(scan_depth="quick"), stage=self.stage)
        text = await source.read_text(max_bytes=self._max_text_bytes)
        return KeyDataUpdate(extract_key_data(text, scan_depth="quick"), stage=self.stage)


class KeyDataFullAnalyzer(BaseAnalyzer):
    """Regex scan over the whole text, including the text layer of PDFs."""

    stage = Stage.KEYDATA_FULL
    deterministic = False

    def __init__(self, text_extensions: list[str], pdf_extractor: BasePdfExtractor) -> None:
        self._text_extensions = frozenset(ext.lower() for ext in text_extensions)
        self._pdf_extractor = pdf_extractor

    def applies_to(self, document: Document) -> bool:
        extension = document.facts.extension
        return extension == "pdf" or extension in self._text_extensions

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        if not self.applies_to(document):
            raise UnsupportedContentError(
                f"Cannot read text from '.{document.facts.extension}' files"
            )
        if document.facts.extension == "pdf":
            content = await source.read_bytes()
            text = await asyncio.to_thread(self._pdf_extractor.extract, content)
        else:
            text = await source.read_text()
        key_data = await asyncio.to_thread(extract_key_data, text, "full")
        return KeyDataUpdate(key_data, stage=self.stage)
