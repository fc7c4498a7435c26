from dataclasses import dataclass

from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.classifier import ClassifierAnalyzer
from docscan.analyzers.keydata import KeyDataFullAnalyzer, KeyDataQuickAnalyzer
from docscan.analyzers.metadata import MetadataBasicAnalyzer, MetadataDeepAnalyzer
from docscan.analyzers.models import Stage
from docscan.analyzers.ocr import OcrAnalyzer
from docscan.config.settings import Settings
from docscan.ocr.factory import OcrEngineFactory
from docscan.pdf.factory import PdfExtractorFactory


@dataclass(frozen=True)
class AnalyzerSet:
    """One analyzer per stage."""

    metadata_basic: BaseAnalyzer
    metadata_deep: BaseAnalyzer
    keydata_quick: BaseAnalyzer
    keydata_full: BaseAnalyzer
    classifier: BaseAnalyzer
    ocr: BaseAnalyzer

    def __post_init__(self) -> None:
        for stage, analyzer in self.by_stage().items():
            if analyzer.stage is not stage:
                raise ValueError(f"{analyzer!r} cannot serve stage '{stage.value}'")

    def by_stage(self) -> dict[Stage, BaseAnalyzer]:
        return {
            Stage.METADATA_BASIC: self.metadata_basic,
            Stage.METADATA_DEEP: self.metadata_deep,
            Stage.KEYDATA_QUICK: self.keydata_quick,
            Stage.KEYDATA_FULL: self.keydata_full,
            Stage.CLASSIFIER: self.classifier,
            Stage.OCR: self.ocr,
        }

    def for_stage(self, stage: Stage) -> BaseAnalyzer:
        return self.by_stage()[stage]


class AnalyzerFactory:
    """Builds the analyzer set with the adapters selected in settings."""

    @classmethod
    def create(cls, settings: Settings) -> AnalyzerSet:
        pdf_extractor = PdfExtractorFactory.create(settings)
        ocr_engine = OcrEngineFactory.create(settings)
        return AnalyzerSet(
            metadata_basic=MetadataBasicAnalyzer(),
            metadata_deep=MetadataDeepAnalyzer(pdf_extractor),
            keydata_quick=KeyDataQuickAnalyzer(
                settings.text_extensions, settings.max_text_bytes
            ),
            keydata_full=KeyDataFullAnalyzer(settings.text_extensions, pdf_extractor),
            classifier=ClassifierAnalyzer(),
            ocr=OcrAnalyzer(ocr_engine, settings.ocr_preview_chars),
        )
