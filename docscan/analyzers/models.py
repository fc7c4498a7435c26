from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from docscan.registry.models import Classification, KeyData, Metadata, OcrResult


class Stage(str, Enum):
    METADATA_BASIC = "metadata-basic"
    METADATA_DEEP = "metadata-deep"
    KEYDATA_QUICK = "keydata-quick"
    KEYDATA_FULL = "keydata-full"
    CLASSIFIER = "classifier"
    OCR = "ocr"


QUICK_STAGES = (Stage.METADATA_BASIC, Stage.KEYDATA_QUICK, Stage.CLASSIFIER)


@dataclass(frozen=True)
class BasicMetadataUpdate:
    mime_type: str
    created_at: datetime | None
    modified_at: datetime | None
    stage: Stage = field(default=Stage.METADATA_BASIC, init=False)


@dataclass(frozen=True)
class DeepMetadataUpdate:
    author: str | None = None
    owner: str | None = None
    software: str | None = None
    device: str | None = None
    location: str | None = None
    gps: str | None = None
    page_count: int | None = None
    stage: Stage = field(default=Stage.METADATA_DEEP, init=False)


@dataclass(frozen=True)
class KeyDataUpdate:
    key_data: KeyData
    stage: Stage = Stage.KEYDATA_QUICK


@dataclass(frozen=True)
class ClassificationUpdate:
    classification: Classification
    stage: Stage = field(default=Stage.CLASSIFIER, init=False)


@dataclass(frozen=True)
class OcrUpdate:
    ocr: OcrResult
    stage: Stage = field(default=Stage.OCR, init=False)


@dataclass(frozen=True)
class AnalyzerFailure:
    """A typed failure returned instead of raising."""

    stage: Stage
    message: str


AnalyzerUpdate = (
    BasicMetadataUpdate | DeepMetadataUpdate | KeyDataUpdate | ClassificationUpdate | OcrUpdate
)
AnalyzerOutcome = AnalyzerUpdate | AnalyzerFailure


@dataclass
class AnalysisContext:
    """Outputs produced earlier in the same run, visible to later analyzers."""

    metadata: Metadata | None = None
    key_data: KeyData | None = None
