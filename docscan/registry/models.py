from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from docscan.registry.exceptions import InvalidTransitionError

ONE_MIB = 1024 * 1024
OCR_EXTENSIONS = frozenset({"pdf", "jpg", "jpeg", "png", "tif", "tiff", "webp"})


class DocumentKind(str, Enum):
    UNKNOWN = "unknown"
    INVOICE = "invoice"
    RECEIPT = "receipt"
    CONTRACT = "contract"
    PAYROLL = "payroll"
    REPORT = "report"
    BANK_STATEMENT = "bank_statement"
    GENERAL_DOCUMENT = "general_document"
    IMAGE = "image"
    TABULAR_DATA = "tabular_data"
    PRESENTATION = "presentation"
    TEXT = "text"
    OTHER = "other"


class ScanPhase(str, Enum):
    QUEUED = "queued"
    QUICK_SCANNING = "quick-scanning"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _PHASE_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (ScanPhase.COMPLETED, ScanPhase.ERROR)


_PHASE_RANK = {
    ScanPhase.QUEUED: 0,
    ScanPhase.QUICK_SCANNING: 1,
    ScanPhase.COMPLETED: 2,
    ScanPhase.ERROR: 2,
}


class SizeBucket(str, Enum):
    ALL = "all"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @classmethod
    def of(cls, size_bytes: int) -> SizeBucket:
        if size_bytes <= ONE_MIB:
            return cls.SMALL
        if size_bytes <= 10 * ONE_MIB:
            return cls.MEDIUM
        return cls.LARGE


class MetadataPresence(str, Enum):
    ALL = "all"
    YES = "yes"
    NO = "no"


def estimate_quick_scan_ms(size_bytes: int) -> int:
    """Rough quick-scan cost for a document of the given size."""
    if size_bytes < ONE_MIB:
        return 300
    if size_bytes < 10 * ONE_MIB:
        return 1000
    return 3000


@dataclass(frozen=True)
class ScanState:
    phase: ScanPhase = ScanPhase.QUEUED
    estimated_quick_ms: int | None = None
    error_message: str | None = None

    def advance(self, phase: ScanPhase, error_message: str | None = None) -> ScanState:
        """Return the state moved to ``phase``.

        Raises:
            InvalidTransitionError: if ``phase`` would move the document backwards
                or out of a terminal phase.
        """
        if self.phase.is_terminal or phase.rank < self.phase.rank:
            raise InvalidTransitionError(
                f"Cannot move scan state from '{self.phase.value}' to '{phase.value}'"
            )
        return replace(self, phase=phase, error_message=error_message)


@dataclass(frozen=True)
class DocumentFacts:
    """Immutable facts fixed at ingestion."""

    name: str
    extension: str
    size_bytes: int
    ingested_at: datetime
    source_path: str | None = None

    @property
    def ocr_eligible(self) -> bool:
        return self.extension in OCR_EXTENSIONS


@dataclass(frozen=True)
class Metadata:
    mime_type: str | None = None
    created_at: datetime | None = None
    modified_at: datetime | None = None
    author: str | None = None
    owner: str | None = None
    software: str | None = None
    device: str | None = None
    location: str | None = None
    gps: str | None = None
    page_count: int | None = None
    has_basic_scan: bool = False
    has_deep_scan: bool = False

    def is_empty(self) -> bool:
        return not (self.has_basic_scan or self.has_deep_scan)


@dataclass(frozen=True)
class KeyData:
    names: tuple[str, ...] = ()
    rfcs: tuple[str, ...] = ()
    dates: tuple[str, ...] = ()
    amounts: tuple[float, ...] = ()
    keys: tuple[str, ...] = ()
    content_preview: str | None = None
    language: str | None = None
    scan_depth: str = "none"  # "none" | "quick" | "full"

    def values(self) -> tuple[str, ...]:
        """All extracted values as strings, for text search."""
        amounts = tuple(f"{amount:g}" for amount in self.amounts)
        return self.names + self.rfcs + self.dates + amounts + self.keys


@dataclass(frozen=True)
class Classification:
    kind: DocumentKind = DocumentKind.UNKNOWN
    confidence: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @classmethod
    def unknown(cls) -> Classification:
        return cls()


@dataclass(frozen=True)
class OcrResult:
    engine: str
    text: str
    preview: str
    processed_at: datetime


@dataclass(frozen=True)
class Document:
    """A tracked document. Mutable fields change only via registry updates."""

    id: str
    facts: DocumentFacts
    scan: ScanState = field(default_factory=ScanState)
    metadata: Metadata = field(default_factory=Metadata)
    key_data: KeyData = field(default_factory=KeyData)
    classification: Classification = field(default_factory=Classification.unknown)
    ocr: OcrResult | None = None

    @property
    def phase(self) -> ScanPhase:
        return self.scan.phase

    @classmethod
    def create(cls, document_id: str, facts: DocumentFacts) -> Document:
        return cls(
            id=document_id,
            facts=facts,
            scan=ScanState(estimated_quick_ms=estimate_quick_scan_ms(facts.size_bytes)),
        )


@dataclass(frozen=True)
class FilterSpec:
    """Read-only query predicate over documents."""

    search: str = ""
    kind: DocumentKind | None = None
    has_metadata: MetadataPresence = MetadataPresence.ALL
    size_bucket: SizeBucket = SizeBucket.ALL

    def with_changes(self, **changes: object) -> FilterSpec:
        return replace(self, **changes)  # type: ignore[arg-type]

    def matches(self, document: Document) -> bool:
        if self.search:
            needle = self.search.lower()
            in_name = needle in document.facts.name.lower()
            in_values = any(needle in value.lower() for value in document.key_data.values())
            if not (in_name or in_values):
                return False
        if self.kind is not None and document.classification.kind != self.kind:
            return False
        if self.has_metadata is not MetadataPresence.ALL:
            has_meta = not document.metadata.is_empty()
            if has_meta != (self.has_metadata is MetadataPresence.YES):
                return False
        if self.size_bucket is not SizeBucket.ALL:
            if SizeBucket.of(document.facts.size_bytes) is not self.size_bucket:
                return False
        return True


@dataclass(frozen=True)
class ScanJob:
    """Aggregate scan state, always derived from the registry contents."""

    total: int = 0
    queued: int = 0
    scanning: int = 0
    completed: int = 0
    errored: int = 0

    @property
    def processed(self) -> int:
        return self.completed + self.errored

    @property
    def is_idle(self) -> bool:
        return self.queued == 0 and self.scanning == 0

    @classmethod
    def from_documents(cls, documents: tuple[Document, ...] | list[Document]) -> ScanJob:
        counts = {phase: 0 for phase in ScanPhase}
        for document in documents:
            counts[document.phase] += 1
        return cls(
            total=len(documents),
            queued=counts[ScanPhase.QUEUED],
            scanning=counts[ScanPhase.QUICK_SCANNING],
            completed=counts[ScanPhase.COMPLETED],
            errored=counts[ScanPhase.ERROR],
        )
