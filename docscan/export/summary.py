from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from docscan.registry.exceptions import DocumentNotFoundError
from docscan.registry.models import Document

KEY_DATA_SEPARATOR = "; "


@dataclass(frozen=True)
class LabelCount:
    label: str
    count: int


@dataclass(frozen=True)
class ScanSummary:
    """Aggregate view of the tracked documents."""

    total_docs: int = 0
    detected_types: int = 0
    docs_with_metadata_pct: int = 0
    total_size_bytes: int = 0
    distribution_by_kind: list[LabelCount] = field(default_factory=list)
    top_extensions: list[LabelCount] = field(default_factory=list)


def _ranked(counter: Counter[str]) -> list[LabelCount]:
    # Counter.most_common keeps first-seen order among equal counts.
    return [LabelCount(label, count) for label, count in counter.most_common()]


class SummaryBuilder:
    """Derives read-only aggregates and flat export rows from documents."""

    def distribution_by_kind(self, documents: Sequence[Document]) -> list[LabelCount]:
        return _ranked(Counter(d.classification.kind.value for d in documents))

    def top_extensions(self, documents: Sequence[Document], limit: int = 5) -> list[LabelCount]:
        counter = Counter((d.facts.extension or "other").upper() for d in documents)
        return _ranked(counter)[:limit]

    def build_scan_summary(
        self, documents: Sequence[Document], top_extensions_limit: int = 5
    ) -> ScanSummary:
        total = len(documents)
        if total == 0:
            return ScanSummary()
        distribution = self.distribution_by_kind(documents)
        with_metadata = sum(1 for d in documents if not d.metadata.is_empty())
        return ScanSummary(
            total_docs=total,
            detected_types=len(distribution),
            docs_with_metadata_pct=round(with_metadata / total * 100),
            total_size_bytes=sum(d.facts.size_bytes for d in documents),
            distribution_by_kind=distribution,
            top_extensions=self.top_extensions(documents, top_extensions_limit),
        )

    def per_document_summary_row(
        self, documents: Sequence[Document], document_id: str
    ) -> dict[str, object]:
        """Flat row for one document.

        Raises:
            DocumentNotFoundError: if ``document_id`` is not among ``documents``.
        """
        for document in documents:
            if document.id == document_id:
                return self.summary_row(document)
        raise DocumentNotFoundError(f"Document '{document_id}' not found")

    def summary_rows(
        self, documents: Sequence[Document], ids: Sequence[str] | None = None
    ) -> list[dict[str, object]]:
        if ids is None:
            return [self.summary_row(d) for d in documents]
        wanted = set(ids)
        return [self.summary_row(d) for d in documents if d.id in wanted]

    def summary_row(self, document: Document) -> dict[str, object]:
        facts = document.facts
        metadata = document.metadata
        key_data = document.key_data
        return {
            "id": document.id,
            "file_name": facts.name,
            "extension": facts.extension,
            "size_bytes": facts.size_bytes,
            "phase": document.phase.value,
            "error": document.scan.error_message or "",
            "kind": document.classification.kind.value,
            "confidence": round(document.classification.confidence, 2),
            "names": KEY_DATA_SEPARATOR.join(key_data.names),
            "rfcs": KEY_DATA_SEPARATOR.join(key_data.rfcs),
            "dates": KEY_DATA_SEPARATOR.join(key_data.dates),
            "amounts": KEY_DATA_SEPARATOR.join(f"{a:.2f}" for a in key_data.amounts),
            "keys": KEY_DATA_SEPARATOR.join(key_data.keys),
            "language": key_data.language or "",
            "mime_type": metadata.mime_type or "",
            "author": metadata.author or "",
            "software": metadata.software or "",
            "device": metadata.device or "",
            "page_count": metadata.page_count if metadata.page_count is not None else "",
            "created_at": metadata.created_at.isoformat() if metadata.created_at else "",
            "modified_at": metadata.modified_at.isoformat() if metadata.modified_at else "",
            "ocr_preview": document.ocr.preview if document.ocr else "",
        }
