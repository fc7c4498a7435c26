import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone

from docscan.analyzers.factory import AnalyzerFactory, AnalyzerSet
from docscan.bus.bus import NotificationBus, Subscriber, Unsubscribe
from docscan.bus.models import WorkspaceSnapshot
from docscan.config.settings import Settings
from docscan.export.csv_formatter import CsvSummaryFormatter
from docscan.export.summary import ScanSummary, SummaryBuilder
from docscan.logging.logger import Log
from docscan.pipeline.models import RunReport, StageResult
from docscan.pipeline.progress import ProgressReporter
from docscan.pipeline.scheduler import PipelineScheduler
from docscan.registry.identity import IdentityGenerator
from docscan.registry.models import (
    Document,
    DocumentFacts,
    DocumentKind,
    FilterSpec,
    MetadataPresence,
    ScanJob,
    SizeBucket,
)
from docscan.registry.registry import DocumentRegistry
from docscan.sources.base import SourceRef
from docscan.sources.store import SourceStore


class Workspace:
    """Composition root: owns the registry and exposes one method per command.

    Commands: ingest, start processing, the six stage runs, clear all, set
    filter, select document and export summary. Observers get a full
    ``WorkspaceSnapshot`` after every change.
    """

    def __init__(self, settings: Settings, analyzers: AnalyzerSet) -> None:
        self._settings = settings
        self._bus = NotificationBus()
        self._registry = DocumentRegistry(self._bus)
        self._sources = SourceStore()
        self._reporter = ProgressReporter(settings.assumed_document_cost_ms)
        self._scheduler = PipelineScheduler(
            self._registry,
            analyzers,
            self._sources,
            self._reporter,
            settings,
            bus=self._bus,
        )
        self._identity = IdentityGenerator()
        self._summary_builder = SummaryBuilder()
        self._formatter = CsvSummaryFormatter(settings.csv_delimiter)
        self._filter = FilterSpec()
        self._selected_id: str | None = None
        self._bus.bind(self.snapshot)

    @property
    def registry(self) -> DocumentRegistry:
        return self._registry

    @property
    def scheduler(self) -> PipelineScheduler:
        return self._scheduler

    @property
    def sources(self) -> SourceStore:
        return self._sources

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        return self._bus.subscribe(callback)

    def snapshot(self) -> WorkspaceSnapshot:
        documents = self._registry.snapshot()
        return WorkspaceSnapshot(
            documents=documents,
            scan_job=ScanJob.from_documents(documents),
            progress=self._reporter.snapshot,
            filter=self._filter,
            filtered_ids=tuple(d.id for d in documents if self._filter.matches(d)),
            selected_id=self._selected_id,
        )

    def filtered(self) -> tuple[Document, ...]:
        return self._registry.query(self._filter)

    def ingest(self, sources: Iterable[SourceRef]) -> list[Document]:
        """Register new documents as queued. Empty sources are skipped."""
        now = datetime.now(timezone.utc)
        documents: list[Document] = []
        pairs: list[tuple[str, SourceRef]] = []
        for source in sources:
            if source.size_bytes <= 0:
                Log.warning(f"Skipping empty source {source.name}")
                continue
            modified = source.modified_at.isoformat() if source.modified_at else ""
            document_id = self._identity.next_id(source.name, source.size_bytes, modified)
            facts = DocumentFacts(
                name=source.name,
                extension=source.extension,
                size_bytes=source.size_bytes,
                ingested_at=now,
                source_path=source.path,
            )
            documents.append(Document.create(document_id, facts))
            pairs.append((document_id, source))
        if not documents:
            return []

        for document_id, source in pairs:
            self._sources.register(document_id, source)
        self._registry.add(documents)
        if self._scheduler.is_running:
            self._reporter.admit(len(documents))
            self._bus.publish("progress")
        Log.info(f"Ingested {len(documents)} documents, {len(self._registry)} tracked")
        return documents

    def start_processing(self) -> asyncio.Task[RunReport]:
        """Start the quick-scan loop in the background."""
        return self._scheduler.start()

    async def process(self) -> RunReport:
        """Run the quick scan until no document is queued."""
        return await self._scheduler.run_until_idle()

    async def run_metadata_basic(self, document_id: str) -> StageResult:
        return await self._scheduler.run_metadata_basic(document_id)

    async def run_metadata_deep(self, document_id: str) -> StageResult:
        return await self._scheduler.run_metadata_deep(document_id)

    async def run_keydata_quick(self, document_id: str) -> StageResult:
        return await self._scheduler.run_keydata_quick(document_id)

    async def run_keydata_full(self, document_id: str) -> StageResult:
        return await self._scheduler.run_keydata_full(document_id)

    async def reclassify(self, document_id: str) -> StageResult:
        return await self._scheduler.reclassify(document_id)

    async def run_ocr(self, document_id: str) -> StageResult:
        return await self._scheduler.run_ocr(document_id)

    def clear_all(self) -> None:
        """Drop every document, cancel in-flight work and reset the view state."""
        self._filter = FilterSpec()
        self._selected_id = None
        self._sources.clear()
        self._reporter.reset()
        self._scheduler.clear()

    def set_filter(self, **changes: object) -> FilterSpec:
        """Merge ``changes`` into the active filter.

        Accepts enum members or their string values; ``kind="all"`` clears the
        kind predicate.
        """
        coerced: dict[str, object] = {}
        for name, value in changes.items():
            if name == "search":
                coerced[name] = str(value or "")
            elif name == "kind":
                coerced[name] = None if value in (None, "all") else DocumentKind(value)
            elif name == "has_metadata":
                coerced[name] = MetadataPresence(value)
            elif name == "size_bucket":
                coerced[name] = SizeBucket(value)
            else:
                raise ValueError(f"Unknown filter field '{name}'")
        self._filter = self._filter.with_changes(**coerced)
        self._bus.publish("filter")
        return self._filter

    def select_document(self, document_id: str | None) -> Document | None:
        """Select a document for detail views; ``None`` clears the selection.

        Raises:
            DocumentNotFoundError: if ``document_id`` is not tracked.
        """
        document = self._registry.get(document_id) if document_id is not None else None
        self._selected_id = document_id
        self._bus.publish("select")
        return document

    def summary(self) -> ScanSummary:
        return self._summary_builder.build_scan_summary(
            self._registry.snapshot(), self._settings.top_extensions_limit
        )

    def summary_row(self, document_id: str) -> dict[str, object]:
        """Flat export row for one document.

        Raises:
            DocumentNotFoundError: if ``document_id`` is not tracked.
        """
        return self._summary_builder.per_document_summary_row(
            self._registry.snapshot(), document_id
        )

    def summary_rows(self, ids: list[str] | None = None) -> list[dict[str, object]]:
        return self._summary_builder.summary_rows(self._registry.snapshot(), ids)

    def export_summary(self, ids: list[str] | None = None) -> str:
        """CSV text for the given documents, or for all of them."""
        return self._formatter.format(self.summary_rows(ids))


def build_workspace(settings: Settings) -> Workspace:
    """Build a Workspace with the analyzers selected in settings."""
    return Workspace(settings, AnalyzerFactory.create(settings))
