import asyncio
import time
from collections.abc import Callable, Coroutine

from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.factory import AnalyzerSet
from docscan.analyzers.models import (
    QUICK_STAGES,
    AnalysisContext,
    AnalyzerFailure,
    AnalyzerUpdate,
    BasicMetadataUpdate,
    KeyDataUpdate,
    Stage,
)
from docscan.bus.bus import NotificationBus
from docscan.config.settings import Settings
from docscan.logging.logger import Log
from docscan.pipeline.apply import apply_outcome, mark_completed, mark_error, mark_scanning
from docscan.pipeline.exceptions import StageFailedError, StaleResultDiscard
from docscan.pipeline.models import RunReport, StageResult, StageStatus
from docscan.pipeline.progress import ProgressReporter
from docscan.registry.models import Document, ScanPhase
from docscan.registry.registry import DocumentRegistry
from docscan.sources.base import SourceRef
from docscan.sources.store import SourceStore

Mutation = Callable[[Document], Document]

_COMPLETED = "completed"
_ERRORED = "errored"
_DISCARDED = "discarded"


class PipelineScheduler:
    """Runs the quick scan over queued documents in bounded batches.

    Loop: take up to ``batch_size`` queued documents in ingestion order, move
    them to quick-scanning, run metadata -> key data -> classifier for each
    of them concurrently, apply the results, then repeat until nothing is
    queued. Analyzer failures end up as the document's ``error`` phase and
    never stop the loop. Deep stages run on demand through ``run_stage``.
    """

    def __init__(
        self,
        registry: DocumentRegistry,
        analyzers: AnalyzerSet,
        sources: SourceStore,
        reporter: ProgressReporter,
        settings: Settings,
        bus: NotificationBus | None = None,
    ) -> None:
        self._registry = registry
        self._analyzers = analyzers
        self._sources = sources
        self._reporter = reporter
        self._batch_size = settings.batch_size
        self._bus = bus
        self._run_task: asyncio.Task[RunReport] | None = None
        self._run_epoch = -1
        self._active_tasks: set[asyncio.Future[object]] = set()
        self._in_flight: set[tuple[str, Stage]] = set()

    @property
    def is_running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    def is_in_flight(self, document_id: str, stage: Stage) -> bool:
        return (document_id, stage) in self._in_flight

    def start(self) -> asyncio.Task[RunReport]:
        """Start the processing loop, or return the loop already running.

        Must be called from inside a running event loop.
        """
        if self.is_running and self._run_epoch == self._registry.epoch:
            Log.debug("Processing loop already running")
            return self._run_task  # type: ignore[return-value]
        # A loop started before the last clear is winding down; run after it.
        previous = self._run_task if self.is_running else None
        self._run_epoch = self._registry.epoch
        self._run_task = asyncio.get_running_loop().create_task(self._run(previous))
        return self._run_task

    async def run_until_idle(self) -> RunReport:
        """Process every queued document and return once nothing is queued."""
        return await self.start()

    def clear(self) -> int:
        """Empty the registry, then cancel every analyzer currently running.

        The epoch bump comes first so cancelled work sees it; results of work
        already past its analyzers are dropped by the epoch check. Returns the
        number of documents removed.
        """
        removed = self._registry.clear()
        self._cancel_in_flight()
        return removed

    def _cancel_in_flight(self) -> None:
        for task in list(self._active_tasks):
            task.cancel()
        if self._active_tasks:
            Log.info(f"Cancelled {len(self._active_tasks)} in-flight analyzer tasks")

    async def _run(self, previous: asyncio.Task[RunReport] | None = None) -> RunReport:
        if previous is not None:
            await asyncio.gather(previous, return_exceptions=True)
        report = RunReport()
        epoch = self._registry.epoch
        queued = len(self._registry.queued())
        if queued == 0:
            Log.debug("No queued documents, nothing to process")
            return report

        Log.info(f"Processing started: {queued} queued documents, batch size {self._batch_size}")
        self._reporter.begin(queued)
        self._publish("progress")

        while True:
            if self._registry.epoch != epoch:
                report.cancelled = True
                break
            batch = self._admit_batch(epoch)
            if not batch:
                break
            started = time.monotonic()
            outcomes = await self._gather([self._quick_scan(doc, epoch) for doc in batch])
            elapsed_ms = (time.monotonic() - started) * 1000
            report.batches.append(len(batch))
            for outcome in outcomes:
                if outcome == _COMPLETED:
                    report.completed += 1
                elif outcome == _ERRORED:
                    report.errored += 1
                else:
                    report.discarded += 1
            if self._registry.epoch != epoch:
                report.cancelled = True
                break
            self._reporter.batch_settled(
                processed=sum(1 for o in outcomes if o in (_COMPLETED, _ERRORED)),
                elapsed_ms=elapsed_ms,
            )
            self._publish("progress")
            Log.info(
                f"Batch {len(report.batches)} settled: {len(batch)} documents "
                f"in {elapsed_ms:.0f} ms"
            )
            await asyncio.sleep(0)

        if report.cancelled:
            self._reporter.reset()
            Log.info(f"Processing cancelled after {len(report.batches)} batches")
        else:
            self._reporter.finish()
            Log.info(
                f"Processing finished: {report.completed} completed, "
                f"{report.errored} errored in {len(report.batches)} batches"
            )
        self._publish("progress")
        return report

    def _admit_batch(self, epoch: int) -> list[Document]:
        admitted: list[Document] = []
        for document in self._registry.queued(limit=self._batch_size):
            updated = self._registry.update_if_current(document.id, epoch, mark_scanning)
            if updated is None:
                continue
            for stage in QUICK_STAGES:
                self._in_flight.add((document.id, stage))
            admitted.append(updated)
        return admitted

    async def _gather(self, coroutines: list[Coroutine[object, object, str]]) -> list[str]:
        tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
        self._active_tasks.update(tasks)
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self._active_tasks.difference_update(tasks)
        return [_DISCARDED if isinstance(r, BaseException) else r for r in results]

    async def _quick_scan(self, document: Document, epoch: int) -> str:
        try:
            mutation = await self._quick_scan_mutation(document)
            outcome = _COMPLETED
        except asyncio.CancelledError:
            Log.debug(f"Quick scan of {document.id} cancelled")
            raise
        except Exception as exc:
            Log.error(f"Quick scan failed for {document.facts.name} ({document.id}): {exc}")
            mutation = _error_mutation(str(exc) or type(exc).__name__)
            outcome = _ERRORED
        finally:
            for stage in QUICK_STAGES:
                self._in_flight.discard((document.id, stage))
        try:
            self._commit(document.id, epoch, mutation)
        except StaleResultDiscard:
            return _DISCARDED
        return outcome

    async def _quick_scan_mutation(self, document: Document) -> Mutation:
        source = self._sources.resolve(document.id)
        context = AnalysisContext()
        updates: list[AnalyzerUpdate] = []
        for stage in QUICK_STAGES:
            analyzer = self._analyzers.for_stage(stage)
            if not analyzer.applies_to(document):
                continue
            update = await self._invoke(analyzer, document, source, context)
            updates.append(update)
            if isinstance(update, BasicMetadataUpdate):
                context.metadata = apply_outcome(document, update).metadata
            elif isinstance(update, KeyDataUpdate):
                context.key_data = update.key_data

        def mutation(current: Document) -> Document:
            for update in updates:
                current = apply_outcome(current, update)
            return mark_completed(current)

        return mutation

    async def _invoke(
        self,
        analyzer: BaseAnalyzer,
        document: Document,
        source: SourceRef,
        context: AnalysisContext,
    ) -> AnalyzerUpdate:
        outcome = await analyzer.run(document, source, context)
        if isinstance(outcome, AnalyzerFailure):
            raise StageFailedError(outcome)
        if outcome.stage is not analyzer.stage:
            raise TypeError(
                f"{analyzer!r} returned a '{outcome.stage.value}' result"
            )
        return outcome

    def _commit(self, document_id: str, epoch: int, mutation: Mutation) -> Document:
        updated = self._registry.update_if_current(document_id, epoch, mutation)
        if updated is None:
            Log.debug(f"Discarded stale result for document {document_id}")
            raise StaleResultDiscard(document_id)
        return updated

    async def run_stage(self, stage: Stage, document_id: str) -> StageResult:
        """Run one stage for one document on demand and apply its result.

        Re-running a stage replaces that stage's fields with the fresh result.

        Raises:
            DocumentNotFoundError: if ``document_id`` is not tracked.
        """
        document = self._registry.get(document_id)
        analyzer = self._analyzers.for_stage(stage)
        key = (document_id, stage)

        if document.phase is ScanPhase.QUICK_SCANNING or key in self._in_flight:
            return StageResult(document_id, stage, StageStatus.BUSY)
        if document.phase is ScanPhase.QUEUED:
            # Queued documents belong to the quick scan.
            return StageResult(
                document_id, stage, StageStatus.SKIPPED, "quick scan has not started"
            )
        if stage not in (Stage.METADATA_BASIC, Stage.METADATA_DEEP) and (
            document.phase is not ScanPhase.COMPLETED
        ):
            return StageResult(
                document_id, stage, StageStatus.SKIPPED, "quick scan has not completed"
            )
        if not analyzer.applies_to(document):
            Log.info(f"Stage {stage.value} does not apply to {document.facts.name}, skipped")
            return StageResult(document_id, stage, StageStatus.SKIPPED, "not applicable")

        epoch = self._registry.epoch
        self._in_flight.add(key)
        try:
            source = self._sources.resolve(document_id)
            context = AnalysisContext(metadata=document.metadata, key_data=document.key_data)
            task = asyncio.ensure_future(self._invoke(analyzer, document, source, context))
            self._active_tasks.add(task)
            try:
                update = await task
            finally:
                self._active_tasks.discard(task)
        except asyncio.CancelledError:
            if self._registry.epoch != epoch:
                Log.debug(f"Stage {stage.value} for {document_id} cancelled by clear")
                return StageResult(document_id, stage, StageStatus.DISCARDED)
            raise
        except Exception as exc:
            Log.error(f"Stage {stage.value} failed for {document.facts.name}: {exc}")
            return StageResult(document_id, stage, StageStatus.FAILED, str(exc))
        finally:
            self._in_flight.discard(key)

        try:
            self._commit(document_id, epoch, lambda current: apply_outcome(current, update))
        except StaleResultDiscard:
            return StageResult(document_id, stage, StageStatus.DISCARDED)
        Log.info(f"Stage {stage.value} applied to {document.facts.name}")
        return StageResult(document_id, stage, StageStatus.APPLIED)

    async def run_metadata_basic(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.METADATA_BASIC, document_id)

    async def run_metadata_deep(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.METADATA_DEEP, document_id)

    async def run_keydata_quick(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.KEYDATA_QUICK, document_id)

    async def run_keydata_full(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.KEYDATA_FULL, document_id)

    async def reclassify(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.CLASSIFIER, document_id)

    async def run_ocr(self, document_id: str) -> StageResult:
        return await self.run_stage(Stage.OCR, document_id)

    def _publish(self, reason: str) -> None:
        if self._bus is not None:
            self._bus.publish(reason)


def _error_mutation(message: str) -> Mutation:
    def mutation(current: Document) -> Document:
        return mark_error(current, message)

    return mutation
