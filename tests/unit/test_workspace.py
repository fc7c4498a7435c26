import asyncio
from datetime import datetime, timezone

import pytest

from docscan.analyzers.models import ClassificationUpdate, Stage
from docscan.bus.bus import Notification
from docscan.bus.models import WorkspaceSnapshot
from docscan.config.settings import Settings
from docscan.pipeline.models import StageStatus
from docscan.pipeline.progress import ProgressSnapshot
from docscan.registry.exceptions import DocumentNotFoundError
from docscan.registry.models import (
    Classification,
    DocumentKind,
    FilterSpec,
    MetadataPresence,
    ScanPhase,
    SizeBucket,
)
from docscan.sources.memory_source import InMemorySource
from docscan.workspace import Workspace, build_workspace
from tests.fakes import FakeAnalyzer, make_analyzer_set

MODIFIED = datetime(2024, 2, 1, tzinfo=timezone.utc)


def _make_workspace(settings: Settings, **analyzers: FakeAnalyzer) -> tuple[Workspace, list[Notification]]:
    workspace = Workspace(settings, make_analyzer_set(**analyzers))
    notifications: list[Notification] = []
    workspace.subscribe(notifications.append)
    return workspace, notifications


def _sources(*names: str) -> list[InMemorySource]:
    return [InMemorySource(name, f"content of {name}".encode(), MODIFIED) for name in names]


def _last(notifications: list[Notification]) -> WorkspaceSnapshot:
    return notifications[-1].snapshot


class TestIngest:
    def test_adds_queued_documents_in_order(self, settings: Settings) -> None:
        workspace, notifications = _make_workspace(settings)

        documents = workspace.ingest(_sources("a.pdf", "b.png"))

        assert [d.facts.name for d in documents] == ["a.pdf", "b.png"]
        assert all(d.phase is ScanPhase.QUEUED for d in documents)
        assert documents[0].facts.extension == "pdf"
        assert documents[0].scan.estimated_quick_ms == 300
        snapshot = _last(notifications)
        assert snapshot.scan_job.queued == 2
        assert len(workspace.sources) == 2

    def test_same_file_twice_gets_distinct_ids(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        first = workspace.ingest(_sources("a.pdf"))
        second = workspace.ingest(_sources("a.pdf"))
        assert first[0].id != second[0].id
        assert len(workspace.registry) == 2

    def test_skips_empty_sources(self, settings: Settings) -> None:
        workspace, notifications = _make_workspace(settings)

        documents = workspace.ingest([InMemorySource("empty.txt", b"")])

        assert documents == []
        assert len(workspace.registry) == 0
        assert notifications == []

    def test_ingest_during_run_grows_progress(self, settings: Settings) -> None:
        gate = asyncio.Event()
        basic = FakeAnalyzer(Stage.METADATA_BASIC, gate=gate)
        workspace, _notifications = _make_workspace(settings, metadata_basic=basic)
        workspace.ingest(_sources("a.txt", "b.txt"))

        async def scenario() -> ProgressSnapshot:
            task = workspace.start_processing()
            await basic.started.wait()
            workspace.ingest(_sources("c.txt", "d.txt"))
            during = workspace.snapshot().progress
            gate.set()
            await task
            return during

        during = asyncio.run(scenario())

        assert during.total_admitted == 4
        final = workspace.snapshot()
        assert final.scan_job.completed == 4
        assert final.progress.total_processed == final.progress.total_admitted == 4


class TestProcess:
    def test_processes_everything_queued(self, settings: Settings) -> None:
        workspace, notifications = _make_workspace(settings)
        workspace.ingest(_sources("a.txt", "b.txt", "c.txt", "d.txt"))

        report = asyncio.run(workspace.process())

        assert report.batches == [3, 1]
        snapshot = _last(notifications)
        assert snapshot.scan_job.is_idle
        assert snapshot.scan_job.completed == 4
        assert not snapshot.progress.is_running

    def test_stage_commands_delegate_to_scheduler(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        (document,) = workspace.ingest(_sources("a.pdf"))
        asyncio.run(workspace.process())

        async def scenario() -> list[StageStatus]:
            results = [
                await workspace.run_metadata_basic(document.id),
                await workspace.run_metadata_deep(document.id),
                await workspace.run_keydata_quick(document.id),
                await workspace.run_keydata_full(document.id),
                await workspace.reclassify(document.id),
                await workspace.run_ocr(document.id),
            ]
            return [r.status for r in results]

        assert asyncio.run(scenario()) == [StageStatus.APPLIED] * 6
        assert workspace.registry.get(document.id).ocr is not None


class TestClearAll:
    def test_resets_documents_view_and_progress(self, settings: Settings) -> None:
        workspace, notifications = _make_workspace(settings)
        (document, _other) = workspace.ingest(_sources("a.pdf", "b.pdf"))
        workspace.set_filter(search="a")
        workspace.select_document(document.id)

        workspace.clear_all()

        snapshot = _last(notifications)
        assert snapshot.documents == ()
        assert snapshot.filter == FilterSpec()
        assert snapshot.selected_id is None
        assert snapshot.progress == ProgressSnapshot()
        assert len(workspace.sources) == 0

    def test_clear_during_run_leaves_nothing_behind(self, settings: Settings) -> None:
        gate = asyncio.Event()
        basic = FakeAnalyzer(Stage.METADATA_BASIC, gate=gate)
        workspace, _notifications = _make_workspace(settings, metadata_basic=basic)
        workspace.ingest(_sources("a.txt", "b.txt", "c.txt", "d.txt", "e.txt"))

        async def scenario() -> None:
            task = workspace.start_processing()
            await basic.started.wait()
            workspace.clear_all()
            gate.set()
            await task

        asyncio.run(scenario())

        snapshot = workspace.snapshot()
        assert snapshot.documents == ()
        assert snapshot.progress == ProgressSnapshot()

    def test_clear_on_empty_workspace(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        workspace.clear_all()
        assert workspace.snapshot().scan_job.total == 0


class TestFilterAndSelection:
    def _processed(self, settings: Settings) -> Workspace:
        classifier = FakeAnalyzer(
            Stage.CLASSIFIER,
            outcome=ClassificationUpdate(Classification(DocumentKind.INVOICE, 0.95)),
        )
        workspace, _notifications = _make_workspace(settings, classifier=classifier)
        workspace.ingest(_sources("factura.xml", "photo.png"))
        asyncio.run(workspace.process())
        return workspace

    def test_filter_by_search(self, settings: Settings) -> None:
        workspace = self._processed(settings)

        workspace.set_filter(search="FACT")

        assert [d.facts.name for d in workspace.filtered()] == ["factura.xml"]
        snapshot = workspace.snapshot()
        assert len(snapshot.filtered_ids) == 1
        assert len(snapshot.documents) == 2

    def test_string_values_are_coerced(self, settings: Settings) -> None:
        workspace = self._processed(settings)

        active = workspace.set_filter(kind="invoice", has_metadata="yes", size_bucket="small")

        assert active.kind is DocumentKind.INVOICE
        assert active.has_metadata is MetadataPresence.YES
        assert active.size_bucket is SizeBucket.SMALL
        assert len(workspace.filtered()) == 2

    def test_kind_all_clears_kind(self, settings: Settings) -> None:
        workspace = self._processed(settings)
        workspace.set_filter(kind="receipt")
        assert workspace.filtered() == ()
        assert workspace.set_filter(kind="all").kind is None
        assert len(workspace.filtered()) == 2

    def test_unknown_field_is_rejected(self, settings: Settings) -> None:
        workspace = self._processed(settings)
        with pytest.raises(ValueError, match="Unknown filter field"):
            workspace.set_filter(colour="red")

    def test_invalid_value_is_rejected(self, settings: Settings) -> None:
        workspace = self._processed(settings)
        with pytest.raises(ValueError):
            workspace.set_filter(size_bucket="huge")

    def test_select_document(self, settings: Settings) -> None:
        workspace = self._processed(settings)
        document_id = workspace.registry.query()[1].id

        workspace.select_document(document_id)

        selected = workspace.snapshot().selected
        assert selected is not None and selected.facts.name == "photo.png"
        workspace.select_document(None)
        assert workspace.snapshot().selected is None

    def test_select_unknown_document_raises(self, settings: Settings) -> None:
        workspace = self._processed(settings)
        with pytest.raises(DocumentNotFoundError):
            workspace.select_document("missing")


class TestExport:
    def test_summary_and_csv(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        documents = workspace.ingest(_sources("a.pdf", "b.pdf", "c.txt"))
        asyncio.run(workspace.process())

        summary = workspace.summary()
        csv_text = workspace.export_summary([documents[2].id])

        assert summary.total_docs == 3
        assert summary.docs_with_metadata_pct == 100
        assert summary.top_extensions[0].label == "PDF"
        lines = csv_text.splitlines()
        assert lines[0].startswith("id,file_name,extension")
        assert len(lines) == 2
        assert "c.txt" in lines[1]

    def test_summary_row_for_one_document(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        documents = workspace.ingest(_sources("a.pdf", "c.txt"))
        asyncio.run(workspace.process())

        row = workspace.summary_row(documents[1].id)

        assert row == workspace.summary_rows([documents[1].id])[0]
        assert row["id"] == documents[1].id
        assert row["file_name"] == "c.txt"

    def test_summary_row_for_unknown_document_raises(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        workspace.ingest(_sources("a.pdf"))
        with pytest.raises(DocumentNotFoundError):
            workspace.summary_row("missing")

    def test_export_of_empty_workspace(self, settings: Settings) -> None:
        workspace, _notifications = _make_workspace(settings)
        assert workspace.export_summary() == ""
        assert workspace.summary().total_docs == 0


class TestBuildWorkspace:
    def test_real_classifier_is_wired(self, settings: Settings) -> None:
        workspace = build_workspace(settings)
        workspace.ingest(
            [InMemorySource("nota.txt", b"Factura RFC GODE561231GR8 total 1,250.00")]
        )
        asyncio.run(workspace.process())

        (document,) = workspace.registry.query()
        assert document.phase is ScanPhase.COMPLETED
        assert document.classification.kind is DocumentKind.INVOICE
        assert document.metadata.mime_type == "text/plain"
        assert document.key_data.rfcs == ("GODE561231GR8",)
