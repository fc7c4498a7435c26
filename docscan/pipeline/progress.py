import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone


@dataclass(frozen=True)
class ProgressSnapshot:
    is_running: bool = False
    total_admitted: int = 0
    total_processed: int = 0
    started_at: datetime | None = None
    estimated_remaining_ms: int | None = None

    @property
    def remaining(self) -> int:
        return self.total_admitted - self.total_processed


class ProgressReporter:
    """Progress of the current processing run.

    Updated only between batches. The remaining-time estimate uses the mean
    observed per-document cost once a batch has settled and the assumed cost
    before that; it can only grow when more documents are admitted.
    """

    def __init__(self, assumed_document_cost_ms: int) -> None:
        self._assumed_cost_ms = assumed_document_cost_ms
        self._lock = threading.Lock()
        self._snapshot = ProgressSnapshot()
        self._elapsed_ms = 0.0
        self._measured = 0

    @property
    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot

    def begin(self, admitted: int) -> ProgressSnapshot:
        """Start a run over ``admitted`` documents."""
        with self._lock:
            self._elapsed_ms = 0.0
            self._measured = 0
            self._snapshot = ProgressSnapshot(
                is_running=True,
                total_admitted=admitted,
                total_processed=0,
                started_at=datetime.now(timezone.utc),
            )
            self._snapshot = replace(self._snapshot, estimated_remaining_ms=self._estimate())
            return self._snapshot

    def admit(self, count: int) -> ProgressSnapshot:
        """Account for documents ingested while the run is active."""
        with self._lock:
            if count <= 0 or not self._snapshot.is_running:
                return self._snapshot
            self._snapshot = replace(
                self._snapshot, total_admitted=self._snapshot.total_admitted + count
            )
            self._snapshot = replace(self._snapshot, estimated_remaining_ms=self._estimate())
            return self._snapshot

    def batch_settled(self, processed: int, elapsed_ms: float) -> ProgressSnapshot:
        with self._lock:
            total_processed = min(
                self._snapshot.total_processed + processed, self._snapshot.total_admitted
            )
            if processed > 0:
                self._elapsed_ms += elapsed_ms
                self._measured += processed
            previous = self._snapshot.estimated_remaining_ms
            self._snapshot = replace(self._snapshot, total_processed=total_processed)
            estimate = self._estimate()
            if previous is not None:
                estimate = min(estimate, previous)
            self._snapshot = replace(self._snapshot, estimated_remaining_ms=estimate)
            return self._snapshot

    def finish(self) -> ProgressSnapshot:
        with self._lock:
            self._snapshot = replace(
                self._snapshot,
                is_running=False,
                estimated_remaining_ms=0,
            )
            return self._snapshot

    def reset(self) -> ProgressSnapshot:
        with self._lock:
            self._elapsed_ms = 0.0
            self._measured = 0
            self._snapshot = ProgressSnapshot()
            return self._snapshot

    def _estimate(self) -> int:
        per_document = (
            self._elapsed_ms / self._measured if self._measured else float(self._assumed_cost_ms)
        )
        return round(self._snapshot.remaining * per_document)
