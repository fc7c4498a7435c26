import threading
from collections.abc import Callable, Iterable

from docscan.bus.bus import NotificationBus
from docscan.logging.logger import Log
from docscan.registry.exceptions import DocumentNotFoundError, DuplicateIdentityError
from docscan.registry.models import Document, FilterSpec, ScanPhase

Mutation = Callable[[Document], Document]


class DocumentRegistry:
    """Canonical, ordered collection of tracked documents.

    All writes go through ``add``, ``update`` and ``clear``. Documents are
    immutable values, so readers holding a snapshot never see a partially
    applied change. ``epoch`` increases on every ``clear`` and lets in-flight
    work detect that the documents it was started for are gone.
    """

    def __init__(self, bus: NotificationBus | None = None) -> None:
        self._bus = bus
        self._lock = threading.RLock()
        self._documents: dict[str, Document] = {}
        self._epoch = 0

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents

    def add(self, documents: Iterable[Document]) -> list[Document]:
        """Append documents in the given order.

        Raises:
            DuplicateIdentityError: if any id is already tracked or repeated
                within ``documents``. Nothing is added in that case.
        """
        new_documents = list(documents)
        with self._lock:
            seen: set[str] = set()
            for document in new_documents:
                if document.id in self._documents or document.id in seen:
                    raise DuplicateIdentityError(f"Document id '{document.id}' already exists")
                if document.phase is not ScanPhase.QUEUED:
                    raise ValueError(f"Document '{document.id}' must be added as queued")
                seen.add(document.id)
            for document in new_documents:
                self._documents[document.id] = document
            total = len(self._documents)
        if new_documents:
            Log.debug(f"Registry added {len(new_documents)} documents, {total} tracked")
            self._publish("add")
        return new_documents

    def get(self, document_id: str) -> Document:
        """Return the document with ``document_id``.

        Raises:
            DocumentNotFoundError: if no such document is tracked.
        """
        with self._lock:
            document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document '{document_id}' not found")
        return document

    def find(self, document_id: str) -> Document | None:
        with self._lock:
            return self._documents.get(document_id)

    def update(self, document_id: str, mutation: Mutation) -> Document:
        """Replace a document with ``mutation(document)`` atomically.

        Raises:
            DocumentNotFoundError: if no such document is tracked.
            ValueError: if the mutation changes the id or the immutable facts.
        """
        with self._lock:
            updated = self._apply(document_id, mutation)
        self._publish("update")
        return updated

    def update_if_current(self, document_id: str, epoch: int, mutation: Mutation) -> Document | None:
        """Apply ``mutation`` only if the registry was not cleared since ``epoch``.

        Returns ``None`` when the result is stale: the registry was cleared or
        the document is no longer tracked.
        """
        with self._lock:
            if epoch != self._epoch or document_id not in self._documents:
                return None
            updated = self._apply(document_id, mutation)
        self._publish("update")
        return updated

    def query(self, filter_spec: FilterSpec | None = None) -> tuple[Document, ...]:
        """Return matching documents in insertion order from one consistent snapshot."""
        documents = self.snapshot()
        if filter_spec is None:
            return documents
        return tuple(document for document in documents if filter_spec.matches(document))

    def queued(self, limit: int | None = None) -> list[Document]:
        """Return queued documents in ingestion order, at most ``limit`` of them."""
        with self._lock:
            queued = [d for d in self._documents.values() if d.phase is ScanPhase.QUEUED]
        return queued if limit is None else queued[:limit]

    def snapshot(self) -> tuple[Document, ...]:
        with self._lock:
            return tuple(self._documents.values())

    def clear(self) -> int:
        """Remove every document and invalidate in-flight work. Returns the count removed."""
        with self._lock:
            removed = len(self._documents)
            self._documents.clear()
            self._epoch += 1
        Log.info(f"Registry cleared, {removed} documents removed")
        self._publish("clear")
        return removed

    def _apply(self, document_id: str, mutation: Mutation) -> Document:
        current = self._documents.get(document_id)
        if current is None:
            raise DocumentNotFoundError(f"Document '{document_id}' not found")
        updated = mutation(current)
        if updated.id != current.id or updated.facts != current.facts:
            raise ValueError(f"Mutation may not change identity or facts of '{document_id}'")
        self._documents[document_id] = updated
        return updated

    def _publish(self, reason: str) -> None:
        if self._bus is not None:
            self._bus.publish(reason)
