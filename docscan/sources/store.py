import threading

from docscan.sources.base import SourceRef
from docscan.sources.exceptions import InvalidSourceError


class SourceStore:
    """Maps document ids to their source references."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: dict[str, SourceRef] = {}

    def register(self, document_id: str, source: SourceRef) -> None:
        with self._lock:
            self._sources[document_id] = source

    def resolve(self, document_id: str) -> SourceRef:
        """Return the source for ``document_id``.

        Raises:
            InvalidSourceError: if the content was evicted or never registered.
        """
        with self._lock:
            source = self._sources.get(document_id)
        if source is None:
            raise InvalidSourceError(f"Source for document '{document_id}' is no longer available")
        return source

    def evict(self, document_id: str) -> bool:
        with self._lock:
            return self._sources.pop(document_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sources.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)
