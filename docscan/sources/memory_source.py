from datetime import datetime

from docscan.sources.base import SourceRef


class InMemorySource(SourceRef):
    """Content already held in memory by the caller, e.g. an upload buffer."""

    def __init__(
        self,
        name: str,
        content: bytes,
        modified_at: datetime | None = None,
        path: str | None = None,
    ) -> None:
        self._name = name
        self._content = content
        self._modified_at = modified_at
        self._path = path

    @property
    def name(self) -> str:
        return self._name

    @property
    def size_bytes(self) -> int:
        return len(self._content)

    @property
    def modified_at(self) -> datetime | None:
        return self._modified_at

    @property
    def path(self) -> str | None:
        return self._path

    async def read_bytes(self) -> bytes:
        return self._content
