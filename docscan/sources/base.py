from abc import ABC, abstractmethod
from datetime import datetime


class SourceRef(ABC):
    """Opaque handle to externally owned document content.

    The pipeline keeps the reference, never the bytes; analyzers read through
    it when they need content.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name, including the extension."""

    @property
    @abstractmethod
    def size_bytes(self) -> int:
        """Content size as reported by the owner."""

    @property
    @abstractmethod
    def modified_at(self) -> datetime | None:
        """Last modification time, if the owner knows it."""

    @property
    def path(self) -> str | None:
        """Filesystem path or relative location, when there is one."""
        return None

    @property
    def extension(self) -> str:
        stem, dot, ext = self.name.rpartition(".")
        return ext.lower() if dot and stem else ""

    @abstractmethod
    async def read_bytes(self) -> bytes:
        """Read the full content.

        Raises:
            InvalidSourceError: if the content cannot be read.
        """

    async def read_text(self, max_bytes: int | None = None) -> str:
        """Read the content decoded as UTF-8, replacing undecodable bytes."""
        data = await self.read_bytes()
        if max_bytes is not None:
            data = data[:max_bytes]
        return data.decode("utf-8", errors="replace")
