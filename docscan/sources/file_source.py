import asyncio
from datetime import datetime, timezone
from pathlib import Path

from docscan.sources.base import SourceRef
from docscan.sources.exceptions import InvalidSourceError


class LocalFileSource(SourceRef):
    """A document stored as a file on the local filesystem."""

    def __init__(self, path: Path, root: Path | None = None) -> None:
        self._path = path
        self._root = root
        stat = path.stat()
        self._size_bytes = stat.st_size
        self._modified_at = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def size_bytes(self) -> int:
        return self._size_bytes

    @property
    def modified_at(self) -> datetime | None:
        return self._modified_at

    @property
    def path(self) -> str | None:
        if self._root is not None:
            return str(self._path.relative_to(self._root))
        return str(self._path)

    async def read_bytes(self) -> bytes:
        """Read file bytes in a worker thread.

        Raises:
            InvalidSourceError: if the file vanished or cannot be read.
        """
        try:
            return await asyncio.to_thread(self._path.read_bytes)
        except OSError as exc:
            raise InvalidSourceError(f"Cannot read {self._path}: {exc}") from exc


def discover_sources(root: Path, recursive: bool = True) -> list[LocalFileSource]:
    """List regular files under ``root`` as sources, sorted by path."""
    if not root.is_dir():
        raise InvalidSourceError(f"Not a directory: {root}")
    pattern = "**/*" if recursive else "*"
    files = sorted(p for p in root.glob(pattern) if p.is_file())
    return [LocalFileSource(p, root=root) for p in files]
