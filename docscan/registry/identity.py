import hashlib
import itertools
import threading
import time


class IdentityGenerator:
    """Generates opaque document ids: ``{ms timestamp}-{counter}-{hash}``.

    The counter is process-wide per generator and never repeats, so ids are
    unique even when two sources share a name, size and ingestion instant.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self, name: str, size_bytes: int, content_hint: str = "") -> str:
        with self._lock:
            sequence = next(self._counter)
        millis = time.time_ns() // 1_000_000
        digest = hashlib.sha256(
            f"{name}\0{size_bytes}\0{content_hint}".encode("utf-8")
        ).hexdigest()[:12]
        return f"{millis}-{sequence}-{digest}"
