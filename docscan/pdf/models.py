from dataclasses import dataclass


@dataclass(frozen=True)
class PdfInfo:
    """Document-level information embedded in a PDF."""

    page_count: int
    author: str | None = None
    creator: str | None = None
    producer: str | None = None
    creation_date: str | None = None
    modification_date: str | None = None

    @property
    def software(self) -> str | None:
        parts = [p for p in (self.creator, self.producer) if p]
        return " / ".join(dict.fromkeys(parts)) or None
