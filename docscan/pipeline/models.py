from dataclasses import dataclass, field
from enum import Enum

from docscan.analyzers.models import Stage


class StageStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    DISCARDED = "discarded"
    BUSY = "busy"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one explicitly requested stage run."""

    document_id: str
    stage: Stage
    status: StageStatus
    message: str | None = None


@dataclass
class RunReport:
    """What one processing run did, batch by batch."""

    batches: list[int] = field(default_factory=list)
    completed: int = 0
    errored: int = 0
    discarded: int = 0
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.completed + self.errored
