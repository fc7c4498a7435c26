from dataclasses import dataclass

from docscan.pipeline.progress import ProgressSnapshot
from docscan.registry.models import Document, FilterSpec, ScanJob


@dataclass(frozen=True)
class WorkspaceSnapshot:
    """Everything an observer needs to render the workspace at one instant."""

    documents: tuple[Document, ...]
    scan_job: ScanJob
    progress: ProgressSnapshot
    filter: FilterSpec
    filtered_ids: tuple[str, ...]
    selected_id: str | None

    @property
    def selected(self) -> Document | None:
        for document in self.documents:
            if document.id == self.selected_id:
                return document
        return None
