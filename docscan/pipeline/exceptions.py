from docscan.analyzers.models import AnalyzerFailure, Stage


class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""


class StageFailedError(PipelineError):
    """Raised inside the scheduler when an analyzer reports a typed failure."""

    def __init__(self, failure: AnalyzerFailure) -> None:
        super().__init__(failure.message)
        self.stage: Stage = failure.stage


class StaleResultDiscard(PipelineError):
    """Marks a result computed for a document that was cleared meanwhile.

    Never surfaced to users; the scheduler drops such results.
    """
