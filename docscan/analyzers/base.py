from abc import ABC, abstractmethod
from typing import ClassVar

from docscan.analyzers.models import AnalysisContext, AnalyzerOutcome, Stage
from docscan.registry.models import Document
from docscan.sources.base import SourceRef


class BaseAnalyzer(ABC):
    """Contract for all stage processors.

    ``deterministic`` declares that the same document and content always yield
    an equal outcome. It is a declaration for callers and tests; the scheduler
    re-runs a stage the same way either way.
    """

    stage: ClassVar[Stage]
    deterministic: ClassVar[bool] = True

    def applies_to(self, document: Document) -> bool:
        """Cheap eligibility check; ``False`` means the stage is skipped."""
        return True

    @abstractmethod
    async def run(
        self,
        document: Document,
        source: SourceRef,
        context: AnalysisContext,
    ) -> AnalyzerOutcome:
        """Analyze one document and return a partial update or a failure.

        Args:
            document: The document as registered when the run started.
            source: Reference to the document's content.
            context: Results produced earlier in the same run.

        Raises:
            InvalidSourceError: if the content cannot be read.
            AnalyzerError: on analysis failures the analyzer does not report
                as an ``AnalyzerFailure``.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(stage={self.stage.value})"
