from abc import ABC, abstractmethod


class BaseOcrEngine(ABC):
    """Contract for all OCR adapters."""

    name: str = "base"
    extensions: frozenset[str] = frozenset()

    def supports(self, extension: str) -> bool:
        return extension in self.extensions

    def engine_name(self, extension: str) -> str:
        return self.name

    @abstractmethod
    def recognize(self, content: bytes, extension: str) -> str:
        """Return the text recognized in ``content``.

        Raises:
            OcrError: if recognition fails.
        """
