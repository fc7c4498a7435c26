from docscan.analyzers.exceptions import OcrError
from docscan.ocr.base import BaseOcrEngine


class RoutingOcrEngine(BaseOcrEngine):
    """Dispatches to the first engine that supports the document's extension."""

    name = "auto"

    def __init__(self, engines: list[BaseOcrEngine]) -> None:
        self._engines = engines
        self.extensions = frozenset().union(*(e.extensions for e in engines))

    def engine_for(self, extension: str) -> BaseOcrEngine:
        for engine in self._engines:
            if engine.supports(extension):
                return engine
        raise OcrError(f"No OCR engine supports '.{extension}' content")

    def engine_name(self, extension: str) -> str:
        return self.engine_for(extension).name

    def recognize(self, content: bytes, extension: str) -> str:
        return self.engine_for(extension).recognize(content, extension)
