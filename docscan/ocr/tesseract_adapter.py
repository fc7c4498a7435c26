import io

import pytesseract
from PIL import Image

from docscan.analyzers.exceptions import OcrError
from docscan.ocr.base import BaseOcrEngine


class TesseractOcrEngine(BaseOcrEngine):
    """Recognizes text in raster images with Tesseract."""

    name = "tesseract"
    extensions = frozenset({"jpg", "jpeg", "png", "tif", "tiff", "webp"})

    def __init__(self, language: str = "eng", config: str = "") -> None:
        self._language = language
        self._config = config

    def recognize(self, content: bytes, extension: str) -> str:
        try:
            with Image.open(io.BytesIO(content)) as image:
                text = pytesseract.image_to_string(
                    image, lang=self._language, config=self._config
                )
        except Exception as exc:
            raise OcrError(f"tesseract recognition failed: {exc}") from exc
        return text.strip()
