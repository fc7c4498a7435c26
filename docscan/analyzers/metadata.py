import asyncio
import io
import mimetypes

from PIL import ExifTags, Image, UnidentifiedImageError

from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.models import (
    AnalysisContext,
    AnalyzerOutcome,
    BasicMetadataUpdate,
    DeepMetadataUpdate,
    Stage,
)
from docscan.pdf.base import BasePdfExtractor
from docscan.registry.models import Document
from docscan.sources.base import SourceRef

MIME_TYPES = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "xml": "text/xml",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "tif", "tiff", "webp"})
GPS_INFO_TAG = 0x8825


def infer_mime_type(extension: str) -> str:
    mime = MIME_TYPES.get(extension.lower())
    if mime is not None:
        return mime
    guessed, _ = mimetypes.guess_type(f"file.{extension}")
    return guessed or "application/octet-stream"


class MetadataBasicAnalyzer(BaseAnalyzer):
    """File-system level metadata; never reads content."""

    stage = Stage.METADATA_BASIC

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        return BasicMetadataUpdate(
            mime_type=infer_mime_type(document.facts.extension),
            created_at=document.facts.ingested_at,
            modified_at=source.modified_at,
        )


class MetadataDeepAnalyzer(BaseAnalyzer):
    """Embedded metadata: PDF document info and image EXIF.

    Runs only after basic metadata exists.
    """

    stage = Stage.METADATA_DEEP

    def __init__(self, pdf_extractor: BasePdfExtractor) -> None:
        self._pdf_extractor = pdf_extractor

    def applies_to(self, document: Document) -> bool:
        return document.metadata.has_basic_scan

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        extension = document.facts.extension
        if extension == "pdf":
            content = await source.read_bytes()
            info = await asyncio.to_thread(self._pdf_extractor.inspect, content)
            return DeepMetadataUpdate(
                author=info.author,
                software=info.software,
                page_count=info.page_count,
            )
        if extension in IMAGE_EXTENSIONS:
            content = await source.read_bytes()
            return await asyncio.to_thread(_read_image_metadata, content)
        return DeepMetadataUpdate()


def _read_image_metadata(content: bytes) -> DeepMetadataUpdate:
    try:
        with Image.open(io.BytesIO(content)) as image:
            exif = image.getexif()
            gps = exif.get_ifd(GPS_INFO_TAG)
    except UnidentifiedImageError:
        return DeepMetadataUpdate()
    tags = {ExifTags.TAGS.get(tag, tag): value for tag, value in exif.items()}
    parts = (_clean(tags.get("Make")), _clean(tags.get("Model")))
    device = " ".join(part for part in parts if part) or None
    return DeepMetadataUpdate(
        author=_clean(tags.get("Artist")),
        owner=_clean(tags.get("Copyright")),
        software=_clean(tags.get("Software")),
        device=device,
        gps=_format_gps(gps),
        page_count=1,
    )


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip(" \x00\t\r\n")
    return text or None


def _to_degrees(value: object) -> float:
    degrees, minutes, seconds = (float(part) for part in value)  # type: ignore[attr-defined]
    return degrees + minutes / 60 + seconds / 3600


def _format_gps(gps: dict[int, object]) -> str | None:
    # GPSLatitudeRef=1, GPSLatitude=2, GPSLongitudeRef=3, GPSLongitude=4
    if not gps or 2 not in gps or 4 not in gps:
        return None
    try:
        lat = _to_degrees(gps[2])
        lng = _to_degrees(gps[4])
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    lat_ref = str(gps.get(1, "N"))
    lng_ref = str(gps.get(3, "E"))
    return f"{lat:.4f}° {lat_ref}, {lng:.4f}° {lng_ref}"
