from dataclasses import replace

from docscan.analyzers.models import (
    AnalyzerFailure,
    AnalyzerOutcome,
    BasicMetadataUpdate,
    ClassificationUpdate,
    DeepMetadataUpdate,
    KeyDataUpdate,
    OcrUpdate,
)
from docscan.registry.models import Document, ScanPhase


def apply_basic_metadata(document: Document, update: BasicMetadataUpdate) -> Document:
    """Overwrite the basic-owned metadata fields; deep fields are preserved."""
    metadata = replace(
        document.metadata,
        mime_type=update.mime_type,
        created_at=update.created_at,
        modified_at=update.modified_at,
        has_basic_scan=True,
    )
    return replace(document, metadata=metadata)


def apply_deep_metadata(document: Document, update: DeepMetadataUpdate) -> Document:
    """Replace every deep-owned field, so no value from an earlier run survives."""
    metadata = replace(
        document.metadata,
        author=update.author,
        owner=update.owner,
        software=update.software,
        device=update.device,
        location=update.location,
        gps=update.gps,
        page_count=update.page_count,
        has_deep_scan=True,
    )
    return replace(document, metadata=metadata)


def apply_key_data(document: Document, update: KeyDataUpdate) -> Document:
    return replace(document, key_data=update.key_data)


def apply_classification(document: Document, update: ClassificationUpdate) -> Document:
    return replace(document, classification=update.classification)


def apply_ocr(document: Document, update: OcrUpdate) -> Document:
    return replace(document, ocr=update.ocr)


def apply_outcome(document: Document, outcome: AnalyzerOutcome) -> Document:
    """Dispatch a successful analyzer outcome to its stage's apply function."""
    if isinstance(outcome, BasicMetadataUpdate):
        return apply_basic_metadata(document, outcome)
    if isinstance(outcome, DeepMetadataUpdate):
        return apply_deep_metadata(document, outcome)
    if isinstance(outcome, KeyDataUpdate):
        return apply_key_data(document, outcome)
    if isinstance(outcome, ClassificationUpdate):
        return apply_classification(document, outcome)
    if isinstance(outcome, OcrUpdate):
        return apply_ocr(document, outcome)
    if isinstance(outcome, AnalyzerFailure):
        raise TypeError(f"Failures are not applied as updates: {outcome.message}")
    raise TypeError(f"Unknown analyzer outcome {type(outcome).__name__}")


def mark_scanning(document: Document) -> Document:
    return replace(document, scan=document.scan.advance(ScanPhase.QUICK_SCANNING))


def mark_completed(document: Document) -> Document:
    return replace(document, scan=document.scan.advance(ScanPhase.COMPLETED))


def mark_error(document: Document, message: str) -> Document:
    return replace(document, scan=document.scan.advance(ScanPhase.ERROR, error_message=message))
