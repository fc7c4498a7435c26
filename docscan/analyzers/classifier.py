from docscan.analyzers.base import BaseAnalyzer
from docscan.analyzers.models import AnalysisContext, AnalyzerOutcome, ClassificationUpdate, Stage
from docscan.registry.models import (
    Classification,
    Document,
    DocumentFacts,
    DocumentKind,
    KeyData,
    Metadata,
)
from docscan.sources.base import SourceRef

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "tif", "tiff", "gif", "bmp"})
TABULAR_EXTENSIONS = frozenset({"xls", "xlsx", "csv", "ods"})
PRESENTATION_EXTENSIONS = frozenset({"ppt", "pptx", "odp"})
DOCUMENT_EXTENSIONS = frozenset({"pdf", "xml", "doc", "docx", "odt", "rtf"})
PLAIN_TEXT_EXTENSIONS = frozenset({"txt", "md", "log"})

INVOICE_WORDS = ("factura", "cfdi", "sat", "xml", "invoice")
TICKET_WORDS = ("ticket", "compra", "caja", "recibo", "receipt")
CONTRACT_WORDS = ("contrato", "contract")
PAYROLL_WORDS = ("nomina", "nómina", "payroll")
REPORT_WORDS = ("reporte", "report", "informe")
BANK_WORDS = (
    "estado de cuenta",
    "estado_cuenta",
    "bank",
    "bbva",
    "santander",
    "banamex",
    "hsbc",
    "banorte",
)

LONG_DOCUMENT_PAGES = 20


def _has_any(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)


def classify(facts: DocumentFacts, key_data: KeyData, metadata: Metadata) -> Classification:
    """Layered rules: extension first, then keyword and key-data signals."""
    ext = facts.extension
    has_rfc = bool(key_data.rfcs)
    has_amounts = bool(key_data.amounts)
    signals = " ".join(
        [facts.name, key_data.content_preview or "", *key_data.names, *key_data.keys]
    ).lower()
    invoice_words = _has_any(signals, INVOICE_WORDS)
    # Invoice wording plus an RFC raises confidence even when the extension decides the kind.
    invoice_signals = invoice_words and has_rfc

    if ext in ("xml", "pdf") and has_rfc and has_amounts and invoice_words:
        return Classification(DocumentKind.INVOICE, 0.95)
    if ext in IMAGE_EXTENSIONS or (
        ext == "pdf" and has_amounts and _has_any(signals, TICKET_WORDS)
    ):
        return Classification(DocumentKind.RECEIPT, 0.85 if invoice_signals else 0.80)
    if (
        ext == "pdf"
        and (metadata.page_count or 0) > LONG_DOCUMENT_PAGES
        and not has_rfc
        and not has_amounts
    ):
        return Classification(DocumentKind.GENERAL_DOCUMENT, 0.70)
    if ext in TABULAR_EXTENSIONS:
        return Classification(
            DocumentKind.TABULAR_DATA, 0.85 if has_amounts or invoice_signals else 0.60
        )
    if ext in PRESENTATION_EXTENSIONS:
        return Classification(DocumentKind.PRESENTATION, 0.80 if invoice_signals else 0.75)
    if ext in DOCUMENT_EXTENSIONS:
        if _has_any(signals, CONTRACT_WORDS):
            return Classification(DocumentKind.CONTRACT, 0.85)
        if _has_any(signals, PAYROLL_WORDS):
            return Classification(DocumentKind.PAYROLL, 0.85)
        if _has_any(signals, REPORT_WORDS):
            return Classification(DocumentKind.REPORT, 0.85)
        if _has_any(signals, BANK_WORDS):
            return Classification(DocumentKind.BANK_STATEMENT, 0.80)
        if invoice_signals:
            return Classification(DocumentKind.INVOICE, 0.75)
        return Classification(DocumentKind.GENERAL_DOCUMENT, 0.60 if invoice_words else 0.50)
    if invoice_signals:
        return Classification(DocumentKind.INVOICE, 0.80 if has_amounts else 0.70)
    if ext in PLAIN_TEXT_EXTENSIONS:
        return Classification(DocumentKind.TEXT, 0.50)
    if ext:
        return Classification(DocumentKind.OTHER, 0.40)
    return Classification.unknown()


class ClassifierAnalyzer(BaseAnalyzer):
    """Rule-based classifier fed by the metadata and key-data stages."""

    stage = Stage.CLASSIFIER

    async def run(
        self, document: Document, source: SourceRef, context: AnalysisContext
    ) -> AnalyzerOutcome:
        metadata = context.metadata if context.metadata is not None else document.metadata
        key_data = context.key_data if context.key_data is not None else document.key_data
        return ClassificationUpdate(classify(document.facts, key_data, metadata))
