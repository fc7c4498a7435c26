import re

from docscan.registry.models import KeyData

RFC_PATTERN = re.compile(r"\b[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}\b")
DATE_PATTERN = re.compile(r"\b(?:\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4})\b")
AMOUNT_PATTERN = re.compile(r"\b\d{1,3}(?:,\d{3})*(?:\.\d{2})?\b")
NAME_PATTERN = re.compile(
    r"\b([A-ZÁÉÍÓÚÑ][a-záéíóúñ]+(?:[ \t]+[A-ZÁÉÍÓÚÑ][a-záéíóúñ]+){1,3})\b"
)
KEY_PATTERN = re.compile(r"\b[A-Z0-9_\-]{6,}\b")

PREVIEW_CHARS = 240

SPANISH_CUES = ("factura", "contrato", "reporte", "pago", "rfc", "monto")
ENGLISH_CUES = ("invoice", "contract", "report", "payment", "amount")


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def extract_key_data(text: str, scan_depth: str) -> KeyData:
    """Pull RFCs, dates, amounts, names and key-like tokens out of plain text."""
    rfcs = _unique(RFC_PATTERN.findall(text))
    dates = _unique(DATE_PATTERN.findall(text))
    # Digits inside dates are not amounts.
    without_dates = DATE_PATTERN.sub(" ", text)
    amounts = tuple(
        dict.fromkeys(float(raw.replace(",", "")) for raw in AMOUNT_PATTERN.findall(without_dates))
    )
    names = _unique(NAME_PATTERN.findall(text))
    keys = _unique(
        [token for token in KEY_PATTERN.findall(text) if any(c.isalpha() for c in token)]
    )
    return KeyData(
        names=names,
        rfcs=rfcs,
        dates=dates,
        amounts=amounts,
        keys=keys,
        content_preview=make_preview(text),
        language=detect_language(text),
        scan_depth=scan_depth,
    )


def make_preview(text: str, limit: int = PREVIEW_CHARS) -> str | None:
    collapsed = " ".join(text.split())
    return collapsed[:limit] or None


def detect_language(text: str) -> str:
    lower = text.lower()
    es_hits = sum(1 for word in SPANISH_CUES if word in lower)
    en_hits = sum(1 for word in ENGLISH_CUES if word in lower)
    if es_hits > en_hits:
        return "es"
    if en_hits > es_hits:
        return "en"
    return "other"
