import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docscan.config.settings import Settings


@pytest.fixture()
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with defaults only, unaffected by the developer's environment."""
    for name in ("BATCH_SIZE", "PDF_ENGINE", "OCR_ENGINE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def invoice_pdf_bytes() -> bytes:
    """Generate a one-page invoice PDF with an RFC, a date and an amount."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setAuthor("Maria Lopez")
    c.setCreator("Facturador Web")
    c.drawString(72, 720, "Factura CFDI")
    c.drawString(72, 700, "RFC emisor: GODE561231GR8")
    c.drawString(72, 680, "Fecha: 2024-03-15")
    c.drawString(72, 660, "Total: 1,250.00")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    """Generate a small white PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (32, 16), color="white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def jpeg_with_exif_bytes() -> bytes:
    """Generate a JPEG carrying camera make, model and software EXIF tags."""
    image = Image.new("RGB", (16, 16), color="gray")
    exif = Image.Exif()
    exif[0x010F] = "Epson"  # Make
    exif[0x0110] = "V600"  # Model
    exif[0x0131] = "Scan Utility"  # Software
    buf = io.BytesIO()
    image.save(buf, format="JPEG", exif=exif)
    return buf.getvalue()
