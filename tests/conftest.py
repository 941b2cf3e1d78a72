import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
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
def long_text_pdf_bytes() -> bytes:
    """Generate a digitally authored PDF whose text layer exceeds 500 characters."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 720
    for i in range(20):
        c.drawString(72, y, f"Line {i:02d}: the beneficiary received a national award for research")
        y -= 20
    c.save()
    return buf.getvalue()



@pytest.fixture()
def two_page_text_pdf_bytes() -> bytes:
    """Generate a two-page digitally authored PDF with a long text layer."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for page in (1, 2):
        y = 720
        for i in range(10):
            c.drawString(72, y, f"Page {page} line {i}: the petitioner describes the beneficiary")
            y -= 20
        c.showPage()
    c.save()
    return buf.getvalue()
