import io

import pdfplumber

from petition_scoring.extraction.base import BasePdfExtractor
from petition_scoring.extraction.exceptions import PdfExtractionError
from petition_scoring.extraction.models import PdfText


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts the text layer of a PDF using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> PdfText:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return PdfText(text="\n".join(pages).strip(), page_count=max(1, len(pages)))
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc
