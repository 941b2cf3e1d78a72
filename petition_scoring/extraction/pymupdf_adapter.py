import pymupdf

from petition_scoring.extraction.base import BasePdfExtractor
from petition_scoring.extraction.exceptions import PdfExtractionError
from petition_scoring.extraction.models import PdfText


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts the text layer of a PDF using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> PdfText:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return PdfText(text="\n".join(pages).strip(), page_count=max(1, len(pages)))
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc
