"""Tiered text extraction for uploaded petition files.

Order of attempts:
1. Plain text is decoded directly.
2. PDFs go through the structural parser first. Digitally authored PDFs
   yield enough text and stop here.
3. Scanned PDFs (scant parser text, or a parser failure) fall back to the
   vision OCR client, but only below the OCR size ceiling. Above it the scant
   text is returned as-is, with a placeholder when nothing was found.
4. Images always go to OCR.
"""

import math
from pathlib import PurePath
from typing import ClassVar

from petition_scoring.extraction.base import BaseOcrClient, BasePdfExtractor
from petition_scoring.extraction.exceptions import ExtractionError, PdfExtractionError
from petition_scoring.extraction.models import ExtractionResult
from petition_scoring.logging.logger import Log

SCANNED_PDF_PLACEHOLDER = (
    "[Scanned PDF exceeds the OCR size limit; no text layer could be extracted]"
)


def estimate_page_count(text: str, words_per_page: int = 500) -> int:
    """Estimate pages from word count, never less than one."""
    return max(1, math.ceil(len(text.split()) / words_per_page))


class TextExtractor:
    """Converts one uploaded binary into text plus a page-count estimate."""

    _TEXT_EXTENSIONS: ClassVar[dict[str, str]] = {
        ".txt": "text/plain",
        ".md": "text/markdown",
        ".pdf": "application/pdf",
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".webp": "image/webp",
        ".gif": "image/gif",
    }

    def __init__(
        self,
        *,
        pdf_extractor: BasePdfExtractor,
        ocr_client: BaseOcrClient,
        min_pdf_text_chars: int = 500,
        ocr_max_bytes: int = 5 * 1024 * 1024,
        words_per_page: int = 500,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._ocr_client = ocr_client
        self._min_pdf_text_chars = min_pdf_text_chars
        self._ocr_max_bytes = ocr_max_bytes
        self._words_per_page = words_per_page

    def extract(self, data: bytes, mime_type: str, filename: str = "") -> ExtractionResult:
        """Extract text from a PDF, image or plain-text payload.

        Raises:
            ExtractionError: if the type is unsupported or no usable text exists.
        """
        kind = self._resolve_mime_type(mime_type, filename)
        if kind.startswith("text/"):
            return self._extract_plain_text(data)
        if kind == "application/pdf":
            return self._extract_pdf(data, filename)
        if kind.startswith("image/"):
            return self._extract_image(data, kind, filename)
        raise ExtractionError(f"Unsupported file type '{mime_type}' for {filename or 'file'}")

    def _resolve_mime_type(self, mime_type: str, filename: str) -> str:
        normalized = (mime_type or "").split(";")[0].strip().lower()
        if normalized and normalized != "application/octet-stream":
            return normalized
        guessed = self._TEXT_EXTENSIONS.get(PurePath(filename).suffix.lower())
        return guessed or normalized

    def _extract_plain_text(self, data: bytes) -> ExtractionResult:
        text = data.decode("utf-8", errors="replace")
        return ExtractionResult(
            text=text,
            page_count=estimate_page_count(text, self._words_per_page),
            method="text",
        )

    def _extract_pdf(self, data: bytes, filename: str) -> ExtractionResult:
        try:
            parsed = self._pdf_extractor.extract(data)
        except PdfExtractionError as exc:
            Log.warning(f"PDF parser failed for {filename}: {exc}")
            if not self._ocr_allowed(data):
                raise ExtractionError(
                    f"PDF parsing failed and file exceeds OCR size limit: {exc}"
                ) from exc
            return self._ocr(data, "application/pdf", filename)

        if len(parsed.text) >= self._min_pdf_text_chars:
            return ExtractionResult(
                text=parsed.text, page_count=parsed.page_count, method="pdf_parser"
            )

        if self._ocr_allowed(data):
            Log.info(
                f"PDF {filename} yielded {len(parsed.text)} chars, treating as scanned"
            )
            return self._ocr(data, "application/pdf", filename, fallback_text=parsed.text)

        Log.warning(
            f"PDF {filename} is {len(data)} bytes, above OCR limit {self._ocr_max_bytes}; "
            "keeping parser text"
        )
        return ExtractionResult(
            text=parsed.text or SCANNED_PDF_PLACEHOLDER,
            page_count=parsed.page_count,
            method="pdf_parser_degraded",
        )

    def _extract_image(self, data: bytes, mime_type: str, filename: str) -> ExtractionResult:
        result = self._ocr(data, mime_type, filename)
        return ExtractionResult(text=result.text, page_count=1, method="ocr")

    def _ocr(
        self,
        data: bytes,
        mime_type: str,
        filename: str,
        fallback_text: str = "",
    ) -> ExtractionResult:
        text = self._ocr_client.extract_text(data, mime_type, filename).strip()
        if not text:
            if fallback_text:
                text = fallback_text
            else:
                raise ExtractionError(f"OCR produced no text for {filename or 'file'}")
        Log.info(f"OCR extracted {len(text)} chars from {filename}")
        return ExtractionResult(
            text=text,
            page_count=estimate_page_count(text, self._words_per_page),
            method="ocr",
        )

    def _ocr_allowed(self, data: bytes) -> bool:
        return len(data) < self._ocr_max_bytes
