from dataclasses import dataclass


@dataclass(frozen=True)
class PdfText:
    """Output of a structural PDF parser."""

    text: str
    page_count: int


@dataclass(frozen=True)
class ExtractionResult:
    """Text extracted from one uploaded file."""

    text: str
    page_count: int
    method: str  # "text" | "pdf_parser" | "ocr" | "pdf_parser_degraded"

    @property
    def word_count(self) -> int:
        return len(self.text.split())
