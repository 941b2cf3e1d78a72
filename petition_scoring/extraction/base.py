from abc import ABC, abstractmethod

from petition_scoring.extraction.models import PdfText


class BasePdfExtractor(ABC):
    """Contract for all structural PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> PdfText:
        """Extract plain text from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            PdfText with the normalized text and the parser's page count.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """


class BaseOcrClient(ABC):
    """Contract for vision-model OCR clients."""

    @abstractmethod
    def extract_text(self, data: bytes, mime_type: str, filename: str) -> str:
        """Return the complete text content of a PDF or image payload.

        Raises:
            ExtractionError: if the provider returns nothing usable.
            OcrNetworkError: on network or API failures.
        """
