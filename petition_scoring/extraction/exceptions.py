class ExtractionError(Exception):
    """Raised when no usable text can be produced for a file."""


class PdfExtractionError(ExtractionError):
    """Raised when the structural PDF parser fails."""


class OcrNetworkError(ExtractionError):
    """Raised when the OCR provider call fails due to network/infrastructure issues."""
