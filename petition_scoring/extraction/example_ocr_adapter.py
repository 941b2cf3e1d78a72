"""Offline OCR client for local development and tests.

Implement BaseOcrClient and register the provider in OcrClientFactory to add
a real provider.
"""

from petition_scoring.extraction.base import BaseOcrClient


class ExampleOcrAdapter(BaseOcrClient):
    """Returns a fixed transcription without any network call."""

    def __init__(self, text: str = "") -> None:
        self._text = text

    def extract_text(self, data: bytes, mime_type: str, filename: str) -> str:
        _ = data, mime_type
        return self._text or f"[OCR placeholder transcription of {filename}]"
