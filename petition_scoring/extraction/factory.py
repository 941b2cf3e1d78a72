from typing import ClassVar

from petition_scoring.config.settings import Settings
from petition_scoring.extraction.base import BaseOcrClient, BasePdfExtractor
from petition_scoring.extraction.example_ocr_adapter import ExampleOcrAdapter
from petition_scoring.extraction.openai_ocr_adapter import OpenAIOcrAdapter
from petition_scoring.extraction.pdfplumber_adapter import PdfPlumberAdapter
from petition_scoring.extraction.pymupdf_adapter import PyMuPdfAdapter
from petition_scoring.extraction.text_extractor import TextExtractor


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: ClassVar[dict[str, type[BasePdfExtractor]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


class OcrClientFactory:
    """Creates the OCR client once per process."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "mistral": "https://api.mistral.ai/v1",
        "openrouter": "https://openrouter.ai/api/v1",
        "together": "https://api.together.xyz/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrClient:
        provider = settings.ocr_provider.lower()
        if provider == "example":
            return ExampleOcrAdapter()
        return OpenAIOcrAdapter(
            api_key=settings.ocr_api_key,
            model=settings.ocr_model_name,
            timeout_seconds=settings.ocr_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        override = (settings.ocr_base_url or "").strip()
        if override:
            return override
        if provider == "openai":
            return None
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = ["example", "openai", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]
        raise ValueError(f"Unknown OCR provider '{provider}'. Choose from: {supported}")


def build_text_extractor(settings: Settings) -> TextExtractor:
    """Build the tiered extractor with its parser and OCR client."""
    return TextExtractor(
        pdf_extractor=PdfExtractorFactory.create(settings),
        ocr_client=OcrClientFactory.create(settings),
        min_pdf_text_chars=settings.min_pdf_text_chars,
        ocr_max_bytes=settings.ocr_max_bytes,
        words_per_page=settings.words_per_page,
    )
