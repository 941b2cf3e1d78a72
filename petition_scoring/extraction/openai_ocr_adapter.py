import base64

import httpx
import openai

from petition_scoring.extraction.base import BaseOcrClient
from petition_scoring.extraction.exceptions import ExtractionError, OcrNetworkError

_PDF_INSTRUCTION = (
    "Extract ALL text from this PDF document. Return the complete text content, "
    "preserving structure where possible. Include all headings, paragraphs, bullet "
    "points, and table content. Do not summarize - extract everything.\n\n"
    "Filename: {filename}"
)
_IMAGE_INSTRUCTION = (
    "Extract ALL text visible in this image. Return the complete text content. "
    "Do not summarize.\n\n"
    "Filename: {filename}"
)


class OpenAIOcrAdapter(BaseOcrClient):
    """OCR client built on an OpenAI-compatible vision chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def extract_text(self, data: bytes, mime_type: str, filename: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        data_uri = f"data:{mime_type};base64,{encoded}"
        template = _PDF_INSTRUCTION if mime_type == "application/pdf" else _IMAGE_INSTRUCTION
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "image_url", "image_url": {"url": data_uri}},
                            {"type": "text", "text": template.format(filename=filename)},
                        ],
                    }
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise OcrNetworkError(f"OCR provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise OcrNetworkError(f"OCR provider API error: {exc}") from exc

        if not response.choices:
            raise ExtractionError("OCR returned no choices")
        content = response.choices[0].message.content
        return content if isinstance(content, str) else ""
