import httpx
import openai

from petition_scoring.scoring.client_base import BaseScoringClient
from petition_scoring.scoring.exceptions import ScoringError, ScoringNetworkError

_RESPONSE_SCHEMA_NAME = "officer_scoring_result"


class OpenAIClientAdapter(BaseScoringClient):
    """Scoring client for any OpenAI-compatible chat completions endpoint.

    SDK-level retries are off; the pipeline retries whole steps instead.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        max_output_tokens: int | None = None,
    ) -> None:
        self._max_output_tokens = max_output_tokens
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        extra: dict[str, object] = {}
        if self._max_output_tokens is not None:
            extra["max_tokens"] = self._max_output_tokens
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": _RESPONSE_SCHEMA_NAME,
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **extra,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ScoringNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIStatusError as exc:
            raise ScoringNetworkError(
                f"AI provider API error (HTTP {exc.status_code}): {exc.message}"
            ) from exc
        except openai.APIError as exc:
            raise ScoringNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ScoringError("AI returned no choices")
        choice = response.choices[0]
        if choice.finish_reason == "length":
            raise ScoringError("AI response was cut off at the output token limit")
        content = choice.message.content
        if content is None:
            raise ScoringError("AI returned empty response")
        return content
