from typing import ClassVar

from petition_scoring.config.settings import Settings
from petition_scoring.scoring.base import BaseScorer
from petition_scoring.scoring.example_client_adapter import ExampleClientAdapter
from petition_scoring.scoring.officer_scorer import OfficerScorer
from petition_scoring.scoring.openai_client_adapter import OpenAIClientAdapter


class ScorerFactory:
    """Creates the configured scorer."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "mistral": "https://api.mistral.ai/v1",
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseScorer:
        """Create a configured scorer from application settings."""
        provider = settings.scoring_provider.lower()
        if provider == "example":
            return OfficerScorer(
                client=ExampleClientAdapter(),
                model="example",
                temperature=0.0,
            )
        client = OpenAIClientAdapter(
            api_key=settings.scoring_api_key,
            timeout_seconds=settings.scoring_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
            max_output_tokens=settings.scoring_max_output_tokens,
        )
        return OfficerScorer(
            client=client,
            model=settings.scoring_model_name,
            temperature=settings.scoring_temperature,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        override = (settings.scoring_base_url or "").strip()
        if provider == "openai_compatible":
            if not override:
                raise ValueError(
                    "scoring_base_url is required for scoring_provider=openai_compatible"
                )
            return override
        if override:
            return override
        if provider == "openai":
            return None
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown scoring provider '{provider}'. Choose from: {supported}"
        )
