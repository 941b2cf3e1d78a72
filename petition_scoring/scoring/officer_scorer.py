"""AI-powered officer scorer."""

import json
from pathlib import Path

from petition_scoring.logging.logger import Log
from petition_scoring.scoring.base import BaseScorer
from petition_scoring.scoring.client_base import BaseScoringClient
from petition_scoring.scoring.exceptions import ScoringError
from petition_scoring.scoring.models import ProgressCallback, ScoringRequest, ScoringResult
from petition_scoring.scoring.prompt_loader import load_json_schema, load_prompt_template
from petition_scoring.scoring.validator import validate_and_build

_SYSTEM_PROMPT = (
    "You are an experienced immigration adjudications officer. "
    "You respond only with JSON that matches the requested schema."
)


class OfficerScorer(BaseScorer):
    """Scores an assembled petition corpus with an AI provider."""

    def __init__(
        self,
        *,
        client: BaseScoringClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = _SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.3, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = schema_str
        self._json_schema_dict = json.loads(schema_str)

    def score(self, request: ScoringRequest, on_progress: ProgressCallback) -> ScoringResult:
        prompt = self._build_prompt(request)
        Log.debug(f"Scoring prompt for session {request.session_id}: {len(prompt)} chars")

        on_progress("evaluating", 30, "Officer is evaluating each criterion...")
        raw_response = self._call_ai(prompt)
        Log.debug(f"AI raw response:\n{raw_response}")

        on_progress("validating", 90, "Compiling the officer's assessment...")
        parsed = self._parse_json(raw_response)
        result = validate_and_build(parsed)

        Log.info(
            f"Scoring complete for session {request.session_id}: "
            f"score={result.overall_score} rating={result.overall_rating}"
        )
        return result

    def _build_prompt(self, request: ScoringRequest) -> str:
        rfe_section = ""
        if request.rfe_original_content:
            rfe_section = (
                "\nThis is a response to a Request for Evidence. Check whether each issue "
                "raised in the original RFE below is fully answered.\n\n"
                f"Original RFE:\n{request.rfe_original_content}\n"
            )
        return self._prompt_template.format(
            document_type=request.document_type,
            visa_type=request.visa_type,
            beneficiary_name=request.beneficiary_name or "Not provided",
            rfe_section=rfe_section,
            json_schema=self._json_schema,
            document_content=request.document_content,
        )

    def _call_ai(self, prompt: str) -> str:
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ScoringError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ScoringError("JSON response must be an object")
        return parsed
