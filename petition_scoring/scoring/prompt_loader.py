import json
import string
from pathlib import Path

from petition_scoring.scoring.exceptions import ScoringError

PROMPT_DIR = Path(__file__).parent / "prompts"
DEFAULT_PROMPT_PATH = PROMPT_DIR / "officer_scoring_prompt.txt"
DEFAULT_SCHEMA_PATH = PROMPT_DIR / "scoring_schema.json"

# Every template must embed the corpus.
REQUIRED_PLACEHOLDERS = ("document_content",)
ALLOWED_PLACEHOLDERS = frozenset(
    {
        "document_type",
        "visa_type",
        "beneficiary_name",
        "rfe_section",
        "json_schema",
        "document_content",
    }
)


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScoringError(f"Failed to load {what}: {exc}") from exc


def load_prompt_template(path: Path | None = None) -> str:
    """Load the officer prompt template (bundled one by default).

    The template is a str.format string; see the bundled file for the
    available placeholders. Literal braces must be doubled ({{ and }}).

    Raises:
        ScoringError: if the file cannot be read, has malformed or unknown
            placeholders, or lacks {document_content}.
    """
    template = _read(path or DEFAULT_PROMPT_PATH, "prompt template")
    try:
        fields = {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    except ValueError as exc:
        raise ScoringError(f"Prompt template is malformed: {exc}") from exc
    unknown = sorted(fields - ALLOWED_PLACEHOLDERS)
    if unknown:
        raise ScoringError(
            f"Prompt template has unknown placeholders: {unknown}; "
            "double literal braces as {{ and }}"
        )
    missing = [p for p in REQUIRED_PLACEHOLDERS if p not in fields]
    if missing:
        raise ScoringError(f"Prompt template is missing placeholders: {missing}")
    return template


def load_json_schema(path: Path | None = None) -> str:
    """Load the response JSON schema as text, checking that it parses.

    Raises:
        ScoringError: if the file cannot be read or is not a JSON object.
    """
    raw = _read(path or DEFAULT_SCHEMA_PATH, "JSON schema")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ScoringError(f"JSON schema is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ScoringError("JSON schema must be an object")
    return raw
