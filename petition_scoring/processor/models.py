from dataclasses import dataclass


@dataclass(frozen=True)
class CorpusFile:
    """One file's contribution to the evaluation corpus."""

    category: str | None
    text: str | None


@dataclass(frozen=True)
class ScoringJob:
    """A job-submission event as the pipeline sees it."""

    session_id: str
    run_token: str
    document_type: str
    visa_type: str
    beneficiary_name: str | None = None
