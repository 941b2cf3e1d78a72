"""Request and response bodies for the scoring API.

Field names are snake_case in Python and camelCase on the wire.
"""

from dataclasses import asdict
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from petition_scoring.database.models import SessionRecord
from petition_scoring.scoring.models import ScoringResult


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateSessionRequest(ApiModel):
    document_type: str = Field(..., min_length=1, examples=["full_petition"])
    visa_type: str = Field(..., min_length=1, examples=["O-1A"])
    beneficiary_name: str | None = None


class RegisterFileRequest(ApiModel):
    """A file already written to storage, registered against a session."""

    filename: str = Field(..., min_length=1)
    file_size_bytes: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1)
    storage_path: str = Field(..., min_length=1)
    storage_disk: str = "local"


class SubmitScoringRequest(ApiModel):
    document_type: str | None = None
    visa_type: str | None = None
    beneficiary_name: str | None = None


class SessionResponse(ApiModel):
    session_id: str
    document_type: str
    visa_type: str
    beneficiary_name: str | None = None
    status: str
    progress: int

    @classmethod
    def from_record(cls, session: SessionRecord) -> "SessionResponse":
        return cls(
            session_id=session.id,
            document_type=session.document_type,
            visa_type=session.visa_type,
            beneficiary_name=session.beneficiary_name,
            status=session.status,
            progress=session.progress,
        )


class FileResponse(ApiModel):
    file_id: int
    session_id: str
    filename: str
    status: str


class SubmitScoringResponse(ApiModel):
    session_id: str
    run_token: str
    status: str


class CriterionScoreOut(ApiModel):
    criterion_number: int
    name: str
    rating: str
    score: int
    officer_concerns: list[str]


class EvidenceQualityOut(ApiModel):
    tier1_count: int
    tier2_count: int
    tier3_count: int
    tier4_count: int
    assessment: str


class RfePredictionOut(ApiModel):
    topic: str
    probability: int
    officer_perspective: str


class RecommendationsOut(ApiModel):
    critical: list[str]
    high: list[str]
    recommended: list[str]


class ScoringResultOut(ApiModel):
    overall_score: int
    overall_rating: str
    approval_probability: int
    rfe_probability: int
    denial_risk: int
    criteria_scores: list[CriterionScoreOut]
    evidence_quality: EvidenceQualityOut
    rfe_predictions: list[RfePredictionOut]
    strengths: list[str]
    weaknesses: list[str]
    recommendations: RecommendationsOut
    full_report: str | None = None

    @classmethod
    def from_result(cls, result: ScoringResult) -> "ScoringResultOut":
        return cls.model_validate(asdict(result))


class ScoringStatusResponse(ApiModel):
    session_id: str
    status: str
    progress: int
    progress_message: str | None = None
    error_message: str | None = None
    completed_at: datetime | None = None
    results: ScoringResultOut | None = None


class ScoringCompletedResponse(ApiModel):
    session_id: str
    status: str
    results: ScoringResultOut


class ErrorResponse(ApiModel):
    error: str
    message: str
    remediation: str
