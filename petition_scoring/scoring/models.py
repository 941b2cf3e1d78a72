from collections.abc import Callable
from dataclasses import dataclass, field

# (stage, progress 0-100, human-readable message)
ProgressCallback = Callable[[str, int, str], None]


@dataclass(frozen=True)
class ScoringRequest:
    """Input handed to the scoring function."""

    session_id: str
    document_type: str
    visa_type: str
    document_content: str
    beneficiary_name: str | None = None
    rfe_original_content: str | None = None


@dataclass(frozen=True)
class CriterionScore:
    """Officer assessment of one regulatory criterion."""

    criterion_number: int
    name: str
    rating: str
    score: int
    officer_concerns: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EvidenceQuality:
    """Counts of exhibits across the four evidentiary tiers."""

    tier1_count: int = 0
    tier2_count: int = 0
    tier3_count: int = 0
    tier4_count: int = 0
    assessment: str = ""


@dataclass(frozen=True)
class RfePrediction:
    """A topic likely to draw a Request for Evidence."""

    topic: str
    probability: int
    officer_perspective: str = ""


@dataclass(frozen=True)
class Recommendations:
    critical: list[str] = field(default_factory=list)
    high: list[str] = field(default_factory=list)
    recommended: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScoringResult:
    """Normalized output of the scoring function.

    The three probabilities describe different events and are not required
    to sum to 100.
    """

    overall_score: int
    overall_rating: str
    approval_probability: int
    rfe_probability: int
    denial_risk: int
    criteria_scores: list[CriterionScore] = field(default_factory=list)
    evidence_quality: EvidenceQuality = field(default_factory=EvidenceQuality)
    rfe_predictions: list[RfePrediction] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    recommendations: Recommendations = field(default_factory=Recommendations)
    full_report: str | None = None
