"""Validates and normalizes raw scorer JSON into a ScoringResult.

Percentages and scores are coerced to integers and clamped into [0, 100];
structurally unusable output (wrong types, missing fields) is rejected.
"""

from typing import Any

from petition_scoring.scoring.exceptions import ScoringValidationError
from petition_scoring.scoring.models import (
    CriterionScore,
    EvidenceQuality,
    Recommendations,
    RfePrediction,
    ScoringResult,
)

_REQUIRED_FIELDS = (
    "overall_score",
    "overall_rating",
    "approval_probability",
    "rfe_probability",
    "denial_risk",
)


def validate_and_build(data: dict[str, Any]) -> ScoringResult:
    """Validate raw parsed JSON and build a ScoringResult.

    Raises:
        ScoringValidationError: on any validation failure.
    """
    for name in _REQUIRED_FIELDS:
        if name not in data:
            raise ScoringValidationError(f"Missing required top-level field: {name}")

    return ScoringResult(
        overall_score=_percentage(data["overall_score"], "overall_score"),
        overall_rating=_non_empty_string(data["overall_rating"], "overall_rating"),
        approval_probability=_percentage(data["approval_probability"], "approval_probability"),
        rfe_probability=_percentage(data["rfe_probability"], "rfe_probability"),
        denial_risk=_percentage(data["denial_risk"], "denial_risk"),
        criteria_scores=_build_criteria(data.get("criteria_scores", [])),
        evidence_quality=_build_evidence_quality(data.get("evidence_quality")),
        rfe_predictions=_build_rfe_predictions(data.get("rfe_predictions", [])),
        strengths=_string_list(data.get("strengths", []), "strengths"),
        weaknesses=_string_list(data.get("weaknesses", []), "weaknesses"),
        recommendations=_build_recommendations(data.get("recommendations")),
        full_report=_optional_string(data.get("full_report"), "full_report"),
    )


def _percentage(raw: Any, name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ScoringValidationError(f"'{name}' must be a number")
    return max(0, min(100, round(raw)))


def _count(raw: Any, name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ScoringValidationError(f"'{name}' must be a number")
    return max(0, int(raw))


def _non_empty_string(raw: Any, name: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ScoringValidationError(f"'{name}' must be a non-empty string")
    return raw.strip()


def _optional_string(raw: Any, name: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ScoringValidationError(f"'{name}' must be a string or null")
    return raw


def _string_list(raw: Any, name: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ScoringValidationError(f"'{name}' must be a list of strings")
    return list(raw)


def _build_criteria(raw: Any) -> list[CriterionScore]:
    if not isinstance(raw, list):
        raise ScoringValidationError("'criteria_scores' must be a list")
    criteria: list[CriterionScore] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ScoringValidationError(f"Criterion at index {i} must be an object")
        number = item.get("criterion_number", i + 1)
        if isinstance(number, bool) or not isinstance(number, int):
            raise ScoringValidationError(
                f"Criterion at index {i}: 'criterion_number' must be an integer"
            )
        criteria.append(
            CriterionScore(
                criterion_number=number,
                name=_non_empty_string(item.get("name"), f"criteria_scores[{i}].name"),
                rating=_non_empty_string(item.get("rating"), f"criteria_scores[{i}].rating"),
                score=_percentage(item.get("score"), f"criteria_scores[{i}].score"),
                officer_concerns=_string_list(
                    item.get("officer_concerns", []), f"criteria_scores[{i}].officer_concerns"
                ),
            )
        )
    return criteria


def _build_evidence_quality(raw: Any) -> EvidenceQuality:
    if raw is None:
        return EvidenceQuality()
    if not isinstance(raw, dict):
        raise ScoringValidationError("'evidence_quality' must be an object")
    assessment = raw.get("assessment", "")
    if not isinstance(assessment, str):
        raise ScoringValidationError("'evidence_quality.assessment' must be a string")
    return EvidenceQuality(
        tier1_count=_count(raw.get("tier1_count", 0), "evidence_quality.tier1_count"),
        tier2_count=_count(raw.get("tier2_count", 0), "evidence_quality.tier2_count"),
        tier3_count=_count(raw.get("tier3_count", 0), "evidence_quality.tier3_count"),
        tier4_count=_count(raw.get("tier4_count", 0), "evidence_quality.tier4_count"),
        assessment=assessment,
    )


def _build_rfe_predictions(raw: Any) -> list[RfePrediction]:
    if not isinstance(raw, list):
        raise ScoringValidationError("'rfe_predictions' must be a list")
    predictions: list[RfePrediction] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ScoringValidationError(f"RFE prediction at index {i} must be an object")
        perspective = item.get("officer_perspective", "")
        if not isinstance(perspective, str):
            raise ScoringValidationError(
                f"RFE prediction at index {i}: 'officer_perspective' must be a string"
            )
        predictions.append(
            RfePrediction(
                topic=_non_empty_string(item.get("topic"), f"rfe_predictions[{i}].topic"),
                probability=_percentage(
                    item.get("probability"), f"rfe_predictions[{i}].probability"
                ),
                officer_perspective=perspective,
            )
        )
    return predictions


def _build_recommendations(raw: Any) -> Recommendations:
    if raw is None:
        return Recommendations()
    if not isinstance(raw, dict):
        raise ScoringValidationError("'recommendations' must be an object")
    return Recommendations(
        critical=_string_list(raw.get("critical", []), "recommendations.critical"),
        high=_string_list(raw.get("high", []), "recommendations.high"),
        recommended=_string_list(raw.get("recommended", []), "recommendations.recommended"),
    )
