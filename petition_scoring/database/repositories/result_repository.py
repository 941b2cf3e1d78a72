from dataclasses import asdict
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from petition_scoring.database.connection import get_connection
from petition_scoring.database.models import SessionStatus
from petition_scoring.processor.exceptions import RunSupersededError, SessionNotFoundError
from petition_scoring.scoring.models import (
    CriterionScore,
    EvidenceQuality,
    Recommendations,
    RfePrediction,
    ScoringResult,
)


class ResultRepository:
    """Database operations for the scoring_results table."""

    def save_for_run(
        self,
        session_id: str,
        run_token: str,
        result: ScoringResult,
        completion_message: str = "Scoring complete!",
    ) -> None:
        """Upsert the result and complete the session in one transaction.

        The session row is locked and its run token compared immediately
        before writing, so a superseded run cannot persist a result.

        Raises:
            SessionNotFoundError: if the session does not exist.
            RunSupersededError: if another run now owns the session.
        """
        with get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT run_token FROM scoring_sessions WHERE id = %s FOR UPDATE",
                        (session_id,),
                    )
                    row = cur.fetchone()
                    if row is None:
                        raise SessionNotFoundError(f"Session {session_id} not found")
                    if row[0] is None or str(row[0]) != run_token:
                        raise RunSupersededError(
                            f"Run {run_token} no longer owns session {session_id}"
                        )

                    cur.execute(
                        """
                        INSERT INTO scoring_results
                        (session_id, run_token, overall_score, overall_rating,
                         approval_probability, rfe_probability, denial_risk,
                         criteria_scores, evidence_quality, rfe_predictions,
                         strengths, weaknesses, recommendations, full_report)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (session_id) DO UPDATE SET
                            run_token = EXCLUDED.run_token,
                            overall_score = EXCLUDED.overall_score,
                            overall_rating = EXCLUDED.overall_rating,
                            approval_probability = EXCLUDED.approval_probability,
                            rfe_probability = EXCLUDED.rfe_probability,
                            denial_risk = EXCLUDED.denial_risk,
                            criteria_scores = EXCLUDED.criteria_scores,
                            evidence_quality = EXCLUDED.evidence_quality,
                            rfe_predictions = EXCLUDED.rfe_predictions,
                            strengths = EXCLUDED.strengths,
                            weaknesses = EXCLUDED.weaknesses,
                            recommendations = EXCLUDED.recommendations,
                            full_report = EXCLUDED.full_report,
                            updated_at = NOW()
                        """,
                        (
                            session_id,
                            run_token,
                            result.overall_score,
                            result.overall_rating,
                            result.approval_probability,
                            result.rfe_probability,
                            result.denial_risk,
                            Jsonb([asdict(c) for c in result.criteria_scores]),
                            Jsonb(asdict(result.evidence_quality)),
                            Jsonb([asdict(p) for p in result.rfe_predictions]),
                            Jsonb(result.strengths),
                            Jsonb(result.weaknesses),
                            Jsonb(asdict(result.recommendations)),
                            result.full_report,
                        ),
                    )

                    cur.execute(
                        """
                        UPDATE scoring_sessions
                        SET status = %s, progress = 100, progress_message = %s,
                            error_message = NULL, completed_at = NOW(), updated_at = NOW()
                        WHERE id = %s
                        """,
                        (SessionStatus.COMPLETED, completion_message, session_id),
                    )

    def find_by_session_id(self, session_id: str) -> ScoringResult | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT overall_score, overall_rating, approval_probability,
                           rfe_probability, denial_risk, criteria_scores,
                           evidence_quality, rfe_predictions, strengths, weaknesses,
                           recommendations, full_report
                    FROM scoring_results
                    WHERE session_id = %s
                    """,
                    (session_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return _to_result(row)


def _to_result(row: dict[str, Any]) -> ScoringResult:
    return ScoringResult(
        overall_score=row["overall_score"],
        overall_rating=row["overall_rating"],
        approval_probability=row["approval_probability"],
        rfe_probability=row["rfe_probability"],
        denial_risk=row["denial_risk"],
        criteria_scores=[CriterionScore(**item) for item in row["criteria_scores"]],
        evidence_quality=EvidenceQuality(**row["evidence_quality"]),
        rfe_predictions=[RfePrediction(**item) for item in row["rfe_predictions"]],
        strengths=list(row["strengths"]),
        weaknesses=list(row["weaknesses"]),
        recommendations=Recommendations(**row["recommendations"]),
        full_report=row["full_report"],
    )
