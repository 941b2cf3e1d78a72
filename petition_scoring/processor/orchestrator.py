from petition_scoring.logging.logger import Log
from petition_scoring.processor.exceptions import SubmissionValidationError
from petition_scoring.processor.progress import ProgressSink
from petition_scoring.scoring.base import BaseScorer
from petition_scoring.scoring.exceptions import ScoringError
from petition_scoring.scoring.models import ScoringRequest, ScoringResult

SCORING_START_PROGRESS = 20


class ScoringOrchestrator:
    """Invokes the scoring function and reports progress around it."""

    def __init__(self, scorer: BaseScorer) -> None:
        self._scorer = scorer

    def run(self, request: ScoringRequest, progress: ProgressSink) -> ScoringResult:
        """Score an assembled corpus.

        Raises:
            SubmissionValidationError: if there is no document content.
            ScoringError: if the scorer fails for any reason.
        """
        if not request.document_content.strip():
            raise SubmissionValidationError("No document content available for scoring")

        progress.report(SCORING_START_PROGRESS, "Officer is reviewing the petition...")
        try:
            result = self._scorer.score(request, progress.on_stage)
        except ScoringError:
            raise
        except Exception as exc:
            raise ScoringError(f"Scoring failed: {exc}") from exc

        progress.report(100, "Scoring complete")
        Log.info(
            f"Session {request.session_id} scored {result.overall_score} "
            f"({result.overall_rating})"
        )
        return result
