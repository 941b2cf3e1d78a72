from abc import ABC, abstractmethod

from petition_scoring.scoring.models import ProgressCallback, ScoringRequest, ScoringResult


class BaseScorer(ABC):
    """Contract for the opaque scoring function."""

    @abstractmethod
    def score(self, request: ScoringRequest, on_progress: ProgressCallback) -> ScoringResult:
        """Evaluate an assembled petition corpus.

        Args:
            request: Session metadata plus the assembled document content.
            on_progress: Called zero or more times with (stage, progress, message).

        Returns:
            A validated ScoringResult.

        Raises:
            ScoringError: on any failure.
        """
