from petition_scoring.scoring.base import BaseScorer
from petition_scoring.scoring.factory import ScorerFactory
from petition_scoring.scoring.officer_scorer import OfficerScorer

__all__ = ["BaseScorer", "OfficerScorer", "ScorerFactory"]
