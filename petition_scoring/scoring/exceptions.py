class ScoringError(Exception):
    """Raised when scoring fails."""


class ScoringValidationError(ScoringError):
    """Raised when the scorer output is structurally unusable."""


class ScoringNetworkError(ScoringError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""


class NoUsableContentError(ScoringError):
    """Raised when no file yielded usable text after per-file retries. Never retried."""
