import time
from collections.abc import Callable
from typing import TypeVar

from petition_scoring.logging.logger import Log
from petition_scoring.processor.exceptions import RunSupersededError, SubmissionValidationError
from petition_scoring.scoring.exceptions import NoUsableContentError

T = TypeVar("T")

# Retrying cannot fix these.
NON_RETRYABLE: tuple[type[Exception], ...] = (
    SubmissionValidationError,
    RunSupersededError,
    NoUsableContentError,
)


def call_with_retries(
    func: Callable[[], T],
    *,
    retries: int,
    description: str,
    delay_seconds: float = 0.0,
) -> T:
    """Call func, retrying up to `retries` more times on failure.

    The last exception is re-raised once the budget is spent.
    """
    attempt = 0
    while True:
        try:
            return func()
        except NON_RETRYABLE:
            raise
        except Exception as exc:
            if attempt >= retries:
                raise
            attempt += 1
            Log.warning(f"{description} failed ({exc}); retry {attempt} of {retries}")
            if delay_seconds > 0:
                time.sleep(delay_seconds * attempt)
