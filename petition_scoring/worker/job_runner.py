from collections.abc import Callable

from petition_scoring.database.models import JobRecord
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.logging.logger import Log
from petition_scoring.processor.exceptions import RunSupersededError, SubmissionValidationError
from petition_scoring.processor.models import ScoringJob
from petition_scoring.processor.processor import Processor
from petition_scoring.scoring.models import ScoringResult


class JobRunner:
    """Run one claimed job and record how it ended."""

    def __init__(self, processor: Processor, job_repo: JobRepository) -> None:
        self._processor = processor
        self._job_repo = job_repo

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling. Never raises."""
        try:
            self.execute(job)
        except RunSupersededError as exc:
            Log.info(f"Job {job.id} cancelled: {exc}")
        except SubmissionValidationError as exc:
            Log.warning(f"Job {job.id} rejected: {exc}")
        except Exception as exc:
            Log.error(f"Job {job.id} failed: {exc}")

    def execute(self, job: JobRecord) -> ScoringResult:
        """Execute a single job and return its result.

        The job row is moved to done, failed or cancelled before returning
        or re-raising the processor's exception.
        """
        Log.info(f"Running job {job.id} for session {job.session_id}")
        try:
            result = self._processor.process(to_scoring_job(job))
        except RunSupersededError:
            self._finish(self._job_repo.mark_cancelled, job.id)
            raise
        except Exception as exc:
            self._finish(self._job_repo.mark_failed, job.id, str(exc))
            raise
        self._finish(self._job_repo.mark_done, job.id)
        Log.info(f"Job {job.id} completed successfully")
        return result

    @staticmethod
    def _finish(mark: Callable[..., None], *args: object) -> None:
        try:
            mark(*args)
        except Exception as exc:
            Log.warning(f"Could not update job status ({args[0]}): {exc}")


def to_scoring_job(job: JobRecord) -> ScoringJob:
    return ScoringJob(
        session_id=job.session_id,
        run_token=job.run_token,
        document_type=job.document_type,
        visa_type=job.visa_type,
        beneficiary_name=job.beneficiary_name,
    )
