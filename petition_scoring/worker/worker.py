import time
from concurrent.futures import Future, ThreadPoolExecutor

from petition_scoring.config.settings import Settings
from petition_scoring.database.connection import get_connection
from petition_scoring.database.models import JobRecord
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.logging.logger import Log
from petition_scoring.worker.job_runner import JobRunner


class Worker:
    """Poll loop: claim -> dispatch onto the run pool -> sleep when idle or full.

    Each claimed job runs on its own pool thread, so runs for different
    sessions proceed concurrently up to `worker_concurrency`.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._concurrency = max(1, settings.worker_concurrency)
        self._in_flight: set[Future[None]] = set()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_jobs is set, stop after dispatching that many jobs (for testing).
        """
        Log.info(f"Worker started, polling for jobs (concurrency {self._concurrency})")
        jobs_dispatched = 0
        executor = ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="scoring-run"
        )
        try:
            while max_jobs is None or jobs_dispatched < max_jobs:
                self._reap()
                if len(self._in_flight) >= self._concurrency:
                    time.sleep(self._settings.job_poll_interval_seconds)
                    continue
                job = self._try_claim_job()
                if job:
                    self._dispatch(executor, job)
                    jobs_dispatched += 1
                else:
                    Log.debug("No jobs available, sleeping")
                    time.sleep(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        finally:
            executor.shutdown(wait=True)
            self._reap()

    def _dispatch(self, executor: ThreadPoolExecutor, job: JobRecord) -> None:
        Log.info(f"Dispatching job {job.id} for session {job.session_id}")
        self._in_flight.add(executor.submit(self._job_runner.run, job))

    def _reap(self) -> None:
        for future in [f for f in self._in_flight if f.done()]:
            self._in_flight.discard(future)
            exc = future.exception()
            if exc is not None:
                Log.error(f"Run thread crashed: {exc}")

    def _try_claim_job(self) -> JobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
