from petition_scoring.config.settings import Settings
from petition_scoring.database.connection import close_pool, init_pool
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.logging.logger import Log
from petition_scoring.processor.processor import build_processor
from petition_scoring.worker.job_runner import JobRunner
from petition_scoring.worker.worker import Worker


def build_worker(settings: Settings) -> Worker:
    job_repo = JobRepository()
    job_runner = JobRunner(build_processor(settings), job_repo)
    return Worker(job_repo, job_runner, settings)


def main() -> None:
    """Worker entry point: settings, logging, pool, then the claim loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(
        f"Starting scoring worker (env={settings.app_env}, "
        f"concurrency={settings.worker_concurrency}, pdf={settings.pdf_engine}, "
        f"ocr={settings.ocr_provider}, scoring={settings.scoring_provider})"
    )
    init_pool(settings)
    try:
        build_worker(settings).run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
