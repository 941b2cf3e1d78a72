from pathlib import Path

from petition_scoring.classification.classifier import DocumentClassifier
from petition_scoring.config.settings import Settings
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.result_repository import ResultRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.extraction.factory import build_text_extractor
from petition_scoring.logging.logger import Log
from petition_scoring.processor.corpus_assembler import CorpusAssembler
from petition_scoring.processor.exceptions import RunSupersededError, SubmissionValidationError
from petition_scoring.processor.file_loader import FileLoader
from petition_scoring.processor.models import ScoringJob
from petition_scoring.processor.orchestrator import ScoringOrchestrator
from petition_scoring.processor.pipeline import PipelineContext, PipelineStep
from petition_scoring.processor.progress import ProgressSink
from petition_scoring.processor.retry import call_with_retries
from petition_scoring.processor.steps import (
    AssembleCorpusStep,
    ExtractFilesStep,
    LoadFilesStep,
    MarkFailedStep,
    MarkProcessingStep,
    MarkScoringStep,
    PersistResultStep,
    ScoreStep,
)
from petition_scoring.scoring.factory import ScorerFactory
from petition_scoring.scoring.models import ScoringResult


class Processor:
    """Runs one scoring run through the pipeline steps.

    Pipeline: load files -> processing -> extract + classify -> assemble
    -> scoring -> score -> persist. Before every step the run token is
    checked, so a superseded run stops scheduling work. Each step is retried
    in place up to `max_retries` times.
    """

    def __init__(
        self,
        *,
        steps: list[PipelineStep],
        failed_step: PipelineStep,
        session_repo: SessionRepository,
        max_retries: int = 2,
        retry_delay_seconds: float = 0.0,
    ) -> None:
        self._steps = steps
        self._failed_step = failed_step
        self._session_repo = session_repo
        self._max_retries = max_retries
        self._retry_delay_seconds = retry_delay_seconds

    def process(self, job: ScoringJob) -> ScoringResult:
        """Run the full pipeline for one job.

        Raises:
            SubmissionValidationError: the session has nothing to score; state is untouched.
            RunSupersededError: a newer submission took over the session.
            Exception: any other failure, after the session was marked as error.
        """
        Log.info(f"Processing session {job.session_id} (run {job.run_token})")
        context = PipelineContext(
            job=job,
            progress=ProgressSink(self._session_repo, job.session_id, job.run_token),
        )
        try:
            for step in self._steps:
                self._ensure_current(job)
                context = call_with_retries(
                    lambda step=step: step.run(context),
                    retries=self._max_retries,
                    description=f"Step '{step.name}' of session {job.session_id}",
                    delay_seconds=self._retry_delay_seconds,
                )
        except (SubmissionValidationError, RunSupersededError):
            raise
        except Exception as exc:
            context.error_message = str(exc) or exc.__class__.__name__
            try:
                self._failed_step.run(context)
            except Exception as mark_exc:
                Log.error(f"Could not record failure for session {job.session_id}: {mark_exc}")
            raise

        if context.result is None:
            raise RuntimeError(f"Pipeline finished without a result for session {job.session_id}")
        return context.result

    def _ensure_current(self, job: ScoringJob) -> None:
        if not self._session_repo.is_current_run(job.session_id, job.run_token):
            raise RunSupersededError(
                f"Run {job.run_token} for session {job.session_id} was superseded"
            )


def build_processor(
    settings: Settings,
    files_root: Path | None = None,
) -> Processor:
    """Build a Processor with all required adapters.

    The OCR client and the scorer are constructed here, once per process,
    and shared by every run.
    """
    session_repo = SessionRepository()
    file_repo = FileRepository()
    result_repo = ResultRepository()
    steps: list[PipelineStep] = [
        LoadFilesStep(session_repo=session_repo, file_repo=file_repo),
        MarkProcessingStep(session_repo),
        ExtractFilesStep(
            file_loader=FileLoader(files_root=files_root or settings.files_root),
            text_extractor=build_text_extractor(settings),
            classifier=DocumentClassifier(),
            file_repo=file_repo,
            max_workers=settings.extraction_concurrency,
            max_retries=settings.step_max_retries,
            skip_min_chars=settings.skip_extraction_min_chars,
        ),
        AssembleCorpusStep(CorpusAssembler(max_chars=settings.max_corpus_chars)),
        MarkScoringStep(session_repo),
        ScoreStep(ScoringOrchestrator(ScorerFactory.create(settings))),
        PersistResultStep(result_repo),
    ]
    return Processor(
        steps=steps,
        failed_step=MarkFailedStep(session_repo),
        session_repo=session_repo,
        max_retries=settings.step_max_retries,
        retry_delay_seconds=settings.step_retry_delay_seconds,
    )
