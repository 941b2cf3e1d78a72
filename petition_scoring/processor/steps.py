from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import replace

import psycopg

from petition_scoring.classification.classifier import DocumentClassifier
from petition_scoring.classification.models import DocumentCategory
from petition_scoring.database.models import FileRecord, FileStatus, SessionStatus
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.result_repository import ResultRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.extraction.text_extractor import TextExtractor
from petition_scoring.logging.logger import Log
from petition_scoring.processor.corpus_assembler import CorpusAssembler
from petition_scoring.processor.exceptions import (
    PersistenceError,
    RunSupersededError,
    SubmissionValidationError,
)
from petition_scoring.processor.file_loader import FileLoader
from petition_scoring.processor.models import CorpusFile
from petition_scoring.processor.orchestrator import ScoringOrchestrator
from petition_scoring.processor.pipeline import PipelineContext, PipelineStep
from petition_scoring.processor.retry import call_with_retries
from petition_scoring.scoring.exceptions import NoUsableContentError
from petition_scoring.scoring.models import ScoringRequest

EXTRACTION_START_PROGRESS = 5
EXTRACTION_END_PROGRESS = 19


def _transition(
    session_repo: SessionRepository, context: PipelineContext, **fields: object
) -> None:
    try:
        session_repo.update_session(context.job.session_id, context.job.run_token, **fields)
    except psycopg.Error as exc:
        raise PersistenceError(
            f"Failed to move session {context.job.session_id} to {fields['status']}: {exc}"
        ) from exc


class LoadFilesStep(PipelineStep):
    name = "load-files"

    def __init__(self, session_repo: SessionRepository, file_repo: FileRepository) -> None:
        self._session_repo = session_repo
        self._file_repo = file_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        context.session = self._session_repo.find_by_id(context.job.session_id)
        context.files = self._file_repo.find_by_session_id(context.job.session_id)
        if not context.files:
            raise SubmissionValidationError(
                f"No document content available: session {context.job.session_id} has no files"
            )
        Log.info(f"Session {context.job.session_id}: {len(context.files)} files registered")
        return context


class MarkProcessingStep(PipelineStep):
    name = "mark-processing"

    def __init__(self, session_repo: SessionRepository) -> None:
        self._session_repo = session_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        _transition(
            self._session_repo,
            context,
            status=SessionStatus.PROCESSING,
            progress=EXTRACTION_START_PROGRESS,
            progress_message="Starting background processing...",
        )
        Log.info(f"Session {context.job.session_id} marked as processing")
        return context


class ExtractFilesStep(PipelineStep):
    """Extract and classify every file, in parallel across files.

    Files that already hold meaningful text are not extracted again. A file
    whose extraction fails gets placeholder text; the run only fails if no
    file ends up with usable text.
    """

    name = "extract-files"

    def __init__(
        self,
        *,
        file_loader: FileLoader,
        text_extractor: TextExtractor,
        classifier: DocumentClassifier,
        file_repo: FileRepository,
        max_workers: int = 4,
        max_retries: int = 2,
        skip_min_chars: int = 100,
    ) -> None:
        self._file_loader = file_loader
        self._text_extractor = text_extractor
        self._classifier = classifier
        self._file_repo = file_repo
        self._max_workers = max(1, max_workers)
        self._max_retries = max_retries
        self._skip_min_chars = skip_min_chars

    def run(self, context: PipelineContext) -> PipelineContext:
        total = len(context.files)
        processed: dict[int, FileRecord] = {}
        futures: dict[Future[FileRecord], int] = {}
        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, total),
            thread_name_prefix=f"extract-{context.job.session_id[:8]}",
        )
        try:
            for f in context.files:
                futures[executor.submit(self._process_file, f, context.job.run_token)] = f.id
            for done, future in enumerate(as_completed(futures), start=1):
                processed[futures[future]] = future.result()
                span = EXTRACTION_END_PROGRESS - EXTRACTION_START_PROGRESS
                context.progress.report(
                    EXTRACTION_START_PROGRESS + span * done // total,
                    f"Extracted {done} of {total} documents",
                )
        except BaseException:
            # Running extractions finish before a retry may touch the same files.
            executor.shutdown(wait=True, cancel_futures=True)
            for future, file_id in futures.items():
                if not future.cancelled() and future.exception() is None:
                    processed[file_id] = future.result()
            context.files = [processed.get(f.id, f) for f in context.files]
            raise
        executor.shutdown(wait=True)

        context.files = [processed[f.id] for f in context.files]
        usable = [f for f in context.files if f.status != FileStatus.FAILED and f.extracted_text]
        if not usable:
            raise NoUsableContentError(
                "No usable document content could be extracted from any file"
            )
        Log.info(
            f"Session {context.job.session_id}: {len(usable)} of {total} files have usable text"
        )
        return context

    def _process_file(self, file: FileRecord, run_token: str) -> FileRecord:
        if self._already_extracted(file):
            Log.info(f"File {file.id} already extracted, skipping")
            if file.category is None:
                category = self._classifier.classify(file.filename, file.extracted_text).value
                self._file_repo.update_file(file.id, run_token, category=category)
                file = replace(file, category=category)
            return file

        self._file_repo.update_file(file.id, run_token, status=FileStatus.EXTRACTING)
        try:
            extraction = call_with_retries(
                lambda: self._text_extractor.extract(
                    self._file_loader.load(file), file.mime_type, file.filename
                ),
                retries=self._max_retries,
                description=f"Extraction of file {file.id}",
            )
        except RunSupersededError:
            raise
        except Exception as exc:
            Log.error(f"Extraction failed for file {file.id} ({file.filename}): {exc}")
            placeholder = f"[Text extraction failed: {exc}]"
            category = self._classifier.classify(file.filename, "").value
            self._file_repo.update_file(
                file.id,
                run_token,
                status=FileStatus.FAILED,
                extracted_text=placeholder,
                category=category,
            )
            return replace(
                file, status=FileStatus.FAILED, extracted_text=placeholder, category=category
            )

        category = self._classifier.classify(file.filename, extraction.text).value
        self._file_repo.update_file(
            file.id,
            run_token,
            status=FileStatus.COMPLETED,
            extracted_text=extraction.text,
            word_count=extraction.word_count,
            page_count=extraction.page_count,
            category=category,
        )
        Log.info(
            f"File {file.id} ({file.filename}): {len(extraction.text)} chars, "
            f"{extraction.page_count} pages via {extraction.method}, category={category}"
        )
        return replace(
            file,
            status=FileStatus.COMPLETED,
            extracted_text=extraction.text,
            word_count=extraction.word_count,
            page_count=extraction.page_count,
            category=category,
        )

    def _already_extracted(self, file: FileRecord) -> bool:
        if file.status == FileStatus.FAILED:
            return False
        return len((file.extracted_text or "").strip()) > self._skip_min_chars


class AssembleCorpusStep(PipelineStep):
    name = "assemble-corpus"

    def __init__(self, assembler: CorpusAssembler) -> None:
        self._assembler = assembler

    def run(self, context: PipelineContext) -> PipelineContext:
        corpus_files = [CorpusFile(category=f.category, text=f.extracted_text) for f in context.files]
        context.corpus = self._assembler.assemble(corpus_files)
        if context.job.document_type == DocumentCategory.RFE_RESPONSE.value:
            context.rfe_original_content = self._assembler.find_rfe_original(corpus_files)
        if self._assembler.is_truncated(context.corpus):
            Log.warning(f"Session {context.job.session_id}: corpus truncated for scoring")
        Log.info(f"Session {context.job.session_id}: corpus of {len(context.corpus)} chars")
        return context


class MarkScoringStep(PipelineStep):
    name = "mark-scoring"

    def __init__(self, session_repo: SessionRepository) -> None:
        self._session_repo = session_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        _transition(
            self._session_repo,
            context,
            status=SessionStatus.SCORING,
            progress=20,
            progress_message="Officer is reviewing the petition...",
        )
        return context


class ScoreStep(PipelineStep):
    name = "run-officer-scoring"

    def __init__(self, orchestrator: ScoringOrchestrator) -> None:
        self._orchestrator = orchestrator

    def run(self, context: PipelineContext) -> PipelineContext:
        request = ScoringRequest(
            session_id=context.job.session_id,
            document_type=context.job.document_type,
            visa_type=context.job.visa_type,
            beneficiary_name=context.job.beneficiary_name,
            document_content=context.corpus,
            rfe_original_content=context.rfe_original_content,
        )
        context.result = self._orchestrator.run(request, context.progress)
        return context


class PersistResultStep(PipelineStep):
    name = "save-results"

    def __init__(self, result_repo: ResultRepository) -> None:
        self._result_repo = result_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.result is None:
            raise ValueError("PipelineContext.result must be set before persist")
        try:
            self._result_repo.save_for_run(
                context.job.session_id, context.job.run_token, context.result
            )
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to save scoring result: {exc}") from exc
        Log.info(f"Session {context.job.session_id} completed")
        return context


class MarkFailedStep(PipelineStep):
    name = "mark-failed"

    def __init__(self, session_repo: SessionRepository) -> None:
        self._session_repo = session_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        try:
            self._session_repo.mark_error(
                context.job.session_id, context.job.run_token, context.error_message
            )
        except RunSupersededError:
            Log.info(
                f"Session {context.job.session_id} was resubmitted; "
                "not recording error of the stale run"
            )
            return context
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to record error for session {context.job.session_id}: {exc}"
            ) from exc
        Log.error(f"Session {context.job.session_id} marked as error: {context.error_message}")
        return context
