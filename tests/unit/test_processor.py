from pathlib import Path
from unittest.mock import MagicMock

import pytest

from petition_scoring.classification.classifier import DocumentClassifier
from petition_scoring.config.settings import Settings
from petition_scoring.database.models import FileRecord, SessionStatus
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.result_repository import ResultRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.extraction.exceptions import OcrNetworkError
from petition_scoring.extraction.pdfplumber_adapter import PdfPlumberAdapter
from petition_scoring.extraction.text_extractor import TextExtractor
from petition_scoring.processor.corpus_assembler import TRUNCATION_NOTICE, CorpusAssembler
from petition_scoring.processor.exceptions import RunSupersededError, SubmissionValidationError
from petition_scoring.processor.file_loader import FileLoader
from petition_scoring.processor.models import ScoringJob
from petition_scoring.processor.orchestrator import ScoringOrchestrator
from petition_scoring.processor.pipeline import PipelineContext, PipelineStep
from petition_scoring.processor.processor import Processor, build_processor
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
from petition_scoring.scoring.exceptions import NoUsableContentError
from petition_scoring.scoring.models import ScoringRequest, ScoringResult

SESSION_ID = "0b6c3f4e-1d1a-4c52-9a57-5f0c6d1e2a10"


def _make_job() -> ScoringJob:
    return ScoringJob(
        session_id=SESSION_ID,
        run_token="t-1",
        document_type="full_petition",
        visa_type="O-1A",
    )


def _make_result(score: int = 74) -> ScoringResult:
    return ScoringResult(
        overall_score=score,
        overall_rating="Approve",
        approval_probability=72,
        rfe_probability=35,
        denial_risk=8,
    )


class _ResultStep(PipelineStep):
    name = "result"

    def run(self, context: PipelineContext) -> PipelineContext:
        context.result = _make_result()
        return context


def _make_processor(
    steps: list[PipelineStep],
    session_repo: MagicMock | None = None,
) -> tuple[Processor, MagicMock, MagicMock]:
    if session_repo is None:
        session_repo = MagicMock(spec=SessionRepository)
        session_repo.is_current_run.return_value = True
    failed_step = MagicMock(spec=PipelineStep)
    processor = Processor(
        steps=steps,
        failed_step=failed_step,
        session_repo=session_repo,
        max_retries=2,
    )
    return processor, session_repo, failed_step


class TestProcessor:
    def test_runs_steps_in_order_and_returns_result(self) -> None:
        first = MagicMock(spec=PipelineStep)
        first.name = "first"
        first.run.side_effect = lambda ctx: ctx
        processor, _repo, failed_step = _make_processor([first, _ResultStep()])

        result = processor.process(_make_job())

        assert result.overall_score == 74
        first.run.assert_called_once()
        failed_step.run.assert_not_called()

    def test_retries_failing_step(self) -> None:
        flaky = MagicMock(spec=PipelineStep)
        flaky.name = "flaky"
        calls = {"n": 0}

        def _run(ctx: PipelineContext) -> PipelineContext:
            calls["n"] += 1
            if calls["n"] < 3:
                raise RuntimeError("transient")
            return ctx

        flaky.run.side_effect = _run
        processor, _repo, _failed = _make_processor([flaky, _ResultStep()])

        processor.process(_make_job())

        assert calls["n"] == 3

    def test_exhausted_retries_mark_session_failed(self) -> None:
        broken = MagicMock(spec=PipelineStep)
        broken.name = "broken"
        broken.run.side_effect = RuntimeError("always")
        processor, _repo, failed_step = _make_processor([broken])

        with pytest.raises(RuntimeError, match="always"):
            processor.process(_make_job())

        assert broken.run.call_count == 3
        context = failed_step.run.call_args.args[0]
        assert context.error_message == "always"

    def test_validation_error_is_not_retried_or_marked(self) -> None:
        step = MagicMock(spec=PipelineStep)
        step.name = "load"
        step.run.side_effect = SubmissionValidationError("No document content available")
        processor, _repo, failed_step = _make_processor([step])

        with pytest.raises(SubmissionValidationError):
            processor.process(_make_job())

        step.run.assert_called_once()
        failed_step.run.assert_not_called()

    def test_superseded_run_stops_before_next_step(self) -> None:
        session_repo = MagicMock(spec=SessionRepository)
        session_repo.is_current_run.side_effect = [True, False]
        first = MagicMock(spec=PipelineStep)
        first.name = "first"
        first.run.side_effect = lambda ctx: ctx
        second = MagicMock(spec=PipelineStep)
        second.name = "second"
        processor, _repo, failed_step = _make_processor([first, second], session_repo)

        with pytest.raises(RunSupersededError):
            processor.process(_make_job())

        second.run.assert_not_called()
        failed_step.run.assert_not_called()

    def test_failure_of_failed_step_keeps_original_error(self) -> None:
        broken = MagicMock(spec=PipelineStep)
        broken.name = "broken"
        broken.run.side_effect = ValueError("original")
        processor, _repo, failed_step = _make_processor([broken])
        failed_step.run.side_effect = RuntimeError("db down")

        with pytest.raises(ValueError, match="original"):
            processor.process(_make_job())


class TestRetryBudget:
    def test_failing_file_is_extracted_once_per_file_retry(self) -> None:
        session_repo = MagicMock(spec=SessionRepository)
        session_repo.is_current_run.return_value = True
        file_repo = MagicMock(spec=FileRepository)
        file_repo.find_by_session_id.return_value = [
            FileRecord(
                id=1,
                session_id=SESSION_ID,
                filename="scan.pdf",
                file_size_bytes=1024,
                mime_type="application/pdf",
                storage_path="scan.pdf",
            )
        ]
        loader = MagicMock(spec=FileLoader)
        loader.load.return_value = b"%PDF"
        extractor = MagicMock(spec=TextExtractor)
        extractor.extract.side_effect = OcrNetworkError("provider down")
        failed_step = MagicMock(spec=PipelineStep)
        processor = Processor(
            steps=[
                LoadFilesStep(session_repo=session_repo, file_repo=file_repo),
                ExtractFilesStep(
                    file_loader=loader,
                    text_extractor=extractor,
                    classifier=DocumentClassifier(),
                    file_repo=file_repo,
                    max_retries=2,
                ),
            ],
            failed_step=failed_step,
            session_repo=session_repo,
            max_retries=2,
        )

        with pytest.raises(NoUsableContentError):
            processor.process(_make_job())

        assert extractor.extract.call_count == 3
        failed_step.run.assert_called_once()


class TestBuildProcessor:
    def test_builds_full_pipeline(self, tmp_path: Path) -> None:
        settings = Settings(ocr_provider="example", scoring_provider="example")

        processor = build_processor(settings, files_root=tmp_path)

        assert [s.name for s in processor._steps] == [
            "load-files",
            "mark-processing",
            "extract-files",
            "assemble-corpus",
            "mark-scoring",
            "run-officer-scoring",
            "save-results",
        ]


def _build_pipeline(
    tmp_path: Path,
    files: list[FileRecord],
    ocr_client: MagicMock,
    scorer: MagicMock,
) -> tuple[Processor, MagicMock, MagicMock, MagicMock]:
    session_repo = MagicMock(spec=SessionRepository)
    session_repo.is_current_run.return_value = True
    session_repo.update_progress.return_value = True
    file_repo = MagicMock(spec=FileRepository)
    file_repo.find_by_session_id.return_value = files
    result_repo = MagicMock(spec=ResultRepository)
    steps: list[PipelineStep] = [
        LoadFilesStep(session_repo=session_repo, file_repo=file_repo),
        MarkProcessingStep(session_repo),
        ExtractFilesStep(
            file_loader=FileLoader(files_root=tmp_path),
            text_extractor=TextExtractor(
                pdf_extractor=PdfPlumberAdapter(), ocr_client=ocr_client
            ),
            classifier=DocumentClassifier(),
            file_repo=file_repo,
        ),
        AssembleCorpusStep(CorpusAssembler()),
        MarkScoringStep(session_repo),
        ScoreStep(ScoringOrchestrator(scorer)),
        PersistResultStep(result_repo),
    ]
    processor = Processor(
        steps=steps,
        failed_step=MarkFailedStep(session_repo),
        session_repo=session_repo,
    )
    return processor, session_repo, file_repo, result_repo


def _register(tmp_path: Path, file_id: int, name: str, data: bytes, mime: str) -> FileRecord:
    (tmp_path / name).write_bytes(data)
    return FileRecord(
        id=file_id,
        session_id=SESSION_ID,
        filename=name,
        file_size_bytes=len(data),
        mime_type=mime,
        storage_path=name,
    )


class TestEndToEnd:
    def test_three_file_session(
        self,
        tmp_path: Path,
        two_page_text_pdf_bytes: bytes,
        empty_pdf_bytes: bytes,
    ) -> None:
        files = [
            _register(tmp_path, 1, "petition_brief.pdf", two_page_text_pdf_bytes, "application/pdf"),
            _register(tmp_path, 2, "award_scan.pdf", empty_pdf_bytes, "application/pdf"),
            _register(
                tmp_path, 3, "reference.txt", b"To whom it may concern: a letter", "text/plain"
            ),
        ]
        ocr_client = MagicMock()
        ocr_client.extract_text.return_value = "Certificate of excellence awarded in 2024"
        scorer = MagicMock()
        scorer.score.return_value = _make_result(score=81)
        processor, session_repo, file_repo, result_repo = _build_pipeline(
            tmp_path, files, ocr_client, scorer
        )

        result = processor.process(_make_job())

        assert 0 <= result.overall_score <= 100
        ocr_client.extract_text.assert_called_once()
        assert ocr_client.extract_text.call_args.args[2] == "award_scan.pdf"

        request: ScoringRequest = scorer.score.call_args.args[0]
        corpus = request.document_content
        assert corpus.count("=== FILE: ") == 3
        assert (
            corpus.index("=== FILE: legal_document ===")
            < corpus.index("=== FILE: award ===")
            < corpus.index("=== FILE: support_letter ===")
        )
        assert "the petitioner describes the beneficiary" in corpus
        assert not corpus.endswith(TRUNCATION_NOTICE)

        result_repo.save_for_run.assert_called_once_with(SESSION_ID, "t-1", result)

        progress_values = [c.args[2] for c in session_repo.update_progress.call_args_list]
        assert progress_values == sorted(progress_values)
        assert max(progress_values) <= 99

        completed = [
            c for c in file_repo.update_file.call_args_list if c.kwargs.get("status") == "completed"
        ]
        page_counts = {c.args[0]: c.kwargs["page_count"] for c in completed}
        assert page_counts[1] == 2

    def test_zero_files_leaves_session_created(self, tmp_path: Path) -> None:
        scorer = MagicMock()
        processor, session_repo, _files, result_repo = _build_pipeline(
            tmp_path, [], MagicMock(), scorer
        )

        with pytest.raises(SubmissionValidationError, match="No document content available"):
            processor.process(_make_job())

        session_repo.update_session.assert_not_called()
        session_repo.mark_error.assert_not_called()
        scorer.score.assert_not_called()
        result_repo.save_for_run.assert_not_called()

    def test_scoring_failure_marks_error_without_result(
        self, tmp_path: Path
    ) -> None:
        files = [_register(tmp_path, 1, "notes.txt", b"plain notes", "text/plain")]
        scorer = MagicMock()
        scorer.score.side_effect = RuntimeError("provider down")
        processor, session_repo, _files, result_repo = _build_pipeline(
            tmp_path, files, MagicMock(), scorer
        )

        with pytest.raises(Exception, match="provider down"):
            processor.process(_make_job())

        session_repo.mark_error.assert_called_once()
        assert "provider down" in session_repo.mark_error.call_args.args[2]
        result_repo.save_for_run.assert_not_called()
        statuses = [
            c.kwargs.get("status") for c in session_repo.update_session.call_args_list
        ]
        assert SessionStatus.COMPLETED not in statuses

    def test_superseded_persist_is_not_marked_error(
        self, tmp_path: Path
    ) -> None:
        files = [_register(tmp_path, 1, "notes.txt", b"plain notes", "text/plain")]
        scorer = MagicMock()
        scorer.score.return_value = _make_result()
        processor, session_repo, _files, result_repo = _build_pipeline(
            tmp_path, files, MagicMock(), scorer
        )
        result_repo.save_for_run.side_effect = RunSupersededError("newer run owns session")

        with pytest.raises(RunSupersededError):
            processor.process(_make_job())

        session_repo.mark_error.assert_not_called()
        result_repo.save_for_run.assert_called_once()
