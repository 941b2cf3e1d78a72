from unittest.mock import MagicMock

import pytest

from petition_scoring.database.models import JobRecord
from petition_scoring.processor.exceptions import RunSupersededError, SubmissionValidationError
from petition_scoring.processor.models import ScoringJob
from petition_scoring.worker.job_runner import JobRunner


def _make_runner() -> tuple[JobRunner, MagicMock, MagicMock]:
    """Create a JobRunner with mocked dependencies."""
    mock_processor = MagicMock()
    mock_repo = MagicMock()
    runner = JobRunner(mock_processor, mock_repo)
    return runner, mock_processor, mock_repo


def _make_job() -> JobRecord:
    return JobRecord(
        id=1,
        session_id="s-1",
        run_token="t-1",
        document_type="full_petition",
        visa_type="O-1A",
        status="processing",
        beneficiary_name="Ada",
    )


class TestSuccessfulProcessing:
    def test_calls_processor_with_scoring_job(self) -> None:
        runner, mock_processor, _repo = _make_runner()

        runner.run(_make_job())

        mock_processor.process.assert_called_once_with(
            ScoringJob(
                session_id="s-1",
                run_token="t-1",
                document_type="full_petition",
                visa_type="O-1A",
                beneficiary_name="Ada",
            )
        )

    def test_marks_job_done(self) -> None:
        runner, _processor, mock_repo = _make_runner()

        runner.run(_make_job())

        mock_repo.mark_done.assert_called_once_with(1)

    def test_execute_returns_result(self) -> None:
        runner, mock_processor, _repo = _make_runner()
        mock_processor.process.return_value = "result"

        assert runner.execute(_make_job()) == "result"


class TestFailure:
    def test_marks_failed(self) -> None:
        runner, mock_processor, mock_repo = _make_runner()
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job())

        mock_repo.mark_failed.assert_called_once_with(1, "boom")
        mock_repo.mark_done.assert_not_called()

    def test_validation_failure_marks_failed(self) -> None:
        runner, mock_processor, mock_repo = _make_runner()
        mock_processor.process.side_effect = SubmissionValidationError("no files")

        runner.run(_make_job())

        mock_repo.mark_failed.assert_called_once_with(1, "no files")

    def test_superseded_run_is_cancelled(self) -> None:
        runner, mock_processor, mock_repo = _make_runner()
        mock_processor.process.side_effect = RunSupersededError("stale")

        runner.run(_make_job())

        mock_repo.mark_cancelled.assert_called_once_with(1)
        mock_repo.mark_failed.assert_not_called()

    def test_execute_reraises(self) -> None:
        runner, mock_processor, mock_repo = _make_runner()
        mock_processor.process.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            runner.execute(_make_job())
        mock_repo.mark_failed.assert_called_once_with(1, "boom")

    def test_status_update_failure_is_swallowed(self) -> None:
        runner, _processor, mock_repo = _make_runner()
        mock_repo.mark_done.side_effect = Exception("db down")

        runner.run(_make_job())  # Should not raise
