from pathlib import Path

import pytest

from petition_scoring.config.settings import Settings
from petition_scoring.database.models import FileRecord, JobRecord, SessionRecord
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.database.repositories.result_repository import ResultRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.processor.processor import build_processor
from petition_scoring.worker.job_runner import JobRunner


@pytest.mark.integration
class TestJobRunnerSuccess:
    def test_run_completes_session_and_marks_job_done(
        self,
        seed_job: JobRecord,
        files_root: Path,
        test_settings: Settings,
    ) -> None:
        job_repo = JobRepository()
        runner = JobRunner(build_processor(test_settings, files_root=files_root), job_repo)

        runner.run(seed_job)

        session = SessionRepository().find_by_id(seed_job.session_id)
        assert session.status == "completed"
        assert session.progress == 100
        assert session.completed_at is not None

        result = ResultRepository().find_by_session_id(seed_job.session_id)
        assert result is not None
        assert 0 <= result.overall_score <= 100

        files = FileRepository().find_by_session_id(seed_job.session_id)
        assert [f.category for f in files] == ["legal_document", "support_letter"]
        assert all(f.status == "completed" and f.extracted_text for f in files)

        job = job_repo.find_by_id(seed_job.id)
        assert job is not None
        assert job.status == "done"


@pytest.mark.integration
class TestJobRunnerSupersession:
    def test_stale_run_does_not_persist(
        self,
        seed_session: SessionRecord,
        seed_files: list[FileRecord],
        files_root: Path,
        test_settings: Settings,
    ) -> None:
        job_repo = JobRepository()
        stale = job_repo.submit(seed_session.id, "full_petition", "O-1A")
        current = job_repo.submit(seed_session.id, "full_petition", "O-1A")
        runner = JobRunner(build_processor(test_settings, files_root=files_root), job_repo)

        runner.run(stale)

        session = SessionRepository().find_by_id(seed_session.id)
        assert session.run_token == current.run_token
        assert session.status == "created"
        assert ResultRepository().find_by_session_id(seed_session.id) is None
        job = job_repo.find_by_id(stale.id)
        assert job is not None
        assert job.status == "cancelled"


@pytest.mark.integration
class TestJobRunnerFailure:
    def test_missing_file_on_disk_still_scores_with_placeholder(
        self,
        seed_job: JobRecord,
        seed_files: list[FileRecord],
        files_root: Path,
        test_settings: Settings,
    ) -> None:
        (files_root / seed_files[1].storage_path).unlink()
        job_repo = JobRepository()
        runner = JobRunner(build_processor(test_settings, files_root=files_root), job_repo)

        runner.run(seed_job)

        files = FileRepository().find_by_session_id(seed_job.session_id)
        assert files[1].status == "failed"
        assert files[1].extracted_text.startswith("[Text extraction failed:")
        assert SessionRepository().find_by_id(seed_job.session_id).status == "completed"
