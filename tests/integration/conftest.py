import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from petition_scoring.config.settings import Settings
from petition_scoring.database.connection import close_pool, get_connection, init_pool
from petition_scoring.database.models import FileRecord, JobRecord, SessionRecord
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.database.repositories.session_repository import SessionRepository

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "petition_scoring" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "petition_scoring_test")
    return Settings(
        ocr_provider="example",
        scoring_provider="example",
        worker_concurrency=2,
        job_poll_interval_seconds=0,
        step_retry_delay_seconds=0,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Session ids to delete after the test; files, jobs and results cascade."""
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for session_id in cleanup:
                cur.execute("DELETE FROM scoring_sessions WHERE id = %s", (session_id,))
        conn.commit()


@pytest.fixture
def seed_session(integration_cleanup: list[str]) -> SessionRecord:
    session = SessionRepository().create_session("full_petition", "O-1A", "Jane Doe")
    integration_cleanup.append(session.id)
    return session


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def seed_files(
    seed_session: SessionRecord,
    files_root: Path,
    sample_pdf_bytes: bytes,
) -> list[FileRecord]:
    """One short PDF and one support letter written to disk and registered."""
    pdf_path = f"{seed_session.id}/petition_brief.pdf"
    txt_path = f"{seed_session.id}/letter.txt"
    letter = b"To whom it may concern: I write in support of the beneficiary."
    (files_root / seed_session.id).mkdir()
    (files_root / pdf_path).write_bytes(sample_pdf_bytes)
    (files_root / txt_path).write_bytes(letter)

    repo = FileRepository()
    return [
        repo.add_file(
            seed_session.id,
            filename="petition_brief.pdf",
            file_size_bytes=len(sample_pdf_bytes),
            mime_type="application/pdf",
            storage_path=pdf_path,
        ),
        repo.add_file(
            seed_session.id,
            filename="letter.txt",
            file_size_bytes=len(letter),
            mime_type="text/plain",
            storage_path=txt_path,
        ),
    ]


@pytest.fixture
def seed_job(seed_session: SessionRecord, seed_files: list[FileRecord]) -> JobRecord:
    return JobRepository().submit(seed_session.id, "full_petition", "O-1A")
