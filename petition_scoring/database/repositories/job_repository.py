import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from petition_scoring.database.connection import get_connection
from petition_scoring.database.models import JobRecord, JobStatus, SessionStatus
from petition_scoring.processor.exceptions import SessionNotFoundError

_JOB_COLUMNS = """
    id, session_id, run_token, document_type, visa_type, beneficiary_name,
    status, error_message, locked_at, created_at, updated_at
"""


class JobRepository:
    """Database operations for the scoring_jobs table."""

    def submit(
        self,
        session_id: str,
        document_type: str,
        visa_type: str,
        beneficiary_name: str | None = None,
        status: str = JobStatus.PENDING,
    ) -> JobRecord:
        """Record a job-submission event and make it the session's authoritative run.

        In one transaction: lock the session, cancel every older pending or
        processing job, rotate the run token, reset the session to 'created'
        and insert the new job. A job inserted as 'processing' is owned by
        the caller and never claimed by a worker.

        Raises:
            SessionNotFoundError: if the session does not exist.
        """
        run_token = str(uuid.uuid4())
        with get_connection() as conn:
            with conn.transaction():
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        "SELECT id FROM scoring_sessions WHERE id = %s FOR UPDATE",
                        (session_id,),
                    )
                    if cur.fetchone() is None:
                        raise SessionNotFoundError(f"Session {session_id} not found")

                    cur.execute(
                        """
                        UPDATE scoring_jobs
                        SET status = %s, updated_at = NOW()
                        WHERE session_id = %s AND status IN (%s, %s)
                        """,
                        (
                            JobStatus.CANCELLED,
                            session_id,
                            JobStatus.PENDING,
                            JobStatus.PROCESSING,
                        ),
                    )
                    cur.execute(
                        """
                        UPDATE scoring_sessions
                        SET run_token = %s, status = %s, progress = 0,
                            progress_message = %s, error_message = NULL,
                            completed_at = NULL, document_type = %s, visa_type = %s,
                            beneficiary_name = COALESCE(%s, beneficiary_name),
                            updated_at = NOW()
                        WHERE id = %s
                        """,
                        (
                            run_token,
                            SessionStatus.CREATED,
                            "Queued for scoring",
                            document_type,
                            visa_type,
                            beneficiary_name,
                            session_id,
                        ),
                    )
                    cur.execute(
                        f"""
                        INSERT INTO scoring_jobs
                        (session_id, run_token, document_type, visa_type, beneficiary_name,
                         status, locked_at)
                        VALUES (%s, %s, %s, %s, %s, %s,
                                CASE WHEN %s THEN NOW() END)
                        RETURNING {_JOB_COLUMNS}
                        """,
                        (
                            session_id,
                            run_token,
                            document_type,
                            visa_type,
                            beneficiary_name,
                            status,
                            status == JobStatus.PROCESSING,
                        ),
                    )
                    row = cur.fetchone()
        assert row is not None
        return _to_record(row)

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the oldest pending job whose run is still current (SKIP LOCKED)."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT j.id
                FROM scoring_jobs AS j
                JOIN scoring_sessions AS s
                  ON s.id = j.session_id AND s.run_token = j.run_token
                WHERE j.status = %s
                ORDER BY j.created_at
                LIMIT 1
                FOR UPDATE OF j SKIP LOCKED
                """,
                (JobStatus.PENDING,),
            )
            row = cur.fetchone()
            if row is None:
                conn.commit()
                return None

            cur.execute(
                f"""
                UPDATE scoring_jobs
                SET status = %s, locked_at = NOW(), updated_at = NOW()
                WHERE id = %s
                RETURNING {_JOB_COLUMNS}
                """,
                (JobStatus.PROCESSING, row["id"]),
            )
            claimed = cur.fetchone()
        conn.commit()
        assert claimed is not None
        return _to_record(claimed)

    def mark_done(self, job_id: int) -> None:
        self._finish(job_id, JobStatus.DONE)

    def mark_failed(self, job_id: int, error: str) -> None:
        self._finish(job_id, JobStatus.FAILED, error)

    def mark_cancelled(self, job_id: int) -> None:
        self._finish(job_id, JobStatus.CANCELLED)

    def _finish(self, job_id: int, status: str, error: str | None = None) -> None:
        """Move a job to a terminal status unless a newer submission already cancelled it."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE scoring_jobs
                SET status = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s AND status IN (%s, %s)
                """,
                (status, error, job_id, JobStatus.PENDING, JobStatus.PROCESSING),
            )
            conn.commit()

    def find_by_id(self, job_id: int) -> JobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM scoring_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return _to_record(row)


def _to_record(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        session_id=str(row["session_id"]),
        run_token=str(row["run_token"]),
        document_type=row["document_type"],
        visa_type=row["visa_type"],
        beneficiary_name=row["beneficiary_name"],
        status=row["status"],
        error_message=row["error_message"],
        locked_at=row["locked_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
