import uuid
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row

from petition_scoring.database.connection import get_connection
from petition_scoring.database.models import SessionRecord, SessionStatus
from petition_scoring.processor.exceptions import RunSupersededError, SessionNotFoundError

_SESSION_COLUMNS = """
    id, document_type, visa_type, beneficiary_name, status, progress,
    progress_message, error_message, run_token, completed_at, created_at, updated_at
"""

_UPDATABLE_FIELDS = frozenset(
    {"status", "progress", "progress_message", "error_message", "completed_at"}
)


class SessionRepository:
    """Database operations for the scoring_sessions table.

    Every write made on behalf of a run is guarded by the run token, so a
    superseded run can never overwrite the state of the run that replaced it.
    """

    def create_session(
        self,
        document_type: str,
        visa_type: str,
        beneficiary_name: str | None = None,
    ) -> SessionRecord:
        session_id = str(uuid.uuid4())
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO scoring_sessions (id, document_type, visa_type, beneficiary_name)
                    VALUES (%s, %s, %s, %s)
                    RETURNING {_SESSION_COLUMNS}
                    """,
                    (session_id, document_type, visa_type, beneficiary_name),
                )
                row = cur.fetchone()
            conn.commit()
        assert row is not None
        return _to_record(row)

    def find_by_id(self, session_id: str) -> SessionRecord:
        """Find a session by id.

        Raises:
            SessionNotFoundError: if no session with this id exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_SESSION_COLUMNS} FROM scoring_sessions WHERE id = %s",
                    (session_id,),
                )
                row = cur.fetchone()
        if row is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return _to_record(row)

    def is_current_run(self, session_id: str, run_token: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM scoring_sessions WHERE id = %s AND run_token = %s",
                    (session_id, run_token),
                )
                return cur.fetchone() is not None

    def update_session(self, session_id: str, run_token: str, **fields: Any) -> None:
        """Apply a status transition for the run holding run_token.

        Raises:
            RunSupersededError: if another submission has taken over the session.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {sorted(unknown)}")
        if not fields:
            return
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name))
            for name in fields
        )
        query = sql.SQL(
            """
            UPDATE scoring_sessions
            SET {assignments}, updated_at = NOW()
            WHERE id = %(session_id)s AND run_token = %(run_token)s
            """
        ).format(assignments=assignments)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, {**fields, "session_id": session_id, "run_token": run_token})
                updated = cur.rowcount
            conn.commit()
        if updated == 0:
            raise RunSupersededError(
                f"Run {run_token} no longer owns session {session_id}"
            )

    def update_progress(
        self,
        session_id: str,
        run_token: str,
        progress: int,
        message: str,
    ) -> bool:
        """Raise progress without ever lowering it. Returns False if nothing was written."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE scoring_sessions
                    SET progress = GREATEST(progress, %s),
                        progress_message = %s,
                        updated_at = NOW()
                    WHERE id = %s
                      AND run_token = %s
                      AND status NOT IN (%s, %s)
                    """,
                    (
                        progress,
                        message,
                        session_id,
                        run_token,
                        SessionStatus.COMPLETED,
                        SessionStatus.ERROR,
                    ),
                )
                updated = cur.rowcount
            conn.commit()
        return updated > 0

    def mark_error(self, session_id: str, run_token: str, error_message: str) -> None:
        """Move the session to its terminal error state; progress is left untouched."""
        self.update_session(
            session_id,
            run_token,
            status=SessionStatus.ERROR,
            error_message=error_message,
        )


def _to_record(row: dict[str, Any]) -> SessionRecord:
    return SessionRecord(
        id=str(row["id"]),
        document_type=row["document_type"],
        visa_type=row["visa_type"],
        beneficiary_name=row["beneficiary_name"],
        status=row["status"],
        progress=row["progress"],
        progress_message=row["progress_message"],
        error_message=row["error_message"],
        run_token=str(row["run_token"]) if row["run_token"] is not None else None,
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
