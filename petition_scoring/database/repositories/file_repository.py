from typing import Any

from psycopg import sql
from psycopg.rows import dict_row

from petition_scoring.database.connection import get_connection
from petition_scoring.database.models import FileRecord
from petition_scoring.processor.exceptions import RunSupersededError

_FILE_COLUMNS = """
    id, session_id, filename, file_size_bytes, mime_type, storage_disk, storage_path,
    status, extracted_text, word_count, page_count, category, created_at
"""

_UPDATABLE_FIELDS = frozenset(
    {"status", "extracted_text", "word_count", "page_count", "category"}
)


class FileRepository:
    """Database operations for the session_files table."""

    def add_file(
        self,
        session_id: str,
        *,
        filename: str,
        file_size_bytes: int,
        mime_type: str,
        storage_path: str,
        storage_disk: str = "local",
    ) -> FileRecord:
        """Register an uploaded file with its session."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO session_files
                    (session_id, filename, file_size_bytes, mime_type, storage_disk, storage_path)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {_FILE_COLUMNS}
                    """,
                    (session_id, filename, file_size_bytes, mime_type, storage_disk, storage_path),
                )
                row = cur.fetchone()
            conn.commit()
        assert row is not None
        return _to_record(row)

    def find_by_session_id(self, session_id: str) -> list[FileRecord]:
        """Return the session's files in registration order."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_FILE_COLUMNS}
                    FROM session_files
                    WHERE session_id = %s
                    ORDER BY created_at, id
                    """,
                    (session_id,),
                )
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]

    def update_file(self, file_id: int, run_token: str, **fields: Any) -> None:
        """Update a file on behalf of the run holding run_token.

        Raises:
            RunSupersededError: if the owning session now belongs to another run.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update file fields: {sorted(unknown)}")
        if not fields:
            return
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name))
            for name in fields
        )
        query = sql.SQL(
            """
            UPDATE session_files AS f
            SET {assignments}
            FROM scoring_sessions AS s
            WHERE f.id = %(file_id)s
              AND s.id = f.session_id
              AND s.run_token = %(run_token)s
            """
        ).format(assignments=assignments)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, {**fields, "file_id": file_id, "run_token": run_token})
                updated = cur.rowcount
            conn.commit()
        if updated == 0:
            raise RunSupersededError(f"Run {run_token} no longer owns file {file_id}")


def _to_record(row: dict[str, Any]) -> FileRecord:
    return FileRecord(
        id=row["id"],
        session_id=str(row["session_id"]),
        filename=row["filename"],
        file_size_bytes=row["file_size_bytes"],
        mime_type=row["mime_type"],
        storage_disk=row["storage_disk"],
        storage_path=row["storage_path"],
        status=row["status"],
        extracted_text=row["extracted_text"],
        word_count=row["word_count"],
        page_count=row["page_count"],
        category=row["category"],
        created_at=row["created_at"],
    )
