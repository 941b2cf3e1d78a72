from dataclasses import dataclass
from datetime import datetime


class SessionStatus:
    CREATED = "created"
    PROCESSING = "processing"
    SCORING = "scoring"
    COMPLETED = "completed"
    ERROR = "error"

    TERMINAL = frozenset({COMPLETED, ERROR})


class FileStatus:
    PENDING = "pending"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class JobRecord:
    """Represents a row from the scoring_jobs table (one job-submission event)."""

    id: int
    session_id: str
    run_token: str
    document_type: str
    visa_type: str
    status: str
    beneficiary_name: str | None = None
    error_message: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SessionRecord:
    """Represents a row from the scoring_sessions table."""

    id: str
    document_type: str
    visa_type: str
    status: str
    run_token: str | None = None
    beneficiary_name: str | None = None
    progress: int = 0
    progress_message: str | None = None
    error_message: str | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class FileRecord:
    """Represents a row from the session_files table."""

    id: int
    session_id: str
    filename: str
    file_size_bytes: int
    mime_type: str
    storage_path: str
    storage_disk: str = "local"
    status: str = FileStatus.PENDING
    extracted_text: str | None = None
    word_count: int | None = None
    page_count: int | None = None
    category: str | None = None
    created_at: datetime | None = None
