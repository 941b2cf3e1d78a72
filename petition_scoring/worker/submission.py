import uuid

from petition_scoring.database.models import JobRecord, JobStatus
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.logging.logger import Log
from petition_scoring.processor.exceptions import SubmissionValidationError


def parse_session_id(raw: str) -> str:
    """Return the canonical UUID text form of a session id.

    Raises:
        SubmissionValidationError: if the token is not a UUID.
    """
    try:
        return str(uuid.UUID(str(raw).strip()))
    except (ValueError, AttributeError) as exc:
        raise SubmissionValidationError(f"Invalid session id: {raw!r}") from exc


class JobSubmitter:
    """Turns a job-submission event into the session's single authoritative run."""

    def __init__(
        self,
        session_repo: SessionRepository,
        file_repo: FileRepository,
        job_repo: JobRepository,
    ) -> None:
        self._session_repo = session_repo
        self._file_repo = file_repo
        self._job_repo = job_repo

    def submit(
        self,
        session_id: str,
        document_type: str | None = None,
        visa_type: str | None = None,
        beneficiary_name: str | None = None,
        *,
        inline: bool = False,
    ) -> JobRecord:
        """Validate and enqueue a scoring run, superseding any run in flight.

        Missing fields fall back to the values stored on the session. With
        inline=True the job is created already claimed, for a caller that
        runs it itself.

        Raises:
            SubmissionValidationError: malformed id, missing fields, or no files.
            SessionNotFoundError: if the session does not exist.
        """
        session_id = parse_session_id(session_id)
        session = self._session_repo.find_by_id(session_id)
        document_type = (document_type or session.document_type or "").strip()
        visa_type = (visa_type or session.visa_type or "").strip()
        if not document_type or not visa_type:
            raise SubmissionValidationError("documentType and visaType are required")
        if not self._file_repo.find_by_session_id(session_id):
            raise SubmissionValidationError("No document content available for scoring")

        job = self._job_repo.submit(
            session_id,
            document_type,
            visa_type,
            beneficiary_name or session.beneficiary_name,
            status=JobStatus.PROCESSING if inline else JobStatus.PENDING,
        )
        Log.info(f"Submitted job {job.id} for session {session_id} (run {job.run_token})")
        return job
