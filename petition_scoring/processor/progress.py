from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.logging.logger import Log

# 100 is reserved for the completion transition itself.
MAX_REPORTED_PROGRESS = 99


class ProgressSink:
    """Best-effort progress side channel for one run.

    Writes are guarded by the run token and never lower the stored value.
    Any failure is logged and swallowed so reporting can never interrupt the
    pipeline.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        session_id: str,
        run_token: str,
    ) -> None:
        self._session_repo = session_repo
        self._session_id = session_id
        self._run_token = run_token
        self._last_progress = 0

    def report(self, progress: int, message: str) -> None:
        value = max(self._last_progress, min(MAX_REPORTED_PROGRESS, int(progress)))
        try:
            written = self._session_repo.update_progress(
                self._session_id, self._run_token, value, message
            )
        except Exception as exc:
            Log.warning(f"Progress update failed for session {self._session_id}: {exc}")
            return
        self._last_progress = value
        if not written:
            Log.debug(
                f"Progress {value} for session {self._session_id} not written "
                f"(run {self._run_token} is no longer current)"
            )

    def on_stage(self, stage: str, progress: int, message: str) -> None:
        """Adapter for scorer callbacks of the form (stage, progress, message)."""
        Log.debug(f"Session {self._session_id} stage '{stage}' at {progress}%")
        self.report(progress, message)
