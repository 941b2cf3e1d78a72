"""HTTP surface of the scoring worker.

POST /sessions                          create a session
POST /sessions/{session_id}/files       register an uploaded file
POST /sessions/{session_id}/score       submit a background run (202)
POST /sessions/{session_id}/score/sync  run the pipeline inline
GET  /sessions/{session_id}/score       poll status, progress and results

Routes are plain `def` handlers: repositories and the pipeline are
blocking, so FastAPI runs them on its thread pool.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request, status

from petition_scoring.api.errors import register_error_handlers
from petition_scoring.api.schemas import (
    CreateSessionRequest,
    FileResponse,
    RegisterFileRequest,
    ScoringCompletedResponse,
    ScoringResultOut,
    ScoringStatusResponse,
    SessionResponse,
    SubmitScoringRequest,
    SubmitScoringResponse,
)
from petition_scoring.config.settings import Settings
from petition_scoring.database.connection import close_pool, init_pool
from petition_scoring.database.models import SessionStatus
from petition_scoring.database.repositories.file_repository import FileRepository
from petition_scoring.database.repositories.job_repository import JobRepository
from petition_scoring.database.repositories.result_repository import ResultRepository
from petition_scoring.database.repositories.session_repository import SessionRepository
from petition_scoring.logging.logger import Log
from petition_scoring.processor.processor import build_processor
from petition_scoring.worker.job_runner import JobRunner
from petition_scoring.worker.submission import JobSubmitter, parse_session_id


@dataclass
class ApiServices:
    session_repo: SessionRepository
    file_repo: FileRepository
    result_repo: ResultRepository
    submitter: JobSubmitter
    runner: JobRunner


def build_services(settings: Settings) -> ApiServices:
    session_repo = SessionRepository()
    file_repo = FileRepository()
    job_repo = JobRepository()
    return ApiServices(
        session_repo=session_repo,
        file_repo=file_repo,
        result_repo=ResultRepository(),
        submitter=JobSubmitter(session_repo, file_repo, job_repo),
        runner=JobRunner(build_processor(settings), job_repo),
    )


def create_app(settings: Settings, services: ApiServices | None = None) -> FastAPI:
    """Build the FastAPI application.

    When `services` is omitted the connection pool is opened on startup and
    the default repositories and pipeline are built from `settings`.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            yield
            return
        init_pool(settings)
        try:
            app.state.services = build_services(settings)
            Log.info(f"Scoring API ready (env={settings.app_env})")
            yield
        finally:
            close_pool()

    app = FastAPI(title="Petition Scoring", lifespan=lifespan)
    if services is not None:
        app.state.services = services
    register_error_handlers(app)

    def _services(request: Request) -> ApiServices:
        return request.app.state.services

    @app.post(
        "/sessions",
        status_code=status.HTTP_201_CREATED,
        response_model=SessionResponse,
    )
    def create_session(body: CreateSessionRequest, request: Request) -> SessionResponse:
        session = _services(request).session_repo.create_session(
            body.document_type, body.visa_type, body.beneficiary_name
        )
        Log.info(f"Created session {session.id}")
        return SessionResponse.from_record(session)

    @app.post(
        "/sessions/{session_id}/files",
        status_code=status.HTTP_201_CREATED,
        response_model=FileResponse,
    )
    def register_file(
        session_id: str, body: RegisterFileRequest, request: Request
    ) -> FileResponse:
        session_id = parse_session_id(session_id)
        svc = _services(request)
        svc.session_repo.find_by_id(session_id)
        file = svc.file_repo.add_file(
            session_id,
            filename=body.filename,
            file_size_bytes=body.file_size_bytes,
            mime_type=body.mime_type,
            storage_path=body.storage_path,
            storage_disk=body.storage_disk,
        )
        return FileResponse(
            file_id=file.id,
            session_id=file.session_id,
            filename=file.filename,
            status=file.status,
        )

    @app.post(
        "/sessions/{session_id}/score",
        status_code=status.HTTP_202_ACCEPTED,
        response_model=SubmitScoringResponse,
    )
    def submit_scoring(
        session_id: str, request: Request, body: SubmitScoringRequest | None = None
    ) -> SubmitScoringResponse:
        session_id = parse_session_id(session_id)
        body = body or SubmitScoringRequest()
        job = _services(request).submitter.submit(
            session_id, body.document_type, body.visa_type, body.beneficiary_name
        )
        return SubmitScoringResponse(
            session_id=job.session_id, run_token=job.run_token, status=job.status
        )

    @app.post("/sessions/{session_id}/score/sync", response_model=ScoringCompletedResponse)
    def score_sync(
        session_id: str, request: Request, body: SubmitScoringRequest | None = None
    ) -> ScoringCompletedResponse:
        session_id = parse_session_id(session_id)
        body = body or SubmitScoringRequest()
        svc = _services(request)
        job = svc.submitter.submit(
            session_id,
            body.document_type,
            body.visa_type,
            body.beneficiary_name,
            inline=True,
        )
        result = svc.runner.execute(job)
        return ScoringCompletedResponse(
            session_id=session_id,
            status=SessionStatus.COMPLETED,
            results=ScoringResultOut.from_result(result),
        )

    @app.get("/sessions/{session_id}/score", response_model=ScoringStatusResponse)
    def get_scoring(session_id: str, request: Request) -> ScoringStatusResponse:
        session_id = parse_session_id(session_id)
        svc = _services(request)
        session = svc.session_repo.find_by_id(session_id)
        results = None
        if session.status == SessionStatus.COMPLETED:
            result = svc.result_repo.find_by_session_id(session_id)
            if result is not None:
                results = ScoringResultOut.from_result(result)
        return ScoringStatusResponse(
            session_id=session.id,
            status=session.status,
            progress=session.progress,
            progress_message=session.progress_message,
            error_message=session.error_message,
            completed_at=session.completed_at,
            results=results,
        )

    return app
