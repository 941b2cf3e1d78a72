from dataclasses import dataclass

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from petition_scoring.api.schemas import ErrorResponse
from petition_scoring.extraction.exceptions import ExtractionError
from petition_scoring.logging.logger import Log
from petition_scoring.processor.exceptions import (
    PersistenceError,
    ProcessorError,
    RunSupersededError,
    SessionNotFoundError,
    SubmissionValidationError,
)
from petition_scoring.scoring.exceptions import ScoringError


@dataclass(frozen=True)
class _ErrorMapping:
    status_code: int
    error: str
    remediation: str


# Most specific first; the first isinstance match wins.
_MAPPINGS: list[tuple[type[Exception], _ErrorMapping]] = [
    (
        SubmissionValidationError,
        _ErrorMapping(
            status.HTTP_400_BAD_REQUEST,
            "validation_error",
            "Check the session id and make sure at least one document is uploaded.",
        ),
    ),
    (
        SessionNotFoundError,
        _ErrorMapping(
            status.HTTP_404_NOT_FOUND,
            "session_not_found",
            "Create a scoring session before submitting it.",
        ),
    ),
    (
        RunSupersededError,
        _ErrorMapping(
            status.HTTP_409_CONFLICT,
            "run_superseded",
            "A newer submission replaced this run; poll the session for its result.",
        ),
    ),
    (
        ExtractionError,
        _ErrorMapping(
            status.HTTP_502_BAD_GATEWAY,
            "extraction_failed",
            "Re-upload the documents as text-based PDFs or retry later.",
        ),
    ),
    (
        ScoringError,
        _ErrorMapping(
            status.HTTP_502_BAD_GATEWAY,
            "scoring_failed",
            "The scoring provider failed; retry the submission later.",
        ),
    ),
    (
        PersistenceError,
        _ErrorMapping(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "persistence_failed",
            "The result could not be saved; retry the submission.",
        ),
    ),
    (
        ProcessorError,
        _ErrorMapping(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "processing_failed",
            "Retry the submission; contact support if it keeps failing.",
        ),
    ),
    (
        psycopg.Error,
        _ErrorMapping(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "persistence_failed",
            "The database is unavailable; retry the request shortly.",
        ),
    ),
]

_FALLBACK = _ErrorMapping(
    status.HTTP_500_INTERNAL_SERVER_ERROR,
    "internal_error",
    "An unexpected error occurred; retry the request and contact support if it keeps failing.",
)


def error_response(exc: Exception) -> JSONResponse:
    """Translate an exception into a structured error body."""
    mapping = next(
        (mapping for exc_type, mapping in _MAPPINGS if isinstance(exc, exc_type)), _FALLBACK
    )
    body = ErrorResponse(
        error=mapping.error,
        message=str(exc) or exc.__class__.__name__,
        remediation=mapping.remediation,
    )
    return JSONResponse(status_code=mapping.status_code, content=body.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
        Log.warning(f"{request.method} {request.url.path} failed: {exc}")
        return error_response(exc)

    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        Log.error(f"{request.method} {request.url.path} failed unexpectedly: {exc!r}")
        return error_response(exc)

    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            error="validation_error",
            message=str(exc.errors()),
            remediation="Fix the request body and try again.",
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    for exc_type in (ProcessorError, ExtractionError, ScoringError):
        app.add_exception_handler(exc_type, handle_domain_error)
    app.add_exception_handler(psycopg.Error, handle_unexpected_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
