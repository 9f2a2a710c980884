"""
Error envelope for the interview API.

Every failure leaves the API as ``{"detail", "code", "timestamp"}`` so the
Streamlit client can show ``detail`` verbatim and branch on ``code``
(``SESSION_NOT_FOUND`` means "no interview yet", ``SESSION_INCOMPLETE`` keeps
the Complete button disabled, and so on).
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from byc.core.exceptions import BycError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers for session errors, bad requests and crashes."""

    @app.exception_handler(BycError)
    async def byc_error_handler(_request: Request, exc: BycError) -> JSONResponse:
        # Session, artifact, device and progress errors carry their own status
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # e.g. an unknown capture provider in POST /interview/session
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
