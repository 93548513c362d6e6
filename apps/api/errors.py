from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from packages.core.errors import (
    ConflictError,
    DeliveryError,
    FeedletterError,
    FetchError,
    GenerationError,
    NotFoundError,
    ValidationError,
)


logger = logging.getLogger("feedletter.api")

_STATUS_CODES = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (FetchError, 502),
    (GenerationError, 502),
    (DeliveryError, 502),
]


def error_body(message: str, error: Optional[str] = None) -> dict:
    body = {"message": message}
    if error:
        body["error"] = error
    return body


def _status_for(exc: FeedletterError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FeedletterError)
    async def _domain_error(request: Request, exc: FeedletterError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(
                "request_failed path=%s error=%s detail=%s",
                request.url.path,
                exc.message,
                exc.error,
            )
        return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.error))

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=400, content=error_body("Invalid request", problems))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_crashed path=%s", request.url.path)
        return JSONResponse(status_code=500, content=error_body("Server error", str(exc)))
