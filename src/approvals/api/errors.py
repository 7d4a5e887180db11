"""Map domain errors to HTTP responses.

Approvers see a short, stable reason (invalid, expired, or used link) and
never internal detail.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from approvals.domain.errors import ApprovalError, DealValidationError

logger = structlog.get_logger()

STATUS_CODES: dict[str, int] = {
    "NOT_FOUND": 404,
    "ALREADY_USED": 409,
    "INVALID_TRANSITION": 409,
    "EXPIRED": 410,
    "VALIDATION": 422,
    "STORAGE_UNAVAILABLE": 503,
}


def error_body(code: str, detail: str) -> dict[str, str]:
    """Build the JSON error body."""
    return {"error": code, "detail": detail}


def register_error_handlers(app: FastAPI) -> None:
    """Install exception handlers for domain and request validation errors.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(ApprovalError)
    async def approval_error_handler(request: Request, exc: ApprovalError) -> JSONResponse:
        status_code = STATUS_CODES.get(exc.code, 500)
        log = logger.error if status_code >= 500 else logger.info
        log("request_failed", path=request.url.path, code=exc.code, error=str(exc))
        content: dict[str, object] = error_body(exc.code, exc.public_message)
        if isinstance(exc, DealValidationError) and exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("request_invalid", path=request.url.path)
        content: dict[str, object] = error_body("VALIDATION", "The request is invalid")
        content["errors"] = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=422, content=content)
