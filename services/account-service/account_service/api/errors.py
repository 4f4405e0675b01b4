"""Map domain failures onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import AccountServiceError, ServerError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong"


async def account_error_handler(request: Request, exc: AccountServiceError) -> JSONResponse:
    """Return the structured message for client errors; hide internals of server errors."""
    if isinstance(exc, ServerError) or exc.status_code >= 500:
        logger.error("server error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"message": GENERIC_ERROR})
    content: dict[str, str] = {"message": exc.message}
    if exc.reason is not None:
        content["reason"] = exc.reason.value
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing input as 400 rather than FastAPI's default 422."""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    logger.info("rejected request to %s: %d validation error(s)", request.url.path, len(errors))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Bad Request", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_ERROR},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountServiceError, account_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
