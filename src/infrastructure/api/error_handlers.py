from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.exceptions import OperationValidationError, ProcessingError

SERVER_ERROR_MESSAGE = "A server error occurred. See server logs for more information."


def _request_context(request: Request) -> dict:
    return {"url": str(request.url), "query": dict(request.query_params)}


async def handle_validation_error(request: Request, exc: OperationValidationError):
    logger.bind(**_request_context(request)).warning(exc.message)
    return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)


async def handle_server_error(request: Request, exc: Exception):
    logger.bind(
        **_request_context(request),
        error={"type": type(exc).__name__, "message": str(exc)},
    ).opt(exception=exc).error(
        "An error occurred processing a request, please report this issue and include "
        "this log entry with your report (omit any sensitive data)."
    )
    return PlainTextResponse(SERVER_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OperationValidationError, handle_validation_error)
    app.add_exception_handler(ProcessingError, handle_server_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    # Unanticipated errors; Starlette re-raises these after responding.
    app.add_exception_handler(Exception, handle_server_error)
