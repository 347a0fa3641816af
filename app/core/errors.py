"""
=============================================================================
CAREERS MAILER - ERROR HANDLING MODULE
=============================================================================
Error taxonomy and global handlers for uniform JSON error responses.

Features:
- Every error response is a JSON object with a single "message" field
- Logs full stack trace server-side for unexpected faults
- Returns sanitized error message to client
- Process-wide fault sink so stray faults are logged instead of fatal

Usage:
    # In main.py
    from app.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import asyncio
import logging
import sys
import threading
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_BODY_MESSAGE = "Invalid request body"


class SubmissionError(Exception):
    """A client error with a message that is safe to return verbatim."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingFieldsError(SubmissionError):
    def __init__(self, message: str = MISSING_FIELDS_MESSAGE):
        super().__init__(message)


class DocumentRejectedError(SubmissionError):
    """An uploaded document failed intake (type, size or field name)."""


class TransportError(Exception):
    """The mail relay could not be reached, refused auth or failed to send."""


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(SubmissionError)
    async def submission_error_handler(request: Request, exc: SubmissionError):
        logger.info(
            "Rejected %s %s: %s", request.method, request.url.path, exc.message
        )
        return _message_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ):
        return _message_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        missing = any(err.get("type") == "missing" for err in exc.errors())
        return _message_response(
            status.HTTP_400_BAD_REQUEST,
            MISSING_FIELDS_MESSAGE if missing else INVALID_BODY_MESSAGE,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        Logs the full traceback and returns a generic message, so no stack
        trace or internal detail ever reaches the caller.
        """
        logger.error(
            "Unhandled exception on %s %s (%s):\n%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            traceback.format_exc(),
        )
        return _message_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"
        )


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    logger.error(
        "Uncaught async fault: %s",
        context.get("message", "unhandled exception in event loop"),
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )


def _log_uncaught(exc_type, exc, tb) -> None:
    logger.error("Uncaught exception", exc_info=(exc_type, exc, tb))


def _log_thread_exception(args: threading.ExceptHookArgs) -> None:
    logger.error(
        "Uncaught exception in thread %s",
        args.thread.name if args.thread else "unknown",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )


def install_fault_logging(loop: asyncio.AbstractEventLoop) -> None:
    """Route faults no request handler caught to the log and keep running.

    Installed once at startup and never torn down.
    """
    loop.set_exception_handler(_log_loop_exception)
    sys.excepthook = _log_uncaught
    threading.excepthook = _log_thread_exception
