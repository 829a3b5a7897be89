"""Centralized exception handlers for the resolver API.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE",
        "session_id": "session_..."   # unexpected failures only
    }
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from tripsearch.domain import ErrorCode, SearchError, UnexpectedFailureError

logger = logging.getLogger(__name__)


ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PATTERN_REJECTED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.QUERY_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.UNEXPECTED_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INVALID_CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    session_id: str | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: dict[str, str] = {"detail": message, "code": code}
    if session_id:
        content["session_id"] = session_id
    return JSONResponse(status_code=status_code, content=content)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register resolver exception handlers on the application."""

    @app.exception_handler(SearchError)
    async def search_exception_handler(
        request: Request,
        exc: SearchError,
    ) -> JSONResponse:
        """Map resolver errors to status codes; details stay in the logs."""
        status_code = ERROR_CODE_TO_STATUS.get(
            exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        session_id = (
            exc.session_id if isinstance(exc, UnexpectedFailureError) else None
        )
        logger.warning(
            "Search error on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )
        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
            session_id=session_id,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all so clients always receive the same error format."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.UNEXPECTED_FAILURE.value,
        )
