"""
FastAPI exception adapters.

Domain exceptions are mapped to JSON error responses. Authentication failures
and server errors carry only a fixed message; client errors carry the HTTP
reason phrase so that no internal detail is returned to the caller.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from slack_dispatch.core.common.exceptions import (
    AuthenticationError,
    SlackDispatchError,
)
from slack_dispatch.core.constants import (
    HTTP_400_BAD_REQUEST_MESSAGE,
    HTTP_401_UNAUTHORIZED_MESSAGE,
    HTTP_404_NOT_FOUND_MESSAGE,
    HTTP_405_METHOD_NOT_ALLOWED_MESSAGE,
    HTTP_422_UNPROCESSABLE_ENTITY_MESSAGE,
    HTTP_500_INTERNAL_SERVER_ERROR_MESSAGE,
)

logger = logging.getLogger(__name__)

_CLIENT_ERROR_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: HTTP_400_BAD_REQUEST_MESSAGE,
    status.HTTP_401_UNAUTHORIZED: HTTP_401_UNAUTHORIZED_MESSAGE,
    status.HTTP_404_NOT_FOUND: HTTP_404_NOT_FOUND_MESSAGE,
    status.HTTP_405_METHOD_NOT_ALLOWED: HTTP_405_METHOD_NOT_ALLOWED_MESSAGE,
    422: HTTP_422_UNPROCESSABLE_ENTITY_MESSAGE,
}


def map_domain_exception_to_response(exc: SlackDispatchError) -> JSONResponse:
    """Map a domain exception to a FastAPI JSON response.

    Args:
        exc: The domain exception to map

    Returns:
        A JSON response without the exception's message or details
    """
    if isinstance(exc, AuthenticationError):
        return JSONResponse({"error": "unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)

    status_code = exc.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
    if status_code >= 500:
        return JSONResponse(
            {"error": {"message": HTTP_500_INTERNAL_SERVER_ERROR_MESSAGE, "type": "server_error"}},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message = _CLIENT_ERROR_MESSAGES.get(status_code, HTTP_400_BAD_REQUEST_MESSAGE)
    return JSONResponse(
        {"error": {"message": message, "type": "invalid_request"}},
        status_code=status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers for domain exceptions in a FastAPI app.

    Args:
        app: The FastAPI application to register handlers for
    """

    async def domain_exception_handler(
        request: Request, exc: SlackDispatchError
    ) -> JSONResponse:
        if isinstance(exc, AuthenticationError):
            logger.warning("Rejected request to %s: %s", request.url.path, exc.message)
        elif exc.status_code >= 500:
            logger.error(
                "Request to %s failed: %s (details=%s)",
                request.url.path,
                exc.message,
                exc.details,
                exc_info=exc,
            )
        elif logger.isEnabledFor(logging.INFO):
            logger.info("Bad request to %s: %s", request.url.path, exc.message)
        return map_domain_exception_to_response(exc)

    app.exception_handler(SlackDispatchError)(domain_exception_handler)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        if logger.isEnabledFor(logging.ERROR):
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            {"error": {"message": HTTP_500_INTERNAL_SERVER_ERROR_MESSAGE, "type": "server_error"}},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
