"""
Error taxonomy shared by the store, the service and the HTTP layer.

Each error carries the HTTP status the request handler answers with.
A lookup that matches nothing is not an error: it returns an empty list.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MessageError(Exception):
    """Base class for message handling errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidArgument(MessageError):
    """Malformed request body, or a parameter the database driver rejected."""

    def __init__(self, message: str):
        super().__init__(message, 422)


class ConstraintViolation(MessageError):
    """A write broke a table constraint (duplicate id)."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_409_CONFLICT)


class StorageUnavailable(MessageError):
    """The database could not be reached."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


async def message_error_handler(request: Request, exc: MessageError) -> JSONResponse:
    """Translate a MessageError into a JSON error response."""
    logger.warning(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )
