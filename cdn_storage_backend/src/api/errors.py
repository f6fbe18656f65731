"""
Error taxonomy for the storage gateway and its HTTP mapping.

Every failure a handler can produce is one of these exceptions. The handlers
registered by `register_exception_handlers` turn them into a JSON body of the
form {"error": ..., "message": ...}; anything unexpected becomes a generic 500
and is only logged server-side.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("cdn_storage.errors")


class StorageError(Exception):
    """Base class for failures that map onto a single HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message
        if error is not None:
            self.error = error
        super().__init__(message or self.error)

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class ValidationError(StorageError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"


class PayloadTooLargeError(ValidationError):
    status_code = 413
    error = "File too large"


class NotFoundError(StorageError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "File not found"


class InternalError(StorageError):
    pass


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "message": "Request body or parameters are malformed"},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Install the error-to-response mapping on an application."""
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
