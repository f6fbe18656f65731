"""
Request body size limit.

Rejects requests whose declared Content-Length is over the limit before any
route reads or parses the body.
"""

import logging
import math
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.errors import PayloadTooLargeError, ValidationError

logger = logging.getLogger("cdn_storage.middleware")

# Room for JSON keys, the data URL prefix and multipart boundaries/headers.
BODY_OVERHEAD_BYTES = 64 * 1024


def max_body_bytes(max_upload_bytes: int) -> int:
    """Largest body that can carry `max_upload_bytes` of file content as base64."""
    return 4 * math.ceil(max_upload_bytes / 3) + BODY_OVERHEAD_BYTES


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        raw = request.headers.get("content-length")
        if raw is not None:
            try:
                declared = int(raw)
            except ValueError:
                err = ValidationError("Invalid Content-Length header")
                return JSONResponse(status_code=err.status_code, content=err.to_dict())
            if declared > self.max_bytes:
                logger.warning("Rejected %s %s: body of %d bytes", request.method, request.url.path, declared)
                err = PayloadTooLargeError(f"Maximum request body size is {self.max_bytes} bytes")
                return JSONResponse(status_code=err.status_code, content=err.to_dict())
        return await call_next(request)
