from __future__ import annotations

import logging
import os
import pathlib
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from src.api.config import Settings, load_settings
from src.api.environments import folder_for, parse_folder, resolve_environment
from src.api.errors import PayloadTooLargeError, ValidationError, register_exception_handlers
from src.api.logging_config import configure_logging
from src.api.middleware import BodySizeLimitMiddleware, max_body_bytes
from src.api.schemas import (
    Base64UploadRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    UploadRequest,
    UploadResponse,
)
from src.api.storage import (
    decode_base64,
    delete_blob,
    generate_name,
    init_storage,
    iter_blob,
    open_blob,
    resolve_path,
    save_bytes,
    save_stream,
    validate_name,
)

logger = logging.getLogger("cdn_storage.api")

openapi_tags = [
    {"name": "health", "description": "Service health and diagnostics."},
    {"name": "upload", "description": "Store new files (multipart stream or base64 JSON)."},
    {"name": "files", "description": "Retrieve and delete stored files by folder and generated name."},
]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _utc_timestamp() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _public_url(settings: Settings, folder: str, file_name: str) -> str:
    return f"{settings.public_base_url}/{folder}/{quote(file_name, safe='')}"


def _blob_path(settings: Settings, folder: str, file_name: str) -> pathlib.Path:
    return resolve_path(settings.storage_root, parse_folder(folder), validate_name(file_name))


def store_upload(settings: Settings, req: UploadRequest) -> UploadResponse:
    """
    Persist a normalized upload under its environment folder.

    The stored name is always freshly generated; the client's file name only
    contributes its extension.
    """
    folder = folder_for(req.environment)
    name = generate_name(req.original_name)
    target = resolve_path(settings.storage_root, folder, name)

    if req.stream is not None:
        size = save_stream(req.stream, target, settings.max_upload_bytes)
    else:
        content = req.content or b""
        if len(content) > settings.max_upload_bytes:
            raise PayloadTooLargeError(f"Maximum upload size is {settings.max_upload_bytes} bytes")
        size = save_bytes(content, target)

    logger.info("Stored %s/%s (%d bytes, environment=%s)", folder.value, name, size, req.environment.value)
    return UploadResponse(
        fileName=name.value,
        environment=req.environment,
        folder=folder,
        url=_public_url(settings, folder.value, name.value),
    )


# PUBLIC_INTERFACE
@router.get("/health", response_model=HealthResponse, tags=["health"], summary="Health check")
def health() -> HealthResponse:
    return HealthResponse(timestamp=_utc_timestamp())


# PUBLIC_INTERFACE
@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["upload"],
    summary="Upload file",
    description="Upload a file as multipart/form-data. The body is streamed to disk in chunks.",
    responses={**_ERRORS, 413: {"model": ErrorResponse, "description": "File too large"}},
)
def upload_file(
    file: Optional[UploadFile] = File(None, description="File to store"),
    environment: Optional[str] = Form(None, description="production or development (default)"),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    if file is None:
        raise ValidationError(
            "File is required in multipart/form-data or JSON with base64",
            error="No file provided",
        )
    req = UploadRequest(
        original_name=file.filename or "",
        environment=resolve_environment(environment),
        stream=file.file,
    )
    return store_upload(settings, req)


# PUBLIC_INTERFACE
@router.post(
    "/upload/base64",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["upload"],
    summary="Upload base64 file",
    description="Upload a file sent as a base64 string or a base64 data URL inside a JSON body.",
    responses={**_ERRORS, 413: {"model": ErrorResponse, "description": "File too large"}},
)
def upload_base64(
    payload: Base64UploadRequest,
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    if not payload.file or not payload.fileName:
        raise ValidationError("file (base64) and fileName are required", error="Missing required fields")
    environment = resolve_environment(payload.environment)
    req = UploadRequest(
        original_name=payload.fileName,
        environment=environment,
        content=decode_base64(payload.file),
    )
    return store_upload(settings, req)


# PUBLIC_INTERFACE
@router.get(
    "/{folder}/{file_name:path}",
    tags=["files"],
    summary="Get file",
    description="Stream a stored file back as application/octet-stream.",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}}},
        404: {"model": ErrorResponse, "description": "File not found"},
        **_ERRORS,
    },
)
def get_file(folder: str, file_name: str, settings: Settings = Depends(get_settings)) -> StreamingResponse:
    path = _blob_path(settings, folder, file_name)
    fh = open_blob(path)
    size = os.fstat(fh.fileno()).st_size
    return StreamingResponse(
        iter_blob(fh),
        media_type="application/octet-stream",
        headers={"Content-Length": str(size)},
    )


# PUBLIC_INTERFACE
@router.delete(
    "/{folder}/{file_name:path}",
    response_model=DeleteResponse,
    tags=["files"],
    summary="Delete file",
    responses={404: {"model": ErrorResponse, "description": "File not found"}, **_ERRORS},
)
def delete_file(folder: str, file_name: str, settings: Settings = Depends(get_settings)) -> DeleteResponse:
    path = _blob_path(settings, folder, file_name)
    delete_blob(path)
    logger.info("Deleted %s/%s", folder, file_name)
    return DeleteResponse(message="File deleted successfully")


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the storage gateway application.

    Storage folders are created in the startup hook; if that fails the
    application refuses to start.
    """
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(
        title="CDN Storage",
        description=(
            "Local-disk blob storage behind the CDN origin. Accepts uploads for the production and "
            "development environments, serves stored files by folder and name, and deletes them."
        ),
        version="1.0.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=max_body_bytes(settings.max_upload_bytes))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)

    @app.on_event("startup")
    def _startup() -> None:
        init_storage(settings.storage_root)
        logger.info("CDN storage accepting requests (root=%s)", settings.storage_root)

    return app
