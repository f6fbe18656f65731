from dataclasses import dataclass
from typing import BinaryIO, Literal, Optional

from pydantic import BaseModel, Field

from src.api.environments import Environment, Folder


class HealthResponse(BaseModel):
    status: Literal["ok"] = Field("ok", description="Liveness status")
    timestamp: str = Field(..., description="Current server time (ISO8601, UTC)")


class Base64UploadRequest(BaseModel):
    # Optional here so that missing fields produce our own 400 instead of a schema error.
    file: Optional[str] = Field(None, description="File content as base64 or a base64 data URL")
    fileName: Optional[str] = Field(None, description="Original file name; only its extension is kept")
    environment: Optional[str] = Field(None, description="production or development (default)")


class UploadResponse(BaseModel):
    success: bool = Field(True, description="Always true for a created file")
    fileName: str = Field(..., description="Generated storage name")
    environment: Environment = Field(..., description="Environment the file was stored for")
    folder: Folder = Field(..., description="Folder holding the file")
    url: str = Field(..., description="Public URL of the stored file")


class DeleteResponse(BaseModel):
    success: bool = Field(True, description="Always true for a removed file")
    message: str = Field(..., description="Human readable outcome")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Short error label")
    message: Optional[str] = Field(None, description="Human readable details")


@dataclass(frozen=True)
class UploadRequest:
    """
    Transport-neutral upload, built at the HTTP boundary.

    Exactly one of `stream` (multipart upload) or `content` (decoded base64)
    is set.
    """

    original_name: str
    environment: Environment
    stream: Optional[BinaryIO] = None
    content: Optional[bytes] = None
