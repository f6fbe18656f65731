import logging
import os
import pathlib
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

LOG = logging.getLogger("cdn_storage.config")

DEFAULT_STORAGE_PATH = "/var/cdn-storage"
DEFAULT_PUBLIC_BASE_URL = "https://cdn.citydash.kz"
DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100MB


class Settings(BaseModel):
    """
    Immutable service configuration.

    Built once at startup by `load_settings()` and handed to `create_app()`.
    Nothing else in the service reads environment variables.
    """

    model_config = ConfigDict(frozen=True)

    storage_root: pathlib.Path = pathlib.Path(DEFAULT_STORAGE_PATH)
    public_base_url: str = DEFAULT_PUBLIC_BASE_URL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_allow_origins: List[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3050
    workers: int = 1
    log_level: str = "INFO"
    log_dir: Optional[pathlib.Path] = None


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid int for {name}: {raw}")


def _get_cors_origins() -> List[str]:
    """
    Parse CORS allow-origins from env.

    Env:
      - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins, or '*' to allow all.
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


# PUBLIC_INTERFACE
def load_settings() -> Settings:
    """
    Build Settings from the process environment (and a `.env` file when present).

    Env:
      - STORAGE_PATH: storage root (default /var/cdn-storage)
      - PUBLIC_BASE_URL: base origin for returned file URLs
      - MAX_UPLOAD_BYTES: per-upload size limit in bytes
      - CORS_ALLOW_ORIGINS, HOST, PORT, WEB_CONCURRENCY, LOG_LEVEL, LOG_DIR
    """
    load_dotenv()

    root = os.getenv("STORAGE_PATH", "").strip() or DEFAULT_STORAGE_PATH
    log_dir = os.getenv("LOG_DIR", "").strip()
    settings = Settings(
        storage_root=pathlib.Path(root).expanduser().resolve(),
        public_base_url=(os.getenv("PUBLIC_BASE_URL", "").strip() or DEFAULT_PUBLIC_BASE_URL).rstrip("/"),
        max_upload_bytes=_get_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        cors_allow_origins=_get_cors_origins(),
        host=os.getenv("HOST", "").strip() or "0.0.0.0",
        port=_get_int("PORT", 3050),
        workers=max(1, _get_int("WEB_CONCURRENCY", 1)),
        log_level=(os.getenv("LOG_LEVEL", "").strip() or "INFO").upper(),
        log_dir=pathlib.Path(log_dir) if log_dir else None,
    )
    LOG.info(
        "Config ready: storage_root=%s, public_base_url=%s, max_upload_bytes=%d",
        settings.storage_root,
        settings.public_base_url,
        settings.max_upload_bytes,
    )
    return settings
