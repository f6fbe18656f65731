from enum import Enum
from typing import Optional

from src.api.errors import ValidationError


class Environment(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"


class Folder(str, Enum):
    MEDIA = "media"
    MEDIA_DEV = "media-dev"


DEFAULT_ENVIRONMENT = Environment.DEVELOPMENT

_FOLDERS = {
    Environment.PRODUCTION: Folder.MEDIA,
    Environment.DEVELOPMENT: Folder.MEDIA_DEV,
}

ALLOWED_ENVIRONMENTS = ", ".join(e.value for e in Environment)


# PUBLIC_INTERFACE
def resolve_environment(raw: Optional[str]) -> Environment:
    """
    Map an untrusted environment string onto an Environment.

    Absent or empty input selects the default (development). Anything other
    than one of the exact literals raises ValidationError.
    """
    if raw is None or raw == "":
        return DEFAULT_ENVIRONMENT
    for env in Environment:
        if raw == env.value:
            return env
    raise ValidationError(
        f"Environment must be one of: {ALLOWED_ENVIRONMENTS}",
        error="Invalid environment",
    )


# PUBLIC_INTERFACE
def folder_for(env: Environment) -> Folder:
    """Physical folder that holds files for an environment."""
    return _FOLDERS[env]


# PUBLIC_INTERFACE
def parse_folder(raw: str) -> Folder:
    """Parse a client-supplied folder path segment."""
    for folder in Folder:
        if raw == folder.value:
            return folder
    raise ValidationError(error="Invalid folder path")
