import base64
import binascii
import logging
import os
import pathlib
import re
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from src.api.environments import Folder
from src.api.errors import InternalError, NotFoundError, PayloadTooLargeError, ValidationError

logger = logging.getLogger("cdn_storage.storage")

CHUNK_SIZE = 1024 * 1024
MAX_NAME_BYTES = 255

_FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")
_DATA_URL_RE = re.compile(r"^data:([A-Za-z0-9.+\-/]+)((?:;[^;,]+)*?);base64,(.+)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class StoredName:
    """A file name that passed `validate_name`; safe to join under a folder."""

    value: str

    def __str__(self) -> str:
        return self.value


# PUBLIC_INTERFACE
def validate_name(raw: str) -> StoredName:
    """
    Validate an untrusted file name token.

    Names are rejected, never normalized: empty names, separators, NUL bytes,
    a leading dot (which also covers "." and "..") and names over 255 bytes.
    """
    if not raw:
        raise ValidationError("File name is required", error="Invalid file name")
    if any(c in raw for c in _FORBIDDEN_NAME_CHARS) or raw.startswith("."):
        raise ValidationError("File name must not contain path components", error="Invalid file name")
    if len(raw.encode("utf-8", "surrogatepass")) > MAX_NAME_BYTES:
        raise ValidationError("File name is too long", error="Invalid file name")
    return StoredName(raw)


def _extension(original_name: str) -> str:
    # Dot-files such as ".bashrc" have no extension.
    base = re.split(r"[\\/]", original_name or "")[-1]
    idx = base.rfind(".")
    if idx <= 0 or "\x00" in base:
        return ""
    return base[idx:]


# PUBLIC_INTERFACE
def generate_name(original_name: str) -> StoredName:
    """Mint a unique storage name keeping only the original file extension."""
    ext = _extension(original_name)
    name = f"{uuid.uuid4()}{ext}"
    try:
        return validate_name(name)
    except ValidationError:
        # Absurdly long extension; the token alone is still unique.
        return validate_name(str(uuid.uuid4()))


# PUBLIC_INTERFACE
def resolve_path(root: pathlib.Path, folder: Folder, name: StoredName) -> pathlib.Path:
    """Join root/folder/name and make sure the result stays inside root/folder."""
    name = validate_name(name.value)
    folder_dir = root / folder.value
    candidate = folder_dir / name.value
    if candidate.parent != folder_dir or candidate.name != name.value:
        raise ValidationError("File name must not contain path components", error="Invalid file name")
    return candidate


# PUBLIC_INTERFACE
def init_storage(root: pathlib.Path) -> None:
    """Create every environment folder under root. Safe to call repeatedly."""
    for folder in Folder:
        path = root / folder.value
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Cannot create storage folder %s", path)
            raise InternalError("Failed to initialize storage") from exc
    logger.info("Storage ready under %s", root)


def _temp_path(target: pathlib.Path) -> pathlib.Path:
    return target.with_name(f".{uuid.uuid4().hex}.part")


def _discard(path: pathlib.Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove temporary file %s", path)


# PUBLIC_INTERFACE
def save_stream(source: BinaryIO, target: pathlib.Path, max_bytes: int) -> int:
    """
    Copy a readable stream into target without buffering it whole.

    Bytes go to a hidden temporary file in the same folder which is renamed
    onto target only after the copy completes. Returns the size in bytes.
    """
    tmp = _temp_path(target)
    size = 0
    try:
        with tmp.open("xb") as f:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise PayloadTooLargeError(f"Maximum upload size is {max_bytes} bytes")
                f.write(chunk)
        os.replace(tmp, target)
    except OSError as exc:
        logger.exception("Failed writing upload to %s", target)
        raise InternalError(error="Failed to upload file") from exc
    finally:
        _discard(tmp)
    return size


# PUBLIC_INTERFACE
def save_bytes(data: bytes, target: pathlib.Path) -> int:
    """Write bytes to target in one operation. Returns size in bytes."""
    tmp = _temp_path(target)
    try:
        with tmp.open("xb") as f:
            f.write(data)
        os.replace(tmp, target)
    except OSError as exc:
        logger.exception("Failed writing upload to %s", target)
        raise InternalError(error="Failed to upload file") from exc
    finally:
        _discard(tmp)
    return len(data)


# PUBLIC_INTERFACE
def decode_base64(payload: str) -> bytes:
    """
    Decode a base64 string or a `data:<mime>;base64,<payload>` URL.

    Whitespace is ignored, missing padding is restored and the URL-safe
    alphabet is accepted. Anything else that is not valid base64 raises
    ValidationError.
    """
    match = _DATA_URL_RE.match(payload)
    b64 = match.group(3) if match else payload
    b64 = _WHITESPACE_RE.sub("", b64).translate(str.maketrans("-_", "+/"))
    b64 += "=" * (-len(b64) % 4)
    try:
        return base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 payload", error="Invalid file")


# PUBLIC_INTERFACE
def open_blob(path: pathlib.Path) -> BinaryIO:
    """
    Open a stored file for reading.

    The handle is opened before any response is started so a concurrent
    delete surfaces as NotFoundError instead of a truncated stream.
    """
    try:
        fh = path.open("rb")
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        raise NotFoundError()
    except OSError as exc:
        logger.exception("Failed opening %s", path)
        raise InternalError(error="Failed to retrieve file") from exc
    return fh


def iter_blob(fh: BinaryIO) -> Iterator[bytes]:
    """Yield chunks from an open handle, closing it when exhausted."""
    try:
        while True:
            chunk = fh.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        fh.close()


# PUBLIC_INTERFACE
def delete_blob(path: pathlib.Path) -> None:
    """Remove a stored file. Raises NotFoundError when it is already gone."""
    try:
        path.unlink()
    except FileNotFoundError:
        raise NotFoundError("File does not exist or already deleted")
    except OSError as exc:
        logger.exception("Failed deleting %s", path)
        raise InternalError(error="Failed to delete file") from exc
