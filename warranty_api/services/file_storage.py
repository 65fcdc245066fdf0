"""Local-disk storage for uploaded warranty documents and images."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from warranty_api.config.logger import app_logger
from warranty_api.config.settings import settings
from warranty_api.utils.errors import ValidationError

DOCUMENTS_SUBDIR = "documents"
PRODUCT_IMAGES_SUBDIR = "products"
PROFILE_PICTURES_SUBDIR = "profiles"

UPLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class StoredFile:
    filename: str
    original_name: str
    path: str
    mimetype: str
    size: int


def _upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def _size_error() -> ValidationError:
    limit_mb = settings.MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)
    return ValidationError(f"File size exceeds {limit_mb}MB limit")


def validate_upload(filename: str, content_type: Optional[str], size: int) -> None:
    """Reject files with a disallowed type or extension, or over the size cap."""
    if (content_type or "") not in settings.ALLOWED_UPLOAD_MIME_TYPES:
        raise ValidationError("Invalid file type. Allowed types: PDF, JPEG, PNG, GIF, DOC, DOCX")

    extension = Path(filename).suffix.lower()
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError("Invalid file extension")

    if size > settings.MAX_UPLOAD_SIZE_BYTES:
        raise _size_error()


async def _read_capped(upload: UploadFile) -> bytes:
    """Read ``upload`` in chunks, stopping as soon as the size cap is passed."""
    chunks = []
    total = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.MAX_UPLOAD_SIZE_BYTES:
            raise _size_error()
        chunks.append(chunk)
    return b"".join(chunks)


async def save_upload(upload: UploadFile, subdir: str) -> StoredFile:
    """Validate and write an uploaded file under ``UPLOAD_DIR/<subdir>``.

    The stored name is generated; the client's name is kept as
    ``original_name`` only.
    """
    original_name = Path(upload.filename or "upload").name
    # Declared size (when the client sent one) is checked before reading
    validate_upload(original_name, upload.content_type, upload.size or 0)
    data = await _read_capped(upload)

    target_dir = _upload_root() / subdir
    target_dir.mkdir(parents=True, exist_ok=True)

    stored_name = f"{uuid4().hex}{Path(original_name).suffix.lower()}"
    target = target_dir / stored_name
    target.write_bytes(data)

    app_logger.info(f"Stored upload {original_name} as {target} ({len(data)} bytes)")
    return StoredFile(
        filename=stored_name,
        original_name=original_name,
        path=str(target),
        mimetype=upload.content_type or "application/octet-stream",
        size=len(data),
    )


def remove_file(path: Optional[str]) -> bool:
    """Delete a stored file. Returns False instead of raising when it cannot."""
    if not path:
        return True
    try:
        Path(path).unlink()
        return True
    except FileNotFoundError:
        app_logger.warning(f"Could not delete file, not found: {path}")
        return False
    except OSError as e:
        app_logger.warning(f"Could not delete file {path}: {e}")
        return False


def public_url(stored: StoredFile, subdir: str) -> str:
    """Path under which the static ``/uploads`` mount serves ``stored``."""
    return f"/uploads/{subdir}/{stored.filename}"


def resolve_public_url(url: Optional[str]) -> Optional[str]:
    """Map a ``/uploads/...`` URL back to its location on disk."""
    if not url or not url.startswith("/uploads/"):
        return None
    return str(_upload_root() / url[len("/uploads/"):])
