"""File validation utilities for image uploads.

Security: Enforces the image extension allowlist, size limits, and the
multipart content type before anything reaches a storage backend. The
backends themselves assume their input has already been validated.
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request

if TYPE_CHECKING:
    from fastapi import UploadFile

from catalog_api.core.config import settings
from catalog_api.core.errors import UnsupportedMediaError, ValidationError

logger = structlog.get_logger()

# Chunk size for reading files (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024

# Permitted image extensions, compared case-insensitively
ALLOWED_IMAGE_EXTENSIONS: frozenset[str] = frozenset({"jpg", "jpeg", "png"})

_MULTIPART_FORM_DATA = "multipart/form-data"


def get_extension(filename: str) -> str:
    """Return the lower-cased extension of a filename, without the dot.

    A leading dot does not start an extension (``.png`` has none), which
    mirrors how hidden files are usually treated.

    Args:
        filename: Display filename supplied by the client.

    Returns:
        Extension, or an empty string if there is none.
    """
    dot = filename.rfind(".")
    if dot <= 0:
        return ""
    return filename[dot + 1 :].lower()


def is_allowed_image_filename(filename: str | None) -> bool:
    """Check a display filename against the image extension allowlist."""
    if not filename:
        return False
    return get_extension(filename) in ALLOWED_IMAGE_EXTENSIONS


def validate_image_upload(filename: str | None, content: bytes) -> str:
    """Validate an uploaded image before it is stored.

    Args:
        filename: Display filename supplied by the client.
        content: File content.

    Returns:
        The filename, now known to be non-empty.

    Raises:
        ValidationError: If the file is empty or its extension is not allowed.
    """
    if not content:
        raise ValidationError(
            message="Uploaded file is empty",
            details=[{"field": "file", "error": "EMPTY_FILE"}],
        )
    if not is_allowed_image_filename(filename):
        logger.warning("Image extension rejected", filename=filename)
        allowed = ", ".join(sorted(ALLOWED_IMAGE_EXTENSIONS))
        raise ValidationError(
            message=f"Invalid file type. Allowed extensions: {allowed}.",
            details=[{"field": "file", "error": "INVALID_FILE_EXTENSION"}],
        )
    return filename  # type: ignore[return-value]


async def read_file_with_size_limit(
    file: "UploadFile",
    max_size: int | None = None,
) -> bytes:
    """Read file content with size limit to prevent DoS.

    Args:
        file: UploadFile from FastAPI.
        max_size: Maximum allowed file size in bytes. Defaults to the
            configured upload limit.

    Returns:
        File content as bytes.

    Raises:
        ValidationError: If file exceeds size limit.
    """
    if max_size is None:
        max_size = settings.max_upload_size_mb * 1024 * 1024

    chunks: list[bytes] = []
    total_size = 0

    while True:
        chunk = await file.read(CHUNK_SIZE_BYTES)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise ValidationError(
                message=f"File too large. Maximum size: {max_size // (1024 * 1024)}MB",
                details=[{"field": "file", "error": "FILE_TOO_LARGE"}],
            )
        chunks.append(chunk)

    return b"".join(chunks)


def require_multipart(request: Request) -> None:
    """Dependency: reject upload requests that are not multipart/form-data.

    Raises:
        UnsupportedMediaError: If the Content-Type is missing or different.
    """
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith(_MULTIPART_FORM_DATA):
        raise UnsupportedMediaError(
            "Image uploads must be sent as multipart/form-data"
        )
