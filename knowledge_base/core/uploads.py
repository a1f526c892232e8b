"""
Temporary storage for uploaded files.

Uploads are streamed into UPLOAD_DIR, read back as UTF-8 and removed again;
nothing in the upload directory outlives a request.
"""

import os
import secrets
import time
from pathlib import Path
from typing import BinaryIO, Iterable

from .config import ALLOWED_MIME_TYPES, MAX_FILE_SIZE, UPLOAD_DIR, ensure_directory
from .exceptions import ValidationError
from ..util.logging import logger

CHUNK_SIZE = 64 * 1024


def check_mime_type(mime_type: str, allowed: Iterable[str] = ALLOWED_MIME_TYPES):
    """Reject uploads whose content type is not allow-listed."""
    if (mime_type or "").split(";")[0].strip().lower() not in allowed:
        raise ValidationError(
            "Invalid file type. Only PDF, TXT, DOC, DOCX, and MD files are allowed."
        )


def temp_upload_path(filename: str, upload_dir: str = UPLOAD_DIR) -> Path:
    """Unique path for an upload, keeping the original extension."""
    ext = Path(filename or "").suffix
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return Path(upload_dir) / f"file-{unique_suffix}{ext}"


def save_upload(stream: BinaryIO, filename: str, upload_dir: str = UPLOAD_DIR,
                max_size: int = MAX_FILE_SIZE) -> Path:
    """Copy an upload stream to a temporary file and return its path.

    Raises:
        ValidationError: the upload exceeds max_size; the partial file is removed
    """
    ensure_directory(upload_dir)
    path = temp_upload_path(filename, upload_dir)
    size = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise ValidationError(f"Upload error: File too large (limit {max_size} bytes)")
                out.write(chunk)
    except Exception:
        cleanup_upload(path)
        raise
    return path


def read_text(path: Path) -> str:
    """Read an uploaded file as UTF-8 text."""
    try:
        return Path(path).read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"File is not valid UTF-8 text: {e.reason}") from e


def cleanup_upload(path: Path):
    """Remove a temporary upload. Failures are logged, not raised."""
    try:
        if path and os.path.exists(path):
            os.remove(path)
            logger.info(f"Cleaned up file: {path}")
    except OSError as e:
        logger.error(f"Error cleaning up file {path}: {e}")
