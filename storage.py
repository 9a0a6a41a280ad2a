"""
Local-disk storage for uploaded images and videos.

Files land in UPLOAD_DIR as "<epoch-ms>-<random hex>-<original name>" and are referenced
by their relative path ("uploads/<name>") or public url ("/uploads/<name>").
"""
import os
import time
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import UploadFile

from config import UPLOAD_DIR, MAX_UPLOAD_BYTES
from logging_config import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIX = "uploads"
CHUNK_SIZE = 1024 * 1024


class UploadTooLarge(Exception):
    def __init__(self, filename: str, limit: int):
        super().__init__(f"{filename} exceeds the {limit // (1024 * 1024)} MB upload limit")
        self.filename = filename
        self.limit = limit


@dataclass
class StoredFile:
    path: str
    url: str
    filename: str
    mime_type: Optional[str]


def _stored_name(original: Optional[str]) -> str:
    base = os.path.basename((original or "upload").replace("\\", "/")) or "upload"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{base}"


def save_upload(upload: UploadFile) -> StoredFile:
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    filename = _stored_name(upload.filename)
    target = os.path.join(UPLOAD_DIR, filename)

    written = 0
    # "xb" never overwrites another upload
    with open(target, "xb") as out:
        while True:
            chunk = upload.file.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > MAX_UPLOAD_BYTES:
                break
            out.write(chunk)

    if written > MAX_UPLOAD_BYTES:
        os.remove(target)
        raise UploadTooLarge(upload.filename or filename, MAX_UPLOAD_BYTES)

    logger.debug("Stored upload %s (%d bytes)", filename, written)
    return StoredFile(
        path=f"{PUBLIC_PREFIX}/{filename}",
        url=f"/{PUBLIC_PREFIX}/{filename}",
        filename=filename,
        mime_type=upload.content_type,
    )


def delete_file(path: str) -> bool:
    """Remove a stored file by its relative path or url. Missing files are fine."""
    if not path:
        return False
    target = os.path.join(UPLOAD_DIR, os.path.basename(path.replace("\\", "/")))
    if not os.path.exists(target):
        return False
    try:
        os.remove(target)
    except OSError:
        logger.warning("Could not remove %s", target, exc_info=True)
        return False
    return True


def delete_files(paths: Iterable[str]):
    """Drop files written earlier in a request that failed later on."""
    for path in paths:
        if path:
            delete_file(path)
