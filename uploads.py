"""
Saving uploaded video and image files.

Stored names are ``<epoch millis>-<random>`` plus the uploaded file's
extension, so the original filename never reaches the disk.
"""

import logging
import os
import re
import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from errors import ValidationError

logger = logging.getLogger(__name__)

VIDEO_TYPES = re.compile(r"mp4|avi|mkv|mov|webm")
IMAGE_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")
CHUNK_SIZE = 1024 * 1024


def stored_filename(original_name: str) -> str:
    ext = os.path.splitext(original_name or "")[1]
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"


def _check_type(upload: UploadFile, pattern, message: str) -> None:
    ext = os.path.splitext(upload.filename or "")[1].lower()
    if not (pattern.search(ext) and pattern.search(upload.content_type or "")):
        raise ValidationError(message)


def check_video(upload: UploadFile) -> None:
    _check_type(upload, VIDEO_TYPES, "Only video files are allowed!")


def check_image(upload: UploadFile) -> None:
    _check_type(upload, IMAGE_TYPES, "Only image files are allowed!")


async def save_upload(upload: UploadFile, directory: Path, max_bytes: int) -> str:
    """Stream ``upload`` into ``directory`` and return the stored filename."""
    directory.mkdir(parents=True, exist_ok=True)
    filename = stored_filename(upload.filename)
    dest = directory / filename
    written = 0
    too_large = False
    with open(dest, "wb") as f:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                too_large = True
                break
            f.write(chunk)
    if too_large:
        dest.unlink()
        raise ValidationError("File too large")
    logger.info("Stored upload %r as %s (%d bytes)", upload.filename, dest, written)
    return filename
