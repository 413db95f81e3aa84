from mvo.config import settings
from mvo.modules.media.s3_storage import S3Storage
from typing import Optional, Callable
from fastapi import HTTPException
import logging
import re
import time

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "uploads"
SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def format_file_size(size: int) -> str:
    """Human readable size: 0 -> "0 Bytes", 1536 -> "1.5 KB" """
    if size <= 0:
        return "0 Bytes"
    i = 0
    while i < len(SIZE_UNITS) - 1 and size >= 1024 ** (i + 1):
        i += 1
    value = round(size / 1024 ** i, 2)
    return f"{value:g} {SIZE_UNITS[i]}"


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def build_object_key(file_name: str, folder: Optional[str] = None, now_ms: Optional[int] = None) -> str:
    folder = (folder or DEFAULT_FOLDER).strip("/") or DEFAULT_FOLDER
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{folder}/{now_ms}-{sanitize_file_name(file_name)}"


def key_from_url(url: str) -> str:
    """Object key from a public URL: the last two path segments (folder/name)"""
    return "/".join(url.rstrip("/").split("/")[-2:])


class MediaService:
    def __init__(self, storage_factory: Callable[[], S3Storage] = S3Storage):
        self._storage_factory = storage_factory
        self._storage = None

    @property
    def storage(self) -> S3Storage:
        if self._storage is None:
            try:
                self._storage = self._storage_factory()
            except ValueError as e:
                logger.error(f"Media storage unavailable: {e}")
                raise HTTPException(status_code=503, detail="File storage is not configured")
        return self._storage

    @property
    def max_file_size(self) -> int:
        return settings.max_upload_bytes

    def check_size(self, size: int) -> None:
        if size > self.max_file_size:
            raise HTTPException(
                status_code=400,
                detail=f"File size exceeds maximum limit of {format_file_size(self.max_file_size)}"
            )

    def upload(self, content: bytes, file_name: str, content_type: Optional[str] = None, folder: Optional[str] = None) -> str:
        """Store an upload and return its public URL"""
        self.check_size(len(content))
        key = build_object_key(file_name, folder)
        try:
            url = self.storage.upload_file(content, key, content_type or "application/octet-stream")
            logger.info(f"Uploaded {format_file_size(len(content))} to {key}")
            return url
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Upload error: {e}")
            raise HTTPException(status_code=500, detail=str(e) or "Upload failed")

    def delete_file(self, url: str) -> bool:
        """Best effort; failures are logged, never raised"""
        key = key_from_url(url)
        try:
            return self.storage.delete_file(key)
        except HTTPException:
            return False
