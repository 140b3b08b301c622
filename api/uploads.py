"""
Storage for uploaded book cover images.
"""

import mimetypes
import os
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional, Union

import aiofiles
import aiofiles.os
import structlog
from fastapi import UploadFile

from api.errors import ValidationError

logger = structlog.get_logger(__name__)

COVER_FIELD = "cover"

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class CoverStorage:
    """
    Writes cover images to a directory on disk.

    Accepts only the configured image content types and refuses anything
    larger than max_bytes. Stored names never collide with the client's
    filename; only its extension is kept.
    """

    chunk_size = 64 * 1024

    def __init__(
        self,
        upload_dir: Union[str, Path],
        max_bytes: int = 2 * 1024 * 1024,
        allowed_content_types: Iterable[str] = tuple(_EXTENSIONS),
        url_prefix: str = "/uploads",
        public_base_url: Optional[str] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.allowed_content_types = frozenset(t.lower() for t in allowed_content_types)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def public_url(self, filename: str, request_base_url: str) -> str:
        """URL under which the static mount serves a stored cover."""
        base = self.public_base_url or str(request_base_url).rstrip("/")
        return f"{base}{self.url_prefix}/{filename}"

    def _reject(self, message: str) -> ValidationError:
        logger.warning("Cover upload rejected", reason=message)
        return ValidationError.single(message, [COVER_FIELD])

    def _too_large(self) -> ValidationError:
        return self._reject(f'"{COVER_FIELD}" must not exceed {self.max_bytes} bytes')

    @staticmethod
    def content_type_of(upload: UploadFile) -> str:
        return (upload.content_type or "").split(";")[0].strip().lower()

    def validate(self, upload: Optional[UploadFile]) -> UploadFile:
        """Check presence, content type and declared size of an upload."""
        if upload is None or not upload.filename:
            raise self._reject(f'"{COVER_FIELD}" is required')

        content_type = self.content_type_of(upload)
        if content_type not in self.allowed_content_types:
            allowed = ", ".join(sorted(self.allowed_content_types))
            raise self._reject(f'"{COVER_FIELD}" must be one of [{allowed}]')

        if upload.size is not None and upload.size > self.max_bytes:
            raise self._too_large()

        return upload

    def generate_filename(self, original_name: str, content_type: str) -> str:
        """Millisecond timestamp plus a random number, keeping the original extension."""
        ext = os.path.splitext(original_name or "")[1].lower()
        if not ext:
            ext = _EXTENSIONS.get(content_type) or mimetypes.guess_extension(content_type) or ""
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"

    async def save(self, upload: UploadFile) -> str:
        """
        Validate and write an upload to disk.

        The body is streamed in chunks; a file that grows past max_bytes, or
        whose write fails, is removed again before the error is raised.

        Returns:
            The generated file name, relative to upload_dir
        """
        self.validate(upload)
        filename = self.generate_filename(upload.filename, self.content_type_of(upload))
        target = self.upload_dir / filename

        await aiofiles.os.makedirs(self.upload_dir, exist_ok=True)

        written = 0
        try:
            async with aiofiles.open(target, "wb") as out:
                while True:
                    chunk = await upload.read(self.chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        break
                    await out.write(chunk)
        except OSError as e:
            logger.error("Cover write failed", filename=filename, error=str(e))
            await self.delete(filename)
            raise

        if written > self.max_bytes:
            await self.delete(filename)
            raise self._too_large()

        logger.info("Cover stored", filename=filename, size=written)
        return filename

    async def delete(self, filename: str) -> None:
        """Remove a stored cover; missing files are ignored."""
        try:
            await aiofiles.os.remove(self.upload_dir / filename)
        except FileNotFoundError:
            logger.debug("Cover already removed", filename=filename)
