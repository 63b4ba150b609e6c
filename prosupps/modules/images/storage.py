import logging
import os
import secrets
import time
from typing import Optional

from fastapi import UploadFile

from prosupps.core.errors import ValidationError
from prosupps.database.backend import Backend

logger = logging.getLogger(__name__)


def validate_image(content_type: Optional[str], size: int, max_bytes: int) -> None:
    """Reject oversized or non-image files before anything is uploaded."""
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(f"Image file size must be less than {limit_mb}MB", field="image")
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Please select a valid image file", field="image")


def random_filename(original: Optional[str]) -> str:
    """`<epoch ms>-<random token>.<ext>`; keeps the original extension."""
    ext = os.path.splitext(original or "")[1].lstrip(".").lower() or "bin"
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"


class ImageStorage:
    def __init__(self, backend: Backend, bucket: str, max_bytes: int):
        self.backend = backend
        self.bucket = bucket
        self.max_bytes = max_bytes

    async def read_validated(self, file: UploadFile) -> bytes:
        content = await file.read()
        validate_image(file.content_type, len(content), self.max_bytes)
        return content

    def upload_file(self, content: bytes, key: str, content_type: str) -> str:
        """Upload file to the bucket and return its public URL"""
        self.backend.upload_blob(self.bucket, key, content, content_type)
        url = self.backend.get_public_url(self.bucket, key)
        logger.info(f"Uploaded image to {self.bucket}/{key}")
        return url

    def key_for(self, filename: Optional[str], prefix: str = "") -> str:
        name = random_filename(filename)
        return f"{prefix}/{name}" if prefix else name
