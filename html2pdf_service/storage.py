"""
Storage paths and upload staging.

Uploaded HTML documents are validated by extension, streamed into the
staging directory, and removed again when the request that staged them
finishes, whether the conversion succeeded or not.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

from .errors import PayloadTooLarge, ValidationError
from .pdf_helpers import build_staged_filename

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {".html", ".htm"}
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoragePaths:
    """The staging (inbound) and outbound directories."""

    upload_dir: Path
    pdf_dir: Path

    def ensure(self) -> None:
        """Create both directories if they do not exist yet."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.pdf_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class UploadedDocument:
    """An accepted upload while it sits in the staging directory."""

    original_filename: str
    path: Path
    size: int

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8", errors="replace")


def validate_upload_filename(filename: Optional[str]) -> str:
    """
    Accept only .html/.htm filenames (case-insensitive).

    Raises:
        ValidationError: no filename, or any other extension
    """
    if not filename:
        raise ValidationError("No file uploaded")
    if Path(filename).suffix.lower() not in ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError("Only HTML files are allowed")
    return filename


class StagingArea:
    """Scoped storage of uploaded documents in the staging directory."""

    def __init__(self, upload_dir: Path, max_upload_bytes: int):
        self.upload_dir = upload_dir
        self.max_upload_bytes = max_upload_bytes

    @asynccontextmanager
    async def stage(self, upload: UploadFile) -> AsyncIterator[UploadedDocument]:
        """
        Validate and persist an upload for the duration of the block.

        The extension check runs before anything touches the disk. The
        staged file is deleted on every exit path.

        Raises:
            ValidationError: wrong or missing filename
            PayloadTooLarge: upload exceeds max_upload_bytes
        """
        filename = validate_upload_filename(upload.filename)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / build_staged_filename(filename)

        try:
            size = await self._write(upload, path)
            logger.info(f"Staged upload {filename} ({size} bytes) at {path.name}")
            yield UploadedDocument(original_filename=filename, path=path, size=size)
        finally:
            path.unlink(missing_ok=True)
            await upload.close()

    async def _write(self, upload: UploadFile, path: Path) -> int:
        """Stream the upload to disk, enforcing the size limit while writing."""
        total = 0
        out = await asyncio.to_thread(path.open, "wb")
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > self.max_upload_bytes:
                    raise PayloadTooLarge(
                        f"File too large. Max allowed is {self.max_upload_bytes} bytes."
                    )
                await asyncio.to_thread(out.write, chunk)
        finally:
            await asyncio.to_thread(out.close)
        return total
