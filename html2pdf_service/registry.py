"""
Directory-backed registry of generated PDFs.

The outbound directory is the catalog: every visible file in it is a
generated PDF, named by its filename and dated by its modification time.
All listing, lookup, publication and deletion goes through PdfRegistry so
the containment check cannot be bypassed.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .errors import AccessDenied, NotFound, ValidationError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "."
TEMP_SUFFIX = ".part"


def download_link(name: str) -> str:
    """Relative download URL for a generated PDF."""
    return f"/download/{name}"


@dataclass(frozen=True)
class GeneratedPdf:
    """A generated PDF as seen through its directory entry."""

    name: str
    path: Path
    modified_at: datetime
    size: int

    @property
    def download_link(self) -> str:
        return download_link(self.name)

    @classmethod
    def from_path(cls, path: Path) -> "GeneratedPdf":
        stat = path.stat()
        return cls(
            name=path.name,
            path=path,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size=stat.st_size,
        )


class PdfRegistry:
    """Catalog, lookup and lifecycle of files in the outbound directory."""

    def __init__(self, pdf_dir: Path):
        self.pdf_dir = Path(pdf_dir)

    @property
    def root(self) -> Path:
        return self.pdf_dir.resolve()

    def resolve(self, name: str) -> Path:
        """
        Resolve a client-supplied filename inside the outbound directory.

        Symlinks are followed before the check, so a link pointing outside
        the directory is rejected like a traversal sequence or an absolute
        path. Temporary files of in-flight publications are not addressable.

        Raises:
            AccessDenied: the resolved path is not strictly inside the directory
            NotFound: the resolved path is not an existing file
        """
        root = self.root
        try:
            candidate = (root / name).resolve()
        except (ValueError, OSError, RuntimeError) as e:
            # NUL bytes, over-long names, symlink loops
            logger.warning(f"Access denied for unresolvable filename {name!r}: {e}")
            raise AccessDenied("Access denied")
        if candidate == root or not candidate.is_relative_to(root):
            logger.warning(f"Access denied for filename {name!r}")
            raise AccessDenied("Access denied")
        if candidate.name.startswith(TEMP_PREFIX) or not candidate.is_file():
            raise NotFound("File not found")
        return candidate

    def get(self, name: str) -> GeneratedPdf:
        return GeneratedPdf.from_path(self.resolve(name))

    def list(self) -> List[GeneratedPdf]:
        """All generated PDFs, newest first (ties broken by name, descending)."""
        if not self.pdf_dir.exists():
            return []

        entries = []
        with os.scandir(self.pdf_dir) as it:
            for entry in it:
                if entry.name.startswith(TEMP_PREFIX) or not entry.is_file():
                    continue
                try:
                    entries.append(GeneratedPdf.from_path(Path(entry.path)))
                except FileNotFoundError:
                    # Deleted between scandir and stat
                    continue

        entries.sort(key=lambda pdf: (pdf.modified_at, pdf.name), reverse=True)
        return entries

    def delete(self, name: str) -> GeneratedPdf:
        """
        Remove a generated PDF.

        Raises:
            AccessDenied: name escapes the outbound directory
            NotFound: no such PDF
        """
        pdf = self.get(name)
        try:
            pdf.path.unlink()
        except FileNotFoundError:
            raise NotFound("File not found")
        logger.info(f"Deleted PDF {pdf.name}")
        return pdf

    def publish(self, filename: str, pdf_bytes: bytes) -> GeneratedPdf:
        """
        Atomically add a PDF to the catalog.

        Bytes go to a hidden temporary file in the outbound directory which is
        renamed into place only after it has been fully written, so readers
        never see a truncated PDF.

        Raises:
            ValidationError: filename is not a plain .pdf name
        """
        if Path(filename).name != filename or filename.startswith(TEMP_PREFIX):
            raise ValidationError(f"Invalid output filename: {filename}")
        if not filename.lower().endswith(".pdf"):
            raise ValidationError(f"Output filename must end with .pdf: {filename}")

        self.pdf_dir.mkdir(parents=True, exist_ok=True)
        target = self.pdf_dir / filename

        fd, temp_name = tempfile.mkstemp(
            prefix=f"{TEMP_PREFIX}{filename}.", suffix=TEMP_SUFFIX, dir=self.pdf_dir
        )
        try:
            with os.fdopen(fd, "wb") as out:
                out.write(pdf_bytes)
                out.flush()
                os.fsync(out.fileno())
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Published PDF {filename} ({len(pdf_bytes)} bytes)")
        return GeneratedPdf.from_path(target)
