"""
Unit tests for upload validation and scoped staging.
"""

import threading
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import UploadFile

from html2pdf_service.errors import PayloadTooLarge, ValidationError
from html2pdf_service.storage import StagingArea, StoragePaths, validate_upload_filename


def make_upload(filename, content=b"<html><body>Hi</body></html>"):
    return UploadFile(file=BytesIO(content), filename=filename)


class TestValidateUploadFilename:

    @pytest.mark.parametrize("filename", ["page.html", "page.htm", "PAGE.HTML", "a.b.Htm"])
    def test_accepts_html_extensions(self, filename):
        assert validate_upload_filename(filename) == filename

    @pytest.mark.parametrize("filename", ["notes.txt", "page.html.exe", "page", "page.xhtml", "pdf.pdf"])
    def test_rejects_other_extensions(self, filename):
        with pytest.raises(ValidationError, match="Only HTML files are allowed"):
            validate_upload_filename(filename)

    @pytest.mark.parametrize("filename", [None, ""])
    def test_rejects_missing_filename(self, filename):
        with pytest.raises(ValidationError, match="No file uploaded"):
            validate_upload_filename(filename)


class TestStoragePaths:

    def test_ensure_creates_directories(self, tmp_path):
        paths = StoragePaths(upload_dir=tmp_path / "in", pdf_dir=tmp_path / "out")
        paths.ensure()
        assert paths.upload_dir.is_dir()
        assert paths.pdf_dir.is_dir()


class TestStagingArea:

    @pytest.mark.asyncio
    async def test_stage_writes_and_removes_file(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024 * 1024)

        async with staging.stage(make_upload("report.html", b"<p>x</p>")) as document:
            assert document.path.exists()
            assert document.path.parent == tmp_path / "uploads"
            assert document.original_filename == "report.html"
            assert document.size == len(b"<p>x</p>")
            assert document.read_text() == "<p>x</p>"

        assert not document.path.exists()
        assert list((tmp_path / "uploads").iterdir()) == []

    @pytest.mark.asyncio
    async def test_stage_removes_file_when_block_fails(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024 * 1024)

        with pytest.raises(RuntimeError):
            async with staging.stage(make_upload("report.html")) as document:
                raise RuntimeError("render failed")

        assert not document.path.exists()
        assert list((tmp_path / "uploads").iterdir()) == []

    @pytest.mark.asyncio
    async def test_wrong_extension_rejected_before_any_write(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024 * 1024)

        with pytest.raises(ValidationError):
            async with staging.stage(make_upload("script.js")):
                pytest.fail("block must not run")

        assert not (tmp_path / "uploads").exists()

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected_and_cleaned(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024)

        with pytest.raises(PayloadTooLarge):
            async with staging.stage(make_upload("big.html", b"x" * 4096)):
                pytest.fail("block must not run")

        assert list((tmp_path / "uploads").iterdir()) == []

    @pytest.mark.asyncio
    async def test_concurrent_uploads_of_same_name_do_not_collide(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024 * 1024)

        async with staging.stage(make_upload("same.html", b"one")) as first:
            async with staging.stage(make_upload("same.html", b"two")) as second:
                assert first.path != second.path
                assert first.read_text() == "one"
                assert second.read_text() == "two"

    @pytest.mark.asyncio
    async def test_staged_file_written_off_the_event_loop(self, tmp_path):
        staging = StagingArea(tmp_path / "uploads", max_upload_bytes=1024 * 1024)
        loop_thread = threading.get_ident()
        open_threads = []
        original_open = Path.open

        def recording_open(self, *args, **kwargs):
            open_threads.append(threading.get_ident())
            return original_open(self, *args, **kwargs)

        with patch.object(Path, "open", recording_open):
            async with staging.stage(make_upload("report.html", b"<p>x</p>")) as document:
                assert document.size == len(b"<p>x</p>")

        assert open_threads
        assert loop_thread not in open_threads
