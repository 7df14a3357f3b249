"""
Pytest fixtures for HTML to PDF service tests.
"""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

# IMPORTANT: Set environment variables BEFORE any imports from html2pdf_service
# so the cached settings never point at the working directory or launch Chromium.
os.environ["VALIDATE_RENDERER_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "INFO"

import pytest
from fastapi.testclient import TestClient

FAKE_PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: launches a real Chromium (set RUN_PLAYWRIGHT_INTEGRATION=1)"
    )


@pytest.fixture
def settings(tmp_path):
    """Settings with both storage directories under tmp_path."""
    from html2pdf_service.config import ServiceSettings

    return ServiceSettings(
        upload_dir=tmp_path / "uploads",
        pdf_dir=tmp_path / "pdfs",
        validate_renderer_on_startup=False,
    )


@pytest.fixture
def mock_playwright():
    """
    Patch async_playwright with a fake Chromium.

    The fake page prints FAKE_PDF; tests tweak side effects on the
    returned namespace (page.goto, page.pdf, chromium.launch, ...).
    """
    with patch("playwright.async_api.async_playwright") as mock_pw:
        mock_page = AsyncMock()
        mock_page.pdf = AsyncMock(return_value=FAKE_PDF)
        mock_context = AsyncMock()
        mock_context.new_page = AsyncMock(return_value=mock_page)
        mock_browser = AsyncMock()
        mock_browser.new_page = AsyncMock(return_value=mock_page)
        mock_browser.new_context = AsyncMock(return_value=mock_context)
        mock_chromium = MagicMock(launch=AsyncMock(return_value=mock_browser))
        mock_driver = MagicMock(chromium=mock_chromium, stop=AsyncMock())
        mock_pw.return_value.start = AsyncMock(return_value=mock_driver)

        yield SimpleNamespace(
            playwright=mock_pw,
            chromium=mock_chromium,
            driver=mock_driver,
            browser=mock_browser,
            context=mock_context,
            page=mock_page,
        )


@pytest.fixture
def client(settings):
    """Test client with storage redirected to tmp_path and the renderer marked ready."""
    import html2pdf_service.app as app_module
    from html2pdf_service.config import get_settings

    app_module._renderer_ready = True
    app_module._renderer_error = None
    app_module.app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def client_renderer_unavailable(settings):
    """Test client with the startup render check marked as failed."""
    import html2pdf_service.app as app_module
    from html2pdf_service.config import get_settings

    app_module._renderer_ready = False
    app_module._renderer_error = "Test: Chromium not available"
    app_module.app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def fake_pdf():
    """Bytes the mocked page prints."""
    return FAKE_PDF
