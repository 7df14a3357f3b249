"""
Render invoker - prints HTML documents and remote pages to PDF.

Each render launches its own Chromium instance through Playwright and
tears it down when the render finishes, fails or times out. Every call
into the browser is bounded.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Optional, TypeVar

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .config import ServiceSettings
from .errors import ConversionServiceError, NavigationError, RenderError, ValidationError
from .models import HtmlContent, RemoteUrl, RenderOptions, RenderRequest
from .pdf_helpers import build_print_overrides_css

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Slack on top of Playwright's own timeouts before asyncio gives up on a call
TIMEOUT_GRACE_SECONDS = 5

_http_url = TypeAdapter(AnyHttpUrl)


def validate_url(url: Optional[str]) -> str:
    """
    Check a URL is an absolute http(s) URL with a host.

    Returns the URL as given (stripped), not pydantic's normalized form.

    Raises:
        ValidationError: missing or malformed URL
    """
    if not url or not url.strip():
        raise ValidationError("URL is required")
    url = url.strip()
    try:
        _http_url.validate_python(url)
    except PydanticValidationError:
        raise ValidationError(f"Invalid URL: {url}")
    return url


async def _bounded(awaitable: Awaitable[T], seconds: float, what: str) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise RenderError(f"{what} timed out after {seconds:g}s")


class PdfRenderer:
    """Playwright/Chromium backed renderer."""

    def __init__(self, settings: ServiceSettings):
        self.settings = settings

    @asynccontextmanager
    async def browser_session(self) -> AsyncIterator:
        """Launch a fresh Chromium instance and tear it down on every exit path."""
        # Import here to avoid loading Playwright on startup
        from playwright.async_api import async_playwright

        launch_timeout = self.settings.launch_timeout_seconds
        try:
            playwright = await _bounded(
                async_playwright().start(), launch_timeout, "Playwright driver start"
            )
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Failed to start Playwright: {e}") from e

        try:
            try:
                browser = await _bounded(
                    playwright.chromium.launch(
                        headless=self.settings.headless,
                        args=self.settings.chromium_args,
                    ),
                    launch_timeout,
                    "Browser launch",
                )
            except RenderError:
                raise
            except Exception as e:
                raise RenderError(f"Failed to launch browser: {e}") from e

            try:
                yield browser
            finally:
                await self._teardown(browser.close(), "Browser close")
        finally:
            await self._teardown(playwright.stop(), "Playwright driver stop")

    async def _teardown(self, awaitable: Awaitable, what: str) -> None:
        """Run a cleanup call under the close bound; failures are logged only."""
        try:
            await _bounded(awaitable, self.settings.close_timeout_seconds, what)
        except Exception as e:
            logger.warning(f"{what} did not complete cleanly: {e}")

    async def render(self, request: RenderRequest, options: RenderOptions) -> bytes:
        """
        Render an HTML document or a remote URL to PDF bytes.

        Raises:
            ValidationError: malformed URL (raised before any browser launch)
            NavigationError: the remote page failed to load in time
            RenderError: launch, load or print failure
        """
        if isinstance(request, RemoteUrl):
            url = validate_url(request.url)
            logger.info(f"Starting URL render ({url})")
        else:
            url = None
            logger.info(f"Starting HTML render ({len(request.body)} chars)")

        try:
            async with self.browser_session() as browser:
                if url is None:
                    pdf_bytes = await self._render_html(browser, request, options)
                else:
                    pdf_bytes = await self._render_url(browser, url, options)
        except ConversionServiceError:
            raise
        except Exception as e:
            logger.error(f"PDF rendering failed: {str(e)}")
            raise RenderError(f"Rendering failed: {str(e)}") from e

        logger.info(f"Render completed ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    async def _render_html(self, browser, request: HtmlContent, options: RenderOptions) -> bytes:
        page = await _bounded(browser.new_page(), self.settings.launch_timeout_seconds, "Opening page")

        timeout_ms = self.settings.content_timeout_ms
        await _bounded(
            page.set_content(request.body, wait_until="networkidle", timeout=timeout_ms),
            timeout_ms / 1000 + TIMEOUT_GRACE_SECONDS,
            "Loading HTML content",
        )
        return await self._print(page, options)

    async def _render_url(self, browser, url: str, options: RenderOptions) -> bytes:
        context = await _bounded(
            browser.new_context(
                viewport={"width": options.viewport_width, "height": options.viewport_height},
                device_scale_factor=options.device_scale_factor,
                user_agent=options.user_agent,
            ),
            self.settings.launch_timeout_seconds,
            "Opening browser context",
        )
        page = await _bounded(context.new_page(), self.settings.launch_timeout_seconds, "Opening page")

        timeout_s = self.settings.navigation_timeout_ms / 1000
        try:
            await asyncio.wait_for(self._navigate(page, url), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.error(f"Navigation to {url} timed out")
            raise NavigationError(f"Navigation to {url} timed out after {timeout_s:g}s")
        except Exception as e:
            logger.error(f"Navigation to {url} failed: {str(e)}")
            raise NavigationError(f"Failed to load {url}: {str(e)}") from e

        if self.settings.settle_delay_ms:
            await _bounded(
                page.wait_for_timeout(self.settings.settle_delay_ms),
                self.settings.settle_delay_ms / 1000 + TIMEOUT_GRACE_SECONDS,
                "Settle delay",
            )

        await _bounded(
            page.add_style_tag(
                content=build_print_overrides_css(options.hidden_selectors, options.page_format)
            ),
            self.settings.content_timeout_ms / 1000,
            "Injecting print styles",
        )
        return await self._print(page, options)

    async def _navigate(self, page, url: str) -> None:
        """Wait for DOM parsed and network idle, sharing one deadline."""
        loop = asyncio.get_running_loop()
        timeout_ms = self.settings.navigation_timeout_ms
        deadline = loop.time() + timeout_ms / 1000

        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        remaining_ms = max(1, int((deadline - loop.time()) * 1000))
        await page.wait_for_load_state("networkidle", timeout=remaining_ms)

    async def _print(self, page, options: RenderOptions) -> bytes:
        pdf_bytes = await _bounded(
            page.pdf(
                format=options.page_format,
                margin=options.margin,
                print_background=options.print_background,
                prefer_css_page_size=options.prefer_css_page_size,
            ),
            self.settings.print_timeout_seconds,
            "PDF printing",
        )
        if not pdf_bytes or not pdf_bytes.startswith(b"%PDF"):
            raise RenderError("Renderer returned an empty or invalid PDF")
        return pdf_bytes

    async def smoke_test(self) -> int:
        """Render a trivial page; returns the PDF size in bytes."""
        pdf_bytes = await self.render(
            HtmlContent(body="<html><body><h1>Test</h1></body></html>"),
            RenderOptions(page_format=self.settings.pdf_format),
        )
        return len(pdf_bytes)
