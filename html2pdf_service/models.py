"""
Pydantic models for the HTML to PDF service.

Defines the render request union, rendering options, and the API
request/response bodies.
"""

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .config import ServiceSettings


# ============================================================================
# Render Requests
# ============================================================================

class HtmlContent(BaseModel):
    """Raw HTML markup rendered in a blank page."""

    kind: Literal["html"] = "html"
    body: str = Field(..., description="HTML document to render")
    source_name: str = Field("document", description="Name the output file is derived from")


class RemoteUrl(BaseModel):
    """Remote page the browser navigates to before printing."""

    kind: Literal["url"] = "url"
    url: str = Field(..., description="Absolute http(s) URL")


RenderRequest = Annotated[Union[HtmlContent, RemoteUrl], Field(discriminator="kind")]


def uniform_margin(value: str) -> Dict[str, str]:
    """Expand a single CSS length into Playwright's margin mapping."""
    return {"top": value, "right": value, "bottom": value, "left": value}


class RenderOptions(BaseModel):
    """Page and browser options applied to one render."""

    page_format: str = "A4"
    margin: Dict[str, str] = Field(default_factory=lambda: uniform_margin("0"))
    print_background: bool = False
    prefer_css_page_size: bool = False
    viewport_width: int = 1920
    viewport_height: int = 1080
    device_scale_factor: float = 1
    user_agent: Optional[str] = None
    hidden_selectors: List[str] = Field(default_factory=list)

    @classmethod
    def for_html(cls, settings: ServiceSettings) -> "RenderOptions":
        """Options for uploaded HTML documents."""
        return cls(
            page_format=settings.pdf_format,
            margin=uniform_margin(settings.pdf_margin),
            print_background=settings.html_print_background,
        )

    @classmethod
    def for_url(cls, settings: ServiceSettings) -> "RenderOptions":
        """Options for remote pages: desktop viewport, backgrounds, CSS page size."""
        return cls(
            page_format=settings.pdf_format,
            margin=uniform_margin(settings.url_pdf_margin),
            print_background=True,
            prefer_css_page_size=True,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            device_scale_factor=settings.device_scale_factor,
            user_agent=settings.user_agent,
            hidden_selectors=list(settings.hidden_selectors),
        )


# ============================================================================
# Request/Response Models
# ============================================================================

class ConvertUrlRequest(BaseModel):
    """Body of POST /convert-url."""

    url: Optional[str] = Field(None, description="Page to convert")


class ConvertResponse(BaseModel):
    """Result of a successful conversion."""

    success: bool = True
    message: str = "PDF generated successfully"
    pdfFile: str
    downloadLink: str


class ConvertUrlResponse(ConvertResponse):
    sourceUrl: str


class PdfEntry(BaseModel):
    name: str
    downloadLink: str
    createdAt: datetime
    size: int


class PdfListResponse(BaseModel):
    """Generated PDFs, newest first."""

    success: bool = True
    files: List[PdfEntry] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "PDF deleted successfully"
    deletedFile: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: datetime
    renderer_ready: bool = True
    renderer_error: Optional[str] = None
    pdf_count: int = 0
