"""
HTML to PDF Service - FastAPI application.

Converts uploaded HTML documents and remote web pages to PDF using
Playwright/Chromium, and lists, serves and deletes the generated files.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import ServiceSettings, get_settings, validate_config_on_startup
from .errors import ConversionServiceError, ValidationError
from .models import (
    ConvertResponse,
    ConvertUrlRequest,
    ConvertUrlResponse,
    DeleteResponse,
    HealthResponse,
    HtmlContent,
    PdfEntry,
    PdfListResponse,
    RemoteUrl,
    RenderOptions,
)
from .pdf_helpers import build_pdf_filename, host_stem, source_stem
from .registry import PdfRegistry
from .renderer import PdfRenderer, validate_url
from .storage import StagingArea, StoragePaths

# Validate configuration at startup
settings = validate_config_on_startup()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="HTML to PDF Service",
    version=__version__,
    description="Converts HTML uploads and web pages to PDF using Playwright/Chromium"
)

app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

# Renderer readiness state
_renderer_ready = False
_renderer_error: Optional[str] = None


# ============================================================================
# Dependencies
# ============================================================================

def get_storage_paths(settings: ServiceSettings = Depends(get_settings)) -> StoragePaths:
    return StoragePaths(upload_dir=settings.upload_dir, pdf_dir=settings.pdf_dir)


def get_registry(paths: StoragePaths = Depends(get_storage_paths)) -> PdfRegistry:
    return PdfRegistry(paths.pdf_dir)


def get_staging(
    paths: StoragePaths = Depends(get_storage_paths),
    settings: ServiceSettings = Depends(get_settings),
) -> StagingArea:
    return StagingArea(paths.upload_dir, settings.max_upload_bytes)


def get_renderer(settings: ServiceSettings = Depends(get_settings)) -> PdfRenderer:
    return PdfRenderer(settings)


# ============================================================================
# Startup Event - Prepare storage, validate Playwright
# ============================================================================

@app.on_event("startup")
async def prepare_on_startup():
    """
    Create the storage directories and check Chromium can print a page.

    The service reports unhealthy if the test render fails.
    """
    global _renderer_ready, _renderer_error

    current = get_settings()
    StoragePaths(upload_dir=current.upload_dir, pdf_dir=current.pdf_dir).ensure()

    if not current.validate_renderer_on_startup:
        _renderer_ready = True
        return

    logger.info("Validating Playwright installation...")
    try:
        size = await PdfRenderer(current).smoke_test()
        _renderer_ready = True
        _renderer_error = None
        logger.info(f"Playwright validation successful - generated {size} byte test PDF")
    except Exception as e:
        _renderer_error = str(e)
        logger.error(f"Playwright validation failed: {_renderer_error}")
        logger.error("PDF generation will not work until this is resolved.")


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(ConversionServiceError)
async def conversion_error_handler(request: Request, exc: ConversionServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


# ============================================================================
# UI and Health
# ============================================================================

@app.get("/", include_in_schema=False)
async def index(settings: ServiceSettings = Depends(get_settings)):
    """Static entry page."""
    return FileResponse(settings.static_dir / "index.html", media_type="text/html")


@app.get("/health", response_model=HealthResponse)
async def health_check(registry: PdfRegistry = Depends(get_registry)) -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if Playwright validation failed on startup.
    """
    if not _renderer_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "renderer_ready": False,
                "renderer_error": _renderer_error,
                "message": "PDF service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        renderer_ready=True,
        pdf_count=len(registry.list()),
    )


# ============================================================================
# Conversion Endpoints
# ============================================================================

@app.post("/convert", response_model=ConvertResponse)
async def convert_html(
    htmlFile: Optional[UploadFile] = File(None),
    staging: StagingArea = Depends(get_staging),
    registry: PdfRegistry = Depends(get_registry),
    renderer: PdfRenderer = Depends(get_renderer),
    settings: ServiceSettings = Depends(get_settings),
) -> ConvertResponse:
    """
    Convert an uploaded .html/.htm file to PDF.

    The staged upload is removed whether or not the conversion succeeds.

    Raises:
        ValidationError: 400 for missing file or wrong extension
        RenderError: 500 for rendering failures
    """
    if htmlFile is None:
        raise ValidationError("No file uploaded")

    async with staging.stage(htmlFile) as document:
        stem = source_stem(document.original_filename)
        pdf_bytes = await renderer.render(
            HtmlContent(body=await asyncio.to_thread(document.read_text), source_name=stem),
            RenderOptions.for_html(settings),
        )

    pdf = await asyncio.to_thread(registry.publish, build_pdf_filename(stem), pdf_bytes)
    logger.info(f"Converted {document.original_filename} -> {pdf.name}")

    return ConvertResponse(pdfFile=pdf.name, downloadLink=pdf.download_link)


@app.post("/convert-url", response_model=ConvertUrlResponse)
async def convert_url(
    payload: ConvertUrlRequest,
    registry: PdfRegistry = Depends(get_registry),
    renderer: PdfRenderer = Depends(get_renderer),
    settings: ServiceSettings = Depends(get_settings),
) -> ConvertUrlResponse:
    """
    Convert a remote web page to PDF.

    Raises:
        ValidationError: 400 for missing or malformed URL
        NavigationError: 400 when the page cannot be loaded
        RenderError: 500 for other rendering failures
    """
    url = validate_url(payload.url)

    pdf_bytes = await renderer.render(RemoteUrl(url=url), RenderOptions.for_url(settings))

    pdf = await asyncio.to_thread(registry.publish, build_pdf_filename(host_stem(url)), pdf_bytes)
    logger.info(f"Converted {url} -> {pdf.name}")

    return ConvertUrlResponse(pdfFile=pdf.name, downloadLink=pdf.download_link, sourceUrl=url)


# ============================================================================
# PDF Registry Endpoints
# ============================================================================

@app.get("/download/{filename:path}")
async def download_pdf(filename: str, registry: PdfRegistry = Depends(get_registry)):
    """
    Stream a generated PDF as an attachment.

    Raises:
        AccessDenied: 403 when the name escapes the PDF directory
        NotFound: 404 when no such PDF exists
    """
    pdf = registry.get(filename)
    return FileResponse(pdf.path, media_type="application/pdf", filename=pdf.name)


@app.get("/api/pdfs", response_model=PdfListResponse)
async def list_pdfs(registry: PdfRegistry = Depends(get_registry)) -> PdfListResponse:
    """List generated PDFs, newest first."""
    try:
        pdfs = registry.list()
    except OSError as e:
        logger.error(f"Error listing PDFs: {str(e)}")
        raise ConversionServiceError(f"Failed to list PDFs: {str(e)}")

    return PdfListResponse(
        files=[
            PdfEntry(
                name=pdf.name,
                downloadLink=pdf.download_link,
                createdAt=pdf.modified_at,
                size=pdf.size,
            )
            for pdf in pdfs
        ]
    )


@app.delete("/delete/{filename:path}", response_model=DeleteResponse)
async def delete_pdf(filename: str, registry: PdfRegistry = Depends(get_registry)) -> DeleteResponse:
    """
    Delete a generated PDF.

    Raises:
        AccessDenied: 403 when the name escapes the PDF directory
        NotFound: 404 when no such PDF exists
    """
    pdf = registry.delete(filename)
    return DeleteResponse(deletedFile=pdf.name)
