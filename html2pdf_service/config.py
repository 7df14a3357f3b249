"""
HTML to PDF Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Elements hidden before printing a remote page. Heuristic, not exhaustive.
DEFAULT_HIDDEN_SELECTORS = [
    "nav",
    "header nav",
    "[role='navigation']",
    "[class*='cookie']",
    "[id*='cookie']",
    "[class*='consent']",
    "[id*='consent']",
    "[class*='banner']",
    "[class*='modal']",
    "[class*='popup']",
    "[aria-modal='true']",
    "footer",
]


class ServiceSettings(BaseSettings):
    """
    HTML to PDF service configuration with validation.

    All settings can be overridden via environment variables.
    """

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")
    log_level: str = Field(default="INFO", description="Root log level")

    # === Storage ===
    upload_dir: Path = Field(
        default=Path("uploads"),
        description="Staging directory for uploaded HTML documents"
    )
    pdf_dir: Path = Field(
        default=Path("pdfs"),
        description="Outbound directory for generated PDFs"
    )
    static_dir: Path = Field(
        default=PACKAGE_DIR / "static",
        description="Directory holding the UI entry page"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Maximum accepted upload size in bytes"
    )

    # === Page output ===
    pdf_format: str = Field(default="A4", description="Paper format passed to Chromium")
    pdf_margin: str = Field(
        default="20px",
        description="Uniform page margin for uploaded HTML (e.g. '20px', '0')"
    )
    url_pdf_margin: str = Field(default="0", description="Uniform page margin for remote URLs")
    html_print_background: bool = Field(
        default=False,
        description="Print background graphics for uploaded HTML"
    )

    # === Remote page emulation ===
    viewport_width: int = Field(default=1920, ge=320, le=7680)
    viewport_height: int = Field(default=1080, ge=240, le=4320)
    device_scale_factor: float = Field(default=1, gt=0, le=4)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    hidden_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_HIDDEN_SELECTORS),
        description="CSS selectors hidden before printing a remote page"
    )

    # === Timeouts ===
    navigation_timeout_ms: int = Field(
        default=45000,
        ge=1000,
        description="Remote URL navigation timeout in milliseconds"
    )
    content_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        description="Uploaded HTML load timeout in milliseconds"
    )
    settle_delay_ms: int = Field(
        default=2000,
        ge=0,
        le=30000,
        description="Extra wait after navigation for late-loading assets"
    )
    launch_timeout_seconds: float = Field(default=30, gt=0, le=300)
    print_timeout_seconds: float = Field(default=60, gt=0, le=600)
    close_timeout_seconds: float = Field(
        default=10,
        gt=0,
        le=120,
        description="Bound on closing the browser and stopping the Playwright driver"
    )

    # === Browser ===
    headless: bool = Field(default=True)
    chromium_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"]
    )
    validate_renderer_on_startup: bool = Field(
        default=True,
        description="Render a test page on startup to verify Chromium works"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one the logging module knows."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(allowed))}")
        return v_upper

    @field_validator("pdf_format")
    @classmethod
    def validate_pdf_format(cls, v: str) -> str:
        """Normalize paper format names to Chromium's spelling."""
        formats = {
            "letter": "Letter", "legal": "Legal", "tabloid": "Tabloid", "ledger": "Ledger",
            "a0": "A0", "a1": "A1", "a2": "A2", "a3": "A3", "a4": "A4", "a5": "A5", "a6": "A6",
        }
        try:
            return formats[v.lower()]
        except KeyError:
            raise ValueError(f"Unsupported pdf_format: {v}")

    @field_validator("hidden_selectors")
    @classmethod
    def strip_selectors(cls, v: List[str]) -> List[str]:
        """Drop blank selectors."""
        return [s.strip() for s in v if s and s.strip()]

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # PDF_DIR = pdf_dir
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> ServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. Use this function to access
    configuration throughout the app.
    """
    return ServiceSettings()


def validate_config_on_startup() -> ServiceSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    """
    logger = logging.getLogger(__name__)

    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    logger.info(f"Configuration loaded: {settings.host}:{settings.port}")
    logger.info(f"  upload_dir={settings.upload_dir.resolve()}")
    logger.info(f"  pdf_dir={settings.pdf_dir.resolve()}")
    logger.info(f"  pdf_format={settings.pdf_format} pdf_margin={settings.pdf_margin}")
    logger.info(f"  navigation_timeout={settings.navigation_timeout_ms}ms")
    logger.info(f"  hidden_selectors={len(settings.hidden_selectors)}")
    return settings
