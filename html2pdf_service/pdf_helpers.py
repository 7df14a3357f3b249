"""
Helper functions for PDF generation.

Filename derivation for generated PDFs and the print-time CSS overrides
injected into remote pages before Playwright prints them.
"""

import re
import time
import uuid
from typing import Iterable, Optional
from urllib.parse import urlsplit

PDF_SUFFIX = ".pdf"


def sanitize_for_path(text: str, fallback: str = "document") -> str:
    """
    Sanitize text for use in filesystem paths.

    Replaces anything other than word characters, dots and hyphens with
    underscores, collapses repeated underscores and trims them from the ends.

    Args:
        text: Raw text (original filename stem, hostname, etc.)
        fallback: Returned when nothing usable remains

    Returns:
        Sanitized string safe for filesystem paths

    Example:
        >>> sanitize_for_path("Quarterly Report (final)")
        "Quarterly_Report_final"
    """
    cleaned = re.sub(r"[^\w.-]", "_", text, flags=re.ASCII)
    cleaned = re.sub(r"_+", "_", cleaned).strip("._")
    return cleaned[:100] or fallback


def source_stem(filename: str) -> str:
    """Return the original filename without directories or extension."""
    base = re.split(r"[\\/]", filename)[-1]
    stem, dot, _ = base.rpartition(".")
    return stem if dot and stem else base


def host_stem(url: str) -> str:
    """Return the hostname of a URL, used to name PDFs of remote pages."""
    return urlsplit(url).hostname or "page"


def build_pdf_filename(
    source_name: str,
    timestamp_ms: Optional[int] = None,
    token: Optional[str] = None,
) -> str:
    """
    Build the outbound filename for a generated PDF.

    Format is ``<epoch-ms>-<sanitized source>-<token>.pdf``. The short random
    token keeps names distinct when two conversions of identically named
    sources land in the same millisecond.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    if token is None:
        token = uuid.uuid4().hex[:6]
    return f"{timestamp_ms}-{sanitize_for_path(source_name)}-{token}{PDF_SUFFIX}"


def build_staged_filename(original_filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Name an uploaded document inside the staging directory."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    base = re.split(r"[\\/]", original_filename)[-1]
    return f"{timestamp_ms}-{uuid.uuid4().hex[:6]}-{sanitize_for_path(base)}"


def build_print_overrides_css(hidden_selectors: Iterable[str], page_format: str = "A4") -> str:
    """
    Build the stylesheet injected into a remote page before printing.

    Hides the given non-content selectors, zeroes the body margin and
    pins the printed page size.
    """
    selectors = [s for s in hidden_selectors if s]
    rules = []
    if selectors:
        rules.append(f"{', '.join(selectors)} {{ display: none !important; }}")
    rules.append("html, body { margin: 0 !important; }")
    rules.append(f"@page {{ size: {page_format}; margin: 0; }}")
    rules.append(
        "@media print { body { -webkit-print-color-adjust: exact; print-color-adjust: exact; } }"
    )
    return "\n".join(rules)
