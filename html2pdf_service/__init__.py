"""
HTML to PDF Service - converts HTML uploads and web pages to PDF.

Documents are rendered with Playwright/Chromium; generated PDFs are kept
in a flat directory that doubles as the catalog for listing, download and
deletion.
"""

__version__ = "0.1.0"
