"""
Run the HTML to PDF service with uvicorn.

Usage:
    python -m html2pdf_service
"""

import logging
import socket

import uvicorn

from .config import get_settings

logger = logging.getLogger("html2pdf_service")


def lan_address() -> str:
    """Best guess at this host's address on the local network."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            # No packet is sent; connect() only selects the outbound interface
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
        except OSError:
            return "127.0.0.1"


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    logger.info(f"Server is running on http://localhost:{settings.port}")
    logger.info(f"Network access: http://{lan_address()}:{settings.port}")
    logger.info("Ready to convert HTML files to PDF")

    uvicorn.run(
        "html2pdf_service.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
