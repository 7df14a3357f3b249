"""
Error taxonomy for the HTML to PDF service.

Every failure raised by the storage, registry and renderer modules derives
from ConversionServiceError and carries the HTTP status the endpoint layer
reports it with.
"""


class ConversionServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ConversionServiceError):
    """Bad client input: wrong extension, missing or malformed URL."""

    status_code = 400


class PayloadTooLarge(ValidationError):
    """Upload exceeded the configured size limit."""

    status_code = 413


class AccessDenied(ConversionServiceError):
    """A filename resolved outside the outbound directory."""

    status_code = 403


class NotFound(ConversionServiceError):
    """The requested PDF does not exist."""

    status_code = 404


class RenderError(ConversionServiceError):
    """Browser launch, page load or print failure."""

    status_code = 500


class NavigationError(RenderError):
    """The remote URL could not be loaded within the navigation bound."""

    status_code = 400
