"""Error taxonomy for metadata provider interactions."""

from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Response bodies are truncated to this many characters in log output
BODY_EXCERPT_LENGTH = 300


class ErrorCategory(Enum):
    """Categorize HTTP outcomes from provider APIs."""
    OK = "ok"
    RATE_LIMITED = "rate_limited"    # 429 - warn, no retry
    NOT_FOUND = "not_found"          # 404 - game unknown to provider
    SERVER_ERROR = "server_error"    # 5xx - transient provider failure
    CLIENT_ERROR = "client_error"    # other 4xx - bad request or auth


class ScraperError(Exception):
    """Base exception for scraper errors."""
    pass


class RateLimitedError(ScraperError):
    """Provider rejected the request because of rate limiting (HTTP 429)."""
    pass


class ProviderHTTPError(ScraperError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseError(ScraperError):
    """Response body could not be validated or parsed."""
    pass


# ScreenScraper documents its own meaning for several status codes
HTTP_STATUS_MESSAGES = {
    200: "Success",
    400: "Malformed request",
    401: "API closed for non-members (server overload)",
    403: "Invalid credentials",
    404: "Game not found",
    423: "API fully closed",
    426: "Software blacklisted",
    429: "Rate limit exceeded",
    430: "Daily quota exceeded",
    431: "Too many not-found requests",
}


def get_error_message(status_code: int) -> str:
    """
    Get user-friendly error message for HTTP status code.

    Args:
        status_code: HTTP status code

    Returns:
        Error message string
    """
    return HTTP_STATUS_MESSAGES.get(
        status_code,
        f"Unknown error (HTTP {status_code})"
    )


def classify_status(status_code: int) -> ErrorCategory:
    """
    Map an HTTP status code to an ErrorCategory.

    Args:
        status_code: HTTP status code from the provider

    Returns:
        ErrorCategory for the status
    """
    if 200 <= status_code < 300:
        return ErrorCategory.OK
    if status_code == 429:
        return ErrorCategory.RATE_LIMITED
    if status_code == 404:
        return ErrorCategory.NOT_FOUND
    if status_code >= 500:
        return ErrorCategory.SERVER_ERROR
    return ErrorCategory.CLIENT_ERROR


def handle_http_status(
    status_code: int,
    context: str = "",
    body: str = ""
) -> None:
    """
    Raise the appropriate exception for a non-success HTTP status.

    Args:
        status_code: HTTP status code from API
        context: Additional context for error message
        body: Response body text (kept on the exception for logging)

    Raises:
        RateLimitedError: For 429
        ProviderHTTPError: For every other non-2xx status
    """
    category = classify_status(status_code)
    if category == ErrorCategory.OK:
        return

    msg = get_error_message(status_code)
    if context:
        msg = f"{msg} ({context})"

    if category == ErrorCategory.RATE_LIMITED:
        raise RateLimitedError(msg)

    raise ProviderHTTPError(status_code, msg, body=body)


def excerpt(text: Optional[str], limit: int = BODY_EXCERPT_LENGTH) -> str:
    """Truncate a response body for log output."""
    if not text:
        return ""
    return text[:limit]
