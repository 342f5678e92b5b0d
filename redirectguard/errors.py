"""Redirect errors and exception handling for redirectguard.

Defines the redirect error taxonomy and builds the 400 responses that replace
rejected redirects, with content negotiation.

Content Negotiation:
- Returns HTML for browser requests (Accept: text/html)
- Returns JSON for API requests (Accept: application/json or default)

Security:
- The rejected URL is never echoed back to the client
- Rejections are logged by the caller at warning level
"""

from __future__ import annotations

import html
import logging
from typing import cast

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.types import ExceptionHandler, HTTPExceptionHandler

logger = logging.getLogger("redirectguard.errors")

DEFAULT_REJECTION_MESSAGE = "Redirects to external URLs are not allowed by default."


class RedirectError(ValueError):
    """Base class for redirect targets that must not be followed.

    Attributes:
        url: The offending URL or destination hint, as received.
        reason: Short machine-friendly reason used in audit logs.
    """

    reason = "invalid_redirect"

    def __init__(self, url: str, detail: str | None = None) -> None:
        self.url = url
        self.detail = detail or self.reason
        super().__init__(f"{self.detail}: {url!r}")


class MalformedDestination(RedirectError):
    """The destination cannot be parsed as a URL reference."""

    reason = "malformed_destination"


class CrossOriginDestination(RedirectError):
    """The resolved target is not local to the current request."""

    reason = "cross_origin_destination"


def _wants_html(request: Request) -> bool:
    """Check if the client prefers HTML over JSON.

    Args:
        request: The incoming HTTP request.

    Returns:
        True if text/html appears in Accept and before application/json.

    """
    accept = request.headers.get("accept", "")
    if "text/html" in accept:
        html_pos = accept.find("text/html")
        json_pos = accept.find("application/json")
        if json_pos == -1 or html_pos < json_pos:
            return True
    return False


def _html_error_page(status_code: int, message: str) -> str:
    """Render a minimal HTML error page."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Error {status_code}</title>
</head>
<body>
    <h1>{status_code}</h1>
    <p>{html.escape(message)}</p>
</body>
</html>"""


def error_response(request: Request, status_code: int, message: str) -> Response:
    """Build an error response in the format the client asked for.

    Args:
        request: Request whose Accept header drives the format.
        status_code: HTTP status code of the response.
        message: Human-readable message for the body.

    Returns:
        Response: HTML page for browsers, JSON for API clients.

    """
    if _wants_html(request):
        return HTMLResponse(
            _html_error_page(status_code, message),
            status_code=status_code,
        )
    return JSONResponse(
        {"ok": False, "error": {"message": message}},
        status_code=status_code,
    )


def rejection_response(
    request: Request, message: str = DEFAULT_REJECTION_MESSAGE
) -> Response:
    """Return the 400 response that replaces a rejected redirect."""
    return error_response(request, 400, message)


async def http_exc(request: Request, exc: HTTPException) -> Response:
    """Handle Starlette HTTPException with content negotiation."""
    message = str(exc.detail) if exc.detail else "An error occurred"
    return error_response(request, exc.status_code, message)


async def redirect_exc(request: Request, exc: RedirectError) -> Response:
    """Turn a RedirectError raised by a handler into a 400 response.

    Handlers raise these through `local_redirect`. This is a client error,
    not a server error, so it is logged at warning level without a traceback.
    """
    logger.warning(
        "Rejected redirect from handler: reason=%s path=%s",
        exc.reason,
        request.url.path,
    )
    return rejection_response(request)


def register_exception_handlers(app: Starlette) -> None:
    """Attach redirect-aware exception handlers to a Starlette app.

    Registers:
        - HTTPException -> http_exc
        - RedirectError -> redirect_exc

    Args:
        app: The Starlette application.

    """
    app.add_exception_handler(HTTPException, cast(HTTPExceptionHandler, http_exc))
    app.add_exception_handler(RedirectError, cast(ExceptionHandler, redirect_exc))
