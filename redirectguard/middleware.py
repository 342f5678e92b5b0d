"""Redirect guard middleware for Starlette applications.

Runs `RedirectGuard` as an explicit stage of the response pipeline: after
the application has produced a response and before it is sent, every
redirect is checked and either rewritten, passed through, or replaced with a
400.

Usage:
    app.add_middleware(RedirectGuardMiddleware)

    # With explicit settings
    app.add_middleware(
        RedirectGuardMiddleware,
        settings=GuardSettings(enforce_scheme=True),
    )
"""

from __future__ import annotations

from typing import Awaitable, Callable
from urllib.parse import urlencode

from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from redirectguard.config import GuardSettings
from redirectguard.context import DESTINATION_PARAM, IncomingRequest, RequestContext
from redirectguard.errors import rejection_response, register_exception_handlers
from redirectguard.guard import RedirectGuard
from redirectguard.responses import TRUSTED_REDIRECT_HEADER, OutgoingResponse


def classify(response: Response) -> OutgoingResponse:
    """Tag a Starlette response for the guard.

    Only 3xx responses with a Location header are redirects; 304 and other
    Location-less 3xx responses are left alone.
    """
    location = response.headers.get("location")
    if not (300 <= response.status_code < 400) or location is None:
        return OutgoingResponse.other(response.status_code)
    if TRUSTED_REDIRECT_HEADER in response.headers:
        return OutgoingResponse.trusted(location, response.status_code)
    return OutgoingResponse.redirect(location, response.status_code)


class RedirectGuardMiddleware(BaseHTTPMiddleware):
    """Open redirect protection middleware.

    Configuration:
        settings: GuardSettings (default: GuardSettings())
        guard: A prebuilt RedirectGuard; overrides `settings` when given
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: GuardSettings | None = None,
        guard: RedirectGuard | None = None,
    ) -> None:
        super().__init__(app)
        self.guard = guard or RedirectGuard(settings)
        self.settings = self.guard.settings

    def _sanitize_query(
        self, request: Request, incoming: IncomingRequest, context: RequestContext
    ) -> None:
        sanitized = self.guard.sanitize_destination(incoming, context)
        if sanitized is incoming:
            return
        # Keep repeated keys; only the destination parameter is removed.
        remaining = [
            (key, value)
            for key, value in request.query_params.multi_items()
            if key != DESTINATION_PARAM
        ]
        request.scope["query_string"] = urlencode(remaining).encode("latin-1")

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        incoming = IncomingRequest.from_starlette(request)
        context = RequestContext.from_starlette(request)

        if self.settings.sanitize_request:
            self._sanitize_query(request, incoming, context)

        response = await call_next(request)

        outgoing = classify(response)
        if TRUSTED_REDIRECT_HEADER in response.headers:
            del response.headers[TRUSTED_REDIRECT_HEADER]

        checked = self.guard.check_redirect_url(incoming, outgoing, context)
        if checked.is_rejection:
            return rejection_response(
                request, checked.message or self.settings.rejection_message
            )
        if checked.target_url is not None and checked.target_url != outgoing.target_url:
            response.headers["location"] = checked.target_url
        return response


def install(app: Starlette, settings: GuardSettings | None = None) -> None:
    """Add the redirect guard and its exception handlers to an app."""
    app.add_middleware(RedirectGuardMiddleware, settings=settings)
    register_exception_handlers(app)
