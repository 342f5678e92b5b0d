"""Open redirect guard.

`RedirectGuard` decides the final target of every outgoing redirect:

- trusted redirects pass through untouched
- a `destination` query parameter overrides the target, after being
  resolved to an absolute URL below the site's base URL
- the resulting target must be local to the current request, otherwise the
  whole response becomes a 400

All failures are handled here and turned into a rejection response; nothing
is raised to the caller.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, urlsplit

from redirectguard.assembler import BASE_SCHEME, UrlAssembler
from redirectguard.config import GuardSettings
from redirectguard.context import IncomingRequest, RequestContext
from redirectguard.errors import (
    CrossOriginDestination,
    MalformedDestination,
    RedirectError,
)
from redirectguard.responses import OutgoingResponse, RedirectKind
from redirectguard.security.audit import SecurityEvent, log_security_event
from redirectguard.security.redirect import (
    external_is_local,
    has_control_characters,
    is_external,
    is_relative_reference,
    parse_destination,
)


# Same safe set Starlette's RedirectResponse uses for Location.
_LOCATION_SAFE = ":/%#?=@[]!$&'()*+,;"


class RedirectGuard:
    """Validate and rewrite redirect targets against the request origin.

    Build one per process and share it; it keeps no per-request state.

    Args:
        settings: Policy knobs (default: `GuardSettings()`).
        assembler: Resolver for `base:` references (default: `UrlAssembler()`).
        logger: Where rejections are logged (default: the security logger).
    """

    def __init__(
        self,
        settings: GuardSettings | None = None,
        assembler: UrlAssembler | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or GuardSettings()
        self.assembler = assembler or UrlAssembler()
        self.logger = logger

    def destination_as_absolute_url(
        self, destination: str, context: RequestContext
    ) -> str:
        """Resolve a destination hint into an absolute URL candidate.

        - External hints (`http://...`, `//...`) are returned as-is and left
          to the locality check.
        - Hints starting with `/` are joined to the scheme and host.
        - Anything else is a legacy internal path: it goes through the
          assembler as `base:<path>`, so `example.com` or
          `javascript:alert(0)` end up as path segments.
        """
        if is_external(destination, self.settings.allowed_protocols):
            return destination
        if destination.startswith("/"):
            return context.scheme_and_host + destination
        parsed = parse_destination(destination)
        return self.assembler.assemble(
            BASE_SCHEME + parsed.path,
            {"query": parsed.query, "fragment": parsed.fragment, "absolute": True},
            context,
        )

    def ensure_local(self, url: str, context: RequestContext) -> str:
        """Return `url` as an absolute, percent-encoded local URL, or raise.

        Raises:
            MalformedDestination: If the URL cannot be parsed or contains
                control characters.
            CrossOriginDestination: If it points outside the base URL.
        """
        # urlsplit drops tabs and newlines silently; they must never reach
        # the Location header.
        if has_control_characters(url):
            raise MalformedDestination(url, "control characters in URL")
        if not external_is_local(
            url,
            context.complete_base_url,
            enforce_scheme=self.settings.enforce_scheme,
        ):
            raise CrossOriginDestination(url, "redirect target is not local")
        url = quote(url, safe=_LOCATION_SAFE)
        if url.startswith("//"):
            # The Location header must be absolute.
            return f"{context.scheme}:{url}"
        return url

    def check_redirect_url(
        self,
        request: IncomingRequest,
        response: OutgoingResponse,
        context: RequestContext,
    ) -> OutgoingResponse:
        """Return the response that may be sent for this request.

        Args:
            request: Snapshot of the current request.
            response: The response the application produced.
            context: Scheme, host and base path of the current request.

        Returns:
            The response unchanged, with a validated `target_url`, or a 400
            rejection replacing it.

        """
        if response.kind is not RedirectKind.PLAIN:
            return response

        destination = request.destination
        try:
            if destination:
                candidate = self.destination_as_absolute_url(destination, context)
            else:
                candidate = response.target_url or ""
                if is_relative_reference(candidate):
                    return response
            return response.with_target(self.ensure_local(candidate, context))
        except RedirectError as exc:
            self._log_rejection(request, exc, destination)
            return OutgoingResponse.rejection(self.settings.rejection_message)

    def sanitize_destination(
        self, request: IncomingRequest, context: RequestContext
    ) -> IncomingRequest:
        """Drop a foreign `destination` before the application sees it.

        Local and internal destinations are kept. The response check still
        runs on the original request, so a dropped hint still ends in a 400.
        """
        destination = request.destination
        if not destination or not is_external(
            destination, self.settings.allowed_protocols
        ):
            return request
        try:
            self.ensure_local(destination, context)
        except RedirectError as exc:
            log_security_event(
                SecurityEvent.DESTINATION_SANITIZED,
                logger=self.logger,
                host=request.host_header,
                path=request.uri_path,
                success=False,
                details={"destination": destination, "reason": exc.reason},
            )
            return request.without_destination()
        return request

    def _log_rejection(
        self,
        request: IncomingRequest,
        exc: RedirectError,
        destination: str | None,
    ) -> None:
        try:
            target_host = urlsplit(exc.url.replace("\\", "/")).hostname
        except ValueError:
            target_host = None
        details = {"reason": exc.reason, "target_host": target_host}
        if destination:
            details["destination"] = destination
        else:
            details["target"] = exc.url
        log_security_event(
            SecurityEvent.INVALID_REDIRECT,
            logger=self.logger,
            host=request.host_header,
            path=request.uri_path,
            success=False,
            details=details,
        )
