"""Response values the redirect guard classifies and rewrites.

`OutgoingResponse` carries its `RedirectKind` tag, so the guard picks a
branch with a single lookup. The Starlette helpers at the bottom produce
real ASGI responses with the same tagging.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping

from starlette.requests import Request
from starlette.responses import RedirectResponse

from redirectguard.context import RequestContext
from redirectguard.errors import CrossOriginDestination
from redirectguard.security.redirect import external_is_local, is_relative_reference

# Internal marker set by `trusted_redirect`; stripped before the wire.
TRUSTED_REDIRECT_HEADER = "x-redirectguard-trusted"


class RedirectKind(Enum):
    """What the guard should do with a response."""

    PLAIN = "plain"  # validate and maybe rewrite
    TRUSTED = "trusted"  # application vouched for the target; skip checks
    OTHER = "other"  # not a redirect


@dataclass(frozen=True)
class OutgoingResponse:
    """A response as seen by the guard.

    Attributes:
        kind: Tag selecting the guard's branch.
        status_code: HTTP status code.
        target_url: Redirect target (the Location header), if any.
        message: Body message, set on rejections.
        rejected: True when the guard replaced the response with a 400.
    """

    kind: RedirectKind
    status_code: int
    target_url: str | None = None
    message: str | None = None
    rejected: bool = False

    @property
    def is_rejection(self) -> bool:
        return self.rejected

    def with_target(self, url: str) -> OutgoingResponse:
        return replace(self, target_url=url)

    @classmethod
    def redirect(cls, url: str, status_code: int = 302) -> OutgoingResponse:
        return cls(RedirectKind.PLAIN, status_code, url)

    @classmethod
    def trusted(cls, url: str, status_code: int = 302) -> OutgoingResponse:
        return cls(RedirectKind.TRUSTED, status_code, url)

    @classmethod
    def other(cls, status_code: int = 200) -> OutgoingResponse:
        return cls(RedirectKind.OTHER, status_code)

    @classmethod
    def rejection(cls, message: str) -> OutgoingResponse:
        return cls(RedirectKind.OTHER, 400, None, message, rejected=True)


def trusted_redirect(
    url: str,
    status_code: int = 302,
    headers: Mapping[str, str] | None = None,
) -> RedirectResponse:
    """Redirect that `RedirectGuardMiddleware` lets through unchecked.

    Use only when the application chose the target itself, e.g. an OAuth
    return URL validated upstream. Never pass client input here.
    """
    response = RedirectResponse(url, status_code=status_code, headers=headers)
    response.headers[TRUSTED_REDIRECT_HEADER] = "1"
    return response


def local_redirect(
    request: Request,
    url: str,
    status_code: int = 303,
    *,
    enforce_scheme: bool = False,
) -> RedirectResponse:
    """Redirect to a URL after checking it is local to the current request.

    Relative references (`/dashboard`) are always accepted. Absolute URLs
    must sit under the request's complete base URL.

    Raises:
        CrossOriginDestination: If the URL points elsewhere. The handler
            registered by `register_exception_handlers` turns it into a 400.
        MalformedDestination: If the URL cannot be parsed.
    """
    if not is_relative_reference(url):
        context = RequestContext.from_starlette(request)
        if not external_is_local(
            url, context.complete_base_url, enforce_scheme=enforce_scheme
        ):
            raise CrossOriginDestination(url, "redirect target is not local")
    return RedirectResponse(url, status_code=status_code)
