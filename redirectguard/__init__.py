"""redirectguard package root.

Open redirect protection for Starlette/ASGI applications.

Provides:
- `RedirectGuard`: decides the final target of every outgoing redirect.
- `RedirectGuardMiddleware` / `install`: runs the guard in the response pipeline.
- `trusted_redirect` / `local_redirect`: redirect helpers for route handlers.
- `GuardSettings` / `load_settings`: policy configuration.

Conventions:
- The `destination` query parameter is reserved for redirect hints.
- Redirects that point outside the current site are replaced by a 400,
  unless built with `trusted_redirect`.
"""

from __future__ import annotations

__version__ = "0.1.0"

from redirectguard.assembler import UrlAssembler
from redirectguard.config import GuardSettings, build_config, load_settings
from redirectguard.context import DESTINATION_PARAM, IncomingRequest, RequestContext
from redirectguard.errors import (
    CrossOriginDestination,
    MalformedDestination,
    RedirectError,
    register_exception_handlers,
)
from redirectguard.guard import RedirectGuard
from redirectguard.middleware import RedirectGuardMiddleware, install
from redirectguard.responses import (
    OutgoingResponse,
    RedirectKind,
    local_redirect,
    trusted_redirect,
)

__all__ = [
    "__version__",
    "DESTINATION_PARAM",
    "CrossOriginDestination",
    "GuardSettings",
    "IncomingRequest",
    "MalformedDestination",
    "OutgoingResponse",
    "RedirectError",
    "RedirectGuard",
    "RedirectGuardMiddleware",
    "RedirectKind",
    "RequestContext",
    "UrlAssembler",
    "build_config",
    "install",
    "load_settings",
    "local_redirect",
    "register_exception_handlers",
    "trusted_redirect",
]
