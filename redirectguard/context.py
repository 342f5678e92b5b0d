"""Per-request values the redirect guard reads.

Both classes are frozen snapshots, built once per request and never shared
across requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from starlette.requests import Request

# Query parameter reserved for client-supplied redirect targets.
DESTINATION_PARAM = "destination"


@dataclass(frozen=True)
class RequestContext:
    """Scheme, host and base path of the current request.

    Attributes:
        scheme: URL scheme, e.g. "http".
        host: Host header value, possibly with ":port".
        base_path: Mount path of the application, "" or "/segment" with no
            trailing slash.
    """

    scheme: str
    host: str
    base_path: str = ""

    @property
    def scheme_and_host(self) -> str:
        return f"{self.scheme}://{self.host}"

    @property
    def complete_base_url(self) -> str:
        """`scheme://host[:port]/basePath`, without a trailing slash."""
        return self.scheme_and_host + self.base_path.rstrip("/")

    @property
    def base_url(self) -> str:
        return self.complete_base_url

    @classmethod
    def from_url(cls, base_url: str) -> RequestContext:
        """Build a context from a complete base URL such as `http://h/base`."""
        scheme, _, rest = base_url.partition("://")
        host, slash, path = rest.partition("/")
        return cls(scheme=scheme, host=host, base_path=(slash + path).rstrip("/"))

    @classmethod
    def from_starlette(cls, request: Request) -> RequestContext:
        """Derive the context from a Starlette request.

        The host comes from the Host header (falling back to the URL netloc)
        and the base path from the ASGI `root_path`.
        """
        host = request.headers.get("host") or request.url.netloc
        root_path = request.scope.get("root_path", "") or ""
        return cls(
            scheme=request.url.scheme,
            host=host,
            base_path=root_path.rstrip("/"),
        )


@dataclass(frozen=True)
class IncomingRequest:
    """Read-only view of the request parts the guard needs."""

    host_header: str
    query_parameters: Mapping[str, str] = field(default_factory=dict)
    uri_scheme: str = "http"
    uri_path: str = "/"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "query_parameters", MappingProxyType(dict(self.query_parameters))
        )

    @property
    def destination(self) -> str | None:
        """The `destination` hint, or None when absent."""
        return self.query_parameters.get(DESTINATION_PARAM)

    def without_destination(self) -> IncomingRequest:
        params = {
            k: v for k, v in self.query_parameters.items() if k != DESTINATION_PARAM
        }
        return replace(self, query_parameters=params)

    @classmethod
    def from_starlette(cls, request: Request) -> IncomingRequest:
        return cls(
            host_header=request.headers.get("host", ""),
            query_parameters=dict(request.query_params),
            uri_scheme=request.url.scheme,
            uri_path=request.url.path,
        )
