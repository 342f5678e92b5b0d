"""Redirect URL helpers for redirectguard.

Pure functions that classify and compare URLs. They hold no state and do no
I/O, so the guard, the middleware, and route handlers can all share them.

Security considerations:
- Protocol-relative URLs (//evil.com) are external, never paths
- Unknown schemes (javascript:, example:) are stripped, so such values are
  treated as path text rather than as URLs
- Browsers read backslashes as slashes; normalize before comparing hosts
- Control characters never reach a Location header; leading ones mark a
  value as foreign
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import SplitResult, parse_qs, urlsplit

from redirectguard.config import DEFAULT_ALLOWED_PROTOCOLS
from redirectguard.errors import MalformedDestination

_LEADING_CONTROL = re.compile(r"^[\x00-\x1f]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_PATH_DELIMITERS = re.compile(r"[/?#]")

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ParsedDestination:
    """A legacy internal destination split into its parts."""

    path: str
    query: dict[str, list[str]] = field(default_factory=dict)
    fragment: str = ""


def _leading_colon(uri: str) -> int:
    """Position of a colon that could end a scheme, or -1."""
    colon = uri.find(":")
    if colon <= 0 or _PATH_DELIMITERS.search(uri[:colon]):
        return -1
    return colon


def strip_dangerous_protocols(
    uri: str, allowed_protocols: Iterable[str] = DEFAULT_ALLOWED_PROTOCOLS
) -> str:
    """Strip leading `scheme:` prefixes whose scheme is not allowed.

    Stripping repeats until nothing changes, so `javascript:javascript:x`
    is reduced all the way.

    Examples:
        >>> strip_dangerous_protocols("javascript:alert(0)")
        'alert(0)'
        >>> strip_dangerous_protocols("https://example.com")
        'https://example.com'
    """
    allowed = {p.lower() for p in allowed_protocols}
    while True:
        colon = _leading_colon(uri)
        if colon == -1 or uri[:colon].lower() in allowed:
            return uri
        uri = uri[colon + 1 :]


def is_external(
    path: str, allowed_protocols: Iterable[str] = DEFAULT_ALLOWED_PROTOCOLS
) -> bool:
    """Return True if `path` points outside the site.

    A value is external when it:
    - starts with `//` (scheme-relative)
    - starts with a control or format character
    - has an allowed scheme before any `/`, `?` or `#`

    `example.com`, `example:com` and `javascript:alert(0)` are not external.
    """
    if not path:
        return False
    if path.startswith("//"):
        return True
    if unicodedata.category(path[0]).startswith("C"):
        return True
    if _leading_colon(path) == -1:
        return False
    return strip_dangerous_protocols(path, allowed_protocols) == path


def parse_destination(value: str) -> ParsedDestination:
    """Split an internal destination into path, query and fragment.

    Repeated query keys keep all their values.

    Examples:
        >>> parse_destination("node/1?page=2#top")
        ParsedDestination(path='node/1', query={'page': ['2']}, fragment='top')
    """
    value, _, fragment = value.partition("#")
    path, _, query = value.partition("?")
    return ParsedDestination(
        path=path,
        query=parse_qs(query, keep_blank_values=True),
        fragment=fragment,
    )


def has_control_characters(url: str) -> bool:
    """Return True if `url` contains an ASCII control character anywhere."""
    return _CONTROL_CHARS.search(url) is not None


def _split(url: str) -> SplitResult:
    try:
        parts = urlsplit(url)
        # .port raises ValueError for a non-numeric or out-of-range port.
        _ = parts.port
    except ValueError as exc:
        raise MalformedDestination(url, str(exc)) from exc
    return parts


def _explicit_port(parts: SplitResult) -> int | None:
    """Port number, or None when absent or the scheme's default."""
    port = parts.port
    if port is None or port == DEFAULT_PORTS.get(parts.scheme.lower()):
        return None
    return port


def external_is_local(
    url: str, base_url: str, *, enforce_scheme: bool = False
) -> bool:
    """Check whether an absolute URL stays under `base_url`.

    The host (case-insensitive) and any non-default port must match. When the
    base URL has a path, the URL's path must sit at or below it. With
    `enforce_scheme`, the schemes must match as well.

    Args:
        url: Absolute or scheme-relative URL to check.
        base_url: The site's complete base URL, e.g. `http://example.com/site`.
        enforce_scheme: Also require the same scheme.

    Returns:
        True if the URL is local to the base URL.

    Raises:
        MalformedDestination: If either URL cannot be parsed or has no host.

    """
    url = url.replace("\\", "/")
    if _LEADING_CONTROL.match(url):
        return False

    url_parts = _split(url)
    base_parts = _split(base_url)
    if not url_parts.hostname or not base_parts.hostname:
        raise MalformedDestination(
            url, "a path was passed where a fully qualified URL was expected"
        )

    if url_parts.hostname != base_parts.hostname:
        return False
    if _explicit_port(url_parts) != _explicit_port(base_parts):
        return False
    if enforce_scheme and url_parts.scheme.lower() != base_parts.scheme.lower():
        return False

    if not url_parts.path or not base_parts.path:
        return base_parts.path in ("", "/")

    # Trailing slashes keep /sitefoo from matching a /site base.
    url_path = url_parts.path.rstrip("/") + "/"
    base_path = base_parts.path.rstrip("/") + "/"
    return url_path.lower().startswith(base_path.lower())


def is_relative_reference(url: str) -> bool:
    """Return True for a same-document reference such as `/login?next=/`.

    Backslashes are normalized first, so `/\\evil.com` counts as
    scheme-relative and is not relative. Values with a scheme (`javascript:`)
    or control characters are not relative references either.
    """
    if not url:
        return False
    normalized = url.replace("\\", "/")
    if normalized.startswith("//") or has_control_characters(normalized):
        return False
    try:
        parts = urlsplit(normalized)
    except ValueError:
        return False
    return not parts.scheme and not parts.netloc
