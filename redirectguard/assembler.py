"""Assemble `base:` references into URLs for the current request."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote, urlencode

from redirectguard.context import RequestContext

BASE_SCHEME = "base:"

# RFC 3986 pchar plus "/", minus the unreserved set quote() always keeps.
_PATH_SAFE = "/:@!$&'()*+,;="
_FRAGMENT_SAFE = _PATH_SAFE + "?"


class UrlAssembler:
    """Turn `base:<path>` references into URLs below the site's base URL.

    The assembler never takes a scheme or host from the reference itself:
    the path is always appended to the context's base URL.
    """

    def assemble(
        self,
        uri: str,
        options: Mapping[str, Any] | None,
        context: RequestContext,
    ) -> str:
        """Build a URL for a `base:` reference.

        Args:
            uri: Reference such as `base:node/1`.
            options: Optional `query` (mapping), `fragment` (str) and
                `absolute` (bool, default False).
            context: The current request context.

        Returns:
            The assembled URL string.

        Raises:
            ValueError: If `uri` does not use the `base:` scheme.

        Examples:
            >>> ctx = RequestContext("http", "example.com", "/site")
            >>> UrlAssembler().assemble("base:test", {"absolute": True}, ctx)
            'http://example.com/site/test'
        """
        if not uri.startswith(BASE_SCHEME):
            raise ValueError(f"Only base: references can be assembled, got {uri!r}")
        options = options or {}

        # Collapsing leading slashes keeps the result from becoming //host.
        path = uri[len(BASE_SCHEME) :].lstrip("/")
        prefix = (
            context.complete_base_url
            if options.get("absolute")
            else context.base_path.rstrip("/")
        )
        url = f"{prefix}/{quote(path, safe=_PATH_SAFE)}"

        query = options.get("query")
        if query:
            url += "?" + urlencode(query, doseq=True)
        fragment = options.get("fragment")
        if fragment:
            url += "#" + quote(fragment, safe=_FRAGMENT_SAFE)
        return url
