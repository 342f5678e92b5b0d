from __future__ import annotations

import pytest

from redirectguard.context import RequestContext
from redirectguard.guard import RedirectGuard

BASE_URL = "http://example.com/site"


@pytest.fixture
def context() -> RequestContext:
    """Context of a site mounted under /site on example.com."""
    return RequestContext.from_url(BASE_URL)


@pytest.fixture
def guard() -> RedirectGuard:
    return RedirectGuard()
