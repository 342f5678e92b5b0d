from __future__ import annotations

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.routing import Route
from starlette.testclient import TestClient

from redirectguard.errors import (
    CrossOriginDestination,
    MalformedDestination,
    RedirectError,
    register_exception_handlers,
)


async def _trigger_http(request):
    raise HTTPException(status_code=418, detail="teapot")


async def _trigger_redirect(request):
    raise MalformedDestination("//example:com")


def _client() -> TestClient:
    routes = [
        Route("/http", _trigger_http),
        Route("/redirect", _trigger_redirect),
    ]
    app = Starlette(routes=routes)
    register_exception_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


def test_error_handlers_return_json_payloads() -> None:
    client = _client()

    resp = client.get("/http")
    assert resp.status_code == 418
    assert resp.json() == {"ok": False, "error": {"message": "teapot"}}

    resp = client.get("/redirect")
    assert resp.status_code == 400
    assert resp.json()["ok"] is False
    assert "example:com" not in resp.text


def test_error_handlers_return_html_for_browsers() -> None:
    resp = _client().get("/http", headers={"accept": "text/html"})
    assert resp.status_code == 418
    assert "<h1>418</h1>" in resp.text
    assert "teapot" in resp.text


def test_redirect_errors_carry_url_and_reason() -> None:
    exc = CrossOriginDestination("http://evil.com", "redirect target is not local")
    assert isinstance(exc, RedirectError)
    assert isinstance(exc, ValueError)
    assert exc.url == "http://evil.com"
    assert exc.reason == "cross_origin_destination"
    assert "redirect target is not local" in str(exc)

    assert MalformedDestination("x").reason == "malformed_destination"
