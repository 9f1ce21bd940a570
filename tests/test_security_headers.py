import asyncio
from starlette.requests import Request
from starlette.responses import Response

import app.api as api_module


def _request(path="/health"):
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "query_string": b"",
    }
    return Request(scope)


def test_security_headers_applied():
    async def run_test():
        async def call_next(_request: Request) -> Response:
            return Response()

        resp = await api_module.add_security_headers(_request(), call_next)

        assert resp.status_code == 200
        headers = resp.headers
        assert headers.get("X-Content-Type-Options") == "nosniff"
        assert headers.get("X-Frame-Options") == "DENY"
        assert headers.get("Cache-Control") == "no-store"
        csp = headers.get("Content-Security-Policy")
        assert csp is not None
        assert "default-src 'none'" in csp

    asyncio.run(run_test())


def test_security_headers_preserve_existing_values():
    async def run_test():
        async def call_next(_request: Request) -> Response:
            resp = Response()
            resp.headers["Cache-Control"] = "max-age=60"
            return resp

        resp = await api_module.add_security_headers(_request(), call_next)

        # Existing header should not be overridden; other headers still set
        assert resp.headers["Cache-Control"] == "max-age=60"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("X-Frame-Options") == "DENY"

    asyncio.run(run_test())


def test_security_headers_full_app_with_testclient():
    from fastapi.testclient import TestClient

    client = TestClient(api_module.app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    assert resp.headers.get("X-Frame-Options") == "DENY"
    assert "default-src 'none'" in (resp.headers.get("Content-Security-Policy") or "")
