"""Tests for request ID middleware."""

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from lmproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id


def _make_app(header_name: str = "X-Request-ID") -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware, header_name=header_name)

    @app.get("/echo")
    async def echo(request: Request):
        return {"request_id": get_request_id(request)}

    return app


class TestRequestIdMiddleware:
    """Test request ID propagation."""

    def test_uses_incoming_header(self):
        client = TestClient(_make_app())

        response = client.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert response.json() == {"request_id": "abc-123"}
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_generates_when_missing(self):
        client = TestClient(_make_app())

        response = client.get("/echo")

        request_id = response.json()["request_id"]
        assert len(request_id) == 36
        assert response.headers["X-Request-ID"] == request_id

    def test_custom_header_name(self):
        client = TestClient(_make_app("X-Correlation-ID"))

        response = client.get("/echo", headers={"X-Correlation-ID": "corr-1"})

        assert response.headers["X-Correlation-ID"] == "corr-1"


class TestGetRequestId:
    def test_unknown_without_middleware(self):
        app = FastAPI()

        @app.get("/echo")
        async def echo(request: Request):
            return {"request_id": get_request_id(request)}

        assert TestClient(app).get("/echo").json() == {"request_id": "unknown"}
