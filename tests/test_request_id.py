"""Tests for request ID middleware."""

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from inkwell.app.middleware.request_id import RequestIdMiddleware, get_request_id


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {"request_id": get_request_id(request)}

    return app


class TestRequestIdMiddleware:
    def test_generates_request_id(self):
        client = TestClient(_make_app())
        response = client.get("/echo")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 36
        assert response.json()["request_id"] == request_id

    def test_propagates_incoming_request_id(self):
        client = TestClient(_make_app())
        response = client.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["request_id"] == "abc-123"

    def test_unique_per_request(self):
        client = TestClient(_make_app())
        first = client.get("/echo").headers["X-Request-ID"]
        second = client.get("/echo").headers["X-Request-ID"]
        assert first != second


def test_get_request_id_without_middleware():
    app = FastAPI()

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {"request_id": get_request_id(request)}

    assert TestClient(app).get("/echo").json() == {"request_id": "unknown"}
