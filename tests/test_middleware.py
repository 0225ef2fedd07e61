"""
Unit tests for request logging context
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from campaign_catalog.middleware.logging import logging_middleware, request_context


def make_app() -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        return await logging_middleware(request, call_next)

    @app.get("/context")
    async def context():
        return structlog.contextvars.get_contextvars()

    return app


class TestRequestContext:
    """Context bound for the duration of a request"""

    def test_handlers_see_request_context(self):
        with TestClient(make_app()) as client:
            body = client.get("/context", params={"q": "water"}).json()

        assert body["method"] == "GET"
        assert body["path"] == "/context"
        assert body["trace_id"] == ""

    def test_request_context_fields(self):
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/admin/campaigns",
            "query_string": b"",
            "headers": [],
        }
        assert request_context(Request(scope)) == {
            "trace_id": "",
            "method": "POST",
            "path": "/admin/campaigns",
        }
