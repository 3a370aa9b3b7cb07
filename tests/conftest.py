"""Shared fixtures: a fake upstream and an app wired to it."""

import httpx
import pytest
from fastapi.testclient import TestClient

from musicedge.app import create_app


class FakeUpstream:
    """Records every upstream request and answers with a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.headers: dict[str, str] = {}
        self.content = b""
        self.error: Exception | None = None

    def respond(self, status_code=200, headers=None, content=b""):
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no upstream request was made"
        return self.requests[-1]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(upstream):
    app = create_app(transport=httpx.MockTransport(upstream.handler))
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
