"""Shared test fixtures for the Keystone test suite."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import pytest

from keystone.integrations.directus import DirectusClient

BASE_URL = "http://cms.test"


def error_body(message: str, code: str | None = None) -> dict[str, Any]:
    """Directus-style error envelope."""
    error: dict[str, Any] = {"message": message}
    if code:
        error["extensions"] = {"code": code}
    return {"errors": [error]}


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: dict[str, str]
    body: Any
    headers: dict[str, str] = field(default_factory=dict)


class FakeDirectus:
    """In-memory stand-in for the Directus REST API.

    Every request is recorded.  Routes registered with :meth:`on` win;
    anything else gets a plausible default: login succeeds, GETs return an
    empty list, POST/PATCH echo the body back with an id, DELETE returns 204.
    """

    def __init__(self) -> None:
        self.requests: list[RecordedRequest] = []
        self.routes: dict[tuple[str, str], Any] = {}
        self.access_token = "test-token"
        self._next_id = 0

    def on(self, method: str, path: str, status: int = 200, json: Any = None) -> None:
        """Serve a fixed response (or a ``handler(request, body)`` callable)."""
        self.routes[(method, path)] = json if callable(json) else (status, json)

    def fail(self, method: str, path: str, message: str, status: int = 400, code: str | None = None) -> None:
        self.on(method, path, status, error_body(message, code))

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                params=dict(request.url.params),
                body=body,
                headers=dict(request.headers),
            )
        )

        route = self.routes.get((request.method, request.url.path))
        if callable(route):
            return route(request, body)
        if route is not None:
            status, payload = route
            return httpx.Response(status, json=payload)

        if (request.method, request.url.path) == ("POST", "/auth/login"):
            return httpx.Response(200, json={"data": {"access_token": self.access_token}})
        if request.method == "GET":
            return httpx.Response(200, json={"data": []})
        if request.method == "DELETE":
            return httpx.Response(204)
        if isinstance(body, list):
            return httpx.Response(200, json={"data": [{"id": self._id(), **row} for row in body]})
        return httpx.Response(200, json={"data": {"id": self._id(), **(body or {})}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, base_url: str = BASE_URL, **kwargs: Any) -> DirectusClient:
        return DirectusClient(base_url, transport=self.transport, **kwargs)

    def calls(self, method: str | None = None, path: str | None = None) -> list[RecordedRequest]:
        """Recorded requests, optionally filtered by method and path.

        *path* matches itself and anything below it: ``/items/invoices``
        matches ``/items/invoices/3`` but not ``/items/invoices_services``.
        """
        return [
            r
            for r in self.requests
            if (method is None or r.method == method) and (path is None or _under(r.path, path))
        ]


@pytest.fixture
def fake_directus():
    """A fresh fake CMS per test."""
    return FakeDirectus()


@pytest.fixture
def client_factory(fake_directus) -> Callable[..., DirectusClient]:
    """Build clients wired to the fake CMS (for patching into the CLI)."""

    def factory(base_url: str | None = None, **kwargs: Any) -> DirectusClient:
        return fake_directus.client(base_url or BASE_URL, **kwargs)

    return factory


@pytest.fixture
def collections_payload():
    """Build a GET /collections response body from collection names."""

    def build(*names: str) -> dict[str, Any]:
        return {"data": [{"collection": n} for n in names]}

    return build


@pytest.fixture
def second_directus():
    """A second, independent fake CMS (copy destination)."""
    return FakeDirectus()
