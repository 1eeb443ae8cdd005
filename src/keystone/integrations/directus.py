"""Directus REST API client.

A thin async wrapper over ``httpx`` that keeps one connection and one bearer
token for the duration of an admin run.  HTTP error statuses are *not*
raised: every call returns an :class:`ApiResponse` and the caller decides
whether a failure is fatal.

Usage::

    async with DirectusClient("http://localhost:8055") as client:
        await client.login("admin@example.com", "secret")
        names = await client.list_collections()
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from keystone.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = "directus_"


class DirectusError(Exception):
    """Base class for Directus tooling errors."""


class AuthenticationError(DirectusError):
    """Login was rejected or no credentials were configured."""


class DirectusRequestError(DirectusError):
    """A request the current operation depends on did not succeed."""

    def __init__(self, message: str, response: ApiResponse | None = None):
        super().__init__(message)
        self.response = response


@dataclass
class ApiResponse:
    """Status code plus decoded body (JSON, or raw text if not JSON)."""

    status: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def payload(self) -> Any:
        """The ``data`` envelope Directus wraps results in, if present."""
        if isinstance(self.data, dict) and "data" in self.data:
            return self.data["data"]
        return self.data

    @property
    def items(self) -> list[Any]:
        payload = self.payload
        return payload if isinstance(payload, list) else []

    @property
    def error_message(self) -> str | None:
        if isinstance(self.data, dict):
            errors = self.data.get("errors") or []
            if errors and isinstance(errors[0], dict):
                return errors[0].get("message")
        return None

    @property
    def error_code(self) -> str | None:
        if isinstance(self.data, dict):
            errors = self.data.get("errors") or []
            if errors and isinstance(errors[0], dict):
                return (errors[0].get("extensions") or {}).get("code")
        return None

    def describe(self) -> str:
        """Short human-readable outcome used in log lines."""
        if self.ok:
            return "OK"
        return self.error_message or f"HTTP {self.status}"


class DirectusClient:
    """Client for the Directus admin REST endpoints.

    Args:
        base_url: Root URL of the CMS (defaults to ``settings.api_base_url``).
        token: Pre-issued bearer token; normally obtained via :meth:`login`.
        timeout: Per-request timeout in seconds.
        transport: Optional ``httpx`` transport (used by tests).
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DirectusClient:
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ── Core request ──────────────────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Issue one request and return its status and decoded body."""
        if self._http is None:
            raise RuntimeError("DirectusClient must be used as an async context manager")

        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self._http.request(
            method,
            path,
            json=json_body,
            params=params,
            headers=headers,
        )
        try:
            data = response.json() if response.content else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = response.text
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return ApiResponse(status=response.status_code, data=data)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> ApiResponse:
        return await self.request("POST", path, body)

    async def patch(self, path: str, body: Any = None) -> ApiResponse:
        return await self.request("PATCH", path, body)

    async def delete(self, path: str) -> ApiResponse:
        return await self.request("DELETE", path)

    # ── Auth ──────────────────────────────────────────────────────────────

    async def login(self, email: str | None = None, password: str | None = None) -> str:
        """Authenticate and keep the access token for subsequent calls.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
        """
        email = email or settings.admin_email
        password = password or settings.admin_password
        if not email or not password:
            raise AuthenticationError(
                "Admin credentials are not configured (set ADMIN_EMAIL and ADMIN_PASSWORD)"
            )

        r = await self.post("/auth/login", {"email": email, "password": password})
        token = r.payload.get("access_token") if isinstance(r.payload, dict) else None
        if r.status != 200 or not token:
            raise AuthenticationError(f"Auth failed: {r.error_message or r.data}")

        self.token = token
        logger.info("Authenticated against %s", self.base_url)
        return token

    # ── Collections ───────────────────────────────────────────────────────

    async def list_collections(self, include_system: bool = False) -> list[str]:
        r = await self.get("/collections")
        names = [c["collection"] for c in r.items if isinstance(c, dict)]
        if include_system:
            return names
        return [n for n in names if not n.startswith(SYSTEM_PREFIX)]

    async def get_collection(self, collection: str) -> ApiResponse:
        return await self.get(f"/collections/{collection}")

    async def create_collection(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/collections", body)

    async def update_collection(self, collection: str, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/collections/{collection}", body)

    async def delete_collection(self, collection: str) -> ApiResponse:
        return await self.delete(f"/collections/{collection}")

    # ── Fields ────────────────────────────────────────────────────────────

    async def list_fields(self, collection: str) -> list[dict[str, Any]]:
        r = await self.get(f"/fields/{collection}")
        return r.items

    async def field_names(self, collection: str) -> list[str]:
        return [f["field"] for f in await self.list_fields(collection)]

    async def get_field(self, collection: str, field: str) -> dict[str, Any] | None:
        r = await self.get(f"/fields/{collection}/{field}")
        if r.ok and isinstance(r.payload, dict):
            return r.payload
        return None

    async def create_field(self, collection: str, body: dict[str, Any]) -> ApiResponse:
        return await self.post(f"/fields/{collection}", body)

    async def update_field(self, collection: str, field: str, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/fields/{collection}/{field}", body)

    async def delete_field(self, collection: str, field: str) -> ApiResponse:
        return await self.delete(f"/fields/{collection}/{field}")

    # ── Relations ─────────────────────────────────────────────────────────

    async def list_relations(self, include_system: bool = False) -> list[dict[str, Any]]:
        r = await self.get("/relations")
        relations = [rel for rel in r.items if isinstance(rel, dict)]
        if include_system:
            return relations
        return [rel for rel in relations if not rel["collection"].startswith(SYSTEM_PREFIX)]

    async def create_relation(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/relations", body)

    async def update_relation(self, collection: str, field: str, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/relations/{collection}/{field}", body)

    async def delete_relation(self, collection: str, field: str) -> ApiResponse:
        return await self.delete(f"/relations/{collection}/{field}")

    # ── Items ─────────────────────────────────────────────────────────────

    async def read_items(
        self,
        collection: str,
        *,
        limit: int | None = None,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Read items; ``limit=-1`` asks Directus for every row."""
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if fields:
            params["fields"] = ",".join(fields)
        r = await self.get(f"/items/{collection}", params=params or None)
        return r.items

    async def create_item(self, collection: str, item: dict[str, Any]) -> ApiResponse:
        return await self.post(f"/items/{collection}", item)

    async def create_items(self, collection: str, items: list[dict[str, Any]]) -> ApiResponse:
        return await self.post(f"/items/{collection}", items)

    async def update_item(self, collection: str, item_id: Any, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/items/{collection}/{item_id}", body)

    async def count_items(self, collection: str) -> int | None:
        r = await self.get(f"/items/{collection}", params={"aggregate[count]": "*"})
        rows = r.items
        if not rows:
            return None
        count = rows[0].get("count")
        try:
            return int(count)
        except (TypeError, ValueError):
            return None

    # ── Roles & permissions ───────────────────────────────────────────────

    async def list_roles(self) -> list[dict[str, Any]]:
        r = await self.get("/roles")
        return r.items

    async def create_role(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/roles", body)

    async def list_permissions(self, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        r = await self.get("/permissions", params=filters)
        return r.items

    async def create_permission(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/permissions", body)

    async def update_permission(self, permission_id: Any, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/permissions/{permission_id}", body)

    # ── Insights ──────────────────────────────────────────────────────────

    async def create_dashboard(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/dashboards", body)

    async def create_panel(self, body: dict[str, Any]) -> ApiResponse:
        return await self.post("/panels", body)

    # ── Schema & users ────────────────────────────────────────────────────

    async def schema_snapshot(self) -> ApiResponse:
        return await self.get("/schema/snapshot")

    async def read_me(self) -> dict[str, Any]:
        r = await self.get("/users/me")
        if not r.ok or not isinstance(r.payload, dict):
            raise DirectusRequestError(f"Could not read current user: {r.describe()}", r)
        return r.payload

    async def update_user(self, user_id: Any, body: dict[str, Any]) -> ApiResponse:
        return await self.patch(f"/users/{user_id}", body)
