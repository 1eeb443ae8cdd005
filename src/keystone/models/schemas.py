"""Pydantic schemas for Directus admin API request bodies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class _Payload(BaseModel):
    """Base for request bodies.

    Only explicitly supplied attributes are sent, so an explicit ``None``
    (e.g. ``schema=None`` on a relation) goes over the wire as ``null``
    while an omitted one is left out entirely.
    """

    model_config = {"populate_by_name": True}

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


# ── Schema ────────────────────────────────────────────────────────────────────


class CollectionSpec(_Payload):
    collection: str
    meta: dict[str, Any] = Field(default_factory=dict)
    schema_: dict[str, Any] | None = Field(default_factory=dict, alias="schema")

    def payload(self) -> dict[str, Any]:
        # A schema object (even empty) is what makes Directus create the table.
        return self.model_dump(by_alias=True)


class FieldSpec(_Payload):
    field: str
    type: str
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    meta: dict[str, Any] | None = None


class RelationSpec(_Payload):
    collection: str
    field: str
    related_collection: str | None = None
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    meta: dict[str, Any] | None = None

    @property
    def label(self) -> str:
        return f"{self.collection}.{self.field} -> {self.related_collection}"


# ── Access control ────────────────────────────────────────────────────────────


class RoleSpec(_Payload):
    name: str
    icon: str | None = None
    description: str | None = None


class PermissionSpec(_Payload):
    role: str | None = None
    collection: str
    action: str
    fields: list[str] = Field(default_factory=lambda: ["*"])
    permissions: dict[str, Any] = Field(default_factory=dict)
    validation: dict[str, Any] = Field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        # role is always sent: null addresses the built-in public policy.
        return self.model_dump(by_alias=True)


# ── Insights ──────────────────────────────────────────────────────────────────


class DashboardSpec(_Payload):
    name: str
    icon: str = "dashboard"
    note: str | None = None
    color: str | None = None


class PanelSpec(_Payload):
    name: str
    type: str
    icon: str | None = None
    color: str | None = None
    position_x: int
    position_y: int
    width: int
    height: int
    options: dict[str, Any] = Field(default_factory=dict)
    dashboard: str | None = None

    def for_dashboard(self, dashboard_id: str) -> dict[str, Any]:
        return {**self.model_dump(by_alias=True, exclude_none=True), "dashboard": dashboard_id}
