"""Request-body models for the Directus admin API."""

from keystone.models.schemas import (
    CollectionSpec,
    DashboardSpec,
    FieldSpec,
    PanelSpec,
    PermissionSpec,
    RelationSpec,
    RoleSpec,
)

__all__ = [
    "CollectionSpec",
    "DashboardSpec",
    "FieldSpec",
    "PanelSpec",
    "PermissionSpec",
    "RelationSpec",
    "RoleSpec",
]
