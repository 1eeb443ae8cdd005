"""Roles and permissions."""

from __future__ import annotations

import logging

from keystone.migrations.base import Migration, register
from keystone.models.schemas import PermissionSpec, RoleSpec

logger = logging.getLogger(__name__)

ROLES = [
    RoleSpec(name="Customer", icon="person", description="Client access role"),
    RoleSpec(name="Designer", icon="palette", description="Design team role"),
    RoleSpec(name="Developer", icon="code", description="Development team role"),
    RoleSpec(name="Sales", icon="payments", description="Sales team role"),
    RoleSpec(name="Marketing", icon="campaign", description="Marketing team role"),
    RoleSpec(name="Site Admin", icon="settings", description="Site administration role (non-root)"),
]

# (collection, action) pairs the public website needs.
PUBLIC_ACCESS = [
    ("projects", "create"),
    ("customers", "read"),
    ("developers", "read"),
]

# Every business collection the public front end reads after the
# employees/finance refactors.
PUBLIC_READ_COLLECTIONS = [
    "invoices",
    "services",
    "tasks",
    "payrolls",
    "invoices_services",
    "support_tickets_tasks",
    "job_roles",
    "customers",
    "employees",
    "projects",
    "time_logs",
    "support_tickets",
]


async def find_role_id(migration: Migration, name: str) -> str | None:
    """Return the id of the role called *name* (case-insensitive), if any."""
    for role in await migration.client.list_roles():
        if str(role.get("name", "")).lower() == name.lower():
            return role["id"]
    return None


async def create_roles(migration: Migration, roles: list[RoleSpec]) -> None:
    existing = {r.get("name") for r in await migration.client.list_roles()}
    logger.info("Found %d existing roles", len(existing))
    for role in roles:
        if role.name in existing:
            migration.skip(f"role {role.name}")
            continue
        r = await migration.client.create_role(role.payload())
        migration.record(f"role {role.name}", r)


@register
class PermissionsSetup(Migration):
    name = "permissions-setup"
    description = "Grant the public policy create on projects and read on customers/developers"
    order = 20

    async def run(self) -> None:
        # Directus addresses the built-in public policy with role = null.
        for collection, action in PUBLIC_ACCESS:
            spec = PermissionSpec(role=None, collection=collection, action=action)
            step = f"public {action.upper()} {collection}"
            r = await self.client.create_permission(spec.payload())
            if not r.ok and r.error_code == "RECORD_NOT_UNIQUE":
                self.skip(step, "already exists")
                continue
            self.record(step, r, exists_ok=True)


@register
class AddRoles(Migration):
    name = "add-roles"
    description = "Create Customer, Designer, Developer, Sales, Marketing and Site Admin roles"
    order = 30

    async def run(self) -> None:
        await create_roles(self, ROLES)


@register
class FixPermissionsLive(Migration):
    name = "fix-permissions-live"
    description = "Give the public role read access to every business collection"
    order = 210

    async def run(self) -> None:
        role_id = await find_role_id(self, "public")
        if role_id:
            logger.info("Found Public role id: %s", role_id)
            role_filter = {"filter[role][_eq]": role_id}
        else:
            logger.warning('Literal "Public" role not found, using null role')
            role_filter = {"filter[role][_null]": "true"}

        for collection in PUBLIC_READ_COLLECTIONS:
            existing = await self.client.list_permissions(
                {
                    **role_filter,
                    "filter[collection][_eq]": collection,
                    "filter[action][_eq]": "read",
                }
            )
            body = {"role": role_id, "collection": collection, "action": "read", "fields": ["*"]}
            if existing:
                r = await self.client.update_permission(existing[0]["id"], body)
                self.record(f"update public READ {collection}", r)
            else:
                r = await self.client.create_permission(body)
                self.record(f"create public READ {collection}", r)
