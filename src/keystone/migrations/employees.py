"""Developers -> employees refactor and the job roles it introduced.

These migrations were applied in sequence while moving the schema from a
``developers`` collection to ``employees`` with a ``job_roles`` lookup.
Several overlap on purpose: each one repairs what the previous attempt
left half-done on a live instance.
"""

from __future__ import annotations

import logging
from typing import Any

from keystone.migrations.access import ROLES, create_roles
from keystone.migrations.base import Migration, register
from keystone.models import fields as f
from keystone.models.schemas import CollectionSpec, FieldSpec, RelationSpec

logger = logging.getLogger(__name__)

EMPLOYEE_META = {
    "icon": "badge",
    "display_template": "{{employee_name}} ({{email}})",
    "note": "Employee profiles",
}

JOB_ROLE_NAMES = ["Developer", "Designer", "Project Manager", "Sales", "Marketing"]

# Columns Directus maintains itself; never copied between collections.
SYSTEM_FIELDS = {"id", "date_created", "date_updated", "user_created", "user_updated"}

EMPLOYEE_FIELD_CONFIGS = [
    FieldSpec(field="employee_name", type="string",
              meta={"interface": "input", "label": "Employee Name", "width": "half"}),
    FieldSpec(field="email", type="string",
              meta={"interface": "input", "label": "Email", "width": "half", "options": {"iconLeft": "email"}}),
    FieldSpec(field="phone", type="string",
              meta={"interface": "input", "label": "Phone", "width": "half", "options": {"iconLeft": "phone"}}),
    FieldSpec(field="status", type="string",
              meta={"interface": "select-dropdown", "width": "half",
                    "options": {"choices": f.choices("Active", "Inactive")}}),
    FieldSpec(field="availability", type="string",
              meta={"interface": "select-dropdown", "width": "half",
                    "options": {"choices": f.choices("Available", "Busy")}}),
    FieldSpec(field="specialization", type="string",
              meta={"interface": "input", "label": "Specialization", "width": "full"}),
    FieldSpec(field="hourly_rate", type="decimal",
              meta={"interface": "numeric", "width": "half", "options": {"iconLeft": "attach_money"}}),
    FieldSpec(field="skills", type="json", meta={"interface": "tags", "width": "full"}),
    FieldSpec(field="date_created", type="timestamp",
              meta={"readonly": True, "hidden": True, "special": ["date-created"]}),
    FieldSpec(field="date_updated", type="timestamp",
              meta={"readonly": True, "hidden": True, "special": ["date-updated"]}),
]


def job_role_label(role: dict[str, Any]) -> str | None:
    """Name of a job role row, before or after the ``job_role_name`` rename."""
    return role.get("job_role_name") or role.get("name")


def pick_job_role(employee_name: str | None, roles: list[dict[str, Any]]) -> Any:
    """Designer for anyone whose name mentions design, Developer otherwise."""
    by_name = {job_role_label(r): r.get("id") for r in roles}
    if employee_name and "design" in employee_name.lower():
        return by_name.get("Designer")
    return by_name.get("Developer")


@register
class RefactorSchema(Migration):
    name = "refactor-schema"
    description = "Rename developers to employees, add job roles and system roles"
    order = 90

    async def run(self) -> None:
        logger.info("[1/7] Renaming developers to employees")
        await self.update_collection(
            "developers",
            {"meta": {**EMPLOYEE_META, "note": "Employee profiles with roles and availability"}},
        )
        # Directus usually refuses to rename the underlying table.
        r = await self.client.update_collection("developers", {"collection": "employees"})
        renamed = self.record("rename collection developers -> employees", r, optional=True)
        collection = "employees" if renamed else "developers"

        logger.info("[2/7] Renaming fields")
        await self.rename_field(collection, "developer_name", "employee_name", optional=True)

        logger.info("[3/7] Creating job_roles")
        created = await self.create_collection(
            CollectionSpec(
                collection="job_roles",
                meta={"icon": "assignment_ind", "display_template": "{{name}}"},
            )
        )
        if created:
            await self.create_field(
                "job_roles",
                FieldSpec(field="name", type="string", meta={"interface": "input", "required": True}),
            )
            for role_name in JOB_ROLE_NAMES:
                await self.create_item("job_roles", {"name": role_name}, role_name)

        logger.info("[4/7] Connecting %s to job_roles", collection)
        field_created = await self.create_field(
            collection,
            FieldSpec(
                field="job_role",
                type="integer",
                meta={
                    "interface": "select-dropdown-m2o",
                    "display": "related-values",
                    "display_options": {"template": "{{name}}"},
                    "width": "half",
                },
            ),
        )
        if field_created:
            await self.create_relation(
                RelationSpec(
                    collection=collection,
                    field="job_role",
                    related_collection="job_roles",
                    meta={"one_field": None},
                )
            )

        logger.info("[5/7] Creating system roles")
        await create_roles(self, ROLES)

        logger.info("[6/7] Updating junction collection")
        r = await self.client.update_collection("projects_developers", {"collection": "projects_employees"})
        junction_renamed = self.record(
            "rename collection projects_developers -> projects_employees", r, optional=True
        )
        junction = "projects_employees" if junction_renamed else "projects_developers"
        await self.rename_field(junction, "developers_id", "employees_id")

        logger.info("[7/7] Final field scrubs")
        await self.rename_field("time_logs", "developer_id", "employee_id")
        await self.rename_field("support_tickets", "assigned_developer_id", "assigned_employee_id")
        await self.rename_field(
            "projects",
            "developers",
            "employees",
            meta={"options": {"template": "{{employees_id.employee_name}}"}},
        )


@register
class MigrateToEmployees(Migration):
    name = "migrate-to-employees"
    description = "Copy developers (schema, rows, junction) into employees and drop the old collections"
    order = 100

    async def run(self) -> None:
        logger.info("Fetching developers schema")
        r = await self.client.get_collection("developers")
        if not r.ok:
            self.abort("developers collection not found")
            return
        developer_fields = await self.client.list_fields("developers")

        logger.info("Creating employees collection")
        await self.create_collection(CollectionSpec(collection="employees", meta=EMPLOYEE_META))
        for field_def in developer_fields:
            # Relational aliases are rebuilt below; only real columns are copied.
            if field_def["field"] in SYSTEM_FIELDS or field_def.get("type") == "alias":
                continue
            await self.create_field(
                "employees",
                FieldSpec(
                    field=field_def["field"],
                    type=field_def["type"],
                    meta=field_def.get("meta"),
                    schema=field_def.get("schema"),
                ),
            )

        logger.info("Migrating data")
        items = await self.client.read_items("developers", limit=-1)
        for item in items:
            row = {k: v for k, v in item.items() if k not in ("date_created", "date_updated")}
            await self.create_item("employees", row, f"#{row.get('id')}")
        logger.info("Migrated %d employees", len(items))

        logger.info("Updating relations")
        await self.create_relation(
            RelationSpec(collection="employees", field="job_role", related_collection="job_roles",
                         meta={"one_field": None})
        )
        await self.repoint_relation("time_logs", "employee_id", "employees")
        await self.repoint_relation("support_tickets", "assigned_employee_id", "employees")

        logger.info("Migrating projects junction")
        await self.create_collection(CollectionSpec(collection="projects_employees", meta={"hidden": True}))
        for spec in (
            FieldSpec(field="id", type="integer", schema={"is_primary_key": True}),
            FieldSpec(field="projects_id", type="integer"),
            FieldSpec(field="employees_id", type="integer"),
            FieldSpec(field="role", type="string"),
        ):
            await self.create_field("projects_employees", spec)
        await self.create_relation(
            RelationSpec(collection="projects_employees", field="projects_id", related_collection="projects")
        )
        await self.create_relation(
            RelationSpec(collection="projects_employees", field="employees_id", related_collection="employees")
        )

        for link in await self.client.read_items("projects_developers", limit=-1):
            await self.create_item(
                "projects_employees",
                {
                    "projects_id": link.get("projects_id"),
                    "employees_id": link.get("developers_id"),
                    "role": link.get("role"),
                },
                f"project {link.get('projects_id')} / employee {link.get('developers_id')}",
            )

        await self.update_field(
            "projects", "employees", {"meta": {"options": {"template": "{{employees_id.employee_name}}"}}}
        )

        logger.info("Cleaning up old collections")
        await self.delete_collection("projects_developers")
        await self.delete_collection("developers")


@register
class RepairEmployees(Migration):
    name = "repair-employees"
    description = "Re-register developers field metadata on employees and delete developers"
    order = 110

    async def run(self) -> None:
        developer_fields = await self.client.list_fields("developers")

        logger.info("Registering fields in employees")
        for field_def in developer_fields:
            if field_def["field"] == "id":
                continue
            target = "employee_name" if field_def["field"] == "developer_name" else field_def["field"]
            meta = dict(field_def["meta"]) if field_def.get("meta") else field_def.get("meta")
            if target == "employee_name" and meta:
                meta["options"] = meta.get("options") or {}
                meta["label"] = "Employee Name"
            await self.upsert_field(
                "employees",
                FieldSpec(field=target, type=field_def["type"], meta=meta, schema=field_def.get("schema")),
            )

        logger.info("Updating employees collection settings")
        await self.update_collection("employees", {"meta": EMPLOYEE_META})

        logger.info("Deleting legacy developers collection")
        for rel in await self.client.list_relations(include_system=True):
            if "developers" in (rel.get("collection"), rel.get("related_collection")):
                await self.delete_relation(rel["collection"], rel["field"])
        await self.delete_collection("developers")


@register
class FinalEmployeesFix(Migration):
    name = "final-employees-fix"
    description = "Purge developer_name and normalise every employees field config"
    order = 120

    async def run(self) -> None:
        logger.info("Purging redundant developer_name field")
        await self.delete_field("employees", "developer_name")

        logger.info("Configuring employees fields")
        for spec in EMPLOYEE_FIELD_CONFIGS:
            await self.upsert_field("employees", spec)

        logger.info("Setting up job role relation")
        await self.create_relation(
            RelationSpec(collection="employees", field="job_role", related_collection="job_roles",
                         meta={"one_field": None, "width": "half"})
        )

        logger.info("Verifying foreign key relationships")
        await self.repoint_relation("time_logs", "employee_id", "employees")
        await self.repoint_relation("support_tickets", "assigned_employee_id", "employees")


@register
class FixJobRoles(Migration):
    name = "fix-job-roles"
    description = "Add employees.job_role and assign a job role to every employee"
    order = 130

    async def run(self) -> None:
        await self.create_field(
            "employees",
            FieldSpec(
                field="job_role",
                type="integer",
                meta={"interface": "select-dropdown-m2o", "template": "{{name}}", "width": "half"},
                schema={"default_value": None},
            ),
        )
        await self.create_relation(
            RelationSpec(
                collection="employees",
                field="job_role",
                related_collection="job_roles",
                meta={"one_field": None, "one_deselect_action": "nullify"},
                schema={"on_delete": "SET NULL"},
            )
        )

        logger.info("Assigning roles to employees")
        employees = await self.client.read_items("employees", limit=-1)
        roles = await self.client.read_items("job_roles")
        for employee in employees:
            role_id = pick_job_role(employee.get("employee_name"), roles)
            r = await self.client.update_item("employees", employee["id"], {"job_role": role_id})
            self.record(f"employee {employee['id']} -> job role {role_id}", r)


@register
class RenameJobRoleField(Migration):
    name = "rename-job-role-field"
    description = "Rename job_roles.name to job_role_name, copying values"
    order = 160

    async def run(self) -> None:
        await self.create_field(
            "job_roles",
            FieldSpec(field="job_role_name", type="string", meta={"interface": "input", "width": "full"}),
        )

        logger.info("Migrating data")
        for role in await self.client.read_items("job_roles"):
            r = await self.client.update_item("job_roles", role["id"], {"job_role_name": role.get("name")})
            self.record(f"job_roles #{role['id']}", r)

        await self.delete_field("job_roles", "name")
        await self.update_collection("job_roles", {"meta": {"display_template": "{{job_role_name}}"}})
