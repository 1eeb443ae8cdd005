"""Initial business schema: customers, developers, projects and their junction."""

from __future__ import annotations

import logging

from keystone.migrations.access import PUBLIC_ACCESS, find_role_id
from keystone.migrations.base import Migration, register
from keystone.models import fields as f
from keystone.models.schemas import CollectionSpec, FieldSpec, PermissionSpec, RelationSpec

logger = logging.getLogger(__name__)

ACTIVE_CHOICES = ("Active", "Inactive")
PRIORITY_CHOICES = ("Low", "Medium", "High")

CUSTOMERS = CollectionSpec(
    collection="customers",
    meta={
        "icon": "people",
        "note": "Customer information and contact details",
        "display_template": "{{customer_name}} ({{email}})",
    },
)

CUSTOMER_FIELDS = [
    f.select("status", ACTIVE_CHOICES, default="Active", sort=2),
    *f.timestamps(3, width="half"),
    f.text("customer_name", required=True, width="half", sort=5),
    f.text("email", required=True, unique=True, width="half", sort=6),
    f.text("phone", width="half", sort=7),
    f.text("company", width="half", sort=8),
    f.text("address", type="text", interface="input-multiline", sort=9),
    f.text("notes", type="text", interface="input-rich-text-md", sort=10),
]

DEVELOPERS = CollectionSpec(
    collection="developers",
    meta={
        "icon": "code",
        "note": "Developer profiles with skills and availability",
        "display_template": "{{developer_name}} ({{email}})",
    },
)

DEVELOPER_FIELDS = [
    f.select("status", ACTIVE_CHOICES, default="Active", sort=2),
    *f.timestamps(3, width="half"),
    f.text("developer_name", required=True, width="half", sort=5),
    f.text("email", required=True, unique=True, width="half", sort=6),
    f.text("phone", width="half", sort=7),
    f.text("specialization", width="half", sort=8),
    f.text("hourly_rate", type="decimal", width="half", sort=9),
    f.select("availability", ("Available", "Busy", "Unavailable"), default="Available", sort=10),
    f.text("skills", type="json", interface="tags", sort=11),
]

PROJECTS = CollectionSpec(
    collection="projects",
    meta={
        "icon": "work",
        "note": "Project management with budgets and deadlines",
        "display_template": "{{project_name}}",
    },
)

PROJECT_FIELDS = [
    f.select("status", ("Draft", "In Progress", "Completed", "Cancelled"), default="Draft", sort=2),
    *f.timestamps(3, width="half"),
    f.text("project_name", required=True, sort=5),
    f.text("description", type="text", interface="input-rich-text-md", sort=6),
    f.text("budget", type="decimal", width="half", sort=8),
    f.text("deadline", type="date", interface="datetime", width="half", sort=9),
    f.text("start_date", type="date", interface="datetime", width="half", sort=10),
    f.text("end_date", type="date", interface="datetime", width="half", sort=11),
    f.select("priority", PRIORITY_CHOICES, default="Medium", sort=12),
]

PROJECTS_DEVELOPERS = CollectionSpec(
    collection="projects_developers",
    meta={"icon": "link", "hidden": True, "note": "Junction: projects <-> developers"},
)

JUNCTION_EXTRA_FIELDS = [
    f.text("role", sort=4, note="e.g., Lead, Contributor"),
    FieldSpec(
        field="assigned_date",
        type="timestamp",
        schema={},
        meta={"special": ["date-created"], "interface": "datetime", "readonly": True, "sort": 5},
    ),
]

CORE_COLLECTIONS = ["customers", "developers", "projects", "projects_developers"]


@register
class SchemaSetup(Migration):
    name = "schema-setup"
    description = "Create customers, developers, projects and the projects_developers junction"
    order = 10

    async def run(self) -> None:
        existing = await self.client.list_collections()
        logger.info("Existing collections: %s", ", ".join(existing) or "none")
        relations = await self.client.list_relations()
        logger.info(
            "Existing relations: %s",
            ", ".join(f"{r['collection']}.{r['field']}" for r in relations) or "none",
        )

        logger.info("[1/4] customers")
        await self.ensure_collection(CUSTOMERS, existing)
        await self.ensure_fields("customers", CUSTOMER_FIELDS)

        logger.info("[2/4] developers")
        await self.ensure_collection(DEVELOPERS, existing)
        await self.ensure_fields("developers", DEVELOPER_FIELDS)

        logger.info("[3/4] projects")
        await self.ensure_collection(PROJECTS, existing)
        project_fields = await self.client.field_names("projects")
        await self.ensure_fields("projects", PROJECT_FIELDS, project_fields)

        if "customer_id" in project_fields:
            self.skip("projects.customer_id")
        else:
            await self.create_field("projects", f.m2o("customer_id", template="{{customer_name}}", sort=7))
            await self.create_relation(
                RelationSpec(
                    collection="projects",
                    field="customer_id",
                    related_collection="customers",
                    schema=None,
                    meta={"one_field": None},
                )
            )

        logger.info("[4/4] projects_developers (junction)")
        await self.ensure_collection(PROJECTS_DEVELOPERS, existing)
        junction_fields = await self.client.field_names("projects_developers")
        await self._junction_leg(
            junction_fields,
            field="projects_id",
            related="projects",
            sort=2,
            meta={"one_field": "developers", "one_deselect_action": "nullify", "junction_field": "developers_id"},
        )
        await self._junction_leg(
            junction_fields,
            field="developers_id",
            related="developers",
            sort=3,
            meta={"one_field": None, "junction_field": "projects_id"},
        )

        if "developers" in project_fields:
            self.skip("projects.developers alias")
        else:
            await self.create_field(
                "projects",
                f.m2m_alias("developers", template="{{developers_id.developer_name}}", sort=13),
            )
        await self.ensure_fields("projects_developers", JUNCTION_EXTRA_FIELDS, junction_fields)

        logger.info("Setting up permissions")
        await self._public_permissions()

        await self.summary(CORE_COLLECTIONS)

    async def _junction_leg(
        self, existing: list[str], *, field: str, related: str, sort: int, meta: dict
    ) -> None:
        if field in existing:
            self.skip(f"projects_developers.{field}")
            return
        await self.create_field(
            "projects_developers",
            f.m2o(field, nullable=False, hidden=True, sort=sort),
        )
        await self.create_relation(
            RelationSpec(
                collection="projects_developers",
                field=field,
                related_collection=related,
                schema=None,
                meta=meta,
            )
        )

    async def _public_permissions(self) -> None:
        role_id = await find_role_id(self, "Public")
        if role_id is None:
            logger.warning("Public role not found, skipping permissions")
            return

        existing = await self.client.list_permissions({"filter[role][_eq]": role_id})
        for collection, action in PUBLIC_ACCESS:
            step = f"Public: {action.upper()} {collection}"
            if any(p.get("collection") == collection and p.get("action") == action for p in existing):
                self.skip(step)
                continue
            spec = PermissionSpec(role=role_id, collection=collection, action=action)
            r = await self.client.create_permission(spec.payload())
            self.record(step, r)
