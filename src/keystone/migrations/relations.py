"""Relation repairs and the ticket <-> task many-to-many."""

from __future__ import annotations

import logging

from keystone.migrations.base import Migration, register
from keystone.models import fields as f
from keystone.models.schemas import CollectionSpec, FieldSpec, RelationSpec

logger = logging.getLogger(__name__)

# Alias fields left behind when their relation metadata failed to save.
ORPHAN_ALIASES = [
    ("projects", "developers"),
    ("projects", "time_logs"),
    ("projects", "support_tickets"),
    ("developers", "time_logs"),
]

# FK columns first created as uuid; the primary keys are auto-increment integers.
FOREIGN_KEYS = [
    ("projects", "customer_id"),
    ("time_logs", "project_id"),
    ("time_logs", "developer_id"),
    ("support_tickets", "customer_id"),
    ("support_tickets", "project_id"),
    ("support_tickets", "assigned_developer_id"),
    ("projects_developers", "projects_id"),
    ("projects_developers", "developers_id"),
]


def _nullify(one_field: str | None = None) -> dict:
    return {"one_field": one_field, "one_deselect_action": "nullify"}


# schema=None: metadata only, no database FK constraint.
RELATIONS = [
    RelationSpec(collection="projects", field="customer_id", related_collection="customers",
                 schema=None, meta=_nullify()),
    RelationSpec(collection="time_logs", field="project_id", related_collection="projects",
                 schema=None, meta=_nullify("time_logs")),
    RelationSpec(collection="time_logs", field="developer_id", related_collection="developers",
                 schema=None, meta=_nullify("time_logs")),
    RelationSpec(collection="support_tickets", field="customer_id", related_collection="customers",
                 schema=None, meta=_nullify()),
    RelationSpec(collection="support_tickets", field="project_id", related_collection="projects",
                 schema=None, meta=_nullify("support_tickets")),
    RelationSpec(collection="support_tickets", field="assigned_developer_id",
                 related_collection="developers", schema=None, meta=_nullify()),
    RelationSpec(collection="projects_developers", field="projects_id", related_collection="projects",
                 schema=None, meta={"one_field": "developers", "junction_field": "developers_id"}),
    RelationSpec(collection="projects_developers", field="developers_id", related_collection="developers",
                 schema=None, meta={"one_field": None, "junction_field": "projects_id"}),
]

GRAPHQL_RELATIONS = [
    RelationSpec(collection="time_logs", field="developer_id", related_collection="employees",
                 schema=None, meta={"one_field": "time_logs", "width": "half"}),
    RelationSpec(collection="support_tickets", field="assigned_developer_id",
                 related_collection="employees", schema=None, meta={"one_field": None, "width": "half"}),
]


@register
class FixRelations(Migration):
    name = "fix-relations"
    description = "Drop orphaned aliases, retype uuid FKs to integer and recreate all relations"
    order = 70

    async def run(self) -> None:
        logger.info("Cleaning orphaned alias fields")
        for collection, field_name in ORPHAN_ALIASES:
            await self.delete_field(collection, field_name)

        logger.info("Checking PK types")
        for collection in ("customers", "developers", "projects"):
            pk = await self.client.get_field(collection, "id")
            logger.info("  %s.id type: %s", collection, pk.get("type") if pk else None)

        logger.info("Fixing FK field types (uuid -> integer)")
        for collection, field_name in FOREIGN_KEYS:
            current = await self.client.get_field(collection, field_name)
            current_type = current.get("type") if current else None
            logger.info("  %s.%s: %s", collection, field_name, current_type)
            if current_type not in ("string", "uuid"):
                continue
            await self.delete_field(collection, field_name)
            await self.create_field(
                collection,
                FieldSpec(
                    field=field_name,
                    type="integer",
                    schema={"is_nullable": True},
                    meta={"interface": "select-dropdown-m2o", "display": "related-values", "width": "half"},
                ),
            )

        logger.info("Creating relations")
        for spec in RELATIONS:
            await self.create_relation(spec)

        await self.summary([], all_relations=True)


@register
class FixGraphqlRelations(Migration):
    name = "fix-graphql-relations"
    description = "Bind legacy developer FK columns to employees so GraphQL resolves them"
    order = 140

    async def run(self) -> None:
        for spec in GRAPHQL_RELATIONS:
            await self.create_relation(spec)


TICKET_TASKS = CollectionSpec(collection="support_tickets_tasks", meta={"hidden": True})


@register
class TicketTaskRelation(Migration):
    name = "ticket-task-relation"
    description = "Many-to-many between support tickets and tasks"
    order = 170

    async def run(self) -> None:
        await self.create_collection(TICKET_TASKS)

        for spec in (f.primary_key(), f.integer_fk("support_tickets_id"), f.integer_fk("tasks_id")):
            await self.create_field("support_tickets_tasks", spec)

        await self.create_relation(
            RelationSpec(
                collection="support_tickets_tasks",
                field="support_tickets_id",
                related_collection="support_tickets",
                meta={"one_field": "tasks", "sort_field": None},
                schema={"on_delete": "CASCADE"},
            )
        )
        await self.create_relation(
            RelationSpec(
                collection="support_tickets_tasks",
                field="tasks_id",
                related_collection="tasks",
                meta={"one_field": "support_tickets", "sort_field": None},
                schema={"on_delete": "CASCADE"},
            )
        )

        await self.create_field("support_tickets", f.m2m_alias("tasks", template="{{tasks_id.name}}"))
        await self.create_field(
            "tasks", f.m2m_alias("support_tickets", template="{{support_tickets_id.title}}")
        )
