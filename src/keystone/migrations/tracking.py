"""Time logs and support tickets.

Both migrations rebuild their collection from scratch: an existing
collection is dropped before it is recreated.
"""

from __future__ import annotations

import logging

from keystone.migrations.base import Migration, register
from keystone.models import fields as f
from keystone.models.schemas import CollectionSpec, RelationSpec

logger = logging.getLogger(__name__)

TIME_LOGS = CollectionSpec(
    collection="time_logs",
    meta={
        "icon": "schedule",
        "note": "Developer time tracking per project",
        "display_template": "{{developer_id.developer_name}} - {{project_id.project_name}} ({{minutes}}m)",
    },
)

TIME_LOG_FIELDS = [
    *f.timestamps(2),
    f.text("minutes", type="integer", required=True, width="half", sort=6, note="Time spent in minutes"),
    f.text("log_date", type="date", interface="datetime", width="half", sort=7),
    f.text("notes", type="text", interface="input-multiline", sort=8),
]

SUPPORT_TICKETS = CollectionSpec(
    collection="support_tickets",
    meta={
        "icon": "confirmation_number",
        "note": "Customer support tickets linked to projects and developers",
        "display_template": "{{title}} ({{status}})",
    },
)

SUPPORT_TICKET_FIELDS = [
    f.select(
        "status",
        ("Open", "In Progress", "Resolved", "Closed"),
        default="Open",
        nullable=False,
        required=True,
        sort=2,
    ),
    f.select(
        "priority",
        ("Low", "Medium", "High", "Urgent"),
        default="Medium",
        nullable=False,
        required=True,
        sort=3,
    ),
    *f.timestamps(4),
    f.text("title", required=True, sort=6),
    f.text("description", type="text", interface="input-rich-text-md", sort=7),
]

BILLING_FORMULA = "Billable Amount = (SUM(time_logs.minutes) / 60) x developers.hourly_rate"


class _RebuiltCollection(Migration):
    """Drop-and-recreate helper shared by the tracking collections."""

    async def rebuild(self, spec: CollectionSpec) -> bool:
        existing = await self.client.list_collections()
        logger.info("Existing collections: %s", ", ".join(existing))
        if spec.collection in existing:
            logger.warning("%s already exists, deleting first", spec.collection)
            await self.delete_collection(spec.collection)

        if not await self.create_collection(spec):
            self.abort(f"could not create {spec.collection}")
            return False
        return True

    async def link(
        self,
        collection: str,
        field_name: str,
        related: str,
        *,
        template: str,
        sort: int,
        one_field: str | None,
    ) -> None:
        await self.create_field(collection, f.m2o(field_name, template=template, sort=sort))
        await self.create_relation(
            RelationSpec(
                collection=collection,
                field=field_name,
                related_collection=related,
                schema=None,
                meta={"one_field": one_field, "one_deselect_action": "nullify"},
            )
        )


@register
class AddTimeLogs(_RebuiltCollection):
    name = "add-time-logs"
    description = "Rebuild time_logs with project and developer relations"
    order = 50

    async def run(self) -> None:
        if not await self.rebuild(TIME_LOGS):
            return

        for spec in TIME_LOG_FIELDS:
            await self.create_field("time_logs", spec)

        await self.link(
            "time_logs", "project_id", "projects",
            template="{{project_name}}", sort=4, one_field="time_logs",
        )
        await self.create_field(
            "projects", f.o2m_alias("time_logs", template="{{minutes}}m - {{log_date}}", sort=14)
        )

        await self.link(
            "time_logs", "developer_id", "developers",
            template="{{developer_name}}", sort=5, one_field="time_logs",
        )
        await self.create_field(
            "developers", f.o2m_alias("time_logs", template="{{minutes}}m - {{log_date}}", sort=12)
        )

        await self.summary(["time_logs"])


@register
class AddSupportTickets(_RebuiltCollection):
    name = "add-support-tickets"
    description = "Rebuild support_tickets with customer, project and developer relations"
    order = 60

    async def run(self) -> None:
        if not await self.rebuild(SUPPORT_TICKETS):
            return

        for spec in SUPPORT_TICKET_FIELDS:
            await self.create_field("support_tickets", spec)

        await self.link(
            "support_tickets", "customer_id", "customers",
            template="{{customer_name}}", sort=8, one_field=None,
        )
        await self.link(
            "support_tickets", "project_id", "projects",
            template="{{project_name}}", sort=9, one_field="support_tickets",
        )
        await self.create_field(
            "projects", f.o2m_alias("support_tickets", template="{{title}} ({{status}})", sort=15)
        )
        await self.link(
            "support_tickets", "assigned_developer_id", "developers",
            template="{{developer_name}}", sort=10, one_field=None,
        )

        await self.summary(["support_tickets"])
        logger.info("Billing needs no schema changes: %s", BILLING_FORMULA)
