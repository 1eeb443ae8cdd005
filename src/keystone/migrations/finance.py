"""Tasks, services, invoicing and payroll."""

from __future__ import annotations

import logging

from keystone.migrations.base import Migration, register
from keystone.models import fields as f
from keystone.models.schemas import CollectionSpec, FieldSpec, RelationSpec

logger = logging.getLogger(__name__)

INVOICE_STATUSES = ("Draft", "Sent", "Paid")

# Invoice fields with explicit (empty) schema so Directus creates real columns.
INVOICE_FIELDS = [
    FieldSpec(field="invoice_id", type="string", schema={},
              meta={"interface": "input", "required": True, "width": "half"}),
    FieldSpec(field="status", type="string", schema={},
              meta={"interface": "select-dropdown", "width": "half",
                    "options": {"choices": f.choices(*INVOICE_STATUSES)}}),
    FieldSpec(field="date_from", type="date", schema={}, meta={"interface": "datetime", "width": "half"}),
    FieldSpec(field="date_to", type="date", schema={}, meta={"interface": "datetime", "width": "half"}),
    FieldSpec(field="total_amount", type="decimal", schema={},
              meta={"interface": "numeric", "options": {"precision": 2}, "width": "half"}),
    FieldSpec(field="customer_id", type="integer", schema={},
              meta={"interface": "select-dropdown-m2o", "width": "half"}),
    FieldSpec(field="project_id", type="integer", schema={},
              meta={"interface": "select-dropdown-m2o", "width": "half"}),
]

INVOICE_RELATIONS = [
    RelationSpec(collection="invoices", field="customer_id", related_collection="customers",
                 schema={"on_delete": "SET NULL"}),
    RelationSpec(collection="invoices", field="project_id", related_collection="projects",
                 schema={"on_delete": "SET NULL"}),
]

SAMPLE_INVOICE = {
    "status": "Draft",
    "date_from": "2026-02-01",
    "date_to": "2026-02-28",
    "total_amount": 1200.50,
}


def invoice_number(index: int) -> str:
    """Invoice ids issued by the re-seed: INV-1001, INV-1002, ..."""
    return f"INV-100{index + 1}"


class _InvoiceMixin(Migration):
    async def build_invoice_services(self) -> None:
        """Junction + relations + alias for the invoices <-> services M2M."""
        await self.create_collection(CollectionSpec(collection="invoices_services", meta={"hidden": True}))
        for spec in (f.primary_key(), f.integer_fk("invoices_id"), f.integer_fk("services_id")):
            await self.create_field("invoices_services", spec)
        await self.create_relation(
            RelationSpec(collection="invoices_services", field="invoices_id", related_collection="invoices",
                         meta={"one_field": "services"}, schema={"on_delete": "CASCADE"})
        )
        await self.create_relation(
            RelationSpec(collection="invoices_services", field="services_id", related_collection="services",
                         schema={"on_delete": "CASCADE"})
        )
        await self.create_field("invoices", f.m2m_alias("services"))

    async def add_invoice_fields(self) -> None:
        for spec in INVOICE_FIELDS:
            await self.create_field("invoices", spec)

    async def link_invoices(self) -> None:
        for spec in INVOICE_RELATIONS:
            await self.create_relation(spec)


@register
class SchemaUpdate(Migration):
    name = "schema-update"
    description = "Add services, tasks, invoices and payrolls; customer rates and time_logs.task_id"
    order = 150

    async def run(self) -> None:
        logger.info("Updating customers")
        await self.create_field(
            "customers",
            FieldSpec(
                field="hourly_rate",
                type="decimal",
                meta={
                    "interface": "numeric",
                    "options": {"iconLeft": "attach_money", "placeholder": "Rate charged to client"},
                    "width": "half",
                },
            ),
        )

        logger.info("Creating services")
        await self.create_collection(
            CollectionSpec(collection="services", meta={"icon": "shopping_bag", "note": "Fixed price services"})
        )
        for spec in (
            FieldSpec(field="name", type="string", meta={"interface": "input", "required": True}),
            FieldSpec(field="price", type="decimal",
                      meta={"interface": "numeric", "options": {"iconLeft": "attach_money"}}),
            FieldSpec(field="discount_type", type="string",
                      meta={"interface": "select-dropdown",
                            "options": {"choices": f.choices("None", "Fixed", "Percentage")}}),
            FieldSpec(field="discount_value", type="decimal", meta={"interface": "numeric"}),
        ):
            await self.create_field("services", spec)

        logger.info("Creating tasks")
        await self.create_collection(
            CollectionSpec(collection="tasks", meta={"icon": "assign", "note": "Project tasks"})
        )
        for spec in (
            FieldSpec(field="name", type="string", meta={"interface": "input", "required": True, "width": "full"}),
            FieldSpec(field="status", type="string",
                      meta={"interface": "select-dropdown", "width": "half",
                            "options": {"choices": f.choices("To Do", "In Progress", "Done", "Blocked")}}),
            FieldSpec(field="priority", type="string",
                      meta={"interface": "select-dropdown", "width": "half",
                            "options": {"choices": f.choices("Low", "Medium", "High", "Urgent")}}),
            FieldSpec(field="deadline", type="date", meta={"interface": "datetime", "width": "half"}),
            FieldSpec(field="estimated_minutes", type="integer", meta={"interface": "numeric", "width": "half"}),
        ):
            await self.create_field("tasks", spec)
        await self._fk("tasks", "project_id", "projects")
        await self._fk("tasks", "employee_id", "employees")

        logger.info("Creating invoices")
        await self.create_collection(
            CollectionSpec(collection="invoices", meta={"icon": "receipt_long", "note": "Client Invoices"})
        )
        for spec in (
            FieldSpec(field="invoice_id", type="string",
                      meta={"interface": "input", "required": True, "width": "half"}),
            FieldSpec(field="status", type="string",
                      meta={"interface": "select-dropdown", "width": "half",
                            "options": {"choices": f.choices(*INVOICE_STATUSES)}}),
            FieldSpec(field="date_from", type="date", meta={"width": "half"}),
            FieldSpec(field="date_to", type="date", meta={"width": "half"}),
            FieldSpec(field="total_amount", type="decimal",
                      meta={"interface": "numeric", "readonly": True, "width": "half"}),
        ):
            await self.create_field("invoices", spec)
        await self._fk("invoices", "customer_id", "customers")
        await self._fk("invoices", "project_id", "projects")

        await self.create_collection(CollectionSpec(collection="invoices_services", meta={"hidden": True}))
        for spec in (
            FieldSpec(field="id", type="integer", schema={"is_primary_key": True}),
            FieldSpec(field="invoices_id", type="integer"),
            FieldSpec(field="services_id", type="integer"),
        ):
            await self.create_field("invoices_services", spec)
        await self.create_relation(
            RelationSpec(collection="invoices_services", field="invoices_id", related_collection="invoices")
        )
        await self.create_relation(
            RelationSpec(collection="invoices_services", field="services_id", related_collection="services")
        )
        await self.create_field("invoices", f.m2m_alias("services"))

        logger.info("Creating payrolls")
        await self.create_collection(
            CollectionSpec(collection="payrolls", meta={"icon": "payments", "note": "Employee Payroll"})
        )
        for spec in (
            FieldSpec(field="month", type="integer", meta={"width": "half"}),
            FieldSpec(field="year", type="integer", meta={"width": "half"}),
            FieldSpec(field="total_minutes", type="integer", meta={"width": "half", "readonly": True}),
            FieldSpec(field="hourly_rate", type="decimal", meta={"width": "half", "readonly": True}),
            FieldSpec(field="total_amount", type="decimal", meta={"width": "half", "readonly": True}),
            FieldSpec(field="status", type="string",
                      meta={"interface": "select-dropdown", "options": {"choices": f.choices("Draft", "Paid")}}),
        ):
            await self.create_field("payrolls", spec)
        await self._fk("payrolls", "employee_id", "employees")

        logger.info("Updating time_logs")
        await self._fk("time_logs", "task_id", "tasks")

    async def _fk(self, collection: str, field_name: str, related: str) -> None:
        await self.create_field(collection, FieldSpec(field=field_name, type="integer"))
        await self.create_relation(
            RelationSpec(collection=collection, field=field_name, related_collection=related)
        )


@register
class FixTasksIcon(Migration):
    name = "fix-tasks-icon"
    description = "Set the tasks collection icon, display template and translation"
    order = 180

    async def run(self) -> None:
        await self.update_collection(
            "tasks",
            {
                "meta": {
                    "icon": "assignment",
                    "display_template": "{{name}}",
                    "translations": [
                        {"language": "en-US", "translation": "Tasks", "singular": "Task", "plural": "Tasks"}
                    ],
                }
            },
        )


@register
class RepairInvoices(_InvoiceMixin):
    name = "repair-invoices"
    description = "Drop and rebuild invoices and invoices_services, then re-seed sample invoices"
    order = 190

    async def run(self) -> None:
        logger.info("Cleaning up existing invoices metadata")
        await self.delete_collection("invoices")
        await self.delete_collection("invoices_services")

        logger.info("Creating invoices collection")
        await self.create_collection(
            CollectionSpec(collection="invoices", meta={"icon": "receipt_long", "display_template": "{{invoice_id}}"})
        )
        await self.add_invoice_fields()

        logger.info("Setting up invoices <-> services")
        await self.build_invoice_services()
        await self.link_invoices()

        logger.info("Re-seeding invoices")
        projects = await self.client.read_items("projects", limit=3)
        services = await self.client.read_items("services", limit=1)
        for index, project in enumerate(projects):
            number = invoice_number(index)
            invoice = await self.create_item(
                "invoices",
                {
                    **SAMPLE_INVOICE,
                    "invoice_id": number,
                    "customer_id": project.get("customer_id"),
                    "project_id": project["id"],
                },
                number,
            )
            if invoice and invoice.get("id") and services:
                await self.create_item(
                    "invoices_services",
                    {"invoices_id": invoice["id"], "services_id": services[0]["id"]},
                    f"{number} -> service {services[0]['id']}",
                )


@register
class RepairInvoicesSurgical(_InvoiceMixin):
    name = "repair-invoices-surgical"
    description = "Rebuild invoice fields and relations in place without dropping the table"
    order = 200

    async def run(self) -> None:
        logger.info("Deleting existing fields and relations")
        for field_name in (
            "services", "total_amount", "date_to", "date_from",
            "status", "invoice_id", "customer_id", "project_id",
        ):
            await self.delete_field("invoices", field_name)

        for rel in await self.client.list_relations():
            if (
                rel["collection"] in ("invoices", "invoices_services")
                or rel.get("related_collection") == "invoices"
            ):
                await self.delete_relation(rel["collection"], rel["field"])

        logger.info("Configuring primary key")
        await self.update_field("invoices", "id", {"schema": {"is_primary_key": True, "has_auto_increment": True}})

        logger.info("Re-adding fields")
        await self.add_invoice_fields()

        logger.info("Re-establishing invoices <-> services")
        await self.build_invoice_services()
        await self.link_invoices()
