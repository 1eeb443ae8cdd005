"""Tests for the Migration base class and registry."""

from __future__ import annotations

import pytest

from keystone.integrations.directus import ApiResponse
from keystone.migrations import all_migrations, get_migration, register, run_migration
from keystone.migrations.base import Migration, MigrationReport
from keystone.models.schemas import CollectionSpec, FieldSpec, RelationSpec


def error_body(message: str) -> dict:
    return {"errors": [{"message": message}]}


class NoopMigration(Migration):
    """Concrete migration for exercising the base helpers."""

    name = "noop"
    description = "Does nothing"

    async def run(self) -> None:
        pass


class TestRecord:
    """Tests for how step outcomes are classified."""

    def test_success_is_applied(self):
        m = NoopMigration(client=None)
        assert m.record("step", ApiResponse(200, {"data": {}})) is True
        assert m.report.applied == ["step"]

    def test_failure_is_failed(self):
        m = NoopMigration(client=None)
        assert m.record("step", ApiResponse(400, error_body("Invalid payload"))) is False
        assert m.report.failed == ["step"]
        assert not m.report.ok

    def test_already_exists_is_skipped_when_allowed(self):
        m = NoopMigration(client=None)
        r = ApiResponse(400, error_body('Relation for field "customer_id" already exists'))
        assert m.record("rel", r, exists_ok=True) is False
        assert m.report.skipped == ["rel"]
        assert m.report.failed == []

    def test_already_exists_fails_without_exists_ok(self):
        m = NoopMigration(client=None)
        m.record("rel", ApiResponse(400, error_body("already exists")))
        assert m.report.failed == ["rel"]

    def test_optional_failure_is_skipped(self):
        m = NoopMigration(client=None)
        m.record("rename", ApiResponse(403, error_body("Forbidden")), optional=True)
        assert m.report.skipped == ["rename"]
        assert m.report.ok

    def test_abort_marks_report(self):
        m = NoopMigration(client=None)
        m.abort("collection missing")
        assert m.report.aborted
        assert not m.report.ok

    def test_report_as_dict(self):
        report = MigrationReport(name="x", applied=["a", "b"], skipped=["c"])
        assert report.as_dict() == {"name": "x", "applied": 2, "skipped": 1, "failed": 0, "aborted": False}


class TestSafeOperations:
    """Tests for the logging CMS helpers on Migration."""

    @pytest.mark.asyncio
    async def test_ensure_collection_skips_existing(self, fake_directus):
        async with fake_directus.client() as client:
            m = NoopMigration(client)
            created = await m.ensure_collection(CollectionSpec(collection="customers"), ["customers"])

        assert created is False
        assert fake_directus.requests == []
        assert m.report.skipped == ["collection customers"]

    @pytest.mark.asyncio
    async def test_create_collection_treats_exists_as_skip(self, fake_directus):
        fake_directus.fail("POST", "/collections", 'Collection "customers" already exists')

        async with fake_directus.client() as client:
            m = NoopMigration(client)
            await m.create_collection(CollectionSpec(collection="customers"))

        assert m.report.skipped == ["collection customers"]
        assert m.report.ok

    @pytest.mark.asyncio
    async def test_ensure_fields_only_creates_missing(self, fake_directus):
        fake_directus.on("GET", "/fields/customers", json={"data": [{"field": "id"}, {"field": "email"}]})

        async with fake_directus.client() as client:
            m = NoopMigration(client)
            await m.ensure_fields(
                "customers",
                [FieldSpec(field="email", type="string"), FieldSpec(field="phone", type="string")],
            )

        posts = fake_directus.calls("POST", "/fields")
        assert [p.body["field"] for p in posts] == ["phone"]
        assert m.report.skipped == ["customers.email"]

    @pytest.mark.asyncio
    async def test_upsert_field_falls_back_to_patch(self, fake_directus):
        fake_directus.fail("POST", "/fields/employees", 'Field "email" already exists')

        async with fake_directus.client() as client:
            m = NoopMigration(client)
            ok = await m.upsert_field(
                "employees", FieldSpec(field="email", type="string", meta={"width": "half"})
            )

        assert ok
        patch_call = fake_directus.calls("PATCH")[0]
        assert patch_call.path == "/fields/employees/email"
        assert patch_call.body == {"meta": {"width": "half"}}

    @pytest.mark.asyncio
    async def test_rename_field(self, fake_directus):
        async with fake_directus.client() as client:
            m = NoopMigration(client)
            await m.rename_field("time_logs", "developer_id", "employee_id")

        call = fake_directus.requests[0]
        assert (call.method, call.path) == ("PATCH", "/fields/time_logs/developer_id")
        assert call.body == {"field": "employee_id"}

    @pytest.mark.asyncio
    async def test_create_relation_sends_null_schema(self, fake_directus):
        async with fake_directus.client() as client:
            m = NoopMigration(client)
            await m.create_relation(
                RelationSpec(collection="projects", field="customer_id", related_collection="customers", schema=None)
            )

        assert fake_directus.requests[0].body["schema"] is None

    @pytest.mark.asyncio
    async def test_create_item_returns_payload(self, fake_directus):
        async with fake_directus.client() as client:
            m = NoopMigration(client)
            row = await m.create_item("customers", {"customer_name": "Acme"}, "Acme")

        assert row["customer_name"] == "Acme"
        assert "id" in row

    @pytest.mark.asyncio
    async def test_create_item_failure_returns_none(self, fake_directus):
        fake_directus.fail("POST", "/items/customers", "Value has to be unique")

        async with fake_directus.client() as client:
            m = NoopMigration(client)
            row = await m.create_item("customers", {"customer_name": "Acme"}, "Acme")

        assert row is None
        assert m.report.failed == ["customers: Acme"]


class TestRegistry:
    """Tests for migration registration and lookup."""

    def test_catalogue_is_complete_and_ordered(self):
        names = [m.name for m in all_migrations()]
        assert names == [
            "schema-setup",
            "permissions-setup",
            "add-roles",
            "sample-data",
            "add-time-logs",
            "add-support-tickets",
            "fix-relations",
            "seed-data",
            "refactor-schema",
            "migrate-to-employees",
            "repair-employees",
            "final-employees-fix",
            "fix-job-roles",
            "fix-graphql-relations",
            "schema-update",
            "rename-job-role-field",
            "ticket-task-relation",
            "fix-tasks-icon",
            "repair-invoices",
            "repair-invoices-surgical",
            "fix-permissions-live",
        ]

    def test_every_migration_is_described(self):
        for m in all_migrations():
            assert m.description
            assert m.kind in ("schema", "data")

    def test_seeding_migrations_are_data(self):
        kinds = {m.name: m.kind for m in all_migrations()}
        assert kinds["sample-data"] == "data"
        assert kinds["seed-data"] == "data"
        assert kinds["schema-setup"] == "schema"

    def test_get_unknown_migration(self):
        with pytest.raises(KeyError, match="schema-setup"):
            get_migration("does-not-exist")

    def test_register_rejects_duplicates(self):
        class Duplicate(Migration):
            name = "schema-setup"

        with pytest.raises(ValueError, match="Duplicate"):
            register(Duplicate)

    def test_migration_without_run_cannot_be_built(self):
        class Incomplete(Migration):
            name = "incomplete"

        with pytest.raises(TypeError):
            Incomplete(client=None)

    def test_register_rejects_unnamed(self):
        class Unnamed(Migration):
            pass

        with pytest.raises(ValueError):
            register(Unnamed)

    @pytest.mark.asyncio
    async def test_run_migration_returns_report(self, fake_directus):
        async with fake_directus.client() as client:
            report = await run_migration(client, "add-roles")

        assert isinstance(report, MigrationReport)
        assert report.name == "add-roles"
        assert len(report.applied) == 6
