"""Tests for cross-instance item copying."""

from __future__ import annotations

import pytest

from keystone.copy_data import COPY_ORDER, copy_collections


class TestCopyOrder:
    def test_referenced_collections_come_first(self):
        position = {name: i for i, name in enumerate(COPY_ORDER)}
        assert position["customers"] < position["projects"]
        assert position["employees"] < position["projects_employees"]
        assert position["invoices"] < position["invoices_services"]
        assert position["tasks"] < position["time_logs"]
        assert position["support_tickets"] < position["support_tickets_tasks"]


class TestCopyCollections:
    """Tests for copy_collections."""

    @pytest.mark.asyncio
    async def test_copies_in_batches_and_counts(self, fake_directus, second_directus):
        source = fake_directus
        dest = second_directus
        source.on("GET", "/items/customers", json={"data": [{"id": 1}, {"id": 2}]})
        source.on("GET", "/items/projects", json={"data": [{"id": 5, "customer_id": 1}]})

        async with source.client("http://source.test") as src, dest.client("http://dest.test") as dst:
            copied = await copy_collections(src, dst, ["customers", "employees", "projects"])

        assert copied == {"customers": 2, "employees": 0, "projects": 1}
        assert source.calls("GET", "/items/customers")[0].params == {"limit": "-1"}

        pushes = dest.calls("POST")
        assert [(p.path, p.body) for p in pushes] == [
            ("/items/customers", [{"id": 1}, {"id": 2}]),
            ("/items/projects", [{"id": 5, "customer_id": 1}]),
        ]

    @pytest.mark.asyncio
    async def test_failed_push_continues(self, fake_directus, second_directus):
        source = fake_directus
        dest = second_directus
        source.on("GET", "/items/customers", json={"data": [{"id": 1}]})
        source.on("GET", "/items/projects", json={"data": [{"id": 5}]})
        dest.fail("POST", "/items/customers", "Value has to be unique")

        async with source.client() as src, dest.client() as dst:
            copied = await copy_collections(src, dst, ["customers", "projects"])

        assert copied == {"customers": 0, "projects": 1}

    @pytest.mark.asyncio
    async def test_default_order(self, fake_directus, second_directus):
        dest = second_directus

        async with fake_directus.client() as src, dest.client() as dst:
            copied = await copy_collections(src, dst)

        assert list(copied) == COPY_ORDER
        assert [c.path for c in fake_directus.requests] == [f"/items/{c}" for c in COPY_ORDER]
        assert dest.requests == []
