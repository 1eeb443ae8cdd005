"""Tests for request-body models and field builders."""

from __future__ import annotations

from keystone.models import fields as f
from keystone.models.schemas import (
    CollectionSpec,
    DashboardSpec,
    FieldSpec,
    PanelSpec,
    PermissionSpec,
    RelationSpec,
)


class TestPayloads:
    """Tests for the JSON bodies the models produce."""

    def test_relation_explicit_null_schema_is_sent(self):
        spec = RelationSpec(collection="projects", field="customer_id", related_collection="customers", schema=None)
        assert spec.payload() == {
            "collection": "projects",
            "field": "customer_id",
            "related_collection": "customers",
            "schema": None,
        }

    def test_relation_unset_schema_is_omitted(self):
        spec = RelationSpec(collection="tasks", field="project_id", related_collection="projects")
        assert "schema" not in spec.payload()
        assert "meta" not in spec.payload()

    def test_relation_label(self):
        spec = RelationSpec(collection="tasks", field="project_id", related_collection="projects")
        assert spec.label == "tasks.project_id -> projects"

    def test_collection_always_sends_schema(self):
        payload = CollectionSpec(collection="services", meta={"icon": "shopping_bag"}).payload()
        assert payload == {"collection": "services", "meta": {"icon": "shopping_bag"}, "schema": {}}

    def test_field_payload_uses_alias(self):
        payload = FieldSpec(field="price", type="decimal", schema={"is_nullable": True}).payload()
        assert payload == {"field": "price", "type": "decimal", "schema": {"is_nullable": True}}

    def test_permission_sends_null_role(self):
        payload = PermissionSpec(collection="customers", action="read").payload()
        assert payload["role"] is None
        assert payload["fields"] == ["*"]
        assert payload["permissions"] == {}
        assert payload["validation"] == {}

    def test_dashboard_defaults(self):
        payload = DashboardSpec(name="Metrics").payload()
        assert payload == {"name": "Metrics"}

    def test_panel_for_dashboard(self):
        panel = PanelSpec(name="Total", type="metric", position_x=1, position_y=1, width=6, height=5)
        body = panel.for_dashboard("dash-1")
        assert body["dashboard"] == "dash-1"
        assert "icon" not in body
        assert body["options"] == {}


class TestFieldBuilders:
    """Tests for the field shortcut builders."""

    def test_choices(self):
        assert f.choices("Open", "Closed") == [
            {"text": "Open", "value": "Open"},
            {"text": "Closed", "value": "Closed"},
        ]

    def test_select(self):
        spec = f.select("status", ("Active", "Inactive"), default="Active", sort=2)
        payload = spec.payload()
        assert payload["type"] == "string"
        assert payload["schema"] == {"default_value": "Active"}
        assert payload["meta"]["interface"] == "select-dropdown"
        assert payload["meta"]["sort"] == 2
        assert [c["value"] for c in payload["meta"]["options"]["choices"]] == ["Active", "Inactive"]

    def test_required_text_is_not_nullable(self):
        payload = f.text("email", required=True, unique=True).payload()
        assert payload["schema"] == {"is_nullable": False, "is_unique": True}
        assert payload["meta"]["required"] is True

    def test_optional_text_omits_unset_meta(self):
        payload = f.text("phone").payload()
        assert payload["schema"] == {}
        assert payload["meta"] == {"interface": "input"}

    def test_timestamps_pair(self):
        created, updated = f.timestamps(3)
        assert (created.field, created.meta["sort"], created.meta["special"]) == (
            "date_created",
            3,
            ["date-created"],
        )
        assert (updated.field, updated.meta["sort"], updated.meta["special"]) == (
            "date_updated",
            4,
            ["date-updated"],
        )

    def test_m2o_hidden_drops_width(self):
        spec = f.m2o("projects_id", nullable=False, hidden=True, sort=2)
        assert spec.schema_ == {"is_nullable": False}
        assert spec.meta["hidden"] is True
        assert "width" not in spec.meta

    def test_m2o_template(self):
        spec = f.m2o("customer_id", template="{{customer_name}}")
        assert spec.meta["display_options"] == {"template": "{{customer_name}}"}

    def test_m2m_alias(self):
        spec = f.m2m_alias("tasks", template="{{tasks_id.name}}")
        assert spec.type == "alias"
        assert spec.meta["special"] == ["m2m"]
        assert spec.meta["options"] == {"template": "{{tasks_id.name}}"}

    def test_primary_key(self):
        assert f.primary_key().payload() == {
            "field": "id",
            "type": "integer",
            "schema": {"is_primary_key": True, "has_auto_increment": True},
        }
