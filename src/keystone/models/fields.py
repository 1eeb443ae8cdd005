"""Builders for the field definitions used across migrations.

Directus field bodies are verbose; these helpers produce the handful of
shapes the business schema actually uses (inputs, dropdowns, timestamps,
relational fields and their UI aliases).
"""

from __future__ import annotations

from typing import Any

from keystone.models.schemas import FieldSpec


def choices(*values: str) -> list[dict[str, str]]:
    """Dropdown choices where the label equals the stored value."""
    return [{"text": v, "value": v} for v in values]


def _meta(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def select(
    field: str,
    values: list[str] | tuple[str, ...],
    *,
    default: str | None = None,
    sort: int | None = None,
    required: bool | None = None,
    nullable: bool | None = None,
    width: str = "half",
) -> FieldSpec:
    """A string field rendered as a select dropdown."""
    schema = _meta(default_value=default, is_nullable=nullable)
    return FieldSpec(
        field=field,
        type="string",
        schema=schema,
        meta=_meta(
            interface="select-dropdown",
            required=required,
            options={"choices": choices(*values)},
            width=width,
            sort=sort,
        ),
    )


def text(
    field: str,
    *,
    type: str = "string",
    interface: str = "input",
    required: bool | None = None,
    unique: bool | None = None,
    sort: int | None = None,
    width: str | None = None,
    note: str | None = None,
    options: dict[str, Any] | None = None,
) -> FieldSpec:
    """A scalar input field (string, text, decimal, date, json, ...)."""
    schema = _meta(
        is_nullable=False if required else None,
        is_unique=unique,
    )
    return FieldSpec(
        field=field,
        type=type,
        schema=schema,
        meta=_meta(
            interface=interface,
            required=required,
            options=options,
            note=note,
            width=width,
            sort=sort,
        ),
    )


def timestamps(sort: int, *, width: str | None = None) -> list[FieldSpec]:
    """Hidden, read-only ``date_created`` / ``date_updated`` pair."""
    return [
        FieldSpec(
            field=name,
            type="timestamp",
            schema={},
            meta=_meta(
                special=[special],
                interface="datetime",
                readonly=True,
                hidden=True,
                width=width,
                sort=sort + offset,
            ),
        )
        for offset, (name, special) in enumerate(
            [("date_created", "date-created"), ("date_updated", "date-updated")]
        )
    ]


def m2o(
    field: str,
    *,
    template: str | None = None,
    type: str = "uuid",
    nullable: bool = True,
    hidden: bool | None = None,
    sort: int | None = None,
    width: str | None = "half",
) -> FieldSpec:
    """Foreign-key field rendered as a many-to-one dropdown."""
    display = {"display": "related-values", "display_options": {"template": template}} if template else {}
    return FieldSpec(
        field=field,
        type=type,
        schema={"is_nullable": nullable},
        meta=_meta(
            interface="select-dropdown-m2o",
            hidden=hidden,
            width=None if hidden else width,
            sort=sort,
            **display,
        ),
    )


def o2m_alias(field: str, *, template: str, sort: int | None = None) -> FieldSpec:
    """Reverse (one-to-many) alias listing related rows."""
    return FieldSpec(
        field=field,
        type="alias",
        meta=_meta(
            interface="list-o2m",
            special=["o2m"],
            display="related-values",
            display_options={"template": template},
            sort=sort,
        ),
    )


def m2m_alias(field: str, *, template: str | None = None, sort: int | None = None) -> FieldSpec:
    """Many-to-many alias backed by a junction collection."""
    return FieldSpec(
        field=field,
        type="alias",
        meta=_meta(
            interface="list-m2m",
            special=["m2m"],
            options={"template": template} if template else None,
            sort=sort,
        ),
    )


def primary_key(field: str = "id") -> FieldSpec:
    """Auto-increment integer primary key for hand-built junctions."""
    return FieldSpec(
        field=field,
        type="integer",
        schema={"is_primary_key": True, "has_auto_increment": True},
    )


def integer_fk(field: str) -> FieldSpec:
    """Bare integer column later bound by a relation."""
    return FieldSpec(field=field, type="integer", schema={})
