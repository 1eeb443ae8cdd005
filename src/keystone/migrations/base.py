"""Base migration class and registry.

A migration is one ordered, hand-run change against a live CMS: schema
creation, a refactor, a repair or a data seed.  Migrations talk to the CMS
through the "safe" helpers below, which log every outcome, record it in a
:class:`MigrationReport` and carry on.  Individual field or relation
failures never abort a run; only authentication does (see the CLI).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

from keystone.integrations.directus import ApiResponse, DirectusClient
from keystone.models.schemas import CollectionSpec, FieldSpec, RelationSpec

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Outcome of every step a migration attempted."""

    name: str
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and not self.aborted

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "applied": len(self.applied),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "aborted": self.aborted,
        }


class Migration(ABC):
    """Base class for all Keystone migrations.

    Subclasses set ``name``, ``description`` and ``order`` and implement
    :meth:`run`.  ``kind`` is ``"schema"`` for structural changes and
    ``"data"`` for seeding.
    """

    name: str = ""
    description: str = ""
    order: int = 0
    kind: str = "schema"

    def __init__(self, client: DirectusClient):
        self.client = client
        self.report = MigrationReport(name=self.name)

    @abstractmethod
    async def run(self) -> None:
        """Apply the migration through the safe helpers."""

    async def execute(self) -> MigrationReport:
        logger.info("Running migration %s: %s", self.name, self.description)
        await self.run()
        logger.info(
            "Migration %s finished: %d applied, %d skipped, %d failed%s",
            self.name,
            len(self.report.applied),
            len(self.report.skipped),
            len(self.report.failed),
            " (aborted)" if self.report.aborted else "",
        )
        return self.report

    # ── Outcome recording ─────────────────────────────────────────────────

    def record(
        self,
        step: str,
        response: ApiResponse,
        *,
        exists_ok: bool = False,
        optional: bool = False,
    ) -> bool:
        """Log and record one step; returns whether it succeeded.

        ``exists_ok`` treats an "already exists" error as a skip; ``optional``
        treats any error as a skip (for attempts the CMS may legitimately
        refuse, such as renaming a collection).
        """
        if response.ok:
            logger.info("  %s: OK", step)
            self.report.applied.append(step)
            return True
        message = response.describe()
        if optional or (exists_ok and "already exists" in message.lower()):
            logger.info("  %s: %s, skipped", step, message)
            self.report.skipped.append(step)
            return False
        logger.warning("  %s: %s", step, message)
        self.report.failed.append(step)
        return False

    def skip(self, step: str, reason: str = "exists") -> None:
        logger.info("  %s: %s, skipping", step, reason)
        self.report.skipped.append(step)

    def abort(self, reason: str) -> None:
        logger.error("Migration %s aborted: %s", self.name, reason)
        self.report.aborted = True

    # ── Collections ───────────────────────────────────────────────────────

    async def create_collection(self, spec: CollectionSpec) -> bool:
        r = await self.client.create_collection(spec.payload())
        return self.record(f"collection {spec.collection}", r, exists_ok=True)

    async def ensure_collection(self, spec: CollectionSpec, existing: Iterable[str]) -> bool:
        if spec.collection in existing:
            self.skip(f"collection {spec.collection}")
            return False
        return await self.create_collection(spec)

    async def update_collection(self, collection: str, body: dict[str, Any]) -> bool:
        r = await self.client.update_collection(collection, body)
        return self.record(f"update collection {collection}", r)

    async def delete_collection(self, collection: str) -> bool:
        r = await self.client.delete_collection(collection)
        return self.record(f"delete collection {collection}", r)

    # ── Fields ────────────────────────────────────────────────────────────

    async def create_field(self, collection: str, spec: FieldSpec) -> bool:
        r = await self.client.create_field(collection, spec.payload())
        return self.record(f"{collection}.{spec.field}", r)

    async def ensure_fields(
        self,
        collection: str,
        specs: Iterable[FieldSpec],
        existing: Iterable[str] | None = None,
    ) -> None:
        """Create every field in *specs* that is not already present."""
        present = set(existing) if existing is not None else set(
            await self.client.field_names(collection)
        )
        for spec in specs:
            if spec.field in present:
                self.skip(f"{collection}.{spec.field}")
            else:
                await self.create_field(collection, spec)

    async def upsert_field(self, collection: str, spec: FieldSpec) -> bool:
        """Register a field, patching its meta if it is already registered."""
        r = await self.client.create_field(collection, spec.payload())
        if r.ok:
            return self.record(f"{collection}.{spec.field}", r)
        patched = await self.client.update_field(collection, spec.field, {"meta": spec.meta})
        return self.record(f"{collection}.{spec.field} (meta update)", patched)

    async def rename_field(
        self, collection: str, old: str, new: str, *, optional: bool = False, **extra: Any
    ) -> bool:
        r = await self.client.update_field(collection, old, {"field": new, **extra})
        return self.record(f"{collection}.{old} -> {new}", r, optional=optional)

    async def update_field(self, collection: str, field_name: str, body: dict[str, Any]) -> bool:
        r = await self.client.update_field(collection, field_name, body)
        return self.record(f"update {collection}.{field_name}", r)

    async def delete_field(self, collection: str, field_name: str) -> bool:
        r = await self.client.delete_field(collection, field_name)
        return self.record(f"delete {collection}.{field_name}", r)

    # ── Relations ─────────────────────────────────────────────────────────

    async def create_relation(self, spec: RelationSpec) -> bool:
        r = await self.client.create_relation(spec.payload())
        return self.record(f"relation {spec.label}", r, exists_ok=True)

    async def repoint_relation(self, collection: str, field_name: str, related: str) -> bool:
        r = await self.client.update_relation(
            collection, field_name, {"related_collection": related}
        )
        return self.record(f"relation {collection}.{field_name} -> {related}", r)

    async def delete_relation(self, collection: str, field_name: str) -> bool:
        r = await self.client.delete_relation(collection, field_name)
        return self.record(f"drop relation {collection}.{field_name}", r)

    # ── Items ─────────────────────────────────────────────────────────────

    async def create_item(self, collection: str, item: dict[str, Any], label: str) -> dict[str, Any] | None:
        r = await self.client.create_item(collection, item)
        if self.record(f"{collection}: {label}", r) and isinstance(r.payload, dict):
            return r.payload
        return None

    # ── Verification ──────────────────────────────────────────────────────

    async def summary(self, collections: Iterable[str], *, all_relations: bool = False) -> None:
        """Log the resulting fields and relations for *collections*."""
        wanted = list(collections)
        logger.info("=" * 50)
        logger.info("Collections: %s", ", ".join(await self.client.list_collections()))
        for name in wanted:
            fields = await self.client.list_fields(name)
            logger.info(
                "%s (%d fields): %s",
                name,
                len(fields),
                ", ".join(f"{f['field']} ({f.get('type')})" for f in fields),
            )
        for rel in await self.client.list_relations():
            if all_relations or rel["collection"] in wanted:
                one_field = (rel.get("meta") or {}).get("one_field") or "none"
                logger.info(
                    "  %s.%s -> %s (one_field: %s)",
                    rel["collection"],
                    rel["field"],
                    rel.get("related_collection"),
                    one_field,
                )


# ── Registry ──────────────────────────────────────────────────────────────────

_REGISTRY: dict[str, type[Migration]] = {}


def register(cls: type[Migration]) -> type[Migration]:
    """Class decorator adding a migration to the registry."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} has no name")
    if cls.name in _REGISTRY:
        raise ValueError(f"Duplicate migration name: {cls.name}")
    _REGISTRY[cls.name] = cls
    return cls


def all_migrations() -> list[type[Migration]]:
    """Registered migrations in the order they were meant to be applied."""
    return sorted(_REGISTRY.values(), key=lambda m: m.order)


def get_migration(name: str) -> type[Migration]:
    try:
        return _REGISTRY[name]
    except KeyError:
        known = ", ".join(m.name for m in all_migrations())
        raise KeyError(f"Unknown migration '{name}'. Known: {known}") from None


async def run_migration(client: DirectusClient, name: str) -> MigrationReport:
    """Instantiate and execute a registered migration."""
    migration = get_migration(name)(client)
    return await migration.execute()
