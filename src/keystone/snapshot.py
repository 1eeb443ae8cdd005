"""Schema snapshot export and repair.

``GET /schema/snapshot`` can list relations whose FK field is missing from
``fields`` (metadata-only relations created with ``schema: null``).  Applying
such a snapshot to another instance fails, so :func:`patch_snapshot` adds a
hidden integer placeholder for every dangling relation.

Usage::

    keystone snapshot fetch --output snapshot.json
    keystone snapshot patch --path snapshot.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from keystone.integrations.directus import DirectusClient, DirectusRequestError

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = "snapshot.json"


async def fetch_snapshot(client: DirectusClient, path: str | Path = DEFAULT_SNAPSHOT_PATH) -> dict[str, Any]:
    """Write the instance's schema snapshot to *path* and return it.

    Raises:
        DirectusRequestError: If the snapshot endpoint does not return 2xx.
    """
    r = await client.schema_snapshot()
    if not r.ok:
        raise DirectusRequestError(f"Failed to get schema: {r.describe()}", r)

    snapshot = r.payload
    Path(path).write_text(json.dumps(snapshot, indent=2))
    logger.info("Saved schema snapshot to %s", path)
    return snapshot


def placeholder_field(collection: str, field: str) -> dict[str, Any]:
    """Hidden, nullable integer column standing in for a relation's FK."""
    return {
        "collection": collection,
        "field": field,
        "type": "integer",
        "meta": {
            "collection": collection,
            "field": field,
            "hidden": True,
            "interface": None,
            "note": None,
            "readonly": False,
            "required": False,
            "sort": 99,
            "width": "full",
        },
        "schema": {
            "name": field,
            "table": collection,
            "data_type": "INT",
            "is_nullable": True,
            "is_unique": False,
            "is_indexed": True,
            "is_primary_key": False,
            "has_auto_increment": False,
        },
    }


def patch_snapshot(snapshot: dict[str, Any]) -> int:
    """Add placeholder fields for relations without one; returns how many.

    The snapshot is modified in place.
    """
    fields = snapshot.setdefault("fields", [])
    present = {(f["collection"], f["field"]) for f in fields}

    added = 0
    for rel in snapshot.get("relations") or []:
        key = (rel["collection"], rel["field"])
        if key in present:
            continue
        fields.append(placeholder_field(*key))
        present.add(key)
        added += 1
    return added


def patch_snapshot_file(path: str | Path = DEFAULT_SNAPSHOT_PATH) -> int:
    path = Path(path)
    snapshot = json.loads(path.read_text(encoding="utf-8"))
    added = patch_snapshot(snapshot)
    path.write_text(json.dumps(snapshot, indent=2))
    logger.info("Patched %s with %d missing fields", path, added)
    return added
