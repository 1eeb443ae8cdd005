"""Copy items from one CMS instance to another.

Collections are copied in :data:`COPY_ORDER` so rows referenced by foreign
keys exist before the rows pointing at them.  Each collection goes over as a
single batch POST; ids are preserved.
"""

from __future__ import annotations

import logging
from typing import Iterable

from keystone.integrations.directus import DirectusClient

logger = logging.getLogger(__name__)

COPY_ORDER = [
    "job_roles",
    "customers",
    "employees",
    "projects",
    "projects_employees",
    "services",
    "invoices",
    "invoices_services",
    "tasks",
    "time_logs",
    "payrolls",
    "support_tickets",
    "support_tickets_tasks",
]


async def copy_collections(
    source: DirectusClient,
    dest: DirectusClient,
    collections: Iterable[str] = COPY_ORDER,
) -> dict[str, int]:
    """Copy every item of each collection from *source* to *dest*.

    Returns:
        Number of items copied per collection.  Empty collections and
        collections the destination rejected map to ``0``.
    """
    copied: dict[str, int] = {}
    for collection in collections:
        logger.info("Copying %s", collection)
        items = await source.read_items(collection, limit=-1)
        if not items:
            logger.info("  No items in %s", collection)
            copied[collection] = 0
            continue

        r = await dest.create_items(collection, items)
        if r.ok:
            logger.info("  Added %d items to %s", len(items), collection)
            copied[collection] = len(items)
        else:
            logger.warning("  Failed to push %s: %s", collection, r.describe())
            copied[collection] = 0

    logger.info("Data copy complete: %d items", sum(copied.values()))
    return copied
