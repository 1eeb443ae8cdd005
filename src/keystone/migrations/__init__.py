"""Ordered schema and data migrations for the Directus backend.

Importing this package registers every migration module.
"""

from keystone.migrations.base import (
    Migration,
    MigrationReport,
    all_migrations,
    get_migration,
    register,
    run_migration,
)
from keystone.migrations import (  # noqa: F401
    access,
    core,
    employees,
    finance,
    relations,
    seed_data,
    tracking,
)

__all__ = [
    "Migration",
    "MigrationReport",
    "all_migrations",
    "get_migration",
    "register",
    "run_migration",
]
