"""Diagnostic FastAPI application.

Stands in for the CMS on a host where Directus will not start: if this app
answers, the platform can run the process and the problem is Directus
itself (usually configuration, shown by ``GET /``).
"""

import logging

from fastapi import FastAPI

from keystone import __version__
from keystone.config import settings
from keystone.logging_config import configure_logging

configure_logging(settings.keystone_debug)

logger = logging.getLogger(__name__)

NOT_SET = "NOT SET"

app = FastAPI(
    title="Keystone diagnostics",
    description="Deployment environment report for the Directus backend",
    version=__version__,
)


def _value(value: str | None) -> str:
    return value or NOT_SET


def _presence(value: str | None) -> str:
    # Secrets are never echoed, only whether they are configured.
    return "SET" if value else NOT_SET


def environment_report() -> dict:
    return {
        "DB_HOST": _value(settings.db_host),
        "DB_DATABASE": _value(settings.db_database),
        "PUBLIC_URL": _value(settings.public_url),
        "KEY": _presence(settings.key),
        "SECRET": _presence(settings.secret),
        "NODE_ENV": _value(settings.node_env),
    }


@app.get("/")
async def root():
    return {
        "status": "OK",
        "message": "Hello from the Keystone diagnostic server!",
        "port": settings.diag_port,
        "host": settings.host,
        "env": environment_report(),
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
