"""Keystone configuration via environment variables.

The variable names are the ones the Directus deployment itself reads
(``PORT``, ``PUBLIC_URL``, ``KEY`` ...), so a single ``.env`` file serves
both the CMS process and the admin tooling.
"""

from __future__ import annotations

import os

from pydantic_settings import BaseSettings


# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_CMS_PORT = 8055
DEFAULT_DIAG_PORT = 3000


class Settings(BaseSettings):
    """Global settings loaded from environment / .env file."""

    # Deployment (shared with the Directus process)
    port: int | None = None
    host: str = "0.0.0.0"
    public_url: str | None = None
    db_host: str | None = None
    db_database: str | None = None
    key: str | None = None
    secret: str | None = None
    node_env: str | None = None

    # Admin credentials used by the REST tooling
    admin_email: str | None = None
    admin_password: str | None = None

    # Launcher
    directus_root: str = "."  # directory containing node_modules/
    node_binary: str = "node"
    launcher_mode: str = "node"  # "node" (cli.js via node) or "bin" (.bin/directus)

    # Tooling
    request_timeout: float = 30.0
    keystone_debug: bool = False

    @property
    def cms_port(self) -> int:
        return self.port or DEFAULT_CMS_PORT

    @property
    def diag_port(self) -> int:
        return self.port or DEFAULT_DIAG_PORT

    @property
    def api_base_url(self) -> str:
        """Base URL of the CMS REST API."""
        return (self.public_url or f"http://localhost:{self.cms_port}").rstrip("/")

    def launch_env(self, base: dict[str, str] | None = None) -> dict[str, str]:
        """Return the environment handed to the Directus child process.

        ``PORT``, ``HOST`` and ``PUBLIC_URL`` are always populated; everything
        else is inherited unchanged.
        """
        env = dict(os.environ if base is None else base)
        env["PORT"] = str(self.cms_port)
        env["HOST"] = self.host
        env["PUBLIC_URL"] = self.public_url or f"http://localhost:{self.cms_port}"
        return env

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
