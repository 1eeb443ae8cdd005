"""Start Directus as a child process.

The child inherits stdin/stdout/stderr and an environment with ``PORT``,
``HOST`` and ``PUBLIC_URL`` filled in.  Its exit code is returned to the
caller unchanged.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from keystone.config import Settings

logger = logging.getLogger(__name__)


def build_command(settings: Settings) -> list[str]:
    """Return the argv that starts Directus.

    ``node`` mode runs ``directus/cli.js`` through the Node binary, which
    works even when ``node_modules/.bin/directus`` lost its execute bit.
    ``bin`` mode runs the ``.bin`` shim directly.
    """
    modules = Path(settings.directus_root) / "node_modules"
    if settings.launcher_mode == "bin":
        return [str(modules / ".bin" / "directus"), "start"]
    if settings.launcher_mode != "node":
        raise ValueError(f"Unknown launcher mode: {settings.launcher_mode!r}")
    return [settings.node_binary, str(modules / "directus" / "cli.js"), "start"]


def launch(settings: Settings) -> int:
    """Run Directus in the foreground and return its exit code."""
    command = build_command(settings)
    env = settings.launch_env()

    logger.info("Starting Directus on %s:%s", settings.host, settings.cms_port)
    logger.info("Environment: NODE_ENV=%s", settings.node_env)
    logger.info("Database host: %s", settings.db_host)
    logger.info("Command: %s", " ".join(command))

    try:
        process = subprocess.Popen(command, env=env)
    except OSError as exc:
        logger.error("Failed to start Directus: %s", exc)
        return 1

    try:
        code = process.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping Directus")
        process.terminate()
        code = process.wait()

    logger.info("Directus process exited with code %s", code)
    return code
