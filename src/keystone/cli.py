"""Keystone CLI: launch, diagnose and administer a Directus backend.

Usage::

    # Start Directus in the foreground
    keystone serve

    # Run the diagnostic stand-in server
    keystone diag --port 3000

    # Apply migrations against the CMS at PUBLIC_URL
    keystone migrate list
    keystone migrate run schema-setup seed-data --strict

    # Export and repair the schema snapshot
    keystone snapshot fetch --output snapshot.json
    keystone snapshot patch --path snapshot.json

    # Copy items from production into a local instance
    keystone copy-data --source https://cms.example.com --dest http://localhost:8055

    # Issue a static API token for the admin user
    keystone token
"""

from __future__ import annotations

import asyncio
import json
import sys

import click
import httpx

from keystone.config import settings
from keystone.integrations.directus import (
    AuthenticationError,
    DirectusClient,
    DirectusRequestError,
)
from keystone.logging_config import configure_logging


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Log every request at DEBUG level.",
)
def cli(debug: bool):
    """Keystone: deployment and admin tooling for the Directus backend."""
    configure_logging(debug or settings.keystone_debug)


def cms_options(func):
    """Add --url/--email/--password, defaulting to the settings."""
    func = click.option("--password", default=None, help="Admin password (default: ADMIN_PASSWORD).")(func)
    func = click.option("--email", default=None, help="Admin email (default: ADMIN_EMAIL).")(func)
    func = click.option("--url", default=None, help="CMS base URL (default: PUBLIC_URL or localhost:PORT).")(func)
    return func


def _run(coro):
    """Run *coro*, turning fatal CMS errors into a red message and exit 1."""
    try:
        return asyncio.run(coro)
    except AuthenticationError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        sys.exit(1)
    except httpx.ConnectError as exc:
        click.secho(
            f"Error: Cannot reach the CMS ({exc}).  Is Directus running?",
            fg="red",
            err=True,
        )
        sys.exit(1)
    except httpx.HTTPError as exc:
        click.secho(f"Error: Request to the CMS failed: {exc!r}", fg="red", err=True)
        sys.exit(1)
    except DirectusRequestError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        sys.exit(1)


# ── serve ─────────────────────────────────────────────────────────────


@cli.command()
def serve():
    """Start Directus as a child process and wait for it."""
    from keystone.launcher import launch

    try:
        code = launch(settings)
    except ValueError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        sys.exit(1)
    if code != 0:
        sys.exit(code)


# ── diag ──────────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: PORT or 3000).",
)
def diag(port: int | None):
    """Run the diagnostic server instead of the CMS."""
    import uvicorn

    port = port or settings.diag_port
    click.echo(f"Diagnostic server running on http://{settings.host}:{port}")
    uvicorn.run("keystone.main:app", host=settings.host, port=port)


# ── migrate ───────────────────────────────────────────────────────────


@cli.group()
def migrate():
    """Schema and data migrations."""
    pass


@migrate.command("list")
def migrate_list():
    """List migrations in the order they should be applied."""
    from keystone.migrations import all_migrations

    for m in all_migrations():
        click.echo(f"{m.order:>4}  {m.name:<26} {m.kind:<7} {m.description}")


@migrate.command("run")
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit with code 2 if any step failed.",
)
@cms_options
def migrate_run(names: tuple[str, ...], strict: bool, url: str | None, email: str | None, password: str | None):
    """Run the named migrations one after another."""
    from keystone.migrations import get_migration

    for name in names:
        try:
            get_migration(name)
        except KeyError as exc:
            click.secho(f"Error: {exc.args[0]}", fg="red", err=True)
            sys.exit(1)

    reports = _run(_migrate_run(names, url, email, password))

    click.echo()
    for report in reports:
        colour = "green" if report.ok else "yellow"
        click.secho(
            f"{report.name}: {len(report.applied)} applied, {len(report.skipped)} skipped, "
            f"{len(report.failed)} failed{' (aborted)' if report.aborted else ''}",
            fg=colour,
        )

    if strict and not all(r.ok for r in reports):
        sys.exit(2)


async def _migrate_run(names, url, email, password):
    from keystone.migrations import run_migration

    async with DirectusClient(url) as client:
        await client.login(email, password)
        return [await run_migration(client, name) for name in names]


# ── snapshot ──────────────────────────────────────────────────────────


@cli.group()
def snapshot():
    """Schema snapshot export and repair."""
    pass


@snapshot.command("fetch")
@click.option("--output", default="snapshot.json", show_default=True, help="File to write.")
@cms_options
def snapshot_fetch(output: str, url: str | None, email: str | None, password: str | None):
    """Save GET /schema/snapshot to a file."""
    _run(_snapshot_fetch(output, url, email, password))
    click.echo(f"Saved to {output}")


async def _snapshot_fetch(output, url, email, password):
    from keystone.snapshot import fetch_snapshot

    async with DirectusClient(url) as client:
        await client.login(email, password)
        await fetch_snapshot(client, output)


@snapshot.command("patch")
@click.option("--path", default="snapshot.json", show_default=True, help="Snapshot file to patch.")
def snapshot_patch(path: str):
    """Add placeholder fields for relations missing from the snapshot."""
    from keystone.snapshot import patch_snapshot_file

    try:
        added = patch_snapshot_file(path)
    except FileNotFoundError:
        click.secho(f"Error: {path} not found.  Run `keystone snapshot fetch` first.", fg="red", err=True)
        sys.exit(1)
    except json.JSONDecodeError as exc:
        click.secho(f"Error: {path} is not valid JSON ({exc}).", fg="red", err=True)
        sys.exit(1)
    click.echo(f"Patched {path} with {added} missing fields.")


# ── copy-data ─────────────────────────────────────────────────────────


@cli.command("copy-data")
@click.option("--source", required=True, help="Base URL of the instance to copy from.")
@click.option("--dest", default=None, help="Base URL to copy into (default: PUBLIC_URL or localhost:PORT).")
@click.option(
    "--collection",
    "collections",
    multiple=True,
    help="Collection to copy (repeatable; default: all, in FK order).",
)
@click.option("--email", default=None, help="Admin email on both instances (default: ADMIN_EMAIL).")
@click.option("--password", default=None, help="Admin password on both instances (default: ADMIN_PASSWORD).")
def copy_data(source: str, dest: str | None, collections: tuple[str, ...], email: str | None, password: str | None):
    """Copy items between two CMS instances."""
    copied = _run(_copy_data(source, dest, collections, email, password))
    click.echo(f"Data migration complete: {sum(copied.values())} items in {len(copied)} collections.")


async def _copy_data(source, dest, collections, email, password):
    from keystone.copy_data import COPY_ORDER, copy_collections

    async with DirectusClient(source) as src, DirectusClient(dest) as dst:
        await src.login(email, password)
        await dst.login(email, password)
        return await copy_collections(src, dst, list(collections) or COPY_ORDER)


# ── token ─────────────────────────────────────────────────────────────


@cli.command()
@cms_options
def token(url: str | None, email: str | None, password: str | None):
    """Generate a static API token for the admin user."""
    value = _run(_token(url, email, password))
    click.secho("API token generated successfully!", fg="green")
    click.echo(f"Token: {value}")
    click.echo("Copy this token into your client settings or .env file.")


async def _token(url, email, password):
    from keystone.tokens import generate_token

    async with DirectusClient(url) as client:
        await client.login(email, password)
        return await generate_token(client)


# ── Entry point ───────────────────────────────────────────────────────


def main():
    cli()


if __name__ == "__main__":
    main()
