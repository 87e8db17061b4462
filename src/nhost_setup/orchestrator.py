#!/usr/bin/env python3
"""
Stack lifecycle: ``docker compose up``, the closing summary and the local
credential record.

There is no rollback. Services are declared ``restart: always`` and Docker
Compose orders startup from the declared health checks.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path

import tomli_w

from . import __version__, console
from .config_constants import CREDENTIALS_FILE, CREDENTIALS_TEMPLATE, STATE_FILE
from .context import SetupContext
from .renderer import render_template, write_private
from .runner import CommandRunner, run_checked

logger = logging.getLogger(__name__)

SERVICE_LABELS = {
    "dashboard": "Dashboard",
    "graphql": "GraphQL",
    "auth": "Auth",
    "storage": "Storage",
    "functions": "Functions",
    "mailhog": "Mailhog",
}
SUMMARY_ORDER = ("dashboard", "graphql", "auth", "storage", "functions", "mailhog")


def compose_command(compose_file: str, *args: str) -> list[str]:
    return ["docker", "compose", "-f", compose_file, *args]


def compose_commands(compose_file: str) -> list[tuple[str, str]]:
    """Operational command reference: (label, command line)."""
    base = " ".join(compose_command(compose_file))
    return [
        ("Start", f"{base} up -d"),
        ("Stop", f"{base} down"),
        ("Restart", f"{base} restart"),
        ("Logs", f"{base} logs -f"),
        ("Update", f"{base} pull && {base} up -d"),
    ]


def service_urls(ctx: SetupContext) -> list[tuple[str, str]]:
    layout = ctx.layout
    ordered = [s for s in SUMMARY_ORDER if s in layout.services]
    ordered += [s for s in layout.services if s not in SUMMARY_ORDER]
    return [(SERVICE_LABELS.get(s, s.capitalize()), layout.public_url(s)) for s in ordered]


def start_services(runner: CommandRunner, workdir: Path, compose_file: str) -> None:
    """
    Bring the topology up detached.

    Raises:
        CommandFailed: If docker compose exits non-zero
    """
    console.info("Starting Nhost services...")
    run_checked(
        runner,
        compose_command(compose_file, "up", "-d"),
        "docker compose up",
        cwd=workdir,
        stream=True
    )
    console.success("Services started successfully!")


def print_summary(ctx: SetupContext) -> None:
    secrets = ctx.require_secrets()
    compose_file = ctx.settings.compose_file

    print()
    console.success("=== Setup Complete! ===")
    print()
    console.info("Your Nhost instance is now running at:")
    width = max(len(label) for label, _ in service_urls(ctx)) + 1
    for label, url in service_urls(ctx):
        console.detail(f"  {(label + ':').ljust(width)}  {url}")
    print()
    console.info("Admin credentials:")
    console.detail(f"  GraphQL Admin Secret: {secrets.graphql_admin_secret}")
    console.detail(f"  Postgres Password:    {secrets.postgres_password}")
    print()
    console.warn("Important:")
    console.detail("  1. Save these credentials securely")
    console.detail("  2. Configure your SMTP settings in production")
    console.detail("  3. Remove Mailhog in production environments")
    console.detail("  4. Set up regular database backups")
    print()
    base = " ".join(compose_command(compose_file))
    console.info(f"Logs: {base} logs -f")
    console.info(f"Stop: {base} down")


def save_credential_record(ctx: SetupContext, generated_at: datetime | None = None) -> Path:
    """
    Write ``nhost-config.txt`` (mode 0600) with secrets, URLs and commands.
    """
    console.info("Saving configuration...")
    workdir = ctx.require_workdir()
    generated_at = generated_at or datetime.now(timezone.utc)

    text = render_template(CREDENTIALS_TEMPLATE, {
        "generated_at": generated_at.strftime("%Y-%m-%d %H:%M:%S %Z"),
        "layout": ctx.layout,
        "profile": ctx.require_profile(),
        "secrets": ctx.require_secrets(),
        "urls": service_urls(ctx),
        "commands": compose_commands(ctx.settings.compose_file),
        "workdir": workdir,
    })

    path = workdir / CREDENTIALS_FILE
    write_private(path, text)

    console.success(f"Configuration saved to {CREDENTIALS_FILE}")
    return path


def secret_fingerprint(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:8]


def save_state(ctx: SetupContext, generated_at: datetime | None = None) -> Path:
    """
    Write ``.nhost-setup.state.toml``: run metadata and secret fingerprints.

    Only 8-character SHA-256 prefixes are stored, never the secrets.
    """
    workdir = ctx.require_workdir()
    generated_at = generated_at or datetime.now(timezone.utc)

    state = {
        "run": {
            "generated_at": generated_at.isoformat(),
            "tool_version": __version__,
            "username": ctx.username,
            "privilege": ctx.privilege.value,
        },
        "domain": {
            "base": ctx.layout.base_domain,
            "subdomain": ctx.layout.subdomain,
            "hostnames": ctx.layout.hostnames,
        },
        "secrets": {
            "state": {
                key.lower(): secret_fingerprint(value)
                for key, value in ctx.require_secrets().as_env().items()
            },
        },
    }

    path = workdir / STATE_FILE
    with open(path, "wb") as f:
        tomli_w.dump(state, f)
    logger.debug(f"State written to {path}")
    return path
