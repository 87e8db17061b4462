#!/usr/bin/env python3
"""
Environment and file rendering.

Produces the ``.env`` consumed by Docker Compose, the compose topology,
and the supporting directories (ACME storage, database bootstrap SQL,
sample function). Human-readable text comes from Jinja2 templates shipped
with the package.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from . import console
from .config_constants import (
    CREDENTIALS_MODE,
    ENV_FILE,
    FUNCTIONS_DIR,
    INITDB_DIR,
    INITDB_SCRIPT,
    INITDB_TEMPLATE,
    LETSENCRYPT_DIR,
    SAMPLE_FUNCTION,
    SAMPLE_FUNCTION_TEMPLATE,
)
from .context import OperatorProfile
from .domain import DomainLayout
from .secret_gen import SecretBundle
from .topology import build_topology, check_closed_references, dump_topology

logger = logging.getLogger(__name__)

EMAIL_VERIFIED_FLAG = "AUTH_EMAIL_SIGNIN_EMAIL_VERIFIED_REQUIRED"

_template_env: Environment | None = None


def template_environment() -> Environment:
    global _template_env
    if _template_env is None:
        _template_env = Environment(
            loader=PackageLoader("nhost_setup", "templates"),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )
    return _template_env


def render_template(name: str, context: Mapping[str, Any] | None = None) -> str:
    """
    Render a packaged Jinja2 template.
    """
    logger.debug(f"Rendering Jinja2 template: {name}")
    try:
        rendered = template_environment().get_template(name).render(**(context or {}))
    except TemplateError as e:
        logger.error(f"Failed to render template {name}: {e}")
        raise
    logger.debug(f"  Rendered output size: {len(rendered)} bytes")
    return rendered


def build_env_values(profile: OperatorProfile, secrets: SecretBundle, layout: DomainLayout) -> dict[str, str]:
    """Ordered KEY -> value mapping written to ``.env``."""
    values: dict[str, str] = {}
    values.update(secrets.as_env())
    values["DOMAIN"] = layout.base_domain
    values.update(layout.url_variables())
    values[EMAIL_VERIFIED_FLAG] = "true"
    values["ACME_EMAIL"] = profile.email
    return values


def write_private(path: Path, text: str) -> None:
    """Write a secrets file that is owner-only before any content lands in it."""
    path.touch(mode=CREDENTIALS_MODE, exist_ok=True)
    path.chmod(CREDENTIALS_MODE)
    path.write_text(text, encoding="utf-8")


def format_env_file(values: Mapping[str, str]) -> str:
    """
    Format ``KEY=value`` lines grouped by concern: secrets, domain, URLs, auth, ACME.

    Values are written verbatim: JWT_SECRET must reach both hasura-auth and
    Hasura as the exact JSON string.
    """
    for key, value in values.items():
        if "\n" in str(value):
            raise ValueError(f"Environment value for {key} must be a single line")

    secret_keys = ["POSTGRES_PASSWORD", "GRAPHQL_ADMIN_SECRET", "JWT_SECRET", "STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY"]
    domain_keys = ["DOMAIN"] + sorted(key for key in values if key.endswith("_URL"))
    grouped = set(secret_keys) | set(domain_keys) | {EMAIL_VERIFIED_FLAG, "ACME_EMAIL"}

    lines = ["# Generated by nhost-setup"]

    def _section(title: str | None, keys: list[str]) -> None:
        present = [key for key in keys if key in values]
        if not present:
            return
        if title:
            lines.append("")
            lines.append(f"# {title}")
        for key in present:
            lines.append(f"{key}={values[key]}")

    _section(None, secret_keys)
    _section("Domain configuration", domain_keys)
    _section("Production settings", [EMAIL_VERIFIED_FLAG])
    _section("ACME Email for Let's Encrypt", ["ACME_EMAIL"])
    _section("Additional settings", [key for key in values if key not in grouped])

    return "\n".join(lines) + "\n"


def write_artifacts(
    workdir: Path,
    profile: OperatorProfile,
    secrets: SecretBundle,
    layout: DomainLayout,
    compose_file: str,
) -> tuple[Path, Path]:
    """
    Write ``.env`` and the compose file after checking closed references.

    Returns:
        (env_path, compose_path)
    """
    env_values = build_env_values(profile, secrets, layout)
    env_text = format_env_file(env_values)
    topology_text = dump_topology(build_topology())

    check_closed_references(topology_text, env_values.keys())

    workdir.mkdir(parents=True, exist_ok=True)

    console.info("Creating environment configuration...")
    env_path = workdir / ENV_FILE
    write_private(env_path, env_text)
    console.success("Environment configuration created")

    console.info("Creating production Docker Compose configuration...")
    compose_path = workdir / compose_file
    compose_path.write_text(topology_text, encoding="utf-8")
    console.success("Production Docker Compose configuration created")

    return env_path, compose_path


def setup_directories(workdir: Path) -> list[Path]:
    """
    Create supporting directories on first run.

    ``letsencrypt/`` is always ensured. ``initdb.d/`` and ``functions/`` are
    created and populated only when absent, so operator edits survive reruns.

    Returns:
        Paths of the directories created by this call
    """
    console.info("Setting up directories and files...")
    created: list[Path] = []

    letsencrypt = workdir / LETSENCRYPT_DIR
    if not letsencrypt.exists():
        created.append(letsencrypt)
    letsencrypt.mkdir(parents=True, exist_ok=True)

    seeded = (
        (INITDB_DIR, INITDB_SCRIPT, INITDB_TEMPLATE),
        (FUNCTIONS_DIR, SAMPLE_FUNCTION, SAMPLE_FUNCTION_TEMPLATE),
    )
    for dirname, filename, template in seeded:
        directory = workdir / dirname
        if directory.exists():
            logger.debug(f"  Keeping existing {directory}")
            continue
        directory.mkdir(parents=True)
        (directory / filename).write_text(render_template(template), encoding="utf-8")
        created.append(directory)

    console.success("Directories and files set up")
    return created
