#!/usr/bin/env python3
"""Work directory preparation (upstream Nhost checkout)."""

from __future__ import annotations

import logging
from pathlib import Path

from . import console
from .runner import CommandRunner, run_checked
from .settings import Settings

logger = logging.getLogger(__name__)


def has_checkout(settings: Settings) -> bool:
    """True when the upstream directory is a git checkout, not just a folder."""
    return (settings.project_dir / settings.upstream.directory / ".git").is_dir()


def prepare_workdir(runner: CommandRunner, settings: Settings) -> Path:
    """
    Return the directory that receives the rendered files.

    With ``upstream.clone`` enabled the Nhost repository is cloned into the
    project directory unless a checkout already exists; the files then go
    to its docker-compose example, which also provides ``nhost/emails`` for
    the auth container.
    """
    console.info("Setting up Nhost project...")
    workdir = settings.workdir()

    if settings.upstream.clone:
        if has_checkout(settings):
            logger.debug(f"Using existing checkout: {settings.project_dir / settings.upstream.directory}")
        else:
            run_checked(
                runner,
                ["git", "clone", settings.upstream.repository, settings.upstream.directory],
                f"Cloning {settings.upstream.repository}",
                cwd=settings.project_dir,
                stream=True
            )

    workdir.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Work directory: {workdir}")
    return workdir


def preview_workdir(settings: Settings) -> Path:
    """
    Work directory for a dry run. Nothing is cloned, so without an existing
    checkout the files go to the project directory and the checkout path is
    left untouched for the next real run.
    """
    if settings.upstream.clone and has_checkout(settings):
        workdir = settings.workdir()
    else:
        workdir = settings.project_dir
    workdir.mkdir(parents=True, exist_ok=True)
    return workdir
