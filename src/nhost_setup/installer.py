#!/usr/bin/env python3
"""
Prerequisite installation (apt based, Ubuntu).

Each check is idempotent: a tool already on PATH is skipped. Any failing
install command raises CommandFailed and aborts the run.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from . import console
from .context import PrivilegeMode
from .runner import CommandRunner, run_checked

logger = logging.getLogger(__name__)

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_REPO_URL = "https://download.docker.com/linux/ubuntu"
KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING = f"{KEYRING_DIR}/docker.gpg"
DOCKER_SOURCES_LIST = "/etc/apt/sources.list.d/docker.list"
DOCKER_KEY_DOWNLOAD = "/tmp/nhost-setup-docker.asc"

LEGACY_DOCKER_PACKAGES = ["docker", "docker-engine", "docker.io", "containerd", "runc"]
DOCKER_DEPENDENCIES = ["ca-certificates", "curl", "gnupg", "lsb-release"]
COMPOSE_PLUGIN_PACKAGE = "docker-compose-plugin"
DOCKER_PACKAGES = ["docker-ce", "docker-ce-cli", "containerd.io", COMPOSE_PLUGIN_PACKAGE]


def _privileged(mode: PrivilegeMode, cmd: Sequence[str]) -> list[str]:
    return [*mode.command_prefix, *cmd]


def apt_update(runner: CommandRunner, mode: PrivilegeMode) -> None:
    run_checked(runner, _privileged(mode, ["apt-get", "update"]), "apt-get update", stream=True)


def apt_install(runner: CommandRunner, mode: PrivilegeMode, packages: Iterable[str]) -> None:
    packages = list(packages)
    run_checked(
        runner,
        _privileged(mode, ["apt-get", "install", "-y", *packages]),
        f"Installing {', '.join(packages)}",
        stream=True
    )


def ensure_prerequisites(runner: CommandRunner, mode: PrivilegeMode, tools: Iterable[str]) -> list[str]:
    """
    Install each missing host tool via apt.

    Returns:
        The tools that were installed (empty when everything was present)
    """
    console.info("Checking prerequisites...")

    installed: list[str] = []
    updated = False
    for tool in tools:
        if runner.which(tool):
            logger.debug(f"  {tool} already installed")
            continue

        console.info(f"Installing {tool}...")
        if not updated:
            apt_update(runner, mode)
            updated = True
        apt_install(runner, mode, [tool])
        installed.append(tool)

    console.success("Prerequisites checked")
    return installed


def docker_apt_source(architecture: str, codename: str) -> str:
    return f"deb [arch={architecture} signed-by={DOCKER_KEYRING}] {DOCKER_REPO_URL} {codename} stable\n"


def compose_available(runner: CommandRunner) -> bool:
    return runner.run(["docker", "compose", "version"]).ok


def add_docker_repository(runner: CommandRunner, mode: PrivilegeMode) -> None:
    """Register Docker's signed apt repository and refresh the package index."""
    apt_update(runner, mode)
    apt_install(runner, mode, DOCKER_DEPENDENCIES)

    run_checked(runner, _privileged(mode, ["mkdir", "-p", KEYRING_DIR]), "Creating apt keyring directory")
    run_checked(
        runner,
        ["curl", "-fsSL", DOCKER_GPG_URL, "-o", DOCKER_KEY_DOWNLOAD],
        "Downloading Docker GPG key"
    )
    run_checked(
        runner,
        _privileged(mode, ["gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING, DOCKER_KEY_DOWNLOAD]),
        "Installing Docker GPG key"
    )

    architecture = run_checked(runner, ["dpkg", "--print-architecture"], "Detecting architecture").stdout.strip()
    codename = run_checked(runner, ["lsb_release", "-cs"], "Detecting Ubuntu codename").stdout.strip()
    run_checked(
        runner,
        _privileged(mode, ["tee", DOCKER_SOURCES_LIST]),
        "Writing Docker apt source",
        input=docker_apt_source(architecture, codename)
    )

    apt_update(runner, mode)


def install_docker(runner: CommandRunner, mode: PrivilegeMode, username: str) -> bool:
    """
    Install Docker Engine and the compose plugin from Docker's apt repository.

    An engine without ``docker compose`` (e.g. the distribution's docker.io)
    only gets the compose plugin added.

    Returns:
        True when anything was installed, False when both were already present
    """
    if runner.which("docker"):
        if compose_available(runner):
            console.success("Docker is already installed")
            return False

        console.info("Docker is installed without the compose plugin, installing docker-compose-plugin...")
        add_docker_repository(runner, mode)
        apt_install(runner, mode, [COMPOSE_PLUGIN_PACKAGE])
        console.success("Docker compose plugin installed successfully")
        return True

    console.info("Installing Docker...")

    # Legacy packages are usually absent; a failed removal is expected.
    runner.run(_privileged(mode, ["apt-get", "remove", "-y", *LEGACY_DOCKER_PACKAGES]))

    add_docker_repository(runner, mode)
    apt_install(runner, mode, DOCKER_PACKAGES)

    if mode is PrivilegeMode.SUDO:
        run_checked(
            runner,
            ["sudo", "usermod", "-aG", "docker", username],
            f"Adding {username} to the docker group"
        )
        console.warn("You may need to log out and back in for Docker group changes to take effect")

    console.success("Docker installed successfully")
    return True
