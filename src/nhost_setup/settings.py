#!/usr/bin/env python3
"""
Settings loading for nhost-setup.

Built-in defaults are deep-merged (key-level) with an optional
``nhost-setup.toml``; ``NHOST_SETUP_LOG_LEVEL`` and CLI flags are applied
on top by the caller.
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .config_constants import COMPOSE_FILE, LOG_LEVEL_ENV, SETTINGS_FILE
from .domain import DEFAULT_BASE_DOMAIN, DEFAULT_SUBDOMAIN, DomainLayout
from .exceptions import SettingsError

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "setup": {
        "log_level": "INFO",
        "compose_file": COMPOSE_FILE,
    },
    "domain": {
        "base": DEFAULT_BASE_DOMAIN,
        "subdomain": DEFAULT_SUBDOMAIN,
    },
    "upstream": {
        "clone": True,
        "repository": "https://github.com/nhost/nhost.git",
        "directory": "nhost",
        "compose_subdir": "examples/docker-compose",
    },
    "dns": {
        "strict": False,
    },
    "prerequisites": {
        "tools": ["git", "curl"],
    },
}


@dataclass(frozen=True)
class UpstreamSettings:
    clone: bool
    repository: str
    directory: str
    compose_subdir: str


@dataclass(frozen=True)
class Settings:
    project_dir: Path
    log_level: str
    compose_file: str
    base_domain: str
    subdomain: str
    upstream: UpstreamSettings
    strict_dns: bool
    tools: tuple[str, ...] = field(default_factory=tuple)

    @property
    def layout(self) -> DomainLayout:
        return DomainLayout(base_domain=self.base_domain, subdomain=self.subdomain)

    def workdir(self) -> Path:
        """Directory that receives the rendered artifacts."""
        if self.upstream.clone:
            return self.project_dir / self.upstream.directory / self.upstream.compose_subdir
        return self.project_dir


def deep_merge_configs(base: dict, override: dict) -> dict:
    """
    Deep merge two config dicts (key-level). Values from ``override`` win.
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_configs(result[key], value)
        else:
            if key in result:
                logger.debug(f"  Override: {key} = {value} (was: {result[key]})")
            result[key] = value

    return result


def parse_settings_file(path: Path) -> dict:
    """
    Parse a settings TOML file.

    Raises:
        SettingsError: If the file cannot be parsed or has unknown sections
    """
    try:
        with open(path, 'rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Failed to parse {path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Cannot read {path}: {e}") from e

    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        raise SettingsError(f"Unknown section(s) in {path}: {', '.join(unknown)}")

    return data


def load_settings(
    project_dir: Path,
    config_path: Optional[Path] = None,
    environ: Optional[dict] = None,
) -> Settings:
    """
    Build Settings for a project directory.

    An explicit ``config_path`` must exist; otherwise ``<project_dir>/nhost-setup.toml``
    is used when present and the built-in defaults when not.
    """
    environ = os.environ if environ is None else environ
    merged = copy.deepcopy(DEFAULTS)

    if config_path is not None:
        if not config_path.exists():
            raise SettingsError(f"Settings file not found: {config_path}")
        source: Optional[Path] = config_path
    else:
        candidate = project_dir / SETTINGS_FILE
        source = candidate if candidate.exists() else None

    if source is not None:
        logger.debug(f"Loading settings from {source}")
        merged = deep_merge_configs(merged, parse_settings_file(source))

    env_level = environ.get(LOG_LEVEL_ENV)
    if env_level:
        merged["setup"]["log_level"] = env_level

    return build_settings(project_dir, merged)


def build_settings(project_dir: Path, config: dict) -> Settings:
    prerequisites = config.get("prerequisites")
    tools = prerequisites.get("tools") if isinstance(prerequisites, dict) else None
    if not isinstance(tools, list) or not all(isinstance(tool, str) for tool in tools):
        raise SettingsError(f"Invalid settings: [prerequisites] tools must be a list of strings, got {tools!r}")

    try:
        upstream = config["upstream"]
        return Settings(
            project_dir=project_dir,
            log_level=str(config["setup"]["log_level"]).upper(),
            compose_file=str(config["setup"]["compose_file"]),
            base_domain=str(config["domain"]["base"]),
            subdomain=str(config["domain"]["subdomain"]),
            upstream=UpstreamSettings(
                clone=bool(upstream["clone"]),
                repository=str(upstream["repository"]),
                directory=str(upstream["directory"]),
                compose_subdir=str(upstream["compose_subdir"]),
            ),
            strict_dns=bool(config["dns"]["strict"]),
            tools=tuple(tools),
        )
    except (KeyError, TypeError) as e:
        raise SettingsError(f"Invalid settings: {e}") from e
