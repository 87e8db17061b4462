#!/usr/bin/env python3
"""Immutable run context threaded through the setup stages."""

from __future__ import annotations

import enum
import getpass
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .domain import DomainLayout
from .secret_gen import SecretBundle
from .settings import Settings

REDACTED = "***REDACTED***"


class PrivilegeMode(enum.Enum):
    ROOT = "root"
    SUDO = "sudo"

    @property
    def command_prefix(self) -> list[str]:
        return [] if self is PrivilegeMode.ROOT else ["sudo"]


@dataclass(frozen=True)
class OperatorProfile:
    email: str
    acknowledged: bool = True


@dataclass(frozen=True)
class SetupContext:
    settings: Settings
    layout: DomainLayout
    username: str
    privilege: PrivilegeMode = PrivilegeMode.SUDO
    profile: Optional[OperatorProfile] = None
    secrets: Optional[SecretBundle] = None
    workdir: Optional[Path] = None

    def evolve(self, **changes) -> "SetupContext":
        return replace(self, **changes)

    def require_profile(self) -> OperatorProfile:
        if self.profile is None:
            raise RuntimeError("Operator profile not collected yet")
        return self.profile

    def require_secrets(self) -> SecretBundle:
        if self.secrets is None:
            raise RuntimeError("Secrets not generated yet")
        return self.secrets

    def require_workdir(self) -> Path:
        if self.workdir is None:
            raise RuntimeError("Work directory not prepared yet")
        return self.workdir

    def to_debug_dict(self) -> dict:
        """Context as plain data with every secret value redacted."""
        return {
            "project_dir": str(self.settings.project_dir),
            "workdir": str(self.workdir) if self.workdir else None,
            "username": self.username,
            "privilege": self.privilege.value,
            "email": self.profile.email if self.profile else None,
            "domain": self.layout.nhost_domain,
            "hostnames": self.layout.hostnames,
            "secrets": {key: REDACTED for key in self.secrets.as_env()} if self.secrets else {},
            "settings": {
                "log_level": self.settings.log_level,
                "compose_file": self.settings.compose_file,
                "strict_dns": self.settings.strict_dns,
                "clone": self.settings.upstream.clone,
                "tools": list(self.settings.tools),
            },
        }


def is_root() -> bool:
    return os.geteuid() == 0


def invoking_username(environ: Optional[dict] = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get("SUDO_USER") or environ.get("USER") or getpass.getuser()
