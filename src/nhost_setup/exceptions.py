#!/usr/bin/env python3
"""Error taxonomy for nhost-setup."""

from __future__ import annotations

from typing import Sequence


class SetupError(Exception):
    """Base class for failures that abort the run with a single-line message."""


class SetupCancelled(SetupError):
    """Operator declined a confirmation gate."""

    def __init__(self, message: str = "Setup cancelled") -> None:
        super().__init__(message)


class SettingsError(SetupError):
    """Settings file is unreadable or contains unknown sections."""


class CommandFailed(SetupError):
    """External command returned a non-zero exit code."""

    def __init__(self, action: str, cmd: Sequence[str], returncode: int, output: str = "") -> None:
        self.action = action
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        super().__init__(f"{action} failed with exit code {returncode}: {' '.join(self.cmd)}")


class UnresolvedReferenceError(SetupError):
    """Topology references variables that the environment file does not define."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = sorted(missing)
        super().__init__(
            "Topology references undefined environment variables: " + ", ".join(self.missing)
        )


class DnsNotReady(SetupError):
    """Strict DNS verification found hostnames that still do not resolve."""

    def __init__(self, hostnames: Sequence[str]) -> None:
        self.hostnames = list(hostnames)
        super().__init__("DNS not resolved for: " + ", ".join(self.hostnames))
