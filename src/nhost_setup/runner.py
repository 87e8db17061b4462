#!/usr/bin/env python3
"""
External command execution.

Every shell-out (apt, curl, gpg, git, docker) goes through a CommandRunner so
the pipeline can be driven by a fake in tests.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .exceptions import CommandFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        ...

    def which(self, name: str) -> Optional[str]:
        ...


class SubprocessRunner:
    """Run commands on the host with subprocess."""

    def __init__(self, stream_prefix: str = "  ") -> None:
        self.stream_prefix = stream_prefix

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        args = tuple(str(part) for part in cmd)
        logger.debug(f"Running: {' '.join(args)} (cwd={cwd or '.'})")

        try:
            if not stream:
                completed = subprocess.run(
                    args,
                    cwd=cwd,
                    input=input,
                    capture_output=True,
                    text=True,
                    check=False
                )
                return CommandResult(args, completed.returncode, completed.stdout or "", completed.stderr or "")

            proc = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.PIPE if input is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1
            )
        except FileNotFoundError:
            logger.debug(f"Executable not found: {args[0]}")
            return CommandResult(args, 127, "", f"{args[0]}: command not found")

        if input is not None and proc.stdin is not None:
            proc.stdin.write(input)
            proc.stdin.close()

        stdout_lines = []
        assert proc.stdout is not None
        try:
            for line in proc.stdout:
                print(f"{self.stream_prefix}{line.rstrip()}", flush=True)
                stdout_lines.append(line)
            proc.wait()
        except KeyboardInterrupt:
            logger.debug(f"Interrupted, stopping: {args[0]}")
            proc.terminate()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
            raise
        return CommandResult(args, proc.returncode, "".join(stdout_lines), "")


def run_checked(
    runner: CommandRunner,
    cmd: Sequence[str],
    action: str,
    **kwargs,
) -> CommandResult:
    """Run a command and raise CommandFailed on non-zero exit."""
    result = runner.run(cmd, **kwargs)
    if not result.ok:
        output = (result.stderr or result.stdout or "").strip()
        tail = "\n".join(output.splitlines()[-20:])
        if tail:
            logger.debug(f"{action} output:\n{tail}")
        raise CommandFailed(action, cmd, result.returncode, tail)
    return result
