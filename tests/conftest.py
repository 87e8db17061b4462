"""
Shared fixtures: scripted operator input, a fake command runner and a
fake DNS resolver. Nothing here touches apt, git, Docker or the network.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from nhost_setup.runner import CommandResult  # noqa: E402


class ScriptedInput:
    """InputProvider returning canned answers in order and recording prompts."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt}")
        return self.answers.pop(0)


class FakeRunner:
    """CommandRunner recording every call; selected commands can fail."""

    def __init__(self, installed=(), failures=(), outputs=None):
        self.installed = set(installed)
        self.failures = list(failures)
        self.outputs = dict(outputs or {})
        self.calls = []

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.installed else None

    def run(self, cmd, *, cwd=None, input=None, stream=False):
        args = tuple(str(part) for part in cmd)
        self.calls.append({"args": args, "cwd": cwd, "input": input})
        line = " ".join(args)
        for needle in self.failures:
            if needle in line:
                return CommandResult(args, 100, "", f"simulated failure: {needle}")
        for needle, output in self.outputs.items():
            if needle in line:
                return CommandResult(args, 0, output, "")
        return CommandResult(args, 0, "", "")

    def commands(self):
        return [" ".join(call["args"]) for call in self.calls]

    def ran(self, needle: str) -> bool:
        return any(needle in line for line in self.commands())


class FakeResolver:
    def __init__(self, resolvable=(), resolve_after_pause=()):
        self.resolvable = set(resolvable)
        self.resolve_after_pause = set(resolve_after_pause)
        self.queries = []

    def resolve(self, hostname: str) -> bool:
        self.queries.append(hostname)
        if hostname in self.resolvable:
            return True
        if hostname in self.resolve_after_pause and self.queries.count(hostname) > 1:
            return True
        return False


@pytest.fixture
def fake_runner():
    return FakeRunner(installed={"git", "curl", "docker"})


@pytest.fixture
def scripted_input():
    return ScriptedInput


@pytest.fixture
def fake_resolver():
    return FakeResolver
