#!/usr/bin/env python3
"""
Interactive input collection.

Prompts go through an InputProvider so the validation loops can be driven
by scripted answers.
"""

from __future__ import annotations

import re
from typing import Protocol

from . import console
from .context import OperatorProfile, PrivilegeMode
from .domain import DomainLayout
from .exceptions import SetupCancelled

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
AFFIRMATIVE = {"y", "yes"}


class InputProvider(Protocol):
    def ask(self, prompt: str) -> str:
        ...


class TerminalInput:
    def ask(self, prompt: str) -> str:
        return input(prompt)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_affirmative(answer: str) -> bool:
    return answer.strip().lower() in AFFIRMATIVE


def confirm_privilege(running_as_root: bool, provider: InputProvider) -> PrivilegeMode:
    """Ask before continuing as root; non-root runs continue in sudo mode."""
    if not running_as_root:
        return PrivilegeMode.SUDO

    console.warn("Running as root detected")
    console.warn("This script can run as root, but it's generally safer to run as a regular user")
    if not is_affirmative(provider.ask("Do you want to continue as root? (y/N): ")):
        raise SetupCancelled()
    return PrivilegeMode.ROOT


def prompt_email(provider: InputProvider) -> str:
    while True:
        email = provider.ask("Enter your email for Let's Encrypt certificates: ").strip()
        if is_valid_email(email):
            return email
        console.error("Invalid email format")


def collect_operator_profile(provider: InputProvider, layout: DomainLayout) -> OperatorProfile:
    """
    Collect the ACME contact e-mail and confirmation of the subdomain plan.

    Raises:
        SetupCancelled: If the operator does not confirm the plan
    """
    print(f"{console.BLUE}=== Nhost Self-Hosting Setup ==={console.RESET}")
    print()

    email = prompt_email(provider)

    print()
    console.warn("The script will set up Nhost with the following subdomains:")
    for service in layout.services:
        console.detail(f"  - {layout.public_url(service)}")
    print()

    if not is_affirmative(provider.ask("Do you want to continue? (y/N): ")):
        raise SetupCancelled()

    return OperatorProfile(email=email, acknowledged=True)
