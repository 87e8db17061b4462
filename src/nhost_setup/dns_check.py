#!/usr/bin/env python3
"""
DNS verification for the public hostnames.

A single advisory pass: an unresolved hostname prints the required A records
and waits for the operator, then the next hostname is checked. Nothing is
rechecked unless strict mode is enabled.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Protocol

from . import console
from .domain import DomainLayout
from .exceptions import DnsNotReady
from .prompts import InputProvider

logger = logging.getLogger(__name__)

REMEDIATION_PROMPT = "Press Enter when DNS records are configured..."


class Resolver(Protocol):
    def resolve(self, hostname: str) -> bool:
        ...


class SocketResolver:
    def resolve(self, hostname: str) -> bool:
        try:
            addresses = socket.getaddrinfo(hostname, None)
        except (socket.gaierror, UnicodeError) as e:
            logger.debug(f"Resolution failed for {hostname}: {e}")
            return False
        return bool(addresses)


@dataclass
class DnsReport:
    resolved: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    @property
    def all_resolved(self) -> bool:
        return not self.unresolved


def print_required_records(layout: DomainLayout) -> None:
    console.warn("Please ensure you have set up the following DNS A records:")
    for hostname in layout.hostnames:
        console.detail(f"  {hostname} → YOUR_SERVER_IP")
    console.detail()


def verify_dns(
    layout: DomainLayout,
    resolver: Resolver,
    provider: InputProvider,
    strict: bool = False,
) -> DnsReport:
    """
    Check every public hostname once.

    Raises:
        DnsNotReady: In strict mode, if a hostname still fails after the pause
    """
    console.info("Checking DNS configuration...")
    report = DnsReport()

    for hostname in layout.hostnames:
        console.info(f"Checking DNS for {hostname}...")

        if resolver.resolve(hostname):
            console.success(f"DNS resolved for {hostname}")
            report.resolved.append(hostname)
            continue

        console.warn(f"DNS not resolved for {hostname}")
        print_required_records(layout)
        provider.ask(REMEDIATION_PROMPT)

        if strict:
            if not resolver.resolve(hostname):
                raise DnsNotReady([hostname])
            console.success(f"DNS resolved for {hostname}")
            report.resolved.append(hostname)
            continue

        report.unresolved.append(hostname)

    if report.unresolved:
        console.warn(
            f"Continuing with {len(report.unresolved)} unresolved hostname(s); "
            "certificate issuance for them will fail until DNS is in place"
        )
    return report
