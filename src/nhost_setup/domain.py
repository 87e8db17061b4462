#!/usr/bin/env python3
"""Domain layout: base domain, Nhost subdomain and the public service hostnames."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BASE_DOMAIN = "kyuri.xyz"
DEFAULT_SUBDOMAIN = "nhost"

# Publicly routed services, in the order they are announced and DNS-checked.
PUBLIC_SERVICES = ("auth", "dashboard", "graphql", "functions", "storage", "mailhog")


@dataclass(frozen=True)
class DomainLayout:
    base_domain: str = DEFAULT_BASE_DOMAIN
    subdomain: str = DEFAULT_SUBDOMAIN
    services: tuple[str, ...] = PUBLIC_SERVICES

    @property
    def nhost_domain(self) -> str:
        return f"{self.subdomain}.{self.base_domain}"

    def hostname(self, service: str) -> str:
        if service not in self.services:
            raise KeyError(f"Unknown public service: {service}")
        return f"{service}.{self.nhost_domain}"

    @property
    def hostnames(self) -> list[str]:
        return [self.hostname(service) for service in self.services]

    def url_variable(self, service: str) -> str:
        """Environment variable carrying the hostname of a service (e.g. AUTH_URL)."""
        return f"{service.upper()}_URL"

    def url_variables(self) -> dict[str, str]:
        """Map of ``<SERVICE>_URL`` variable to hostname, sorted by variable name."""
        return {
            self.url_variable(service): self.hostname(service)
            for service in sorted(self.services)
        }

    def public_url(self, service: str) -> str:
        return f"https://{self.hostname(service)}"
