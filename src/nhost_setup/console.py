#!/usr/bin/env python3
"""Operator-facing colored output and logging setup."""

from __future__ import annotations

import logging

# Color codes for output
BLUE = '\033[94m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
RESET = '\033[0m'

logger = logging.getLogger(__name__)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure logging module with specified level.
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR
    }

    level = level_map.get(str(log_level).upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='[%(levelname)s] %(message)s',
        force=True
    )
    logging.getLogger("nhost_setup").setLevel(level)
    logger.debug(f"Logging configured: {str(log_level).upper()}")


def info(msg: str) -> None:
    print(f"{BLUE}[INFO]{RESET} {msg}", flush=True)


def success(msg: str) -> None:
    print(f"{GREEN}[SUCCESS]{RESET} {msg}", flush=True)


def warn(msg: str) -> None:
    print(f"{YELLOW}[WARNING]{RESET} {msg}", flush=True)


def error(msg: str) -> None:
    """Print a single red error line. Callers decide whether to abort."""
    print(f"{RED}[ERROR]{RESET} {msg}", flush=True)


def detail(msg: str = "") -> None:
    """Print an indented, uncolored line (lists under a status message)."""
    print(msg, flush=True)


def banner(domain: str) -> None:
    title = "Nhost Self-Hosting Setup"
    subtitle = f"Domain: {domain}"
    width = max(len(title), len(subtitle)) + 8
    print(GREEN, end="")
    print("╔" + "═" * width + "╗")
    print("║" + title.center(width) + "║")
    print("║" + subtitle.center(width) + "║")
    print("╚" + "═" * width + "╝")
    print(RESET, flush=True)
