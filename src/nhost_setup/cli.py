#!/usr/bin/env python3
"""
nhost-setup entry point.

Runs the setup stages once each, in order:
privilege check → operator input → secrets → prerequisites → upstream
checkout → environment + topology → directories → DNS → compose up →
summary + credential record.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import __version__, console
from .context import SetupContext, invoking_username, is_root
from .dns_check import Resolver, SocketResolver, verify_dns
from .exceptions import SetupError
from .installer import ensure_prerequisites, install_docker
from .orchestrator import print_summary, save_credential_record, save_state, start_services
from .prompts import InputProvider, TerminalInput, collect_operator_profile, confirm_privilege
from .renderer import setup_directories, write_artifacts
from .runner import CommandRunner, SubprocessRunner
from .secret_gen import generate_secrets
from .settings import Settings, load_settings
from .workspace import prepare_workdir, preview_workdir

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments for nhost-setup.

    Without arguments the setup runs fully interactive in the current
    directory with built-in defaults.
    """
    parser = argparse.ArgumentParser(
        prog='nhost-setup',
        description='Self-hosted Nhost setup: Docker, Traefik with Let\'s Encrypt, and the Nhost services',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Interactive setup in the current directory
  %(prog)s

  # Render files only (no apt, git, DNS or docker compose)
  %(prog)s --dry-run --skip-clone

  # Refuse to start until every hostname resolves
  %(prog)s --strict-dns
        '''
    )

    parser.add_argument(
        '-d', '--dir',
        type=Path,
        default=Path.cwd(),
        metavar='PATH',
        help='Project directory (default: current directory)'
    )

    parser.add_argument(
        '-c', '--config',
        type=Path,
        default=None,
        metavar='PATH',
        help='Settings TOML (default: <dir>/nhost-setup.toml when present)'
    )

    parser.add_argument(
        '--skip-install',
        action='store_true',
        help='Do not install host tools or Docker'
    )

    parser.add_argument(
        '--skip-clone',
        action='store_true',
        help='Do not clone the Nhost repository; render into the project directory'
    )

    parser.add_argument(
        '--strict-dns',
        action='store_true',
        help='Abort if a hostname still does not resolve after the remediation pause'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Render files only; skip installation, cloning, DNS checks and docker compose'
    )

    parser.add_argument(
        '--print-context',
        action='store_true',
        help='Print the run context as JSON with secrets redacted'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f"nhost-setup {__version__}"
    )

    return parser.parse_args(argv)


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.skip_clone:
        settings = replace(settings, upstream=replace(settings.upstream, clone=False))
    if args.strict_dns:
        settings = replace(settings, strict_dns=True)
    return settings


def main_execution(
    settings: Settings,
    runner: CommandRunner,
    provider: InputProvider,
    resolver: Resolver,
    running_as_root: bool,
    username: str,
    skip_install: bool = False,
    dry_run: bool = False,
    print_context: bool = False,
) -> SetupContext:
    """
    Run every setup stage once. Each stage returns an updated context.

    Raises:
        SetupError: On cancellation or any failed stage (fail-fast)
    """
    ctx = SetupContext(settings=settings, layout=settings.layout, username=username)

    console.banner(ctx.layout.base_domain)

    ctx = ctx.evolve(privilege=confirm_privilege(running_as_root, provider))
    logger.debug(f"Privilege mode: {ctx.privilege.value}")

    ctx = ctx.evolve(profile=collect_operator_profile(provider, ctx.layout))

    console.info("Generating secure passwords and keys...")
    ctx = ctx.evolve(secrets=generate_secrets())
    console.success("Secrets generated successfully")

    if dry_run or skip_install:
        console.info("Skipping prerequisite installation")
    else:
        ensure_prerequisites(runner, ctx.privilege, settings.tools)
        install_docker(runner, ctx.privilege, ctx.username)

    if dry_run:
        workdir = preview_workdir(settings)
    else:
        workdir = prepare_workdir(runner, settings)
    ctx = ctx.evolve(workdir=workdir)

    write_artifacts(
        workdir,
        ctx.require_profile(),
        ctx.require_secrets(),
        ctx.layout,
        settings.compose_file,
    )
    setup_directories(workdir)

    if print_context:
        print(json.dumps(ctx.to_debug_dict(), indent=2, default=str))

    if dry_run:
        console.info(f"Dry-run mode: files rendered in {workdir}, skipping DNS checks and docker compose")
        save_credential_record(ctx)
        save_state(ctx)
        return ctx

    verify_dns(ctx.layout, resolver, provider, strict=settings.strict_dns)

    start_services(runner, workdir, settings.compose_file)
    print_summary(ctx)
    save_credential_record(ctx)
    save_state(ctx)

    console.success("Setup completed successfully!")
    return ctx


def main(
    argv: Optional[list] = None,
    runner: Optional[CommandRunner] = None,
    provider: Optional[InputProvider] = None,
    resolver: Optional[Resolver] = None,
    running_as_root: Optional[bool] = None,
) -> int:
    args = parse_arguments(argv)

    try:
        settings = load_settings(args.dir.resolve(), args.config)
        console.configure_logging(settings.log_level)
        settings = apply_cli_overrides(settings, args)

        main_execution(
            settings,
            runner=runner or SubprocessRunner(),
            provider=provider or TerminalInput(),
            resolver=resolver or SocketResolver(),
            running_as_root=is_root() if running_as_root is None else running_as_root,
            username=invoking_username(),
            skip_install=args.skip_install,
            dry_run=args.dry_run,
            print_context=args.print_context,
        )
    except SetupError as e:
        console.error(str(e))
        return 1
    except (KeyboardInterrupt, EOFError):
        print()
        console.warn("Operation interrupted by user; host and container state may be partially modified")
        return 1
    except Exception as e:
        logger.debug("Unhandled exception", exc_info=True)
        console.error(f"Setup failed: {type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
