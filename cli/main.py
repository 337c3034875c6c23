#!/usr/bin/env python3
"""
dibuild CLI - dependency injection container builder

Usage:
    dibuild [OPTIONS] COMMAND [ARGS]...

Commands:
    container:build   Build the compiled container file
    services:find     List service files in processing order
"""

import sys
import os

# Ensure project root is in path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import click  # noqa: E402

from cli import __version__  # noqa: E402
from dibuild.config import get_log_dir, get_log_level  # noqa: E402
from dibuild.logging import setup_logging  # noqa: E402


class AliasedGroup(click.Group):
    """Custom Click group that supports command aliases."""

    ALIASES = {
        'build': 'container:build',
        'find': 'services:find',
    }

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get command with alias support."""
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv

        if cmd_name in self.ALIASES:
            return click.Group.get_command(self, ctx, self.ALIASES[cmd_name])

        return None


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.option('--version', '-v', is_flag=True, help='Show version and exit.')
@click.option('--debug', is_flag=True, help='Enable debug mode (DEBUG logs, tracebacks).')
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=get_log_level,
    help='Log level (env: DIBUILD_LOG_LEVEL).',
)
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool, log_level: str) -> None:
    """dibuild - Dependency injection container builder

    Scans directories for service definition and compiler pass files,
    compiles them into a container and writes the result.

    \b
    Quick Start:
        dibuild container:build var/container.py
        dibuild container:build var/container.xml xml -d config,src
        dibuild services:find -d config
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if version:
        click.echo(f"dibuild version {__version__}")
        ctx.exit(0)

    manager = setup_logging(
        level='DEBUG' if debug else log_level,
        log_dir=get_log_dir() or None,
    )
    ctx.call_on_close(manager.reset)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Import and register commands
from cli.commands.container import build  # noqa: E402
from cli.commands.services import find  # noqa: E402

cli.add_command(build)
cli.add_command(find)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled.", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
