# ABOUTME: CLI package for bookbridge, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from bookbridge.cli.commands import add_cmd, categories_cmd, databases_cmd, map_cmd


def _configure_logging(verbose: bool) -> None:
    """Send bookbridge logs to stderr through Rich; DEBUG when verbose, else WARNING."""
    logger = logging.getLogger("bookbridge")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.handlers.clear()
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
    )
    logger.addHandler(handler)


@click.group()
@click.version_option(package_name="bookbridge")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """bookbridge - reconcile book metadata into Notion databases."""
    _configure_logging(verbose)


cli.add_command(databases_cmd.databases)
cli.add_command(map_cmd.map_fields)
cli.add_command(categories_cmd.categories)
cli.add_command(add_cmd.add)
