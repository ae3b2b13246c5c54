# ABOUTME: Shared Click options for bookbridge CLI commands.
# ABOUTME: Provides reusable decorators for the Notion token and the settings file.

from pathlib import Path

import click

from bookbridge.core.settings import DEFAULT_SETTINGS_PATH

token_option = click.option(
    "--token",
    envvar="NOTION_TOKEN",
    required=True,
    help="Notion integration token (default: $NOTION_TOKEN).",
)

settings_option = click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to settings file (default: {DEFAULT_SETTINGS_PATH})",
)
