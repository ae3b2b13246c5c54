# ABOUTME: The `bookbridge databases` command for listing reachable Notion databases.
# ABOUTME: Displays a Rich table of every database shared with the integration.

import click
from rich.console import Console
from rich.table import Table

from bookbridge.cli.options import token_option
from bookbridge.errors import DestinationError
from bookbridge.notion.client import NotionDestination
from bookbridge.notion.destination import Destination

console = Console()


def _create_destination(token: str) -> Destination:
    """Create the default destination (Notion)."""
    return NotionDestination.from_token(token)


@click.command("databases")
@token_option
def databases(token: str) -> None:
    """List Notion databases shared with the integration."""
    destination = _create_destination(token)
    try:
        found = destination.search_databases()
    except DestinationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc

    if not found:
        console.print("[yellow]No databases are shared with this integration.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Properties", justify="right")
    table.add_column("Last edited")

    for database in found:
        table.add_row(
            database.id,
            database.title,
            str(len(database.properties)),
            (database.last_edited_time or "")[:10],
        )

    console.print(table)
    console.print(f"\n[dim]{len(found)} database(s)[/dim]")
