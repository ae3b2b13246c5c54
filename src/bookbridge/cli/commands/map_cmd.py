# ABOUTME: The `bookbridge map` command for showing and saving a field mapping.
# ABOUTME: Suggests a mapping for a database (or loads the saved one) and can persist it.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookbridge.cli.options import settings_option, token_option
from bookbridge.core.settings import SettingsStore
from bookbridge.errors import DestinationError
from bookbridge.mapping.mapper import MappingSet, suggest_mapping
from bookbridge.notion.client import NotionDestination
from bookbridge.notion.destination import Destination

console = Console()


def _create_destination(token: str) -> Destination:
    """Create the default destination (Notion)."""
    return NotionDestination.from_token(token)


def _confidence_style(confidence: int) -> str:
    if confidence >= 90:
        return "green"
    if confidence >= 70:
        return "yellow"
    return "red"


@click.command("map")
@click.argument("database_id")
@click.option("--save", is_flag=True, default=False, help="Persist the mapping for this database.")
@click.option(
    "--fresh",
    is_flag=True,
    default=False,
    help="Ignore any saved mapping and suggest a new one.",
)
@token_option
@settings_option
def map_fields(
    database_id: str, save: bool, fresh: bool, token: str, settings_path: Path | None
) -> None:
    """Show how book fields map onto a database's properties."""
    store = SettingsStore(settings_path)
    settings = store.load()
    destination = _create_destination(token)

    try:
        schema = destination.fetch_schema(database_id)
    except DestinationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc

    saved = None if fresh else settings.saved_mappings.get(database_id)
    if saved:
        mapping = MappingSet.from_dict(saved, schema)
        origin = "saved"
    else:
        mapping = suggest_mapping(schema.property_list())
        origin = "suggested"

    console.print(f"[bold]{schema.title}[/bold] [dim]({origin} mapping)[/dim]")

    table = Table()
    table.add_column("Field", style="bold")
    table.add_column("Property", style="cyan")
    table.add_column("Kind")
    table.add_column("Confidence", justify="right")

    for field_mapping in mapping:
        style = _confidence_style(field_mapping.confidence)
        label = "user" if field_mapping.user_defined else f"{field_mapping.confidence}"
        table.add_row(
            field_mapping.field.value,
            field_mapping.property_name,
            field_mapping.property_kind.value,
            f"[{style}]{label}[/{style}]",
        )
    console.print(table)

    claimed = {m.property_name for m in mapping}
    unmapped = [p.name for p in schema.property_list() if p.name not in claimed]
    if unmapped:
        console.print(f"[dim]Unmapped properties: {', '.join(unmapped)}[/dim]")

    if save:
        settings.saved_mappings[database_id] = mapping.to_dict()
        store.save(settings)
        console.print(f"[green]Saved mapping for {schema.title}.[/green]")
