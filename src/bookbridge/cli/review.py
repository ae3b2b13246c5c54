# ABOUTME: Interactive review for a reconciliation session.
# ABOUTME: Renders the effective record in a Rich table and prompts for a duplicate decision.

from typing import Any

import click
from rich.console import Console
from rich.table import Table

from bookbridge.core.categories import ProcessResult
from bookbridge.core.dates import format_display, resolve_date
from bookbridge.core.reconcile import Decision, DuplicateMatch
from bookbridge.core.sources import DATE_FIELDS, CandidateSource
from bookbridge.mapping.mapper import MappingSet
from bookbridge.metadata.fields import ordered_fields
from bookbridge.metadata.types import SemanticField

_MAX_CELL = 80

_CHOICES = {
    "r": Decision.REPLACE,
    "k": Decision.KEEP_BOTH,
    "c": Decision.CANCEL,
}


def _display(field: SemanticField, value: Any) -> str:
    if value is None or value == [] or value == "":
        return "—"
    if field in DATE_FIELDS:
        resolved = resolve_date(value)
        return format_display(resolved) if resolved else str(value)
    if isinstance(value, list):
        text = ", ".join(str(v) for v in value)
    else:
        text = str(value)
    text = " ".join(text.split())
    if len(text) > _MAX_CELL:
        text = text[: _MAX_CELL - 1] + "…"
    return text


class DuplicateReview:
    """Shows what will be written and asks what to do about an existing record."""

    def __init__(self, *, console: Console | None = None) -> None:
        self._console = console or Console()

    def show_record(
        self,
        effective: dict[SemanticField, Any],
        mapping: MappingSet,
        categories: ProcessResult | None = None,
        sources: dict[SemanticField, list[CandidateSource]] | None = None,
    ) -> None:
        """Render the effective record, one row per field with a value.

        With sources, a last column lists the tags each field could be taken
        from instead, as accepted by `add --source FIELD=TAG`.
        """
        table = Table(title="Effective record")
        table.add_column("Field", style="bold")
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        if sources is not None:
            table.add_column("Sources", style="dim")

        for field in ordered_fields():
            if field not in effective:
                continue
            mapped = mapping.get(field)
            prop = mapped.property_name if mapped else "[dim]unmapped[/dim]"
            row = [field.value, prop, _display(field, effective[field])]
            if sources is not None:
                row.append(", ".join(s.tag for s in sources.get(field, [])))
            table.add_row(*row)

        self._console.print(table)

        if categories is not None and categories.ignored:
            ignored = ", ".join(f"[strike]{name}[/strike]" for name in categories.ignored)
            self._console.print(f"[dim]Ignored categories:[/dim] {ignored}")

    def decide(self, match: DuplicateMatch) -> Decision:
        """Prompt until the user picks replace, keep both, or cancel."""
        self._console.print(
            f"\n[yellow]A record with the same identity already exists:[/yellow] "
            f"[bold]{match.title}[/bold]"
        )
        if match.url:
            self._console.print(f"  {match.url}")

        while True:
            choice = click.prompt(
                "[r] Replace  [k] Keep both  [c] Cancel", type=str, default="c"
            )
            decision = _CHOICES.get(choice.strip().lower()[:1])
            if decision is not None:
                return decision
            self._console.print("[red]Please answer r, k, or c.[/red]")
