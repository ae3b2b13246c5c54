# ABOUTME: The `bookbridge categories` command group for managing the category vocabulary.
# ABOUTME: Provides ls, ignore, unignore, merge, unmap, and similar subcommands.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookbridge.cli.options import settings_option
from bookbridge.core.categories import CategoryNormalizer, explain_similarity
from bookbridge.core.settings import Settings, SettingsStore

console = Console()


def _open_normalizer(settings_path: Path | None) -> tuple[CategoryNormalizer, Settings]:
    """Load settings and return a normalizer that saves them after every edit."""
    store = SettingsStore(settings_path)
    settings = store.load()
    normalizer = CategoryNormalizer(
        settings.categories, on_change=lambda _categories: store.save(settings)
    )
    return normalizer, settings


@click.group("categories")
def categories() -> None:
    """Manage category aliases and ignored categories."""


@categories.command("ls")
@settings_option
def categories_ls(settings_path: Path | None) -> None:
    """List canonical categories with the originals mapped onto them, then ignored ones."""
    normalizer, settings = _open_normalizer(settings_path)
    ignored = settings.categories.ignored
    canonicals = sorted(
        {value for key, value in settings.categories.aliases.items() if key != value.casefold()},
        key=str.casefold,
    )

    if not canonicals and not ignored:
        console.print("[yellow]No category aliases or ignored categories.[/yellow]")
        return

    if canonicals:
        table = Table(title="Aliases")
        table.add_column("Canonical", style="bold")
        table.add_column("Mapped from")
        for canonical in canonicals:
            table.add_row(canonical, ", ".join(sorted(normalizer.mapped_from(canonical))))
        console.print(table)

    if ignored:
        console.print(f"\n[bold]Ignored:[/bold] {', '.join(sorted(ignored))}")


@categories.command("ignore")
@click.argument("name")
@settings_option
def categories_ignore(name: str, settings_path: Path | None) -> None:
    """Hide a category from future records."""
    normalizer, _settings = _open_normalizer(settings_path)
    if normalizer.ignore(name):
        console.print(f"Ignoring [cyan]{name}[/cyan].")
    else:
        console.print(f"[yellow]{name} is already ignored.[/yellow]")


@categories.command("unignore")
@click.argument("name")
@settings_option
def categories_unignore(name: str, settings_path: Path | None) -> None:
    """Stop ignoring a category."""
    normalizer, _settings = _open_normalizer(settings_path)
    if normalizer.unignore(name):
        console.print(f"No longer ignoring [cyan]{name}[/cyan].")
    else:
        console.print(f"[yellow]{name} is not ignored.[/yellow]")


@categories.command("merge")
@click.argument("source")
@click.argument("target")
@settings_option
def categories_merge(source: str, target: str, settings_path: Path | None) -> None:
    """Alias SOURCE to TARGET so both appear as TARGET."""
    normalizer, _settings = _open_normalizer(settings_path)
    try:
        canonical = normalizer.merge(source, target)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
    console.print(f"Merged [cyan]{source}[/cyan] into [bold]{canonical}[/bold].")


@categories.command("unmap")
@click.argument("name")
@click.option(
    "--from",
    "mapped_from",
    default=None,
    help="Only remove the alias from this original category.",
)
@settings_option
def categories_unmap(name: str, mapped_from: str | None, settings_path: Path | None) -> None:
    """Remove aliases for a category."""
    normalizer, _settings = _open_normalizer(settings_path)
    removed = normalizer.unmap(name, mapped_from)
    if not removed:
        console.print(f"[yellow]No aliases found for {name}.[/yellow]")
        return
    console.print(f"Removed alias(es): {', '.join(removed)}")


@categories.command("similar")
@click.argument("names", nargs=-1, required=True)
@settings_option
def categories_similar(names: tuple[str, ...], settings_path: Path | None) -> None:
    """Suggest which of the given categories could be merged."""
    normalizer, _settings = _open_normalizer(settings_path)
    suggestions = normalizer.suggest_similar(list(names))
    if not suggestions:
        console.print("[dim]No merge suggestions.[/dim]")
        return

    table = Table(title="Merge suggestions")
    table.add_column("First", style="bold")
    table.add_column("Second", style="bold")
    table.add_column("Reason", style="dim")
    for suggestion in suggestions:
        table.add_row(
            suggestion.first,
            suggestion.second,
            explain_similarity(suggestion.first, suggestion.second),
        )
    console.print(table)
