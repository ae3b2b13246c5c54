# ABOUTME: The `bookbridge add` command for writing one book into a Notion database.
# ABOUTME: Builds the effective record, checks for duplicates, asks what to do, and writes.

import dataclasses
import logging
from pathlib import Path

import click
from rich.console import Console

from bookbridge.cli.options import settings_option, token_option
from bookbridge.cli.review import DuplicateReview
from bookbridge.core.categories import CategoryNormalizer
from bookbridge.core.reconcile import (
    Decision,
    ReconciliationController,
    ReconciliationSession,
    SessionState,
)
from bookbridge.core.settings import SettingsStore
from bookbridge.core.sources import CandidateSource
from bookbridge.errors import DestinationError, DestinationValidationError, SourceFetchError
from bookbridge.metadata.audnexus import AudnexusSource
from bookbridge.metadata.googlebooks import GoogleBooksSource
from bookbridge.metadata.http import SourceHttpClient
from bookbridge.metadata.loader import load_record
from bookbridge.metadata.openlibrary import OpenLibrarySource
from bookbridge.metadata.types import SemanticField, SourceRecord
from bookbridge.notion.client import NotionDestination
from bookbridge.notion.destination import Destination

logger = logging.getLogger(__name__)

console = Console()

_DUPLICATE_DECISIONS = {
    "cancel": Decision.CANCEL,
    "replace": Decision.REPLACE,
    "keep-both": Decision.KEEP_BOTH,
}

_PROVIDERS = ("openlibrary", "googlebooks")


def _create_destination(token: str) -> Destination:
    """Create the default destination (Notion)."""
    return NotionDestination.from_token(token)


def _create_source(
    provider: str = "openlibrary", api_key: str | None = None
) -> OpenLibrarySource | GoogleBooksSource:
    """Create the bibliographic source for an ISBN lookup."""
    if provider == "googlebooks":
        return GoogleBooksSource(SourceHttpClient(), api_key=api_key)
    return OpenLibrarySource(http_client=SourceHttpClient())


def _create_audiobook_source() -> AudnexusSource:
    return AudnexusSource(SourceHttpClient())


def _parse_source_choices(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[SemanticField, CandidateSource]]:
    """Turn repeated FIELD=TAG options into (field, source) pairs."""
    choices = []
    for value in values:
        field_name, sep, tag = value.partition("=")
        if not sep:
            raise click.BadParameter(f"expected FIELD=TAG, got {value!r}", ctx, param)
        try:
            field = SemanticField(field_name.strip())
        except ValueError:
            raise click.BadParameter(f"unknown field {field_name.strip()!r}", ctx, param) from None
        try:
            source = CandidateSource.parse(tag)
        except ValueError:
            raise click.BadParameter(f"unknown source {tag.strip()!r}", ctx, param) from None
        choices.append((field, source))
    return choices


def _load_source_record(
    isbn: str | None,
    json_path: Path | None,
    provider: str = "openlibrary",
    api_key: str | None = None,
) -> SourceRecord:
    if json_path is not None:
        return load_record(json_path)
    assert isbn is not None
    record = _create_source(provider, api_key).fetch_record(isbn)
    if record is None:
        raise SourceFetchError(f"No record found for ISBN {isbn}")
    return record


def _attach_audiobook(record: SourceRecord, asin: str | None) -> SourceRecord:
    """Look up the audiobook and mark the record as checked.

    A failed lookup leaves the record unchecked, so the audiobook is unknown
    rather than absent.
    """
    source = _create_audiobook_source()
    author = record.authors[0] if record.authors else None
    try:
        if asin:
            audiobook = source.fetch_by_asin(asin)
        else:
            audiobook = source.search(record.title, author)
    except SourceFetchError as exc:
        console.print(f"[yellow]Audiobook lookup failed: {exc}[/yellow]")
        return record

    if audiobook is None:
        console.print("[dim]No audiobook found.[/dim]")
    else:
        logger.debug("Attached audiobook %s", audiobook.asin)
    return dataclasses.replace(record, audiobook=audiobook, audiobook_checked=True)


def _apply_choices(
    controller: ReconciliationController,
    session: ReconciliationSession,
    source_choices: list[tuple[SemanticField, CandidateSource]],
    excluded: tuple[str, ...],
) -> None:
    for field, source in source_choices:
        if source not in controller.available_sources(session, field):
            console.print(
                f"[yellow]{field.value} has no value from {source.tag}; "
                f"the default source will be used.[/yellow]"
            )
        controller.select_source(session, field, source)

    for name in excluded:
        selected = {c.casefold() for c in session.category_selection.selected}
        if name.strip().casefold() not in selected:
            console.print(f"[yellow]No category {name!r} to exclude.[/yellow]")
            continue
        controller.toggle_category(session, name)
    if excluded:
        controller.refresh_categories(session)


@click.command("add")
@click.argument("database_id")
@click.option("--isbn", default=None, help="Look the book up by ISBN.")
@click.option(
    "--json",
    "json_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the book (and any editions or audiobook) from a JSON file.",
)
@click.option(
    "--provider",
    type=click.Choice(_PROVIDERS),
    default="openlibrary",
    show_default=True,
    help="Where --isbn looks the book up.",
)
@click.option(
    "--google-api-key",
    envvar="GOOGLE_BOOKS_API_KEY",
    default=None,
    help="Google Books API key (default: $GOOGLE_BOOKS_API_KEY).",
)
@click.option(
    "--audiobook",
    "find_audiobook",
    is_flag=True,
    default=False,
    help="Search Audible for the audiobook edition by title and author.",
)
@click.option("--asin", default=None, help="Fetch the audiobook edition by ASIN.")
@click.option(
    "--source",
    "source_choices",
    multiple=True,
    metavar="FIELD=TAG",
    callback=_parse_source_choices,
    help="Take a field from another source, e.g. publisher=edition:0. Repeatable.",
)
@click.option(
    "--exclude-category",
    "excluded",
    multiple=True,
    metavar="NAME",
    help="Leave a category out of what is written. Repeatable.",
)
@click.option(
    "--save-sources",
    is_flag=True,
    default=False,
    help="Remember the --source choices as defaults for later books.",
)
@click.option(
    "--on-duplicate",
    type=click.Choice(["ask", "cancel", "replace", "keep-both"]),
    default="ask",
    help="What to do when the database already holds this book (default: ask).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show the record and payload without writing.",
)
@token_option
@settings_option
def add(
    database_id: str,
    isbn: str | None,
    json_path: Path | None,
    provider: str,
    google_api_key: str | None,
    find_audiobook: bool,
    asin: str | None,
    source_choices: list[tuple[SemanticField, CandidateSource]],
    excluded: tuple[str, ...],
    save_sources: bool,
    on_duplicate: str,
    dry_run: bool,
    token: str,
    settings_path: Path | None,
) -> None:
    """Add a book to a Notion database, reconciling it against what is there."""
    if (isbn is None) == (json_path is None):
        raise click.UsageError("Give exactly one of --isbn or --json.")

    try:
        record = _load_source_record(isbn, json_path, provider, google_api_key)
    except SourceFetchError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
    logger.debug("Loaded %r with %d edition(s)", record.title, len(record.editions))

    if asin or find_audiobook:
        record = _attach_audiobook(record, asin)

    store = SettingsStore(settings_path)
    settings = store.load()
    normalizer = CategoryNormalizer(
        settings.categories, on_change=lambda _categories: store.save(settings)
    )
    controller = ReconciliationController(_create_destination(token), settings, normalizer)
    review = DuplicateReview(console=console)

    try:
        session = controller.open_session(database_id, record)
        _apply_choices(controller, session, source_choices, excluded)
        if save_sources and source_choices:
            for field, source in source_choices:
                settings.field_defaults[field.value] = source.tag
            store.save(settings)

        console.print(f"\n[bold]{record.title}[/bold] → [cyan]{session.schema.title}[/cyan]")
        effective = controller.effective_record(session)
        sources = {field: controller.available_sources(session, field) for field in effective}
        review.show_record(effective, session.mapping, session.categories, sources)

        if dry_run:
            console.print_json(data=controller.build_properties(session))
            state = controller.check_duplicate(session)
            if state is SessionState.DUPLICATE and session.duplicate is not None:
                console.print(f"[yellow]Would match existing record {session.duplicate.title}.[/yellow]")
            else:
                console.print("[dim]Dry run: nothing written.[/dim]")
            return

        state = controller.check_duplicate(session)
        if state is SessionState.DUPLICATE and session.duplicate is not None:
            if on_duplicate == "ask":
                decision = review.decide(session.duplicate)
            else:
                decision = _DUPLICATE_DECISIONS[on_duplicate]
            controller.resolve(session, decision)

        result = controller.write(session)
    except DestinationValidationError as exc:
        console.print(f"[red]Notion rejected the record: {exc.diagnostic}[/red]")
        raise SystemExit(1) from exc
    except DestinationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc

    if result.action == "cancelled":
        console.print("[yellow]Cancelled; nothing written.[/yellow]")
        return

    assert result.record is not None
    verb = "Updated" if result.action == "updated" else "Created"
    console.print(f"[green]{verb}:[/green] {result.record.url or result.record.id}")
