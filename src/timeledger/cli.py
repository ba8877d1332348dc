# src/timeledger/cli.py
"""
timeledger Command Line Interface (CLI).

This module implements the operator-facing terminal interface using `typer`
and `rich`. It talks to the same content store and submission service as the
HTTP API.

Usage
-----
    # Serve the submission API
    $ timeledger serve --port 8000

    # Show what is stored
    $ timeledger entries --limit 20

    # Append an entry from the terminal
    $ timeledger submit --date "Mar 30" --description "Test entry" --image photo.png

    # Label rows written before the quarter column existed
    $ timeledger backfill-quarters --dry-run
"""

from __future__ import annotations

import asyncio
import base64
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from timeledger.core.contracts.entry import TimelineEntry
from timeledger.core.errors import TimelineError
from timeledger.core.settings import Settings, configure_logging, load_settings
from timeledger.services.maintenance import backfill_quarters, backfill_stored_quarters
from timeledger.services.submission import SubmissionService
from timeledger.storage import ContentStore, build_content_store

load_dotenv()

app = typer.Typer(
    help="timeledger: append timeline entries to a CSV kept in a hosted repository.",
    rich_markup_mode="markdown",
)
console = Console()

T = TypeVar("T")


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _load() -> tuple[Settings, ContentStore]:
    """Build settings and the matching store, exiting cleanly on bad config."""
    try:
        settings = load_settings()
    except ValueError as exc:
        console.print(f"[bold red]❌ Configuration Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    configure_logging(settings)
    return settings, build_content_store(settings)


def _run(store: ContentStore, factory: Callable[[], Awaitable[T]]) -> T:
    """Run one coroutine and close the store afterwards, mapping failures to exit 1."""

    async def _main() -> T:
        try:
            return await factory()
        finally:
            await store.aclose()

    try:
        return asyncio.run(_main())
    except TimelineError as exc:
        console.print(f"\n[bold red]❌ {exc.kind.title()} Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


def _image_data_url(path: Path) -> str:
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8000,
    reload: Annotated[bool, typer.Option(help="Reload on code changes.")] = False,
) -> None:
    """Run the submission API with uvicorn."""
    from timeledger.api.server import main as run_server

    run_server(host=host, port=port, reload=reload)


@app.command()  # type: ignore[misc]
def entries(
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Show only the last N entries (0 = all).")
    ] = 0,
) -> None:
    """Print the stored timeline entries as a table."""
    settings, store = _load()
    service = SubmissionService(settings, store)
    rows = _run(store, service.list_entries)
    if limit > 0:
        rows = rows[-limit:]

    table = Table(title=f"{settings.csv_path} ({len(rows)} shown)")
    for column in ("date", "year", "description", "quarter", "image"):
        table.add_column(column)
    for row in rows:
        table.add_row(row.date, row.year, row.description[:60], row.quarter, row.image_path)
    console.print(table)


@app.command()  # type: ignore[misc]
def submit(
    date: Annotated[str, typer.Option("--date", "-d", help="Date label, e.g. 'Mar 30'.")],
    description: Annotated[str, typer.Option("--description", "-t", help="Primary description.")],
    year: Annotated[str, typer.Option(help="Year column.")] = "",
    link: Annotated[str, typer.Option(help="Primary link.")] = "",
    image: Annotated[
        Path | None,
        typer.Option(
            "--image",
            "-i",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Image file to store alongside the entry.",
        ),
    ] = None,
) -> None:
    """Append one entry (and optional image) to the stored timeline."""
    settings, store = _load()
    service = SubmissionService(settings, store)
    entry = TimelineEntry(date=date, year=year, description=description, link=link)
    image_data = _image_data_url(image) if image else None
    filename = image.name if image else None

    result = _run(store, lambda: service.submit(entry, image_data, filename))

    body = f"[bold green]✅ {result.message}[/bold green]"
    if result.image_path:
        body += f"\nImage: [link={result.image_path}]{result.image_path}[/link]"
    if result.attempts > 1:
        body += f"\n[dim]Committed after {result.attempts} attempts (concurrent writers)[/dim]"
    console.print(Panel(body, title=settings.csv_path, border_style="green"))


@app.command("backfill-quarters")  # type: ignore[misc]
def backfill_quarters_command(
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Report the changes without committing.")
    ] = False,
) -> None:
    """Fill the quarter column for rows stored before it existed."""
    settings, store = _load()

    if dry_run:

        async def _preview() -> int:
            current = await store.get(settings.csv_path)
            return backfill_quarters(current.text()).updated_rows

        updated = _run(store, _preview)
        console.print(f"[yellow]Dry run:[/yellow] {updated} row(s) would be updated.")
        return

    report = _run(store, lambda: backfill_stored_quarters(settings, store))
    console.print(
        f"[bold green]✅ Backfilled[/bold green] {report.updated_rows} of {report.total_rows} row(s)."
    )


if __name__ == "__main__":
    app()
