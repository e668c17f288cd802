"""CLI interface for Semantic Bookmarks."""

import asyncio
import json
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ....common.exception_handler import (
    format_exception_json,
    get_exit_code,
    is_retryable,
    log_exception,
)
from ....composition.container import get_indexing_service, get_search_service, get_store
from ....config.logging import setup_logging
from ....config.settings import get_settings
from ....core.domain import QualityBucket

app = typer.Typer(
    name="semantic-bookmarks",
    help="Semantic search over your bookmarks using generated Q&A pairs",
    add_completion=False,
)

console = Console(legacy_windows=False)

QUALITY_STYLES = {
    QualityBucket.EXCELLENT: "bold green",
    QualityBucket.GOOD: "green",
    QualityBucket.FAIR: "yellow",
    QualityBucket.POOR: "red",
}


def _debug_mode() -> bool:
    return os.getenv("DEBUG", "false").lower() == "true"


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.

    Args:
        exc: The exception to handle.
    """
    log_exception(exc, level=logging.DEBUG)
    debug = _debug_mode()
    error_data = format_exception_json(exc, include_trace=debug)

    if debug:
        console.print(
            Panel(
                escape(json.dumps(error_data, indent=2, default=str)),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error_type = error_data["error"]["type"]
    error_msg = error_data["error"]["message"]
    error_code = error_data["error"].get("code", "UNKNOWN")

    console.print(f"\n[red]Error \\[{error_code}]:[/] {escape(error_msg)}")
    console.print(f"[dim]Type: {error_type}[/]")
    if is_retryable(exc):
        console.print("[dim]The service may recover; try again shortly[/]")
    console.print("[dim]Set DEBUG=true for full details[/]")


def _fail(exc: Exception) -> typer.Exit:
    handle_cli_error(exc)
    return typer.Exit(get_exit_code(exc))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Semantic Bookmarks command line."""
    try:
        settings = get_settings()
    except Exception as exc:
        raise _fail(exc)

    level = "DEBUG" if verbose else settings.log_level
    setup_logging(level, json_format=settings.log_json)


@app.command()
def index(
    owner_id: str = typer.Argument(..., help="Bookmark id that owns the content"),
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Text or markdown file to index"
    ),
) -> None:
    """Generate Q&A pairs for a file and store them under OWNER_ID."""
    try:
        content = file.read_text(encoding="utf-8")
        service = get_indexing_service()
        with console.status("[bold green]Generating Q&A pairs...[/]"):
            items = asyncio.run(service.index(owner_id, content))
    except Exception as exc:
        raise _fail(exc)

    if not items:
        console.print(f"[yellow]No Q&A pairs generated for {escape(owner_id)}[/]")
        return

    console.print(f"[green]Indexed {len(items)} Q&A items for {escape(owner_id)}[/]")
    for item in items:
        console.print(f"  [dim]•[/] {escape(item.question)}")


@app.command()
def search(
    query: str = typer.Argument(..., help="What you are looking for"),
    top_k: int = typer.Option(
        0, "--top-k", "-k", min=0, help="Candidates to rank (0 = configured default)"
    ),
) -> None:
    """Search indexed bookmarks."""
    try:
        service = get_search_service()
        with console.status("[bold green]Searching...[/]"):
            groups = asyncio.run(service.search(query, top_k=top_k or None))
    except Exception as exc:
        raise _fail(exc)

    if not groups:
        console.print("[yellow]No matches found[/]")
        return

    table = Table(title=f"Results for '{escape(query)}'")
    table.add_column("Bookmark", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Quality")
    table.add_column("Best question")

    for group in groups:
        style = QUALITY_STYLES.get(group.quality, "")
        table.add_row(
            escape(group.owner_id),
            f"{group.best_score:.3f}",
            f"[{style}]{group.quality.value}[/]" if style else group.quality.value,
            escape(group.representative_item.question),
        )

    console.print(table)


@app.command()
def delete(
    owner_id: str = typer.Argument(..., help="Bookmark id whose Q&A items to delete"),
) -> None:
    """Delete every Q&A item of a bookmark."""
    try:
        removed = get_store().delete_owner(owner_id)
    except Exception as exc:
        raise _fail(exc)

    console.print(f"Deleted {removed} Q&A items for {escape(owner_id)}")


@app.command()
def stats() -> None:
    """Show what the Q&A store holds."""
    try:
        store = get_store()
        items = store.count()
        owners = store.owner_count()
    except Exception as exc:
        raise _fail(exc)

    console.print("[bold]Semantic Bookmarks Status[/]\n")
    console.print(f"  Database: {escape(str(store.db_path))}")
    console.print(f"  Bookmarks: {owners}")
    console.print(f"  Q&A items: {items}")
    if items == 0:
        console.print("\n[yellow]Nothing indexed yet. Run 'semantic-bookmarks index' first.[/]")


@app.command()
def config() -> None:
    """Print the effective configuration (API key masked)."""
    settings = get_settings()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name in sorted(type(settings).model_fields):
        if name == "qa_system_prompt":
            continue
        value = settings.masked_api_key() if name == "api_key" else getattr(settings, name)
        table.add_row(name, escape(str(value)))

    console.print(table)


if __name__ == "__main__":
    app()
