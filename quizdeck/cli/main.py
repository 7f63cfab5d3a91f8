"""
CLI entry point for quizdeck.
"""

# Standard library imports
import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.table import Table

# Local application imports
from quizdeck.constants import DB_PATH_ENVVAR, DEFAULT_MAX_NEW_CARDS
from quizdeck.db.database import DeckDatabase
from quizdeck.exceptions import (
    DatabaseError,
    DeckNotFoundError,
    InvalidSelectionArgumentError,
)
from quizdeck.models import Card
from quizdeck.selector import QuizQueueTable, QuizSelector, QuizSelectorConfig


console = Console()

app = typer.Typer(
    name="quizdeck",
    help="Quizdeck: pick the cards for your next study session.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# ---------------------------------------------------------------------------
# Helpers for resolving the --db path (no defaults, QUIZDECK_DB envvar)
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from CLI flag or QUIZDECK_DB envvar. Exits on missing."""
    if db is not None:
        return db
    env_val = os.environ.get(DB_PATH_ENVVAR)
    if env_val:
        return Path(env_val)
    console.print(
        "[bold red]Error: --db is required "
        f"(or set the {DB_PATH_ENVVAR} environment variable).[/bold red]"
    )
    raise typer.Exit(code=1)


_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    f"Falls back to {DB_PATH_ENVVAR} env var.",
    envvar=DB_PATH_ENVVAR,
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_date(value: Optional[str]) -> date:
    """Parse a YYYY-MM-DD string; today when omitted."""
    if value is None:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise typer.BadParameter(
            f"'{value}' is not a date in YYYY-MM-DD format."
        ) from e


def _queue_table(title: str, cards: List[Card]) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Front", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Due", style="yellow")
    for position, card in enumerate(cards, start=1):
        status = "new" if card.is_new() else "due"
        due = str(card.next_due_date) if card.next_due_date else "-"
        table.add_row(str(position), card.front, status, due)
    return table


def _display_queues(
    deck_name: str, queues: QuizQueueTable, current_date: date
) -> None:
    due_queue, repeat_queue, introduction_queue = queues
    console.print(
        f"[bold cyan]Quiz for '{deck_name}' on {current_date}:[/bold cyan] "
        f"{len(due_queue)} cards, {len(introduction_queue)} new."
    )
    console.print(_queue_table("Due Queue", due_queue))
    console.print(_queue_table("Repeat Queue", repeat_queue))
    console.print(_queue_table("Introduction Queue", introduction_queue))


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------


@app.command()
def decks(db: Optional[Path] = _db_option):
    """List the stored decks with their card counts."""
    db_path = _resolve_db_path(db)
    try:
        with DeckDatabase(db_path=db_path) as db_inst:
            summaries = db_inst.get_deck_summaries()
    except DatabaseError as e:
        console.print(f"[bold red]A database error occurred: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    if not summaries:
        console.print("[yellow]No decks stored in the database.[/yellow]")
        return

    table = Table(title="Decks")
    table.add_column("Deck Name", style="cyan")
    table.add_column("Card Count", style="magenta")
    table.add_column("Description")
    for summary in summaries:
        table.add_row(
            summary["name"], str(summary["card_count"]), summary["description"]
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Quiz
# ---------------------------------------------------------------------------


@app.command()
def quiz(
    deck_name: str = typer.Argument(..., help="Name of the deck to quiz."),
    db: Optional[Path] = _db_option,
    max_new: int = typer.Option(
        DEFAULT_MAX_NEW_CARDS,
        "--max-new",
        help="Maximum number of new cards to introduce.",
    ),
    on_date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date to build the session for (YYYY-MM-DD). Defaults to today.",
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Seed for the shuffle, for repeatable output."
    ),
):
    """
    Show the cards selected for a study session without recording anything.

    The stored deck is not modified; the shuffled order is discarded.
    """
    db_path = _resolve_db_path(db)
    current_date = _parse_date(on_date)
    try:
        with DeckDatabase(db_path=db_path, read_only=True) as db_inst:
            deck = db_inst.load_deck(deck_name)
    except DeckNotFoundError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold red]A database error occurred: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    selector = QuizSelector(QuizSelectorConfig(seed=seed))
    try:
        queues = deck.select_for_quiz(max_new, current_date, selector=selector)
    except InvalidSelectionArgumentError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    _display_queues(deck.name, queues, current_date)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


@app.command()
def delete(
    deck_name: str = typer.Argument(..., help="Name of the deck to delete."),
    db: Optional[Path] = _db_option,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
):
    """Delete a stored deck."""
    db_path = _resolve_db_path(db)
    if not yes:
        confirmed = typer.confirm(
            f"Are you sure you want to delete deck '{deck_name}'?"
        )
        if not confirmed:
            console.print("Delete operation cancelled.")
            raise typer.Exit()

    try:
        with DeckDatabase(db_path=db_path) as db_inst:
            deleted = db_inst.delete_deck(deck_name)
    except DatabaseError as e:
        console.print(f"[bold red]A database error occurred: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    if not deleted:
        console.print(f"[bold red]Error: Deck '{deck_name}' not found.[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[bold green]Deleted deck '{deck_name}'.[/bold green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application.

    If an unexpected exception occurs, print a bold red error message and
    exit with status code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
