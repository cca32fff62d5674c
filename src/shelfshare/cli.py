"""Command-line interface for shelfshare.

Built with Typer for commands and Rich for output. Every command works
against the store selected by SHELFSHARE_BACKEND.
"""

import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import configure_logging, get_config
from .db.schemas import BookCreate, OperationResult
from .errors import ShelfshareError
from .inventory import InventoryManager
from .journal import JournalManager
from .members import MemberManager
from .store import LibraryStore, get_store

# Create the main app
app = typer.Typer(
    name="shelfshare",
    help="Track a community library's books, members and reading journals.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_warnings(result: OperationResult) -> None:
    for warning in result.warnings:
        print_warning(warning)


def _store() -> LibraryStore:
    try:
        return get_store()
    except ShelfshareError as e:
        print_error(str(e))
        raise typer.Exit(1)


def _inventory() -> InventoryManager:
    return InventoryManager(_store())


def _fail(error: ShelfshareError) -> None:
    print_error(str(error))
    raise typer.Exit(1)


# ============================================================================
# General Commands
# ============================================================================


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    configure_logging("DEBUG" if verbose else None)


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"shelfshare {__version__}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    debug: bool = typer.Option(False, "--debug", help="Enable the Flask debugger"),
) -> None:
    """Run the JSON web API."""
    from .web import create_app

    config = get_config()
    problems = config.validate()
    if problems:
        for problem in problems:
            print_error(problem)
        raise typer.Exit(1)

    flask_app = create_app(_store())
    flask_app.run(host=host or config.host, port=port or config.port, debug=debug)


# ============================================================================
# Inventory Commands
# ============================================================================


@app.command("books")
def list_books(
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Only books held here"),
) -> None:
    """List catalogued books and who holds them."""
    try:
        books = _inventory().list_books()
    except ShelfshareError as e:
        _fail(e)

    if location:
        books = [b for b in books if b.location.lower() == location.strip().lower()]

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(title="Inventory", show_header=True, header_style="bold magenta")
    table.add_column("ISBN", style="dim")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Authors", style="green", max_width=25)
    table.add_column("Location", style="yellow")
    table.add_column("Card", justify="right")
    table.add_column("Requested By")

    for book in books:
        table.add_row(
            book.isbn,
            book.title,
            book.authors,
            book.location or "-",
            str(book.member.library_card_number) if book.member else "-",
            book.requested_by or "-",
        )

    console.print(table)


@app.command("add-book")
def add_book(
    isbn: str = typer.Option(..., "--isbn", "-i", prompt="ISBN"),
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
    authors: str = typer.Option(..., "--authors", "-a", prompt="Authors"),
    location: str = typer.Option(..., "--location", "-l", prompt="Location"),
    reading_level: str = typer.Option("", "--reading-level", help="Reading level"),
    cover: str = typer.Option("", "--cover", help="Cover image URL"),
    notes: str = typer.Option("", "--notes", "-n", help="Notes"),
) -> None:
    """Catalogue a book by hand."""
    data = BookCreate(
        isbn=isbn,
        title=title,
        authors=authors,
        location=location,
        reading_level=reading_level,
        cover=cover,
        notes=notes,
    )
    try:
        result = _inventory().add_book(data)
    except ShelfshareError as e:
        _fail(e)

    print_success(f"Added: {result.value.title} at {result.value.location}")
    print_warnings(result)


@app.command()
def move(
    isbn: str = typer.Argument(..., help="ISBN of the book"),
    location: str = typer.Argument(..., help="New holder's first name"),
) -> None:
    """Move a book to a new holder (clears any request)."""
    try:
        result = _inventory().move_book(isbn, location)
    except ShelfshareError as e:
        _fail(e)

    print_success(f"Moved: {result.value.title or isbn} -> {location}")
    print_warnings(result)


@app.command()
def request(
    isbn: str = typer.Argument(..., help="ISBN of the book"),
    requested_by: str = typer.Argument(..., help="Who wants it next"),
) -> None:
    """Request a book. Replaces any earlier request."""
    try:
        _inventory().request_book(isbn, requested_by)
    except ShelfshareError as e:
        _fail(e)

    print_success(f"{requested_by} requested {isbn}")


@app.command()
def lookup(
    isbn: str = typer.Argument(..., help="ISBN to look up"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Look up book metadata on Google Books."""
    from .api import GoogleBooksClient

    try:
        metadata = GoogleBooksClient().lookup(isbn)
    except ShelfshareError as e:
        _fail(e)

    if as_json:
        console.print_json(json.dumps(metadata.to_api()))
        return

    console.print(f"[bold cyan]{metadata.title}[/bold cyan]")
    console.print(f"  by {metadata.authors or 'Unknown'}")
    for label, value in (
        ("Publisher", metadata.publishers),
        ("Pages", metadata.pages),
        ("Genres", metadata.genres),
        ("Language", metadata.language),
    ):
        if value:
            console.print(f"  [dim]{label}:[/dim] {value}")


# ============================================================================
# Member Commands
# ============================================================================


@app.command()
def register(
    first_name: str = typer.Option(..., "--first-name", "-f", prompt="First name"),
    last_name: str = typer.Option(..., "--last-name", "-l", prompt="Last name"),
    city: str = typer.Option("", "--city", help="City"),
    neighborhood: str = typer.Option("", "--neighborhood", help="Neighborhood"),
) -> None:
    """Register a new member and issue a library card."""
    try:
        result = MemberManager(_store()).register(
            {
                "first_name": first_name,
                "last_name": last_name,
                "city": city,
                "neighborhood": neighborhood,
            }
        )
    except ShelfshareError as e:
        _fail(e)

    member = result.value
    print_success(
        f"Welcome {member.first_name}! Your library card number is "
        f"#{member.library_card_number}."
    )
    print_warnings(result)


@app.command()
def members() -> None:
    """List registered members."""
    try:
        rows = MemberManager(_store()).list_members()
    except ShelfshareError as e:
        _fail(e)

    if not rows:
        console.print("[dim]No members registered.[/dim]")
        return

    table = Table(title="Members", show_header=True, header_style="bold magenta")
    table.add_column("Card", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("City")
    table.add_column("Neighborhood")

    for member in rows:
        table.add_row(
            str(member.library_card_number),
            f"{member.first_name} {member.last_name_initial}",
            member.city or "-",
            member.neighborhood or "-",
        )

    console.print(table)


@app.command()
def locations() -> None:
    """List valid location names."""
    try:
        names = MemberManager(_store()).location_choices()
    except ShelfshareError as e:
        _fail(e)

    for name in names:
        console.print(name)


# ============================================================================
# Journal Commands
# ============================================================================


@app.command()
def journal(
    card_number: int = typer.Argument(..., help="Library card number"),
) -> None:
    """Show a member's reading journal."""
    try:
        entries = JournalManager(_store()).get_journal(card_number)
    except ShelfshareError as e:
        _fail(e)

    if not entries:
        console.print("[dim]Journal is empty.[/dim]")
        return

    table = Table(title=f"Journal #{card_number}", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("ISBN", style="dim")
    table.add_column("Added")
    table.add_column("Done", justify="center")
    table.add_column("Notes", max_width=40)

    for position, entry in enumerate(entries, 1):
        table.add_row(
            str(position),
            entry.title,
            entry.isbn,
            entry.date_added,
            "✓" if entry.finished else "",
            entry.notes,
        )

    console.print(table)


@app.command()
def note(
    card_number: int = typer.Argument(..., help="Library card number"),
    isbn: str = typer.Argument(..., help="ISBN of the journal entry"),
    text: str = typer.Argument(..., help="New notes (replaces existing)"),
) -> None:
    """Replace the notes on a journal entry."""
    try:
        result = JournalManager(_store()).update_notes(card_number, isbn, text)
    except ShelfshareError as e:
        _fail(e)

    print_success("Notes saved")
    print_warnings(result)


@app.command()
def finish(
    card_number: int = typer.Argument(..., help="Library card number"),
    isbn: str = typer.Argument(..., help="ISBN of the journal entry"),
    undo: bool = typer.Option(False, "--undo", help="Mark as not finished"),
) -> None:
    """Mark a journal entry finished."""
    try:
        result = JournalManager(_store()).set_finished(card_number, isbn, not undo)
    except ShelfshareError as e:
        _fail(e)

    print_success("Marked unfinished" if undo else "Marked finished")
    print_warnings(result)


@app.command()
def reorder(
    card_number: int = typer.Argument(..., help="Library card number"),
    isbns: List[str] = typer.Argument(..., help="ISBNs in the new order"),
) -> None:
    """Reorder a journal; ISBNs are ranked in the order given."""
    updates = [{"isbn": isbn, "order": rank} for rank, isbn in enumerate(isbns, 1)]
    try:
        result = JournalManager(_store()).reorder(card_number, updates)
    except ShelfshareError as e:
        _fail(e)

    print_success(f"Reordered {len(result.value)} entries")
    print_warnings(result)
