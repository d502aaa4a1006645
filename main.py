import os
import subprocess
import sys
import webbrowser
from typing import Optional

import typer
from rich.console import Console

from catalog import Catalog, CatalogError
from config import settings
from utils.ui_helpers import set_output_mode, print_list_result, print_book_result
from utils.validators import BookValidationError

app = typer.Typer(help="Book Catalog CLI")

console = Console()

# Filled in by the global callback before any command runs
_state = {"database_url": None}


@app.callback()
def _global_options(
    output: str = typer.Option(
        "plain",
        "--output",
        "-o",
        help="Output format: plain | json | rich",
    ),
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        envvar="DATABASE_URL",
        help="Store connection string, e.g. sqlite:///catalog.db",
    ),
):
    """Global options (output mode and store location)."""
    try:
        set_output_mode(output)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--output")
    _state["database_url"] = database_url


def _open_catalog() -> Catalog:
    try:
        return Catalog(_state["database_url"] or settings.database_url)
    except (CatalogError, ValueError) as e:
        print(f"Could not open catalog: {e}")
        raise typer.Exit(code=1)


def _fail(message: str) -> None:
    print(message)
    raise typer.Exit(code=1)


@app.command("list")
def cli_list():
    """List all books, newest first."""
    catalog = _open_catalog()
    try:
        books = catalog.list_books()
    except CatalogError as e:
        _fail(f"Error fetching books: {e}")
    print_list_result(books)


@app.command("find")
def cli_find(book_id: str):
    """Show the details of one book."""
    catalog = _open_catalog()
    try:
        book = catalog.find_book(book_id)
    except CatalogError as e:
        _fail(f"Error fetching book: {e}")
    if book is None:
        _fail(f"Book with id {book_id} not found.")
    print_book_result(book)


@app.command("add")
def cli_add(
    title: str = typer.Option(..., "--title", help="Book title"),
    author: str = typer.Option(..., "--author", help="Author name"),
    genre: str = typer.Option(..., "--genre", help="Genre"),
    year: int = typer.Option(..., "--year", help="Publication year"),
    description: str = typer.Option("", "--description", help="Optional description"),
):
    """Add a book to the catalog."""
    catalog = _open_catalog()
    try:
        book = catalog.add_book(
            {"title": title, "author": author, "genre": genre, "year": year, "description": description}
        )
    except BookValidationError as e:
        _fail(f"Error: {e}")
    except CatalogError as e:
        _fail(f"Error creating book: {e}")
    print(f"Successfully added: {book.title} by {book.author} (id {book.id})")


@app.command("update")
def cli_update(
    book_id: str,
    title: str = typer.Option(..., "--title", help="Book title"),
    author: str = typer.Option(..., "--author", help="Author name"),
    genre: str = typer.Option(..., "--genre", help="Genre"),
    year: int = typer.Option(..., "--year", help="Publication year"),
    description: str = typer.Option("", "--description", help="Optional description"),
):
    """Replace every field of a book (all required fields must be given)."""
    catalog = _open_catalog()
    try:
        book = catalog.update_book(
            book_id,
            {"title": title, "author": author, "genre": genre, "year": year, "description": description},
        )
    except BookValidationError as e:
        _fail(f"Error: {e}")
    except CatalogError as e:
        _fail(f"Error updating book: {e}")
    if book is None:
        _fail(f"Book with id {book_id} not found.")
    print(f"Successfully updated: {book.title} by {book.author}")


@app.command("remove")
def cli_remove(
    book_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a book by id."""
    catalog = _open_catalog()
    if not yes and not typer.confirm(f"Delete book {book_id}?"):
        print("Cancelled.")
        return
    try:
        book = catalog.remove_book(book_id)
    except CatalogError as e:
        _fail(f"Error deleting book: {e}")
    if book is None:
        _fail(f"Book with id {book_id} not found.")
    print(f"Book with id {book_id} has been removed.")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default: API_PORT)"),
    no_browser: bool = typer.Option(False, "--no-browser", help="Do not open a web browser"),
):
    """Start the API and web client with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/"
    print(f"Starting web UI on {url}")

    if not no_browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            console.print("[yellow]Could not open a web browser automatically.[/]")

    env = dict(os.environ)
    if _state["database_url"]:
        env["DATABASE_URL"] = _state["database_url"]
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args, env=env, check=False)
    except KeyboardInterrupt:
        console.print("[dim]Server stopped.[/]")


if __name__ == "__main__":
    app()
