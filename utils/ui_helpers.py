import os
import json
from typing import List, Any
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "CATALOG_CLI_OUTPUT"
OUTPUT_MODES = {"plain", "json", "rich"}

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"Unknown output mode: {mode!r} (expected plain, json or rich)")
    os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_list_result(books: List[Any]) -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - Title by Author (Year)' lines, or 'No books in catalog.'
    - json: JSON array of full records
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books in catalog.")
        return

    if mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="green")
        table.add_column("Year", justify="right")
        for b in books:
            table.add_row(b.id, escape(b.title), escape(b.author), escape(b.genre), str(b.year))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author} ({b.year})")


def print_book_result(book: Any) -> None:
    """Print a single book in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        lines = [
            f"[bold]Author:[/] {escape(book.author)}",
            f"[bold]Genre:[/] {escape(book.genre)}",
            f"[bold]Year:[/] {book.year}",
        ]
        if book.description:
            lines.append(f"[bold]Description:[/] {escape(book.description)}")
        lines.append(f"[dim]{book.id} · created {book.created_at} · updated {book.updated_at}[/]")
        _console.print(Panel.fit("\n".join(lines), title=f"📖 {escape(book.title)}", border_style="blue"))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Genre: {book.genre}")
        print(f"Year: {book.year}")
        if book.description:
            print(f"Description: {book.description}")
        print(f"Created: {book.created_at}")
        print(f"Updated: {book.updated_at}")
