import asyncio
import logging
from typing import Optional

import typer
import uvicorn
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from api import create_app
from config import settings
from store import BookStore, StoreUnavailable

APP_NAME = "Bookshelf CLI"

console = Console()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME)


@app.command("serve")
def cli_serve(
    host: str = typer.Option(settings.api_host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.api_port, "--port", "-p", help="Port to listen on"),
    data_file: Optional[str] = typer.Option(None, "--data-file", "-d", help="Backing JSON file (default: data dir setting)"),
):
    """Start the HTTP API with uvicorn."""
    path = data_file or settings.books_path
    console.print(f"Starting {settings.app_name} on http://{host}:{port}/ (books: {path})")
    uvicorn.run(create_app(BookStore(path)), host=host, port=port, log_level=settings.log_level.lower())


@app.command("list")
def cli_list(
    data_file: Optional[str] = typer.Option(None, "--data-file", "-d", help="Backing JSON file (default: data dir setting)"),
):
    """Print every book in the backing file."""
    store = BookStore(data_file or settings.books_path)
    try:
        asyncio.run(store.load())
    except StoreUnavailable as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        raise typer.Exit(code=1)

    books = store.get_all()
    if not books:
        console.print("No books in library.")
        return

    table = Table(title="Books", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    for book in books:
        table.add_row(str(book.id), book.title or "", book.author or "")
    console.print(table)


if __name__ == "__main__":
    app()
