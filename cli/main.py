"""CLI entry point for the lifebook session server.

Usage:
  lifebook serve               run the WebSocket session server
  lifebook sessions            list persisted sessions
  lifebook manuscript BOOK_ID  print a book's manuscript and current draft
  lifebook --help              show all commands
"""

import logging
import sys

import click

from cli.theme import app_header, command_panel, get_console, sessions_table
from config.exceptions import StorageError
from config.logging_config import setup_logging
from config.settings import Settings
from models.session_storage import SessionStorage
from session.state import STORAGE_KEYS, SessionState

console = get_console()


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = Settings()
    setup_logging(level=level, log_dir=settings.log_dir)


def _load_state(storage: SessionStorage, book_id: str) -> SessionState | None:
    data = storage.get_many(book_id, STORAGE_KEYS)
    if not data:
        return None
    return SessionState.from_storage(book_id, data)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Lifebook: interview-driven memoir writing sessions."""
    _init_logging(verbose)


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to settings)")
@click.option("--port", default=None, type=int, help="Port (defaults to settings)")
def serve(host, port):
    """Run the session server."""
    import uvicorn
    from server.app import create_app

    settings = Settings()
    host = host or settings.host
    port = port or settings.port

    console.print(app_header())
    console.print(command_panel("Session server", {
        "Address": f"ws://{host}:{port}/api/session/<book_id>/connect",
        "Sessions": str(settings.session_db_path),
        "Database": str(settings.sqlite_db_path),
    }))
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


@cli.command()
def sessions():
    """List every persisted session."""
    settings = Settings()
    try:
        storage = SessionStorage(settings.session_db_path)
        rows = []
        for book_id in storage.list_namespaces():
            state = _load_state(storage, book_id)
            if state is not None:
                rows.append(state.summary())
    except StorageError as e:
        console.print(f"[error]Could not read sessions: {e}[/]")
        sys.exit(1)

    if not rows:
        console.print("[muted]No sessions yet.[/]")
        return
    console.print(sessions_table(rows))


@cli.command()
@click.argument("book_id")
def manuscript(book_id):
    """Print BOOK_ID's manuscript followed by any unarchived draft."""
    settings = Settings()
    try:
        state = _load_state(SessionStorage(settings.session_db_path), book_id)
    except StorageError as e:
        console.print(f"[error]Could not read session {book_id}: {e}[/]")
        sys.exit(1)

    if state is None:
        console.print(f"[error]No session for book {book_id}[/]")
        sys.exit(1)
    if not state.full_text:
        console.print("[muted]Nothing written yet.[/]")
        return
    click.echo(state.full_text)


if __name__ == "__main__":
    cli()
