"""Mini README: Entry point CLI for the event ledger.

This script exposes a Typer CLI that starts the FastAPI service and performs
the file-based chores (export, import, status) against the configured ledger.
Settings come from ``EVENTLEDGER_`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
import uvicorn

from eventledger.board import LedgerBoard, build_board
from eventledger.configuration import get_settings
from eventledger.errors import LedgerError
from eventledger.ledger.storage import load_payload
from eventledger.logging_utils import configure_root_logger

cli = typer.Typer(help="Run and manage the event ledger.")


def _started_board() -> LedgerBoard:
    board = build_board(get_settings())
    result = asyncio.run(board.start())
    if not result.success:
        typer.echo(f"Warning: {result.error}", err=True)
    return board


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger()

    # Browsers cannot open the 0.0.0.0 sentinel, so point them at localhost.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting event ledger on {effective_host}:{effective_port}.\n"
        f"API docs at http://{browser_host}:{effective_port}/docs"
    )
    uvicorn.run(
        "eventledger.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def export(
    directory: Path = typer.Option(Path("."), help="Directory to write the export into."),
) -> None:
    """Write the current ledger to a timestamped JSON file."""

    board = _started_board()
    filename, payload = board.export()
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / filename
    destination.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    typer.echo(f"Data exported to {destination}")


@cli.command("import-file")
def import_file(path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Merge an exported JSON file (current or legacy format) into the ledger."""

    board = _started_board()
    try:
        merge_stats = asyncio.run(board.import_payload(load_payload(path.read_bytes())))
    except LedgerError as error:
        typer.echo(f"Failed to import data: {error}", err=True)
        raise typer.Exit(code=1) from error
    typer.echo(merge_stats.summary())
    status = board.sync_status()
    if status.last_error:
        typer.echo(f"Remote sync failed: {status.last_error}", err=True)


@cli.command()
def status() -> None:
    """Show sync state and per-event budget rollups."""

    board = _started_board()
    typer.echo(json.dumps(board.overview(), indent=2))


if __name__ == "__main__":
    cli()
