"""Mini README: FastAPI service exposing the ledger board.

Structure:
    * create_application - application factory wiring routes to a ``LedgerBoard``.
    * Exception handlers - map validation (400), missing sync configuration
      (409) and remote transport failures (502) to JSON error bodies.

The board is started in the application lifespan so the initial remote load
runs once per process. Every handler returns JSON; remote failures that occur
while saving after a mutation show up in ``syncStatus`` instead of failing the
request, because the local change has already been applied.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from ..board import LedgerBoard, build_board
from ..configuration import get_settings
from ..errors import LedgerValidationError, RemoteStoreError, SyncConfigurationError
from ..ledger import stats
from ..ledger.models import parse_timestamp
from ..ledger.storage import load_payload
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


def _not_found(error: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(error.args[0]) if error.args else "Not found")


def create_application(board: Optional[LedgerBoard] = None) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    ledger_board = board or build_board(get_settings())

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        result = await ledger_board.start()
        if result.success:
            LOGGER.info("Connected to remote store (last sync: %s)", result.status.last_sync)
        else:
            LOGGER.warning("Starting without remote data: %s", result.error)
        yield

    app = FastAPI(title="Event Ledger", version="0.1.0", lifespan=lifespan)
    app.state.board = ledger_board

    @app.exception_handler(LedgerValidationError)
    async def validation_failed(_: Request, error: LedgerValidationError) -> JSONResponse:
        LOGGER.info("Rejected request: %s", error)
        return JSONResponse({"detail": str(error)}, status_code=400)

    @app.exception_handler(SyncConfigurationError)
    async def sync_not_configured(_: Request, error: SyncConfigurationError) -> JSONResponse:
        return JSONResponse({"detail": str(error)}, status_code=409)

    @app.exception_handler(RemoteStoreError)
    async def remote_failed(_: Request, error: RemoteStoreError) -> JSONResponse:
        return JSONResponse(
            {"detail": str(error), "syncStatus": ledger_board.sync_status().as_dict()},
            status_code=502,
        )

    def _with_status(payload: dict) -> JSONResponse:
        payload["syncStatus"] = ledger_board.sync_status().as_dict()
        return JSONResponse(payload)

    @app.get("/ledger")
    async def read_ledger() -> JSONResponse:
        """Return the raw ledger collections."""

        return JSONResponse(ledger_board.snapshot().as_dict())

    @app.get("/stats")
    async def read_stats() -> JSONResponse:
        """Return events with rollups and their expense heads with paid/due."""

        return JSONResponse(ledger_board.overview())

    @app.post("/events")
    async def create_event(
        name: str = Form(...),
        start_date: str = Form(...),
        description: Optional[str] = Form(None),
        end_date: Optional[str] = Form(None),
    ) -> JSONResponse:
        event = await ledger_board.add_event(
            name,
            parse_timestamp(start_date),
            description=description,
            end_date=parse_timestamp(end_date) if end_date else None,
        )
        return _with_status({"event": event.as_dict(), "message": "Event created successfully"})

    @app.delete("/events/{event_id}")
    async def delete_event(event_id: str) -> JSONResponse:
        try:
            ledger = await ledger_board.remove_event(event_id)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status({"counts": ledger.counts(), "message": "Event deleted successfully"})

    @app.post("/expense-heads")
    async def create_expense_head(
        event_id: str = Form(...),
        name: str = Form(...),
        category: str = Form(...),
        total_amount: str = Form(...),
    ) -> JSONResponse:
        try:
            head = await ledger_board.add_expense_head(event_id, name, category, total_amount)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status(
            {"expenseHead": head.as_dict(), "message": "Expense head created successfully"}
        )

    @app.patch("/expense-heads/{head_id}")
    async def update_expense_head(head_id: str, total_amount: str = Form(...)) -> JSONResponse:
        try:
            head = await ledger_board.change_head_budget(head_id, total_amount)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status(
            {"expenseHead": head.as_dict(), "message": "Expense head updated successfully"}
        )

    @app.delete("/expense-heads/{head_id}")
    async def delete_expense_head(head_id: str) -> JSONResponse:
        try:
            ledger = await ledger_board.remove_expense_head(head_id)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status(
            {"counts": ledger.counts(), "message": "Expense head deleted successfully"}
        )

    @app.get("/expense-heads/{head_id}/history")
    async def expense_history(head_id: str) -> JSONResponse:
        try:
            head, entries = ledger_board.history(head_id)
        except KeyError as error:
            raise _not_found(error) from error
        ledger = ledger_board.snapshot()
        return JSONResponse(
            {
                "expenseHead": head.as_dict(),
                "amountPaid": stats.amount_paid(ledger, head_id),
                "amountDue": stats.amount_due(ledger, head_id),
                "entries": [entry.as_dict() for entry in entries],
            }
        )

    @app.post("/expense-entries")
    async def create_expense_entry(
        expense_head_id: str = Form(...),
        amount_paid: str = Form(...),
        date: Optional[str] = Form(None),
        image: Optional[str] = Form(None),
    ) -> JSONResponse:
        try:
            receipt = await ledger_board.add_expense_entry(
                expense_head_id,
                amount_paid,
                date=parse_timestamp(date) if date else None,
                image=image,
            )
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status(
            {
                "expenseEntry": receipt.entry.as_dict(),
                "warning": receipt.warning,
                "message": "Expense entry added successfully",
            }
        )

    @app.patch("/expense-entries/{entry_id}")
    async def update_expense_entry(entry_id: str, amount_paid: str = Form(...)) -> JSONResponse:
        try:
            entry = await ledger_board.change_entry_amount(entry_id, amount_paid)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status({"expenseEntry": entry.as_dict(), "message": "Entry updated successfully"})

    @app.delete("/expense-entries/{entry_id}")
    async def delete_expense_entry(entry_id: str) -> JSONResponse:
        try:
            ledger = await ledger_board.remove_expense_entry(entry_id)
        except KeyError as error:
            raise _not_found(error) from error
        return _with_status({"counts": ledger.counts(), "message": "Entry deleted successfully"})

    @app.get("/export")
    async def export_ledger() -> JSONResponse:
        """Return the ledger as a downloadable JSON document."""

        filename, payload = ledger_board.export()
        LOGGER.info("Exporting ledger as %s", filename)
        return JSONResponse(
            payload,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/import")
    async def import_ledger(ledger_file: UploadFile = File(...)) -> JSONResponse:
        """Merge an uploaded export (current or legacy format) into the ledger."""

        raw = await ledger_file.read()
        LOGGER.info("Received import %s (%s bytes)", ledger_file.filename, len(raw))
        merge_stats = await ledger_board.import_payload(load_payload(raw))
        return _with_status({"stats": merge_stats.as_dict(), "message": merge_stats.summary()})

    @app.post("/import-remote")
    async def import_remote() -> JSONResponse:
        """Merge the remote ledger into the local one."""

        merge_stats = await ledger_board.import_remote()
        return _with_status({"stats": merge_stats.as_dict(), "message": merge_stats.summary()})

    @app.get("/sync-status")
    async def sync_status() -> JSONResponse:
        status = ledger_board.sync_status()
        payload = status.as_dict()
        remote = ledger_board.engine.remote
        payload["remote"] = remote.metadata() if remote else None
        return JSONResponse(payload)

    @app.post("/sync")
    async def manual_sync() -> JSONResponse:
        """Push the current ledger to the remote store on demand."""

        result = await ledger_board.manual_sync()
        if result.success:
            message = f"Synced (last sync: {result.status.as_dict()['lastSync']})"
        elif result.skipped:
            message = "Sync skipped: a sync is already in progress"
        else:
            message = f"Sync failed: {result.error}"
        return JSONResponse(
            {
                "success": result.success,
                "skipped": result.skipped,
                "message": message,
                "syncStatus": result.status.as_dict(),
            }
        )

    @app.post("/clear-all")
    async def clear_all(confirmation: str = Form("")) -> JSONResponse:
        """Delete all data locally and remotely once the confirmation text matches."""

        outcome = await ledger_board.clear_all(confirmation)
        return JSONResponse(
            {
                "success": outcome.success,
                "message": outcome.message,
                "syncStatus": outcome.status.as_dict(),
            },
            status_code=200 if outcome.success else 502,
        )

    return app
