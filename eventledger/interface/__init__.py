"""Mini README: Interactive interfaces for the event ledger.

Exports the FastAPI application factory. The Typer CLI that launches it lives
in ``ledger_centre.py`` at the repository root.
"""

from .web_app import create_application

__all__ = ["create_application"]
