"""Mini README: Logging setup shared by the ledger, sync engine and surfaces.

Structure:
    * get_logger - module logger factory; the first call installs the handler.
    * configure_root_logger - one stderr handler on the root logger.

Handler policy:
    Exactly one stream handler is attached for the whole process, whether
    the board runs under uvicorn, the Typer CLI or pytest. Later calls only
    adjust the root level (the ``run`` command uses this), so the sync
    engine's failure warnings and import summaries are never printed twice.
    Remote failures log at WARNING from the engine and at ERROR from the
    board once they affect user data; routine mutations log at INFO.
"""

from __future__ import annotations

import logging
from typing import Optional

_LOGGER_INITIALISED = False


def configure_root_logger(level: int = logging.INFO) -> None:
    """Configure the root logger with a readable timestamped formatter."""

    global _LOGGER_INITIALISED
    if _LOGGER_INITIALISED:
        logging.getLogger().setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    configure_root_logger()
    return logging.getLogger(name)
