"""Mini README: Centralised configuration for the event ledger.

Structure:
    * EventLedgerSettings - Pydantic settings model read from the environment.
    * get_settings - cached accessor used by the board, CLI and web app.

Usage:
    Every field can be overridden with an ``EVENTLEDGER_`` prefixed environment
    variable or a ``.env`` file. Leaving ``remote_provider`` unset keeps remote
    sync disabled for the session, which is the "is remote enabled" signal the
    sync engine consumes.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings

from .ledger.reconciliation import DedupPolicy, MergePolicy


class EventLedgerSettings(BaseSettings):
    """Runtime configuration for the ledger board and its outer surfaces."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the local ledger file and file-backed remote store.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the HTTP service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the HTTP service exposes.",
        ge=1,
        le=65535,
    )
    remote_provider: Optional[str] = Field(
        None,
        description=(
            "Identifier of the remote ledger store backend (e.g. 'file' or 'memory')."
            " Leave unset to run with remote sync disabled."
        ),
    )
    remote_document_key: str = Field(
        "expense-data",
        description="Fixed key under which the single ledger document is stored remotely.",
    )
    remote_file_path: Optional[Path] = Field(
        None,
        description="Document path for the 'file' backend. Defaults to <data_directory>/remote-ledger.json.",
    )
    local_persistence: bool = Field(
        True,
        description="Mirror the ledger to a JSON file inside the data directory after each change.",
    )
    local_file_name: str = Field(
        "expense-manager-data.json",
        description="File name of the local ledger mirror.",
    )
    clear_all_confirmation: str = Field(
        "DELETE ALL",
        description="Exact text the caller must supply before a clear-all is executed.",
    )
    max_image_bytes: int = Field(
        5 * 1024 * 1024,
        description="Upper bound for inline receipt images attached to expense entries.",
        ge=0,
    )
    event_dedup_policy: DedupPolicy = Field(
        DedupPolicy.ID,
        description="Identity used to detect duplicate events during import.",
    )
    head_dedup_policy: DedupPolicy = Field(
        DedupPolicy.ID,
        description="Identity used to detect duplicate expense heads during import.",
    )
    entry_dedup_policy: DedupPolicy = Field(
        DedupPolicy.ID,
        description="Identity used to detect duplicate expense entries during import.",
    )

    class Config:
        env_prefix = "EVENTLEDGER_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @validator("event_dedup_policy", "head_dedup_policy", "entry_dedup_policy", pre=True)
    def _coerce_dedup_policy(cls, value: str | DedupPolicy) -> DedupPolicy:
        """Accept policy names regardless of case or surrounding whitespace."""

        if isinstance(value, DedupPolicy):
            return value
        return DedupPolicy.from_str(value)

    @property
    def remote_enabled(self) -> bool:
        """Return whether a remote backend has been configured."""

        return bool(self.remote_provider)

    @property
    def local_file_path(self) -> Path:
        """Location of the local ledger mirror."""

        return self.data_directory / self.local_file_name

    @property
    def resolved_remote_file_path(self) -> Path:
        """Location of the document used by the file-backed remote store."""

        return self.remote_file_path or self.data_directory / "remote-ledger.json"

    def merge_policy(self) -> MergePolicy:
        """Build the per-collection dedup policy used by imports."""

        return MergePolicy(
            events=self.event_dedup_policy,
            expense_heads=self.head_dedup_policy,
            expense_entries=self.entry_dedup_policy,
        )


@lru_cache()
def get_settings() -> EventLedgerSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return EventLedgerSettings()
