# src/narrative/runtime/executor_boot.py

from __future__ import annotations

import logging
from typing import Optional

from narrative.runtime.errors import AlreadyInitializedError
from narrative.runtime.executor import LedgerStore, NarrativeExecutor
from narrative.runtime.ledger_config import MEMORY_DB_PATH, LedgerConfig, load_ledger_config
from narrative.runtime.memory_store import MemoryLedgerStore
from narrative.runtime.runtime_logging import log_event
from narrative.runtime.sqlite_db import SqliteDB, SqliteLedgerStore

log = logging.getLogger("narrative.executor_boot")


def build_store(db_path: str) -> LedgerStore:
    if db_path.strip() == MEMORY_DB_PATH:
        return MemoryLedgerStore()
    return SqliteLedgerStore(db=SqliteDB(path=db_path))


def build_executor(cfg: Optional[LedgerConfig] = None) -> NarrativeExecutor:
    """
    Build a NarrativeExecutor from an explicit config or, if omitted,
    from NARRATIVE_CONFIG_PATH / environment variables.

    A fresh ledger is initialized with cfg.admin when one is configured;
    an existing ledger keeps the administrator it was initialized with.
    """
    c = cfg or load_ledger_config()
    ex = NarrativeExecutor(store=build_store(c.db_path), require_sig=c.require_sig)
    if c.admin and not ex.is_initialized():
        try:
            ex.initialize(c.admin)
        except AlreadyInitializedError:
            # Another process initialized between the check and our write.
            log_event(log, "ledger_init_raced", configured_admin=c.admin, admin=ex.admin())
    return ex
