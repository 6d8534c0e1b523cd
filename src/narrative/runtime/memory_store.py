# src/narrative/runtime/memory_store.py
from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, Optional

Json = Dict[str, Any]


class MemoryLedgerStore:
    """In-process ledger snapshot store.

    Same surface as SqliteLedgerStore:
      - read(): deep copy of the current snapshot
      - write(st): replace the snapshot
      - update(mut): read-modify-write under one lock

    update() applies `mut` to a copy and swaps it in only if `mut` returns
    normally, so a raising mutation leaves the snapshot untouched.
    """

    def __init__(self, initial: Optional[Json] = None) -> None:
        self._lock = threading.RLock()
        self._state: Optional[Json] = copy.deepcopy(initial) if initial is not None else None

    def exists(self) -> bool:
        with self._lock:
            return self._state is not None

    def read(self) -> Json:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger_state is missing")
            return copy.deepcopy(self._state)

    def write(self, st: Json) -> None:
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._lock:
            self._state = copy.deepcopy(st)

    def write_if_absent(self, st: Json) -> bool:
        """Store `st` only if no snapshot exists yet. Returns True if it was written."""
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._lock:
            if self._state is not None:
                return False
            self._state = copy.deepcopy(st)
            return True

    def update(self, mut: Callable[[Json], Any]) -> None:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger_state is missing")
            st = copy.deepcopy(self._state)
            mut(st)
            self._state = st
