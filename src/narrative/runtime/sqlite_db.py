# src/narrative/runtime/sqlite_db.py
from __future__ import annotations

import json
import os
import random
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

Json = Dict[str, Any]

_SYNCHRONOUS_LEVELS = ("OFF", "NORMAL", "FULL", "EXTRA")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _env_ms(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return int(default)
    try:
        return max(0, int(raw))
    except ValueError:
        return int(default)


def _encode_snapshot(st: Json) -> str:
    # No `default=`: a non-JSON value in ledger state must fail the write.
    return json.dumps(st, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _decode_snapshot(row: Optional[sqlite3.Row]) -> Json:
    if row is None:
        raise FileNotFoundError("sqlite ledger snapshot is missing")
    st = json.loads(str(row["snapshot"]))
    if not isinstance(st, dict):
        raise ValueError("ledger snapshot is not a JSON object")
    return st


@dataclass(frozen=True)
class SqliteTuning:
    """Connection and write-contention settings, read from NARRATIVE_SQLITE_* variables."""

    synchronous: str
    busy_timeout_ms: int
    write_deadline_ms: int
    backoff_base_ms: int
    backoff_max_ms: int
    require_wal: bool

    @classmethod
    def from_env(cls) -> "SqliteTuning":
        # prod trades write latency for durability on power loss.
        prod = (os.environ.get("NARRATIVE_MODE") or "prod").strip().lower() == "prod"
        default_sync = "FULL" if prod else "NORMAL"
        sync = (os.environ.get("NARRATIVE_SQLITE_SYNCHRONOUS") or default_sync).strip().upper()
        allow_non_wal = (os.environ.get("NARRATIVE_SQLITE_ALLOW_NON_WAL") or "").strip().lower() in {"1", "true"}
        return cls(
            synchronous=sync if sync in _SYNCHRONOUS_LEVELS else default_sync,
            busy_timeout_ms=_env_ms("NARRATIVE_SQLITE_BUSY_TIMEOUT_MS", 30_000),
            write_deadline_ms=max(250, _env_ms("NARRATIVE_SQLITE_WRITE_DEADLINE_MS", 30_000)),
            backoff_base_ms=max(1, _env_ms("NARRATIVE_SQLITE_WRITE_BACKOFF_BASE_MS", 5)),
            backoff_max_ms=_env_ms("NARRATIVE_SQLITE_WRITE_BACKOFF_MAX_MS", 250),
            require_wal=not allow_non_wal,
        )

    def backoff_s(self, attempt: int) -> float:
        base = self.backoff_base_ms / 1000.0
        cap = max(base, self.backoff_max_ms / 1000.0)
        # Exponential with jitter so competing writers spread out.
        return min(cap, base * (2.0 ** min(attempt, 8))) * (0.5 + random.random())


def _writer_lock_contended(e: sqlite3.OperationalError) -> bool:
    msg = str(e).lower()
    return "locked" in msg or "busy" in msg


class SqliteDB:
    """One SQLite file holding the ledger snapshot.

    Connections are opened per operation and never shared, so the same
    SqliteDB may be used from several threads or processes. SQLite admits a
    single writer: `write_tx()` takes the writer lock up front with
    BEGIN IMMEDIATE and retries contention until a deadline.
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str, tuning: Optional[SqliteTuning] = None) -> None:
        self.path = str(path)
        self.tuning = tuning or SqliteTuning.from_env()

    def _open(self) -> sqlite3.Connection:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        t = self.tuning

        # isolation_level=None: transactions are issued explicitly.
        con = sqlite3.connect(
            self.path,
            timeout=t.busy_timeout_ms / 1000.0,
            isolation_level=None,
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row
        try:
            journal = str(con.execute("PRAGMA journal_mode=WAL;").fetchone()[0]).lower()
            if t.require_wal and journal != "wal":
                raise RuntimeError(f"sqlite journal_mode is {journal!r}, expected 'wal'")
            con.execute(f"PRAGMA synchronous={t.synchronous};")
            con.execute(f"PRAGMA busy_timeout={t.busy_timeout_ms};")
        except BaseException:
            con.close()
            raise
        return con

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._open()
        try:
            yield con
        finally:
            con.close()

    def _execute_with_retry(self, con: sqlite3.Connection, sql: str, deadline_ms: int) -> None:
        attempt = 0
        while True:
            try:
                con.execute(sql)
                return
            except sqlite3.OperationalError as e:
                if not _writer_lock_contended(e) or _now_ms() >= deadline_ms:
                    raise
                time.sleep(self.tuning.backoff_s(attempt))
                attempt += 1

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Run the block inside one write transaction.

        BEGIN IMMEDIATE and COMMIT are retried on writer-lock contention
        until `write_deadline_ms` elapses. Anything raised in the block rolls
        the transaction back and propagates.
        """
        deadline = _now_ms() + self.tuning.write_deadline_ms
        with self.connection() as con:
            self._execute_with_retry(con, "BEGIN IMMEDIATE;", deadline)
            try:
                yield con
                self._execute_with_retry(con, "COMMIT;", deadline)
            except BaseException:
                con.execute("ROLLBACK;")
                raise

    def init_schema(self) -> None:
        """Create tables on first use; refuse to open a file from another schema version."""
        with self.write_tx() as con:
            con.execute("CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL);")
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger_snapshot (
                  id INTEGER PRIMARY KEY CHECK (id = 1),
                  seq INTEGER NOT NULL,
                  snapshot TEXT NOT NULL,
                  written_ms INTEGER NOT NULL
                );
                """
            )
            con.execute(
                "INSERT OR IGNORE INTO meta(key, value) VALUES('schema_version', ?);",
                (str(self.SCHEMA_VERSION),),
            )
            found = con.execute("SELECT value FROM meta WHERE key='schema_version';").fetchone()["value"]
            if str(found) != str(self.SCHEMA_VERSION):
                raise RuntimeError(
                    f"ledger database {self.path} has schema_version={found}, "
                    f"this build expects {self.SCHEMA_VERSION}"
                )


class SqliteLedgerStore:
    """Durable ledger store: a single JSON snapshot row.

    `update(mut)` reads, mutates and rewrites the snapshot inside one
    BEGIN IMMEDIATE transaction, so concurrent writers (threads or
    processes) are totally ordered by SQLite's writer lock. If `mut` raises,
    the transaction rolls back and the stored snapshot is unchanged.
    """

    _SELECT = "SELECT snapshot FROM ledger_snapshot WHERE id=1;"
    _UPSERT = (
        "INSERT INTO ledger_snapshot(id, seq, snapshot, written_ms) VALUES(1, ?, ?, ?) "
        "ON CONFLICT(id) DO UPDATE SET seq=excluded.seq, snapshot=excluded.snapshot, "
        "written_ms=excluded.written_ms;"
    )

    def __init__(self, *, db: SqliteDB) -> None:
        self._db = db
        self._db.init_schema()

    def exists(self) -> bool:
        with self._db.connection() as con:
            return con.execute(self._SELECT).fetchone() is not None

    def read(self) -> Json:
        with self._db.connection() as con:
            return _decode_snapshot(con.execute(self._SELECT).fetchone())

    def _put(self, con: sqlite3.Connection, st: Json) -> None:
        con.execute(self._UPSERT, (int(st.get("seq", 0)), _encode_snapshot(st), _now_ms()))

    def write(self, st: Json) -> None:
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._db.write_tx() as con:
            self._put(con, st)

    def write_if_absent(self, st: Json) -> bool:
        """Seed the snapshot row unless one exists. Returns True if this call wrote it.

        The existence check and the insert share one write transaction, so
        processes racing on a fresh file never overwrite each other.
        """
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._db.write_tx() as con:
            cur = con.execute(
                "INSERT OR IGNORE INTO ledger_snapshot(id, seq, snapshot, written_ms) VALUES(1, ?, ?, ?);",
                (int(st.get("seq", 0)), _encode_snapshot(st), _now_ms()),
            )
            return cur.rowcount == 1

    def update(self, mut: Callable[[Json], Any]) -> None:
        with self._db.write_tx() as con:
            st = _decode_snapshot(con.execute(self._SELECT).fetchone())
            mut(st)
            self._put(con, st)
