from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from narrative.ledger.state import LedgerView
from narrative.runtime import metrics
from narrative.runtime.apply import stories as story_reads
from narrative.runtime.apply import treasury as treasury_reads
from narrative.runtime.call_admission import admit_call
from narrative.runtime.call_types import CallEnvelope
from narrative.runtime.domain_apply import apply_call_atomic, check_nonce, record_nonce
from narrative.runtime.errors import AdmissionError, ApplyError
from narrative.runtime.genesis import bare_state, initialize, is_initialized, require_initialized
from narrative.runtime.memory_store import MemoryLedgerStore
from narrative.runtime.runtime_logging import log_event
from narrative.runtime.sqlite_db import SqliteLedgerStore
from narrative.runtime.supported_calls import (
    READ_CALL_TYPES,
    STORY_ADD_WORD_BODY,
    STORY_ADD_WORD_TITLE,
    STORY_CREATE,
    TREASURY_BALANCE,
    TREASURY_DEPOSIT,
    TREASURY_WITHDRAW,
)

Json = Dict[str, Any]
LedgerStore = Union[MemoryLedgerStore, SqliteLedgerStore]

log = logging.getLogger("narrative.executor")


def _field(call: Any, name: str) -> str:
    """Best-effort field for logging a call that may not have parsed."""
    if isinstance(call, CallEnvelope):
        return str(getattr(call, name))
    if isinstance(call, dict):
        return str(call.get(name, ""))
    return ""


class NarrativeExecutor:
    """The execution ledger for stories and the treasury.

    Every mutating call goes through `submit()`:
      1) stateless admission (shape, value, signature)
      2) store.update(): the single serialization point
      3) apply_call_atomic(): all-or-nothing domain apply

    A rejected call leaves the store untouched and retains no value.
    """

    def __init__(self, *, store: LedgerStore, require_sig: bool = False) -> None:
        self._store = store
        self.require_sig = bool(require_sig)

        # Atomic seed: a process racing on a fresh store never overwrites a written ledger.
        self._store.write_if_absent(bare_state())

        self._refresh_gauges(self._store.read())

    # ---------------------------
    # Lifecycle
    # ---------------------------

    def initialize(self, admin: str) -> Json:
        """One-time setup: record the administrator and seed story 0."""
        out: Json = {}

        def _mut(st: Json) -> None:
            out.update(initialize(st, admin))

        try:
            self._store.update(_mut)
        except ApplyError as e:
            log_event(log, "ledger_init_rejected", code=e.code, reason=e.reason)
            raise

        log_event(log, "ledger_initialized", admin=out.get("admin"))
        metrics.set_gauge("stories", int(out.get("num_stories", 1)))
        return out

    def is_initialized(self) -> bool:
        return is_initialized(self._store.read())

    def snapshot(self) -> Json:
        return self._store.read()

    def view(self) -> LedgerView:
        return LedgerView.from_ledger(self._store.read())

    # ---------------------------
    # Calls
    # ---------------------------

    def _rejected(self, env: Any, e: ApplyError) -> None:
        metrics.inc_counter("calls_rejected")
        metrics.inc_counter(f"calls_rejected_{e.code}")
        log_event(
            log,
            "call_rejected",
            call_type=_field(env, "call_type"),
            caller=_field(env, "caller"),
            code=e.code,
            reason=e.reason,
        )

    def _refresh_gauges(self, st: Json) -> None:
        metrics.set_gauge("stories", story_reads.get_num_stories(st))

    def _admit(self, call: Any) -> CallEnvelope:
        try:
            env = CallEnvelope.from_json(call)
        except (TypeError, ValueError) as e:
            err = AdmissionError("bad_request", "malformed_call_envelope", {"error": str(e)})
            self._rejected(call, err)
            raise err from e

        verdict = admit_call(env, require_sig=self.require_sig)
        if not verdict.ok:
            err = AdmissionError(verdict.code, verdict.reason, verdict.details)
            self._rejected(env, err)
            raise err
        return env

    def submit(self, call: Any) -> Json:
        """Admit and apply one call envelope (dict or CallEnvelope).

        Returns the apply receipt, e.g. {"applied": "STORY_CREATE", "story_index": 1, ...}.
        Raises ApplyError (or a subclass) on rejection.
        """
        env = self._admit(call)

        if env.call_type in READ_CALL_TYPES:
            return self._query(env)

        out: Json = {}

        def _mut(st: Json) -> None:
            out.update(apply_call_atomic(st, env, enforce_nonce=self.require_sig))
            self._refresh_gauges(st)

        try:
            self._store.update(_mut)
        except ApplyError as e:
            self._rejected(env, e)
            raise

        metrics.inc_counter("calls_applied")
        log_event(
            log,
            "call_applied",
            call_type=env.call_type,
            caller=env.caller,
            value=int(env.value),
            seq=out.get("seq"),
        )
        if env.call_type == TREASURY_WITHDRAW:
            log_event(log, "treasury_withdrawn", to=out.get("to"), amount=out.get("amount"))
        return out

    def _read(self, st: Json, env: CallEnvelope) -> Json:
        require_initialized(st)
        if env.call_type == TREASURY_BALANCE:
            return {"balance": treasury_reads.get_balance(st, env.caller)}
        raise ApplyError("call_unimplemented", "call_type_not_implemented", {"call_type": env.call_type})

    def _query(self, env: CallEnvelope) -> Json:
        """Owner reads. Signed reads consume a nonce so a captured request cannot be replayed."""
        out: Json = {}
        try:
            if not self.require_sig:
                return self._read(self._store.read(), env)

            def _mut(st: Json) -> None:
                check_nonce(st, env)
                out.update(self._read(st, env))
                record_nonce(st, env)

            self._store.update(_mut)
        except ApplyError as e:
            self._rejected(env, e)
            raise
        return out

    # ---------------------------
    # Typed operations
    # ---------------------------

    def create_story(self, word: str, *, caller: str, value: int = 0, nonce: int = 0, sig: str = "") -> int:
        meta = self.submit(
            CallEnvelope(STORY_CREATE, caller, value, {"word": word}, nonce, sig),
        )
        return int(meta["story_index"])

    def add_word_to_body(
        self, story_index: int, word: str, *, caller: str, value: int = 0, nonce: int = 0, sig: str = ""
    ) -> None:
        self.submit(
            CallEnvelope(STORY_ADD_WORD_BODY, caller, value, {"story_index": story_index, "word": word}, nonce, sig),
        )

    def add_word_to_title(
        self, story_index: int, word: str, *, caller: str, value: int = 0, nonce: int = 0, sig: str = ""
    ) -> None:
        self.submit(
            CallEnvelope(STORY_ADD_WORD_TITLE, caller, value, {"story_index": story_index, "word": word}, nonce, sig),
        )

    def deposit(self, *, caller: str, value: int, nonce: int = 0, sig: str = "") -> None:
        self.submit(CallEnvelope(TREASURY_DEPOSIT, caller, value, {}, nonce, sig))

    def owner_withdraw(self, *, caller: str, nonce: int = 0, sig: str = "") -> int:
        meta = self.submit(CallEnvelope(TREASURY_WITHDRAW, caller, 0, {}, nonce, sig))
        return int(meta["amount"])

    def get_balance(self, *, caller: str, nonce: int = 0, sig: str = "") -> int:
        meta = self.submit(CallEnvelope(TREASURY_BALANCE, caller, 0, {}, nonce, sig))
        return int(meta["balance"])

    # ---------------------------
    # Public reads
    # ---------------------------

    def _initialized_state(self) -> Json:
        st = self._store.read()
        require_initialized(st)
        return st

    def get_story(self, story_index: int) -> Json:
        return story_reads.get_story(self._initialized_state(), story_index)

    def get_num_stories(self) -> int:
        return story_reads.get_num_stories(self._initialized_state())

    def get_story_titles(self) -> List[Tuple[int, str]]:
        return story_reads.get_story_titles(self._initialized_state())

    def account_balance(self, identity: str) -> int:
        return LedgerView.from_ledger(self._store.read()).account_balance(identity)

    def withdrawals(self, *, caller: str) -> List[Json]:
        return treasury_reads.withdrawals(self._initialized_state(), caller)

    def admin(self) -> Optional[str]:
        st = self._store.read()
        a = str(st.get("admin") or "")
        return a or None
