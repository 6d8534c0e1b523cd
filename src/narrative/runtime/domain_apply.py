# src/narrative/runtime/domain_apply.py
# ---------------------------------------------------------------------------
# Public, stable import path for applying call envelopes.
# ---------------------------------------------------------------------------

from __future__ import annotations

import copy
from typing import Any, Dict

from narrative.runtime.apply.stories import apply_stories
from narrative.runtime.apply.treasury import apply_treasury
from narrative.runtime.call_types import CallEnvelope
from narrative.runtime.errors import AdmissionError, ApplyError
from narrative.runtime.genesis import require_initialized
from narrative.runtime.supported_calls import MUTATING_CALL_TYPES

Json = Dict[str, Any]

_DOMAINS = (apply_stories, apply_treasury)


def _account_nonce(state: Json, caller: str) -> int:
    acct = state.get("accounts", {}).get(caller)
    if not isinstance(acct, dict):
        return 0
    try:
        return int(acct.get("nonce", 0))
    except Exception:
        return 0


def check_nonce(state: Json, env: CallEnvelope) -> None:
    """Replay protection: a signed call must carry a nonce above the caller's last one."""
    last = _account_nonce(state, env.caller)
    if int(env.nonce) <= last:
        raise AdmissionError("bad_nonce", "nonce_not_increasing", {"caller": env.caller, "last": last, "got": env.nonce})


def record_nonce(state: Json, env: CallEnvelope) -> None:
    accounts = state.setdefault("accounts", {})
    acct = accounts.setdefault(env.caller, {"balance": 0, "nonce": 0})
    acct["nonce"] = max(int(acct.get("nonce", 0)), int(env.nonce))


def apply_call(state: Json, env: CallEnvelope, *, enforce_nonce: bool = False) -> Json:
    """Route a mutating call to its domain applier.

    Fails closed for anything that is not a routed mutating call type.
    Mutates `state` in place; use apply_call_atomic for all-or-nothing.
    """
    require_initialized(state)

    if env.call_type not in MUTATING_CALL_TYPES:
        raise ApplyError("call_unimplemented", "call_type_not_implemented", {"call_type": env.call_type})

    if enforce_nonce:
        check_nonce(state, env)

    state["seq"] = int(state.get("seq", 0)) + 1

    for domain in _DOMAINS:
        meta = domain(state, env)
        if meta is not None:
            if enforce_nonce:
                record_nonce(state, env)
            meta["seq"] = int(state["seq"])
            return meta

    raise ApplyError("call_unimplemented", "call_type_not_implemented", {"call_type": env.call_type})


def apply_call_atomic(state: Json, env: Any, *, enforce_nonce: bool = False) -> Json:
    """Apply a call with fail-atomic semantics.

    On success:
      - state is updated as if apply_call() ran directly.

    On ApplyError:
      - state remains unchanged and no value is retained.
    """
    env_norm = CallEnvelope.from_json(env)

    # Apply on a deep copy to guarantee atomicity.
    snapshot = copy.deepcopy(state)
    meta = apply_call(snapshot, env_norm, enforce_nonce=enforce_nonce)

    # Commit by replacing contents in-place so callers holding references
    # to `state` see the updated view.
    state.clear()
    state.update(snapshot)
    return meta


__all__ = ["ApplyError", "apply_call", "apply_call_atomic", "check_nonce", "record_nonce", "Json"]
