# src/narrative/runtime/apply/treasury.py
from __future__ import annotations

"""Owner-guarded treasury access.

The administrator recorded at initialization is the only identity allowed
to read the balance or drain it. A withdrawal credits the administrator's
account in the execution ledger and zeroes the treasury within the same
applied call, so no fee deposit can land between the read and the reset.
"""

from typing import Any, Dict, List, Optional

from narrative.ledger.constants import OWNER_ONLY_MESSAGE
from narrative.runtime.call_types import CallEnvelope
from narrative.runtime.errors import AuthorizationError

Json = Dict[str, Any]


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int, float)) else ""


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _ensure_treasury_root(state: Json) -> Json:
    t = state.get("treasury")
    if not isinstance(t, dict):
        t = {}
        state["treasury"] = t
    t.setdefault("balance", 0)
    t.setdefault("total_received", 0)
    t.setdefault("total_withdrawn", 0)
    t.setdefault("withdrawals", [])
    return t


def _ensure_account(state: Json, account_id: str) -> Json:
    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        accounts = {}
        state["accounts"] = accounts
    acct = accounts.get(account_id)
    if not isinstance(acct, dict):
        acct = {"balance": 0, "nonce": 0}
        accounts[account_id] = acct
    return acct


def require_owner(state: Json, caller: str) -> str:
    """Capability check for owner-only operations."""
    admin = _as_str(state.get("admin"))
    who = caller if isinstance(caller, str) else ""
    if not admin or who != admin:
        raise AuthorizationError(OWNER_ONLY_MESSAGE, {"caller": who})
    return admin


def get_balance(state: Json, caller: str) -> int:
    require_owner(state, caller)
    return _as_int(_ensure_treasury_root(state).get("balance"), 0)


def withdrawals(state: Json, caller: str) -> List[Json]:
    require_owner(state, caller)
    return [dict(w) for w in _ensure_treasury_root(state).get("withdrawals", []) if isinstance(w, dict)]


def _apply_treasury_withdraw(state: Json, env: CallEnvelope) -> Json:
    admin = require_owner(state, env.caller)

    tre = _ensure_treasury_root(state)
    amount = _as_int(tre.get("balance"), 0)

    acct = _ensure_account(state, admin)
    acct["balance"] = _as_int(acct.get("balance"), 0) + amount

    tre["balance"] = 0
    tre["total_withdrawn"] = _as_int(tre.get("total_withdrawn"), 0) + amount
    tre["withdrawals"].append({"to": admin, "amount": amount, "seq": _as_int(state.get("seq"), 0)})

    return {"applied": "TREASURY_WITHDRAW", "to": admin, "amount": amount}


def apply_treasury(state: Json, env: CallEnvelope) -> Optional[Json]:
    if env.call_type == "TREASURY_WITHDRAW":
        return _apply_treasury_withdraw(state, env)
    return None
