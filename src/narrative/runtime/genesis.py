# src/narrative/runtime/genesis.py
from __future__ import annotations

"""Two-phase ledger construction.

`bare_state()` builds an uninitialized store; `initialize()` runs exactly
once and records the administrator and the seed story.
"""

from typing import Any, Dict

from narrative.ledger.constants import (
    ALREADY_INITIALIZED_MESSAGE,
    NOT_INITIALIZED_MESSAGE,
    SEED_WORD,
)
from narrative.runtime.errors import AlreadyInitializedError, ApplyError, NotInitializedError

Json = Dict[str, Any]

STATE_VERSION = 1


def bare_state() -> Json:
    return {
        "state_version": STATE_VERSION,
        "initialized": False,
        "admin": "",
        "stories": [],
        "treasury": {
            "balance": 0,
            "total_received": 0,
            "total_withdrawn": 0,
            "withdrawals": [],
        },
        "accounts": {},
        "seq": 0,
    }


def new_story(word: str, caller: str) -> Json:
    return {
        "title": word,
        "body": "",
        "words": [word],
        "word_contributors": [caller],
        "word_count": 1,
    }


def is_initialized(state: Json) -> bool:
    return bool(state.get("initialized", False))


def require_initialized(state: Json) -> None:
    if not is_initialized(state):
        raise NotInitializedError(NOT_INITIALIZED_MESSAGE)


def initialize(state: Json, admin: str) -> Json:
    """Record the administrator and seed story 0 ("The").

    The initialized flag is set last; a second call raises
    AlreadyInitializedError and leaves state untouched.
    """
    if is_initialized(state):
        raise AlreadyInitializedError(ALREADY_INITIALIZED_MESSAGE, {"admin": str(state.get("admin") or "")})

    a = str(admin or "").strip()
    if not a:
        raise ApplyError("invalid_payload", "missing_admin")

    for k, v in bare_state().items():
        state.setdefault(k, v)

    state["admin"] = a
    state["stories"] = [new_story(SEED_WORD, a)]
    state["initialized"] = True
    return {"applied": "INITIALIZE", "admin": a, "num_stories": 1}
