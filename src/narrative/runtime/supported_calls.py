# src/narrative/runtime/supported_calls.py
from __future__ import annotations

"""Call types routed by narrative.runtime.domain_apply.

Mutating calls go through the serialized store update and may carry value.
Read calls never mutate state; they exist so owner-only reads can be
authenticated the same way as writes.
"""

STORY_CREATE = "STORY_CREATE"
STORY_ADD_WORD_BODY = "STORY_ADD_WORD_BODY"
STORY_ADD_WORD_TITLE = "STORY_ADD_WORD_TITLE"
TREASURY_DEPOSIT = "TREASURY_DEPOSIT"
TREASURY_WITHDRAW = "TREASURY_WITHDRAW"
TREASURY_BALANCE = "TREASURY_BALANCE"

MUTATING_CALL_TYPES = frozenset(
    {
        STORY_CREATE,
        STORY_ADD_WORD_BODY,
        STORY_ADD_WORD_TITLE,
        TREASURY_DEPOSIT,
        TREASURY_WITHDRAW,
    }
)

READ_CALL_TYPES = frozenset({TREASURY_BALANCE})

SUPPORTED_CALL_TYPES = MUTATING_CALL_TYPES | READ_CALL_TYPES

# Calls that reject attached value.
NON_PAYABLE_CALL_TYPES = frozenset({TREASURY_WITHDRAW, TREASURY_BALANCE})

# Payload fields each call type requires, with their expected python type.
REQUIRED_PAYLOAD_FIELDS = {
    STORY_CREATE: {"word": str},
    STORY_ADD_WORD_BODY: {"story_index": int, "word": str},
    STORY_ADD_WORD_TITLE: {"story_index": int, "word": str},
    TREASURY_DEPOSIT: {},
    TREASURY_WITHDRAW: {},
    TREASURY_BALANCE: {},
}
