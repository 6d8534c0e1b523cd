# src/narrative/runtime/call_admission.py
from __future__ import annotations

"""Stateless admission checks, run before a call reaches the ledger.

A rejected call never executes: no state is read or written. The nonce
replay check needs ledger state and lives in domain_apply.
"""

from typing import Any, Dict

from narrative.crypto.sig import canonical_call_message, verify_ed25519_signature
from narrative.runtime.call_types import CallEnvelope, CallVerdict
from narrative.runtime.supported_calls import (
    NON_PAYABLE_CALL_TYPES,
    REQUIRED_PAYLOAD_FIELDS,
    SUPPORTED_CALL_TYPES,
)

Json = Dict[str, Any]


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def check_shape(env: CallEnvelope) -> CallVerdict:
    if env.call_type not in SUPPORTED_CALL_TYPES:
        return CallVerdict.reject("unsupported_call", "unknown_call_type", {"call_type": env.call_type})

    if not isinstance(env.caller, str) or not env.caller.strip():
        return CallVerdict.reject("invalid_caller", "missing_caller", {"call_type": env.call_type})

    if not _is_int(env.value):
        return CallVerdict.reject("invalid_value", "value_not_integer", {"value": repr(env.value)})
    if env.value < 0:
        return CallVerdict.reject("invalid_value", "negative_value", {"value": env.value})
    if env.value > 0 and env.call_type in NON_PAYABLE_CALL_TYPES:
        return CallVerdict.reject("invalid_value", "call_not_payable", {"call_type": env.call_type})

    if not _is_int(env.nonce) or env.nonce < 0:
        return CallVerdict.reject("invalid_nonce", "nonce_not_non_negative_integer", {"nonce": repr(env.nonce)})

    payload = env.payload if isinstance(env.payload, dict) else {}
    for name, typ in REQUIRED_PAYLOAD_FIELDS.get(env.call_type, {}).items():
        if name not in payload:
            return CallVerdict.reject("invalid_payload", f"missing_{name}", {"call_type": env.call_type})
        v = payload[name]
        if typ is int and not _is_int(v):
            return CallVerdict.reject("invalid_payload", f"{name}_not_integer", {"call_type": env.call_type})
        if typ is str and not isinstance(v, str):
            return CallVerdict.reject("invalid_payload", f"{name}_not_string", {"call_type": env.call_type})

    return CallVerdict.admit()


def check_signature(env: CallEnvelope) -> CallVerdict:
    """The caller identity is an Ed25519 public key; `sig` must verify against it."""
    if not env.sig:
        return CallVerdict.reject("bad_sig", "missing_signature", {"caller": env.caller})

    msg = canonical_call_message(
        call_type=env.call_type,
        caller=env.caller,
        value=int(env.value),
        nonce=int(env.nonce),
        payload=env.payload,
    )
    if not verify_ed25519_signature(message=msg, sig=env.sig, pubkey=env.caller):
        return CallVerdict.reject("bad_sig", "invalid_signature", {"caller": env.caller})
    return CallVerdict.admit()


def admit_call(env: CallEnvelope, *, require_sig: bool) -> CallVerdict:
    verdict = check_shape(env)
    if not verdict.ok:
        return verdict
    if require_sig:
        return check_signature(env)
    return verdict
