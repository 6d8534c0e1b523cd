# src/narrative/crypto/sig.py
from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

Json = Dict[str, Any]

_CALL_FIELDS = ("call_type", "caller", "value", "nonce", "payload")


def decode_key_material(text: str) -> bytes:
    """Decode a key or signature given as hex, base64 or base64url."""
    s = (text or "").strip()
    if not s:
        raise ValueError("empty key material")
    try:
        return bytes.fromhex(s)
    except ValueError:
        pass
    try:
        return base64.b64decode(s + "=" * (-len(s) % 4), altchars=b"-_" if ("-" in s or "_" in s) else None)
    except (binascii.Error, ValueError) as e:
        raise ValueError("key material is neither hex nor base64") from e


def canonical_call_message(
    *,
    call_type: str,
    caller: str,
    value: int,
    nonce: int,
    payload: Json,
) -> bytes:
    """Bytes covered by a call signature: the call fields as sorted, compact JSON.

    `sig` itself is never part of the message.
    """
    obj: Json = {
        "call_type": str(call_type),
        "caller": str(caller),
        "value": int(value),
        "nonce": int(nonce),
        "payload": payload if isinstance(payload, dict) else {},
    }
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def verify_ed25519_signature(*, message: bytes, sig: str, pubkey: str) -> bool:
    try:
        key = Ed25519PublicKey.from_public_bytes(decode_key_material(pubkey))
        key.verify(decode_key_material(sig), message)
    except (InvalidSignature, ValueError):
        return False
    return True


def load_private_key(privkey: str) -> Ed25519PrivateKey:
    """Accept a 32-byte seed, or a 64-byte seed||pubkey export (seed is used)."""
    raw = decode_key_material(privkey)
    if len(raw) == 64:
        raw = raw[:32]
    if len(raw) != 32:
        raise ValueError(f"ed25519 private key must be 32 or 64 bytes, got {len(raw)}")
    return Ed25519PrivateKey.from_private_bytes(raw)


def sign_call_envelope_dict(*, call: Json, privkey: str, encoding: str = "hex") -> Json:
    """Client-side helper: return a normalized copy of `call` with `sig` set.

    encoding is "hex" (default) or "b64".
    """
    out = dict(call)
    out["call_type"] = str(call.get("call_type") or "")
    out["caller"] = str(call.get("caller") or "")
    out["value"] = int(call.get("value") or 0)
    out["nonce"] = int(call.get("nonce") or 0)
    out["payload"] = call.get("payload") if isinstance(call.get("payload"), dict) else {}

    msg = canonical_call_message(**{k: out[k] for k in _CALL_FIELDS})
    sig = load_private_key(privkey).sign(msg)

    if encoding == "hex":
        out["sig"] = sig.hex()
    elif encoding in {"b64", "base64"}:
        out["sig"] = base64.b64encode(sig).decode("ascii")
    else:
        raise ValueError(f"unsupported signature encoding: {encoding!r}")
    return out
