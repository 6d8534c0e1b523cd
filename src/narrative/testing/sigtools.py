from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional, Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from narrative.crypto.sig import canonical_call_message

Json = Dict[str, Any]


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def deterministic_ed25519_keypair(*, label: str) -> Tuple[str, Ed25519PrivateKey]:
    """Deterministically derive an Ed25519 keypair from a stable label.

    TEST ONLY.

    Returns:
      (pubkey_hex, private_key)
    """
    seed = _sha256(("narrative-test-ed25519:" + (label or "")).encode("utf-8"))
    sk = Ed25519PrivateKey.from_private_bytes(seed)
    pk_hex = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    return pk_hex, sk


def identity_for(label: str) -> str:
    """Caller identity (pubkey hex) for a test label."""
    pk_hex, _ = deterministic_ed25519_keypair(label=label)
    return pk_hex


def sign_call_dict(call: Json, *, label: str, caller: Optional[str] = None) -> Json:
    """Return `call` signed with the deterministic key for `label`.

    The caller field defaults to the label's pubkey so the signature verifies.
    """
    if not isinstance(call, dict):
        raise TypeError("call must be a dict")

    pk_hex, sk = deterministic_ed25519_keypair(label=label)
    out = dict(call)
    out["caller"] = caller if caller is not None else pk_hex
    out.setdefault("value", 0)
    out.setdefault("nonce", 0)
    payload = out.get("payload")
    if not isinstance(payload, dict):
        payload = {}
        out["payload"] = payload

    msg = canonical_call_message(
        call_type=str(out.get("call_type") or ""),
        caller=str(out["caller"]),
        value=int(out["value"]),
        nonce=int(out["nonce"]),
        payload=payload,
    )
    out["sig"] = sk.sign(msg).hex()
    return out
