from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional


@dataclass(frozen=True)
class CallReject:
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class CallVerdict:
    ok: bool
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    def __iter__(self) -> Iterator[Any]:
        """Allow `ok, rej = admit_call(...)` unpacking."""
        if self.ok:
            yield True
            yield None
        else:
            yield False
            yield CallReject(self.code, self.reason, self.details)

    @staticmethod
    def admit() -> "CallVerdict":
        return CallVerdict(True, "ok", "admitted", None)

    @staticmethod
    def reject(code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> "CallVerdict":
        return CallVerdict(False, code, reason, details)


@dataclass(frozen=True)
class CallEnvelope:
    """One caller-attributed operation against the story ledger.

    `value` is the native value attached to the call, in base units.
    """

    call_type: str
    caller: str
    value: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)
    nonce: int = 0
    sig: str = ""

    @staticmethod
    def from_json(j: Any) -> "CallEnvelope":
        if isinstance(j, CallEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        value = j.get("value", 0)
        return CallEnvelope(
            call_type=str(j.get("call_type", "")),
            caller=str(j.get("caller", "")),
            # Kept as-is so admission can reject non-integer values.
            value=value if value is not None else 0,
            payload=dict(j.get("payload", {}) or {}),
            nonce=int(j.get("nonce", 0) or 0),
            sig=str(j.get("sig", "") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "call_type": self.call_type,
            "caller": self.caller,
            "value": self.value,
            "payload": self.payload,
            "nonce": self.nonce,
            "sig": self.sig,
        }
