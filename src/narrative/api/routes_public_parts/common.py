from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from narrative.api.errors import ApiError
from narrative.runtime.call_types import CallEnvelope

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.unavailable("not_ready", "executor not attached to app.state", {})
    return ex


def _envelope(call_type: str, req: Any, payload: Json | None = None) -> CallEnvelope:
    """Build a call envelope from a validated request model."""
    return CallEnvelope(
        call_type=call_type,
        caller=str(req.caller).strip(),
        value=int(getattr(req, "value", 0) or 0),
        payload=dict(payload or {}),
        nonce=int(req.nonce),
        sig=str(req.sig or ""),
    )
