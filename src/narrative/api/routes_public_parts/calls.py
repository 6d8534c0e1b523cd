from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from narrative.api.routes_public_parts.common import _executor
from narrative.api.schemas import CallRequest
from narrative.runtime.call_types import CallEnvelope

router = APIRouter()

Json = Dict[str, Any]


@router.post("/calls")
def call_submit(request: Request, req: CallRequest) -> Json:
    """Submit a raw call envelope (any supported call type).

    Returns:
      { ok, receipt }
    """
    ex = _executor(request)
    env = CallEnvelope(
        call_type=req.call_type.strip(),
        caller=req.caller.strip(),
        value=int(req.value),
        payload=dict(req.payload),
        nonce=int(req.nonce),
        sig=req.sig,
    )
    return {"ok": True, "receipt": ex.submit(env)}
