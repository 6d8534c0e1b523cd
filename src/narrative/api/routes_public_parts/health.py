from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()

Json = Dict[str, Any]


@router.get("/health")
def health(request: Request) -> Json:
    """Liveness plus ledger readiness. Never fails on an unready executor."""
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        return {"ok": True, "ready": False, "initialized": False}

    initialized = bool(ex.is_initialized())
    return {
        "ok": True,
        "ready": initialized,
        "initialized": initialized,
        "require_sig": bool(getattr(ex, "require_sig", False)),
    }
