from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from narrative.api.routes_public_parts.common import _envelope, _executor
from narrative.api.schemas import CallerRequest, PaidRequest
from narrative.runtime.supported_calls import TREASURY_BALANCE, TREASURY_DEPOSIT, TREASURY_WITHDRAW

router = APIRouter()

Json = Dict[str, Any]


@router.post("/treasury/deposit")
def treasury_deposit(request: Request, req: PaidRequest) -> Json:
    """Unrestricted funding path: value goes to the treasury, no story changes."""
    ex = _executor(request)
    meta = ex.submit(_envelope(TREASURY_DEPOSIT, req))
    return {"ok": True, "receipt": meta}


@router.post("/treasury/balance")
def treasury_balance(request: Request, req: CallerRequest) -> Json:
    """Owner-only. POST so the caller can prove identity with a signature."""
    ex = _executor(request)
    meta = ex.submit(_envelope(TREASURY_BALANCE, req))
    return {"ok": True, "balance": int(meta["balance"])}


@router.post("/treasury/withdraw")
def treasury_withdraw(request: Request, req: CallerRequest) -> Json:
    ex = _executor(request)
    meta = ex.submit(_envelope(TREASURY_WITHDRAW, req))
    return {"ok": True, "amount": int(meta["amount"]), "receipt": meta}
