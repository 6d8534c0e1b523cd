"""Pydantic request schemas for the public API.

These exist only for HTTP input validation; the ledger's own envelope is
narrative.runtime.call_types.CallEnvelope. `value` is in base units.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class CallerRequest(BaseModel):
    caller: str = Field(..., min_length=1, description="Caller identity (Ed25519 pubkey hex when signatures are required)")
    nonce: int = Field(default=0, ge=0, description="Caller nonce used for signing")
    sig: str = Field(default="", description="Hex or base64 signature over the canonical call message")


class PaidRequest(CallerRequest):
    value: int = Field(default=0, ge=0, description="Attached value in base units")


class WordRequest(PaidRequest):
    # Shape rules are enforced by the ledger so callers get its exact messages.
    word: str = Field(..., description="Word to add")


class CallRequest(PaidRequest):
    call_type: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)

