from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from narrative.runtime.errors import (
    AdmissionError,
    ApplyError,
    AuthorizationError,
    NotFoundError,
    NotInitializedError,
    PaymentError,
    ValidationError,
)


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def unavailable(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(503, code, message, details or {})

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}


_STATUS_BY_TYPE = (
    (ValidationError, 400),
    (PaymentError, 400),
    (AdmissionError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (NotInitializedError, 503),
)


def from_apply_error(e: ApplyError) -> ApiError:
    """Map a ledger rejection onto an HTTP error, keeping the rule text as message."""
    details = e.details if isinstance(e.details, dict) else ({} if e.details is None else {"details": e.details})
    if e.code == "already_initialized":
        return ApiError.conflict(e.code, e.reason, details)
    status = 400
    for typ, code in _STATUS_BY_TYPE:
        if isinstance(e, typ):
            status = code
            break
    return ApiError(status, e.code, e.reason, details)
