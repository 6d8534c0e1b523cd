from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ApplyError(Exception):
    """Canonical error type for call admission, dispatch and apply failures.

    `reason` carries the caller-facing rule text.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class ValidationError(ApplyError):
    """Word shape violation. The caller may retry with a corrected word."""

    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_word", reason, details)


class PaymentError(ApplyError):
    """Attached value below the computed fee."""

    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("insufficient_payment", reason, details)


class NotFoundError(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("not_found", reason, details)


class AuthorizationError(ApplyError):
    """Caller is not allowed to run an owner-only operation."""

    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("forbidden", reason, details)


class NotInitializedError(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("not_initialized", reason, details)


class AlreadyInitializedError(ApplyError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("already_initialized", reason, details)


class AdmissionError(ApplyError):
    """Call rejected before execution (malformed envelope, bad signature, replay)."""
