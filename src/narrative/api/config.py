import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "prod"
    max_request_bytes: int
    log_requests: bool


def _is_truthy(v: str | None, default: bool = False) -> bool:
    if v is None or not v.strip():
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "") or "").strip()
        return int(raw) if raw else int(default)
    except ValueError:
        return int(default)


def load_api_config() -> ApiConfig:
    mode = os.getenv("NARRATIVE_MODE", "prod").strip().lower()
    return ApiConfig(
        mode=mode,
        max_request_bytes=max(1, _env_int("NARRATIVE_MAX_REQUEST_BYTES", 64_000)),
        log_requests=_is_truthy(os.getenv("NARRATIVE_LOG_REQUESTS"), default=True),
    )
