# src/narrative/runtime/ledger_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

Json = Dict[str, Any]

MEMORY_DB_PATH = ":memory:"


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class LedgerConfig:
    mode: str  # "dev" | "prod"

    # SQLite file path, or ":memory:" for a process-local store.
    db_path: str

    # Administrator used to initialize a fresh ledger. Empty: leave uninitialized.
    admin: str

    # Signature + nonce enforcement on every call.
    require_sig: bool

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "prod"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if mode == "prod" and not cfg.require_sig:
        raise ValueError("require_sig cannot be disabled in prod mode")


def default_ledger_config() -> LedgerConfig:
    # Production-safe defaults: signatures required, durable storage.
    return LedgerConfig(
        mode="prod",
        db_path="./data/narrative.db",
        admin="",
        require_sig=True,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _config_from_mapping(raw: Json, d: LedgerConfig) -> LedgerConfig:
    mode = _as_str(raw.get("mode"), d.mode).strip().lower()
    # dev defaults to unsigned calls unless asked otherwise.
    require_sig_default = d.require_sig if mode == "prod" else False
    return LedgerConfig(
        mode=mode,
        db_path=_as_str(raw.get("db_path"), d.db_path),
        admin=_as_str(raw.get("admin"), d.admin).strip(),
        require_sig=_as_bool(raw.get("require_sig"), require_sig_default),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
    )


def read_ledger_config_file(path: str) -> LedgerConfig:
    """Read a JSON or YAML (.yaml/.yml) config file over the defaults."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a mapping")

    cfg = _config_from_mapping(raw, default_ledger_config())
    validate_ledger_config(cfg)
    return cfg


def ledger_config_from_env() -> LedgerConfig:
    raw = {
        "mode": os.environ.get("NARRATIVE_MODE"),
        "db_path": os.environ.get("NARRATIVE_DB_PATH"),
        "admin": os.environ.get("NARRATIVE_ADMIN"),
        "require_sig": os.environ.get("NARRATIVE_REQUIRE_SIG"),
        "api_host": os.environ.get("NARRATIVE_API_HOST"),
        "api_port": os.environ.get("NARRATIVE_API_PORT"),
        "log_level": os.environ.get("NARRATIVE_LOG_LEVEL"),
    }
    cfg = _config_from_mapping(raw, default_ledger_config())
    validate_ledger_config(cfg)
    return cfg


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    p = config_path or os.environ.get("NARRATIVE_CONFIG_PATH")
    if p:
        return read_ledger_config_file(p)
    return ledger_config_from_env()
