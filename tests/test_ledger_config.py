from __future__ import annotations

import json
from pathlib import Path

import pytest

from narrative.runtime.executor_boot import build_executor
from narrative.runtime.ledger_config import (
    LedgerConfig,
    load_ledger_config,
    read_ledger_config_file,
    validate_ledger_config,
)
from narrative.runtime.memory_store import MemoryLedgerStore
from narrative.runtime.sqlite_db import SqliteLedgerStore


def test_defaults_are_production_safe() -> None:
    cfg = load_ledger_config()
    assert cfg.mode == "prod"
    assert cfg.require_sig is True
    assert cfg.admin == ""


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NARRATIVE_MODE", "dev")
    monkeypatch.setenv("NARRATIVE_DB_PATH", ":memory:")
    monkeypatch.setenv("NARRATIVE_ADMIN", "owner")
    monkeypatch.setenv("NARRATIVE_API_PORT", "9090")

    cfg = load_ledger_config()
    assert cfg.mode == "dev"
    assert cfg.db_path == ":memory:"
    assert cfg.admin == "owner"
    # dev defaults to unsigned calls
    assert cfg.require_sig is False
    assert cfg.api_port == 9090


def test_prod_refuses_unsigned_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NARRATIVE_MODE", "prod")
    monkeypatch.setenv("NARRATIVE_REQUIRE_SIG", "0")
    with pytest.raises(ValueError):
        load_ledger_config()


def test_bad_mode_and_port_are_rejected() -> None:
    base = dict(mode="dev", db_path=":memory:", admin="", require_sig=False, api_host="h", api_port=1, log_level="INFO")
    with pytest.raises(ValueError):
        validate_ledger_config(LedgerConfig(**{**base, "mode": "staging"}))
    with pytest.raises(ValueError):
        validate_ledger_config(LedgerConfig(**{**base, "api_port": 70000}))


def test_yaml_and_json_config_files(tmp_path: Path) -> None:
    y = tmp_path / "ledger.yaml"
    y.write_text("mode: dev\ndb_path: ':memory:'\nadmin: owner\nlog_level: debug\n", encoding="utf-8")
    cfg = read_ledger_config_file(str(y))
    assert (cfg.mode, cfg.db_path, cfg.admin, cfg.log_level) == ("dev", ":memory:", "owner", "DEBUG")

    j = tmp_path / "ledger.json"
    j.write_text(json.dumps({"mode": "prod", "db_path": str(tmp_path / "x.db")}), encoding="utf-8")
    cfg = read_ledger_config_file(str(j))
    assert cfg.mode == "prod"
    assert cfg.require_sig is True


def test_build_executor_initializes_fresh_ledger(tmp_path: Path) -> None:
    mem = LedgerConfig(mode="dev", db_path=":memory:", admin="owner", require_sig=False, api_host="h", api_port=1, log_level="INFO")
    ex = build_executor(mem)
    assert isinstance(ex._store, MemoryLedgerStore)
    assert ex.admin() == "owner"

    db_cfg = LedgerConfig(
        mode="dev", db_path=str(tmp_path / "n.db"), admin="owner", require_sig=False, api_host="h", api_port=1, log_level="INFO"
    )
    first = build_executor(db_cfg)
    assert isinstance(first._store, SqliteLedgerStore)

    # Re-booting with another admin keeps the original one.
    again = build_executor(LedgerConfig(**{**db_cfg.__dict__, "admin": "mallory"}))
    assert again.admin() == "owner"


def test_build_executor_without_admin_leaves_ledger_uninitialized() -> None:
    cfg = LedgerConfig(mode="dev", db_path=":memory:", admin="", require_sig=False, api_host="h", api_port=1, log_level="INFO")
    assert build_executor(cfg).is_initialized() is False
