from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "narrative" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from narrative.runtime.executor import NarrativeExecutor  # noqa: E402
from narrative.runtime.memory_store import MemoryLedgerStore  # noqa: E402

OWNER = "owner"
ALICE = "alice"
BOB = "bob"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "NARRATIVE_MODE",
        "NARRATIVE_DB_PATH",
        "NARRATIVE_ADMIN",
        "NARRATIVE_REQUIRE_SIG",
        "NARRATIVE_CONFIG_PATH",
        "NARRATIVE_METRICS_ENABLED",
        "NARRATIVE_MAX_REQUEST_BYTES",
        "NARRATIVE_API_HOST",
        "NARRATIVE_API_PORT",
        "NARRATIVE_LOG_LEVEL",
        "NARRATIVE_LOG_REQUESTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def executor() -> NarrativeExecutor:
    """Unsigned, in-memory ledger initialized by OWNER."""
    ex = NarrativeExecutor(store=MemoryLedgerStore())
    ex.initialize(OWNER)
    return ex
