from __future__ import annotations

import pytest

from narrative.runtime.errors import AlreadyInitializedError, ApplyError, NotInitializedError
from narrative.runtime.executor import NarrativeExecutor
from narrative.runtime.genesis import bare_state, initialize
from narrative.runtime.memory_store import MemoryLedgerStore

from conftest import ALICE, OWNER


def test_bare_state_is_uninitialized() -> None:
    st = bare_state()
    assert st["initialized"] is False
    assert st["stories"] == []
    assert st["treasury"]["balance"] == 0


def test_initialize_seeds_the_story_and_admin() -> None:
    st = bare_state()
    meta = initialize(st, OWNER)
    assert meta["admin"] == OWNER
    assert st["initialized"] is True
    assert st["admin"] == OWNER
    assert st["stories"] == [
        {"title": "The", "body": "", "words": ["The"], "word_contributors": [OWNER], "word_count": 1}
    ]


def test_initialize_runs_once() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore())
    ex.initialize(OWNER)
    with pytest.raises(AlreadyInitializedError) as e:
        ex.initialize(ALICE)
    assert e.value.reason == "Initializable: contract is already initialized"
    assert ex.admin() == OWNER
    assert ex.get_story(0)["word_contributors"] == [OWNER]


def test_initialize_requires_admin() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore())
    with pytest.raises(ApplyError) as e:
        ex.initialize("  ")
    assert e.value.reason == "missing_admin"
    assert ex.is_initialized() is False


def test_operations_before_initialize_are_rejected() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore())
    assert ex.is_initialized() is False

    with pytest.raises(NotInitializedError):
        ex.create_story("Test", caller=ALICE, value=10**18)
    with pytest.raises(NotInitializedError):
        ex.get_num_stories()
    with pytest.raises(NotInitializedError):
        ex.get_story(0)
    with pytest.raises(NotInitializedError):
        ex.get_balance(caller=ALICE)
    with pytest.raises(NotInitializedError):
        ex.deposit(caller=ALICE, value=1)

    # Nothing was retained by the rejected calls.
    assert ex.snapshot()["treasury"]["balance"] == 0
