from __future__ import annotations

import pytest

from narrative.ledger.constants import to_base_units
from narrative.runtime.call_admission import admit_call
from narrative.runtime.call_types import CallEnvelope
from narrative.runtime.errors import AdmissionError, AuthorizationError, PaymentError
from narrative.runtime.executor import NarrativeExecutor
from narrative.runtime.memory_store import MemoryLedgerStore
from narrative.testing.sigtools import identity_for, sign_call_dict


def _reason(env: CallEnvelope, *, require_sig: bool = False) -> str:
    ok, rej = admit_call(env, require_sig=require_sig)
    assert ok is False
    return rej.reason


def test_shape_rejections() -> None:
    assert _reason(CallEnvelope("STORY_BURN", "alice")) == "unknown_call_type"
    assert _reason(CallEnvelope("TREASURY_DEPOSIT", "  ")) == "missing_caller"
    assert _reason(CallEnvelope("TREASURY_DEPOSIT", "alice", -1)) == "negative_value"
    assert _reason(CallEnvelope("TREASURY_DEPOSIT", "alice", True)) == "value_not_integer"
    assert _reason(CallEnvelope("TREASURY_DEPOSIT", "alice", "10")) == "value_not_integer"
    assert _reason(CallEnvelope("TREASURY_BALANCE", "alice", 1)) == "call_not_payable"
    assert _reason(CallEnvelope("STORY_CREATE", "alice", 0, {})) == "missing_word"
    assert _reason(CallEnvelope("STORY_CREATE", "alice", 0, {"word": 7})) == "word_not_string"
    assert _reason(CallEnvelope("STORY_ADD_WORD_BODY", "alice", 0, {"word": "x"})) == "missing_story_index"
    assert (
        _reason(CallEnvelope("STORY_ADD_WORD_TITLE", "alice", 0, {"word": "x", "story_index": "0"}))
        == "story_index_not_integer"
    )


def test_well_formed_call_is_admitted_without_signature() -> None:
    ok, rej = admit_call(CallEnvelope("STORY_CREATE", "alice", 0, {"word": ""}), require_sig=False)
    assert ok is True
    assert rej is None


def test_signature_required() -> None:
    env = CallEnvelope("TREASURY_DEPOSIT", identity_for("alice"), 5, {}, 1)
    assert _reason(env, require_sig=True) == "missing_signature"


def test_signature_verifies_against_caller_pubkey() -> None:
    call = sign_call_dict({"call_type": "TREASURY_DEPOSIT", "value": 5, "nonce": 1}, label="alice")
    env = CallEnvelope.from_json(call)
    assert admit_call(env, require_sig=True).ok is True

    # Tampering with any signed field breaks the signature.
    tampered = CallEnvelope.from_json({**call, "value": 6})
    assert _reason(tampered, require_sig=True) == "invalid_signature"

    # Signed by bob, claiming to be alice.
    forged = sign_call_dict({"call_type": "TREASURY_DEPOSIT", "value": 5, "nonce": 1}, label="bob", caller=identity_for("alice"))
    assert _reason(CallEnvelope.from_json(forged), require_sig=True) == "invalid_signature"


def test_signed_executor_enforces_increasing_nonces() -> None:
    owner = identity_for("owner")
    ex = NarrativeExecutor(store=MemoryLedgerStore(), require_sig=True)
    ex.initialize(owner)

    first = sign_call_dict(
        {"call_type": "STORY_ADD_WORD_BODY", "value": to_base_units("0.01"), "nonce": 1, "payload": {"story_index": 0, "word": "once"}},
        label="alice",
    )
    ex.submit(first)

    # Replaying the exact envelope is rejected and charges nothing.
    with pytest.raises(AdmissionError) as e:
        ex.submit(first)
    assert e.value.code == "bad_nonce"

    second = sign_call_dict(
        {"call_type": "STORY_ADD_WORD_BODY", "value": to_base_units("0.01"), "nonce": 2, "payload": {"story_index": 0, "word": "upon"}},
        label="alice",
    )
    ex.submit(second)

    assert ex.get_story(0)["body"] == "once upon"
    assert ex.get_story(0)["word_contributors"] == [owner, identity_for("alice"), identity_for("alice")]
    assert ex.view().get_nonce(identity_for("alice")) == 2

    bal = sign_call_dict({"call_type": "TREASURY_BALANCE", "nonce": 1}, label="owner")
    assert ex.get_balance(caller=owner, nonce=1, sig=bal["sig"]) == to_base_units("0.02")


def test_failed_signed_call_does_not_consume_nonce() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore(), require_sig=True)
    ex.initialize(identity_for("owner"))

    short = sign_call_dict(
        {"call_type": "STORY_CREATE", "value": 1, "nonce": 1, "payload": {"word": "Tale"}},
        label="alice",
    )
    with pytest.raises(PaymentError):
        ex.submit(short)
    assert ex.view().get_nonce(identity_for("alice")) == 0

    paid = sign_call_dict(
        {"call_type": "STORY_CREATE", "value": to_base_units("0.1"), "nonce": 1, "payload": {"word": "Tale"}},
        label="alice",
    )
    assert ex.submit(paid)["story_index"] == 1


def test_signed_executor_rejects_unsigned_typed_calls() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore(), require_sig=True)
    ex.initialize(identity_for("owner"))
    with pytest.raises(AdmissionError) as e:
        ex.deposit(caller=identity_for("alice"), value=1, nonce=1)
    assert e.value.reason == "missing_signature"


def test_envelope_json_round_trip_preserves_fields() -> None:
    env = CallEnvelope("STORY_CREATE", "alice", 7, {"word": "Hi"}, 3, "ab")
    assert CallEnvelope.from_json(env.to_json()) == env


def test_signed_balance_read_cannot_be_replayed() -> None:
    owner = identity_for("owner")
    ex = NarrativeExecutor(store=MemoryLedgerStore(), require_sig=True)
    ex.initialize(owner)

    read = sign_call_dict({"call_type": "TREASURY_BALANCE", "nonce": 1}, label="owner")
    assert ex.submit(read) == {"balance": 0}

    ex.submit(sign_call_dict({"call_type": "TREASURY_DEPOSIT", "value": 7, "nonce": 1}, label="alice"))

    with pytest.raises(AdmissionError) as e:
        ex.submit(read)
    assert e.value.code == "bad_nonce"

    fresh = sign_call_dict({"call_type": "TREASURY_BALANCE", "nonce": 2}, label="owner")
    assert ex.submit(fresh) == {"balance": 7}
    assert ex.view().get_nonce(owner) == 2


def test_rejected_signed_read_does_not_consume_nonce() -> None:
    ex = NarrativeExecutor(store=MemoryLedgerStore(), require_sig=True)
    ex.initialize(identity_for("owner"))

    snoop = sign_call_dict({"call_type": "TREASURY_BALANCE", "nonce": 1}, label="alice")
    with pytest.raises(AuthorizationError):
        ex.submit(snoop)
    assert ex.view().get_nonce(identity_for("alice")) == 0
