# src/narrative/runtime/apply/stories.py
from __future__ import annotations

"""
Story domain apply semantics.

Deterministic state transitions for:
- story creation
- word appends to a story body or title
- unrestricted deposits

Stories are append-only: nothing here removes or rewrites an existing
title, body, word or contributor entry. Every paid call credits the full
attached value to the treasury.
"""

from typing import Any, Dict, List, Optional, Tuple

from narrative.ledger.constants import STORY_NOT_FOUND_MESSAGE
from narrative.runtime.call_types import CallEnvelope
from narrative.runtime.errors import ApplyError, NotFoundError
from narrative.runtime.genesis import new_story
from narrative.runtime.words import (
    ADD_WORD_BODY_FEES,
    ADD_WORD_TITLE_FEES,
    CREATE_STORY_FEES,
    FeeSchedule,
    validate_word,
)

Json = Dict[str, Any]


def _as_dict(x: Any) -> Json:
    return x if isinstance(x, dict) else {}


def _as_list(x: Any) -> List[Any]:
    return x if isinstance(x, list) else []


def _stories(state: Json) -> List[Json]:
    stories = state.get("stories")
    if not isinstance(stories, list):
        stories = []
        state["stories"] = stories
    return stories


def credit_treasury(state: Json, value: int) -> int:
    """Add `value` to the treasury balance and return the new balance."""
    t = state.get("treasury")
    if not isinstance(t, dict):
        t = {}
        state["treasury"] = t
    v = int(value)
    t["balance"] = int(t.get("balance", 0)) + v
    t["total_received"] = int(t.get("total_received", 0)) + v
    return int(t["balance"])


def _story_index(raw: Any, num_stories: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise NotFoundError(STORY_NOT_FOUND_MESSAGE, {"story_index": raw})
    if raw < 0 or raw >= num_stories:
        raise NotFoundError(STORY_NOT_FOUND_MESSAGE, {"story_index": raw, "num_stories": num_stories})
    return raw


def lookup_story(state: Json, story_index: Any) -> Json:
    stories = _stories(state)
    idx = _story_index(story_index, len(stories))
    story = stories[idx]
    if not isinstance(story, dict):
        raise ApplyError("bad_state", "story_not_an_object", {"story_index": idx})
    return story


def _append_word(story: Json, field: str, word: str, caller: str) -> None:
    current = str(story.get(field) or "")
    story[field] = f"{current} {word}" if current else word

    words = _as_list(story.get("words"))
    words.append(word)
    story["words"] = words

    contributors = _as_list(story.get("word_contributors"))
    contributors.append(caller)
    story["word_contributors"] = contributors

    story["word_count"] = len(words)


def _apply_add_word(state: Json, env: CallEnvelope, *, field: str, fees: FeeSchedule, applied: str) -> Json:
    payload = _as_dict(env.payload)
    story = lookup_story(state, payload.get("story_index"))
    word = validate_word(payload.get("word"))
    fee = fees.require_payment(word, env.value)

    _append_word(story, field, word, env.caller)
    credit_treasury(state, env.value)

    return {
        "applied": applied,
        "story_index": int(payload["story_index"]),
        "word_count": int(story["word_count"]),
        "fee": fee,
    }


# ---------------------------
# Calls
# ---------------------------


def _apply_story_create(state: Json, env: CallEnvelope) -> Json:
    payload = _as_dict(env.payload)
    word = validate_word(payload.get("word"))
    fee = CREATE_STORY_FEES.require_payment(word, env.value)

    stories = _stories(state)
    stories.append(new_story(word, env.caller))
    credit_treasury(state, env.value)

    return {"applied": "STORY_CREATE", "story_index": len(stories) - 1, "fee": fee}


def _apply_story_add_word_body(state: Json, env: CallEnvelope) -> Json:
    return _apply_add_word(state, env, field="body", fees=ADD_WORD_BODY_FEES, applied="STORY_ADD_WORD_BODY")


def _apply_story_add_word_title(state: Json, env: CallEnvelope) -> Json:
    return _apply_add_word(state, env, field="title", fees=ADD_WORD_TITLE_FEES, applied="STORY_ADD_WORD_TITLE")


def _apply_treasury_deposit(state: Json, env: CallEnvelope) -> Json:
    credit_treasury(state, env.value)
    return {"applied": "TREASURY_DEPOSIT", "value": int(env.value)}


STORY_APPLIERS = {
    "STORY_CREATE": _apply_story_create,
    "STORY_ADD_WORD_BODY": _apply_story_add_word_body,
    "STORY_ADD_WORD_TITLE": _apply_story_add_word_title,
    "TREASURY_DEPOSIT": _apply_treasury_deposit,
}


def apply_stories(state: Json, env: CallEnvelope) -> Optional[Json]:
    """Apply a story-domain call. Returns None if the call type is not ours."""
    fn = STORY_APPLIERS.get(env.call_type)
    if fn is None:
        return None
    return fn(state, env)


# ---------------------------
# Reads
# ---------------------------


def get_story(state: Json, story_index: Any) -> Json:
    story = lookup_story(state, story_index)
    words = [str(w) for w in _as_list(story.get("words"))]
    return {
        "title": str(story.get("title") or ""),
        "body": str(story.get("body") or ""),
        "word_count": len(words),
        "words": words,
        "word_contributors": [str(c) for c in _as_list(story.get("word_contributors"))],
    }


def get_num_stories(state: Json) -> int:
    return len(_as_list(state.get("stories")))


def get_story_titles(state: Json) -> List[Tuple[int, str]]:
    out: List[Tuple[int, str]] = []
    for i, s in enumerate(_as_list(state.get("stories"))):
        out.append((i, str(_as_dict(s).get("title") or "")))
    return out
