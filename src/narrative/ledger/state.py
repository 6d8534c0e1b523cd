from __future__ import annotations

from dataclasses import dataclass, field
import copy
from typing import Any, Dict, List, Tuple


Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class StoryView:
    """
    Immutable read-only view of a single story.
    """

    index: int
    title: str
    body: str
    words: Tuple[str, ...] = ()
    word_contributors: Tuple[str, ...] = ()

    @property
    def word_count(self) -> int:
        return len(self.words)

    @classmethod
    def from_json(cls, index: int, story: Json) -> "StoryView":
        return cls(
            index=int(index),
            title=str(story.get("title", "")),
            body=str(story.get("body", "")),
            words=tuple(str(w) for w in story.get("words", []) or []),
            word_contributors=tuple(str(c) for c in story.get("word_contributors", []) or []),
        )

    def to_json(self) -> Json:
        return {
            "index": self.index,
            "title": self.title,
            "body": self.body,
            "word_count": self.word_count,
            "words": list(self.words),
            "word_contributors": list(self.word_contributors),
        }


@dataclass(frozen=True, slots=True)
class LedgerView:
    """
    Immutable read-only ledger view used by API routes and tests.

    Treasury figures are deliberately absent: they are only readable through
    the owner-guarded treasury operations.
    """

    initialized: bool = False
    admin: str = ""
    stories: Tuple[StoryView, ...] = ()
    accounts: Dict[str, Any] = field(default_factory=dict)
    seq: int = 0

    @classmethod
    def from_ledger(cls, state: Dict[str, Any]) -> "LedgerView":
        raw = state.get("stories")
        stories = raw if isinstance(raw, list) else []
        return cls(
            initialized=bool(state.get("initialized", False)),
            admin=str(state.get("admin") or ""),
            stories=tuple(StoryView.from_json(i, s) for i, s in enumerate(stories) if isinstance(s, dict)),
            accounts=copy.deepcopy(state.get("accounts", {})) if isinstance(state.get("accounts"), dict) else {},
            seq=int(state.get("seq", 0) or 0),
        )

    @property
    def num_stories(self) -> int:
        return len(self.stories)

    def story_titles(self) -> List[Tuple[int, str]]:
        return [(s.index, s.title) for s in self.stories]

    def get_story(self, index: int) -> StoryView | None:
        if 0 <= int(index) < len(self.stories):
            return self.stories[int(index)]
        return None

    def get_account(self, account_id: str) -> Dict[str, Any]:
        acct = self.accounts.get(account_id)
        return acct if isinstance(acct, dict) else {}

    def get_nonce(self, account_id: str) -> int:
        acct = self.get_account(account_id)
        try:
            return int(acct.get("nonce", 0))
        except Exception:
            return 0

    def account_balance(self, account_id: str) -> int:
        acct = self.get_account(account_id)
        try:
            return int(acct.get("balance", 0))
        except Exception:
            return 0
