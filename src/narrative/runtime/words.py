# src/narrative/runtime/words.py
from __future__ import annotations

"""Word validation and length-based pricing shared by every story mutation."""

from dataclasses import dataclass
from typing import Any

from narrative.ledger.constants import (
    ADD_WORD_BODY_BASE_FEE,
    ADD_WORD_BODY_EXTRA_PER_CHAR,
    ADD_WORD_TITLE_BASE_FEE,
    ADD_WORD_TITLE_EXTRA_PER_CHAR,
    CREATE_STORY_BASE_FEE,
    CREATE_STORY_EXTRA_PER_CHAR,
    CURRENCY,
    FREE_CHAR_THRESHOLD,
    MAX_WORD_LENGTH,
    MIN_WORD_LENGTH,
    format_coin,
)
from narrative.runtime.errors import PaymentError, ValidationError


def word_length(word: str) -> int:
    """Raw length of a word: its UTF-8 byte count."""
    return len(word.encode("utf-8"))


def validate_word(word: Any) -> str:
    """Return `word` unchanged if it is a valid word, else raise ValidationError.

    Rules are checked in order and the first violation is reported.
    Only U+0020 counts as a space.
    """
    if not isinstance(word, str):
        raise ValidationError("Word must be a string", {"type": type(word).__name__})

    n = word_length(word)
    if n < MIN_WORD_LENGTH:
        raise ValidationError("Word must be at least 1 character", {"length": n})
    if n > MAX_WORD_LENGTH:
        raise ValidationError("Word must be at most 42 characters", {"length": n})
    if " " in word:
        raise ValidationError("Word must not contain spaces")
    return word


@dataclass(frozen=True)
class FeeSchedule:
    base: int
    extra_per_char: int
    # Completes the failure message, e.g. "to create a new story".
    action: str

    def required_fee(self, word: str) -> int:
        over = max(0, word_length(word) - FREE_CHAR_THRESHOLD)
        return int(self.base) + int(self.extra_per_char) * over

    def message(self) -> str:
        return (
            f"You must provide {format_coin(self.base)} {CURRENCY} plus "
            f"{format_coin(self.extra_per_char)} {CURRENCY} for each character over "
            f"{FREE_CHAR_THRESHOLD} characters {self.action}"
        )

    def require_payment(self, word: str, value: int) -> int:
        """Raise PaymentError if `value` does not cover the fee for `word`."""
        fee = self.required_fee(word)
        if int(value) < fee:
            raise PaymentError(self.message(), {"required": fee, "provided": int(value)})
        return fee


CREATE_STORY_FEES = FeeSchedule(
    base=CREATE_STORY_BASE_FEE,
    extra_per_char=CREATE_STORY_EXTRA_PER_CHAR,
    action="to create a new story",
)

ADD_WORD_BODY_FEES = FeeSchedule(
    base=ADD_WORD_BODY_BASE_FEE,
    extra_per_char=ADD_WORD_BODY_EXTRA_PER_CHAR,
    action="to add a word to the story.",
)

ADD_WORD_TITLE_FEES = FeeSchedule(
    base=ADD_WORD_TITLE_BASE_FEE,
    extra_per_char=ADD_WORD_TITLE_EXTRA_PER_CHAR,
    action="to add a word to the title.",
)
