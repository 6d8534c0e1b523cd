from __future__ import annotations

import pytest

from narrative.ledger.constants import COIN, to_base_units
from narrative.runtime.errors import PaymentError, ValidationError
from narrative.runtime.words import (
    ADD_WORD_BODY_FEES,
    ADD_WORD_TITLE_FEES,
    CREATE_STORY_FEES,
    validate_word,
    word_length,
)


def test_empty_word_reports_min_length_first() -> None:
    with pytest.raises(ValidationError) as e:
        validate_word("")
    assert e.value.reason == "Word must be at least 1 character"


def test_long_word_reports_max_length() -> None:
    assert validate_word("a" * 42) == "a" * 42
    with pytest.raises(ValidationError) as e:
        validate_word("a" * 43)
    assert e.value.reason == "Word must be at most 42 characters"


def test_long_word_with_spaces_reports_length_not_spaces() -> None:
    with pytest.raises(ValidationError) as e:
        validate_word("a " * 30)
    assert e.value.reason == "Word must be at most 42 characters"


def test_space_is_rejected() -> None:
    with pytest.raises(ValidationError) as e:
        validate_word("sp ace")
    assert e.value.reason == "Word must not contain spaces"
    assert e.value.code == "invalid_word"


@pytest.mark.parametrize("word", ["tab\there", "new\nline", "naïve", "!?"])
def test_other_characters_are_accepted(word: str) -> None:
    assert validate_word(word) == word


def test_word_length_counts_utf8_bytes() -> None:
    assert word_length("abc") == 3
    assert word_length("é") == 2
    # 21 two-byte characters fit exactly; 22 do not.
    assert validate_word("é" * 21)
    with pytest.raises(ValidationError):
        validate_word("é" * 22)


def test_non_string_word_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        validate_word(42)


def test_fee_is_base_up_to_nine_chars() -> None:
    for n in range(1, 10):
        assert CREATE_STORY_FEES.required_fee("a" * n) == to_base_units("0.1")
        assert ADD_WORD_BODY_FEES.required_fee("a" * n) == to_base_units("0.01")
        assert ADD_WORD_TITLE_FEES.required_fee("a" * n) == to_base_units("0.02")


def test_fee_grows_per_char_over_threshold() -> None:
    # "Perspicacious" is 13 characters: 4 over the threshold.
    assert CREATE_STORY_FEES.required_fee("Perspicacious") == to_base_units("0.5")
    assert ADD_WORD_BODY_FEES.required_fee("Perspicacious") == to_base_units("0.05")
    assert ADD_WORD_TITLE_FEES.required_fee("Perspicacious") == to_base_units("0.1")


def test_fee_is_non_decreasing_in_length() -> None:
    for fees in (CREATE_STORY_FEES, ADD_WORD_BODY_FEES, ADD_WORD_TITLE_FEES):
        prev = 0
        for n in range(1, 43):
            fee = fees.required_fee("x" * n)
            assert fee >= prev
            prev = fee


def test_fee_messages_match_schedule_text() -> None:
    assert CREATE_STORY_FEES.message() == (
        "You must provide 0.1 ether plus 0.1 ether for each character over 9 characters to create a new story"
    )
    assert ADD_WORD_BODY_FEES.message() == (
        "You must provide 0.01 ether plus 0.01 ether for each character over 9 characters to add a word to the story."
    )
    assert ADD_WORD_TITLE_FEES.message() == (
        "You must provide 0.02 ether plus 0.02 ether for each character over 9 characters to add a word to the title."
    )


def test_require_payment_accepts_overpayment_and_rejects_shortfall() -> None:
    assert CREATE_STORY_FEES.require_payment("Test", COIN) == COIN // 10
    with pytest.raises(PaymentError) as e:
        CREATE_STORY_FEES.require_payment("Test", COIN // 10 - 1)
    assert e.value.code == "insufficient_payment"
    assert e.value.details == {"required": COIN // 10, "provided": COIN // 10 - 1}
