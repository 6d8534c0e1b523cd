# src/narrative/ledger/constants.py
from __future__ import annotations

"""Story ledger constants.

Native value is tracked as an integer count of base units.
One currency unit is COIN base units (18 decimals).
"""

from decimal import Decimal, InvalidOperation

COIN_DECIMALS: int = 18
COIN: int = 10**COIN_DECIMALS

# Label used in fee messages.
CURRENCY: str = "ether"

# Seed story title written by initialization.
SEED_WORD: str = "The"

# Word shape
MIN_WORD_LENGTH: int = 1
MAX_WORD_LENGTH: int = 42

# Characters up to this length are covered by the base fee.
FREE_CHAR_THRESHOLD: int = 9

# Fee schedules: (base, extra per char over FREE_CHAR_THRESHOLD)
CREATE_STORY_BASE_FEE: int = COIN // 10
CREATE_STORY_EXTRA_PER_CHAR: int = COIN // 10

ADD_WORD_BODY_BASE_FEE: int = COIN // 100
ADD_WORD_BODY_EXTRA_PER_CHAR: int = COIN // 100

ADD_WORD_TITLE_BASE_FEE: int = COIN // 50
ADD_WORD_TITLE_EXTRA_PER_CHAR: int = COIN // 50

# Caller-facing rule texts
OWNER_ONLY_MESSAGE: str = "Ownable: caller is not the owner"
ALREADY_INITIALIZED_MESSAGE: str = "Initializable: contract is already initialized"
NOT_INITIALIZED_MESSAGE: str = "Ledger is not initialized"
STORY_NOT_FOUND_MESSAGE: str = "Story does not exist"


def format_coin(amount: int) -> str:
    """Render base units as a plain decimal string, e.g. 10**17 -> "0.1"."""
    d = (Decimal(int(amount)) / Decimal(COIN)).normalize()
    s = format(d, "f")
    return s


def to_base_units(amount: str | int | float | Decimal) -> int:
    """Parse a currency amount ("0.1", 2, Decimal("0.05")) into base units."""
    try:
        d = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"not a currency amount: {amount!r}") from e
    units = d * COIN
    if units != units.to_integral_value():
        raise ValueError(f"amount has more than {COIN_DECIMALS} decimals: {amount!r}")
    return int(units)
