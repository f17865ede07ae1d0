"""
Money Conversion and Formatting

Pure functions between the home currency (KRW, whole units) and the
display currency (EUR, floating point).

DESIGN DECISION: Nothing here rounds a display amount except the
formatters. Sums are taken in integer home units by the ledger and
converted once, so floating point drift never accumulates.

Parsers never raise. Unparseable input becomes 0, which every caller
treats as "not a positive amount".
"""

import math
import re

from trip_budget.models.ledger import is_finite_number

# Thousands separators and whitespace users type into amount fields
_SEPARATORS = re.compile(r"[,_\s]")


def to_display(amount_home: int, rate: float) -> float:
    """Convert home currency units to the display currency, unrounded."""
    return (amount_home or 0) * rate


def parse_number(raw: object) -> float:
    """
    Parse user input into a float.

    Accepts numbers and strings such as "1,000,000" or " 12 500 ".
    Returns 0.0 for anything non-numeric or non-finite.
    """
    if isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        return float(raw) if is_finite_number(raw) else 0.0
    if raw is None:
        return 0.0

    cleaned = _SEPARATORS.sub("", str(raw))
    if not cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_home_amount(raw: object) -> int:
    """
    Parse a home currency entry into whole units (floored).

    The caller must check the result is positive before accepting it.
    """
    return math.floor(parse_number(raw))


def parse_display_amount(raw: object, rate: float) -> int:
    """
    Convert a display currency entry back to home currency units.

    Rounds to the nearest whole unit. A positive input never rounds
    down to zero: the floor is one unit.
    A result too large to represent is 0, like any invalid input.
    """
    value = parse_number(raw)
    if value <= 0 or not is_finite_number(rate) or rate <= 0:
        return 0
    converted = value / rate
    if not math.isfinite(converted):
        return 0
    return max(1, _round_half_up(converted))


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; amounts round .5 away from zero
    return math.floor(value + 0.5)


# =============================================================================
# FORMATTING
# =============================================================================

def format_home(amount: float) -> str:
    """Format home currency: zero decimals, thousands grouping."""
    return f"₩{_round_half_up(amount or 0):,}"


def format_display(amount: float) -> str:
    """Format display currency: exactly two decimals, thousands grouping."""
    return f"€{(amount or 0):,.2f}"


def format_rate(rate: float) -> str:
    return f"{rate:.6f} EUR per KRW"
