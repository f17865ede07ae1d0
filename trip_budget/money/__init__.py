"""Money conversion package."""

from trip_budget.money.conversion import (
    format_display,
    format_home,
    format_rate,
    parse_display_amount,
    parse_home_amount,
    parse_number,
    to_display,
)

__all__ = [
    "format_display",
    "format_home",
    "format_rate",
    "parse_display_amount",
    "parse_home_amount",
    "parse_number",
    "to_display",
]
