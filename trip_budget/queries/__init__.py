"""Query view package."""

from trip_budget.queries.view import QueryView, to_row

__all__ = ["QueryView", "to_row"]
