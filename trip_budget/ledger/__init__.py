"""Ledger package."""

from trip_budget.ledger.service import Ledger

__all__ = ["Ledger"]
