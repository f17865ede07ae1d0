"""
Data Models Package

This package contains all Pydantic models used in the Trip Budget tracker.
All state flowing through the system must conform to these schemas.
"""

from trip_budget.models.ledger import (
    FALLBACK_RATE,
    MAX_AMOUNT_KRW,
    Currency,
    DisplayTotals,
    ErrorKind,
    ExchangeRate,
    LedgerState,
    LedgerVariant,
    OperationResult,
    RateSource,
    SortMode,
    Totals,
    Transaction,
    TransactionKind,
    TransactionRow,
    is_finite_number,
    new_transaction_id,
    utc_now,
)

__all__ = [
    "FALLBACK_RATE",
    "MAX_AMOUNT_KRW",
    "Currency",
    "DisplayTotals",
    "ErrorKind",
    "ExchangeRate",
    "LedgerState",
    "LedgerVariant",
    "OperationResult",
    "RateSource",
    "SortMode",
    "Totals",
    "Transaction",
    "TransactionKind",
    "TransactionRow",
    "is_finite_number",
    "new_transaction_id",
    "utc_now",
]
