"""
Core Data Models for Trip Budget

These models define the schemas for all state the tracker keeps.
They are designed to:
1. Enforce the ledger invariants at runtime (amount >= 1, rate > 0)
2. Keep identity fields immutable after creation
3. Be serializable for storage and export
4. Report outcomes as values instead of exceptions

DESIGN DECISION: Models validate on assignment. An in-place edit that
would break an invariant raises before the field changes, so a rejected
operation can never leave a half-updated transaction behind.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# Built-in rate used until a fetched or manual rate exists (~1 EUR = 1500 KRW)
FALLBACK_RATE = 0.000666

# Largest amount or budget the ledger accepts, in home currency units
MAX_AMOUNT_KRW = 10**15


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """
    The two currencies the tracker knows about.

    KRW is the home currency every stored amount is denominated in.
    EUR is the display currency totals are converted to.
    """
    KRW = "krw"
    EUR = "eur"


class TransactionKind(str, Enum):
    """Direction of a transaction relative to the budget."""
    EXPENSE = "expense"
    INCOME = "income"


class LedgerVariant(str, Enum):
    """
    Supported transaction schemas.

    DESIGN DECISION: The two schemas are alternative configurations,
    not one merged feature set, because their validation rules differ.
    - EXPENSES_ONLY: no income; input may be KRW or EUR; the raw input
      is validated, then converted with a floor of one unit.
    - INCOME_AND_EXPENSES: expenses and income; the converted home
      currency amount is validated.
    """
    EXPENSES_ONLY = "expenses_only"
    INCOME_AND_EXPENSES = "income_and_expenses"


class RateSource(str, Enum):
    """Where the current exchange rate came from."""
    FALLBACK = "fallback"  # Built-in constant, never updated
    FETCHED = "fetched"    # Remote rate source
    MANUAL = "manual"      # Entered by the user


class SortMode(str, Enum):
    """Presentation orderings offered by the query view."""
    NEWEST = "newest"
    AMOUNT_DESC = "amountDesc"
    CATEGORY_ASC = "categoryAsc"


class ErrorKind(str, Enum):
    """
    Failure taxonomy for core operations.

    INVALID_AMOUNT, INVALID_RATE and UNSUPPORTED_KIND mean "rejected,
    try again". RATE_FETCH_FAILED and PERSISTENCE_CORRUPT mean
    "degraded, using stale data".
    """
    INVALID_AMOUNT = "invalid_amount"
    INVALID_RATE = "invalid_rate"
    RATE_FETCH_FAILED = "rate_fetch_failed"
    NOT_FOUND = "not_found"
    PERSISTENCE_CORRUPT = "persistence_corrupt"
    UNSUPPORTED_KIND = "unsupported_kind"


DEGRADED_ERRORS = frozenset({
    ErrorKind.RATE_FETCH_FAILED,
    ErrorKind.PERSISTENCE_CORRUPT,
})


def new_transaction_id() -> str:
    """Return a fresh opaque transaction identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# LEDGER MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: amount is always a whole number of home currency units
    and at least 1. id and occurred_at never change after creation.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_transaction_id,
        min_length=1,
        frozen=True,
        description="Opaque unique identifier"
    )
    kind: TransactionKind = Field(
        default=TransactionKind.EXPENSE,
        description="Expense or income"
    )
    amount: int = Field(
        ...,
        ge=1,
        le=MAX_AMOUNT_KRW,
        description="Amount in home currency units"
    )
    category: str = Field(
        default="",
        description="Free-text label, may be empty"
    )
    notes: str = Field(
        default="",
        description="Free-text notes, may be empty"
    )
    occurred_at: datetime = Field(
        default_factory=utc_now,
        frozen=True,
        description="When the transaction happened (not when it was logged)"
    )

    @field_validator('occurred_at')
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive datetimes are read as local time."""
        if v.tzinfo is None:
            return v.astimezone()
        return v


class ExchangeRate(BaseModel):
    """
    Home-to-display currency multiplier.

    updated_at is None only while the built-in fallback is in use.
    """

    value: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="EUR per KRW"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the rate was fetched or entered"
    )
    source: RateSource = Field(
        default=RateSource.FALLBACK,
        description="Where the rate came from"
    )

    @classmethod
    def fallback(cls, value: float = FALLBACK_RATE) -> "ExchangeRate":
        return cls(value=value, updated_at=None, source=RateSource.FALLBACK)


class LedgerState(BaseModel):
    """
    Aggregate root: budget, exchange rate and the transaction collection.

    The collection order is the canonical order: index 0 is the most
    recent insertion. One instance is created per session and handed
    to every component that reads or mutates it.
    """
    model_config = ConfigDict(validate_assignment=True)

    budget_krw: int = Field(
        default=0,
        ge=0,
        le=MAX_AMOUNT_KRW,
        description="Trip budget in home currency units"
    )
    rate: ExchangeRate = Field(
        default_factory=ExchangeRate.fallback,
        description="Current exchange rate"
    )
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Transactions, newest insertion first"
    )


# =============================================================================
# DERIVED MODELS
# =============================================================================

class DisplayTotals(BaseModel):
    """Totals converted to the display currency, unrounded."""

    income_total: float
    expense_total: float
    remaining: float


class Totals(BaseModel):
    """
    Ledger totals in home currency units.

    remaining = budget + income_total - expense_total
    """

    income_total: int = 0
    expense_total: int = 0
    remaining: int = 0

    def in_display(self, rate: float) -> DisplayTotals:
        """Convert each integer total once."""
        return DisplayTotals(
            income_total=self.income_total * rate,
            expense_total=self.expense_total * rate,
            remaining=self.remaining * rate,
        )


class TransactionRow(BaseModel):
    """A display-ready projection of one transaction."""

    id: str
    kind: TransactionKind
    category: str
    notes: str
    occurred_at: datetime
    amount_home: int
    amount_display: float


class OperationResult(BaseModel):
    """
    Outcome of a core operation.

    Core operations never raise for user-caused failures. They return
    one of these, and on failure the prior state is unchanged.
    """

    success: bool
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    # Payloads, filled by the operations that produce them
    transaction: Optional[Transaction] = None
    rate: Optional[ExchangeRate] = None

    @classmethod
    def ok(cls, message: Optional[str] = None, **payload) -> "OperationResult":
        return cls(success=True, message=message, **payload)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=error, message=message)

    @property
    def is_degraded(self) -> bool:
        """True when the system keeps working on stale data."""
        return self.error in DEGRADED_ERRORS

    @property
    def is_rejected(self) -> bool:
        """True when the user's input was refused and can be retried."""
        return self.error is not None and not self.is_degraded


def is_finite_number(value: object) -> bool:
    """Real numbers only; bools are not amounts."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
