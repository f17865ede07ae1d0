"""
Shared fixtures for Trip Budget tests.

No test talks to the network: rate sources are in-memory fakes and the
HTTP client is exercised through a monkeypatched requests.get.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from trip_budget.config import get_settings
from trip_budget.models.ledger import LedgerState, Transaction, TransactionKind
from trip_budget.rates.client import RateSourceInterface

FIXED_NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class FakeRateSource(RateSourceInterface):
    """Returns a fixed rate, or raises the given exception."""

    def __init__(self, rate: Optional[float] = 0.00068, error: Optional[Exception] = None):
        self.rate = rate
        self.error = error
        self.calls = 0

    async def fetch_rate(self) -> float:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rate


@pytest.fixture(autouse=True)
def fresh_settings():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def state() -> LedgerState:
    return LedgerState()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


def make_transaction(
    amount: int,
    category: str = "",
    occurred_at: datetime = FIXED_NOW,
    kind: TransactionKind = TransactionKind.EXPENSE,
    notes: str = "",
) -> Transaction:
    return Transaction(
        kind=kind,
        amount=amount,
        category=category,
        notes=notes,
        occurred_at=occurred_at,
    )
