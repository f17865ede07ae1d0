"""
Tests for Trip Budget models

Test strategy:
1. Unit tests for the invariants the models enforce on their own
2. Component tests live next to this file, one module per component
3. No real API calls in tests (use fakes)
"""

import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from trip_budget.models.ledger import (
    ErrorKind,
    ExchangeRate,
    FALLBACK_RATE,
    MAX_AMOUNT_KRW,
    LedgerState,
    OperationResult,
    RateSource,
    Totals,
    Transaction,
    TransactionKind,
)


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_defaults(self):
        """Test a minimal transaction gets an id, a kind and a timestamp."""
        txn = Transaction(amount=15000)
        assert txn.id
        assert txn.kind == TransactionKind.EXPENSE
        assert txn.category == ""
        assert txn.notes == ""
        assert txn.occurred_at.tzinfo is not None

    def test_transaction_ids_are_unique(self):
        """Test fresh transactions never share an id."""
        ids = {Transaction(amount=1).id for _ in range(50)}
        assert len(ids) == 50

    @pytest.mark.parametrize("amount", [0, -1, -15000])
    def test_transaction_rejects_non_positive_amount(self, amount):
        """Test amount must be at least one unit."""
        with pytest.raises(ValidationError):
            Transaction(amount=amount)

    def test_transaction_rejects_amount_above_maximum(self):
        """Test amounts are capped at MAX_AMOUNT_KRW."""
        assert Transaction(amount=MAX_AMOUNT_KRW).amount == MAX_AMOUNT_KRW
        with pytest.raises(ValidationError):
            Transaction(amount=MAX_AMOUNT_KRW + 1)

    def test_transaction_rejects_fractional_amount(self):
        """Test home currency amounts are whole units."""
        with pytest.raises(ValidationError):
            Transaction(amount=10.5)

    def test_transaction_amount_assignment_is_validated(self):
        """Test an invalid edit raises and leaves the old amount."""
        txn = Transaction(amount=500)
        with pytest.raises(ValidationError):
            txn.amount = 0
        assert txn.amount == 500

    def test_transaction_id_is_immutable(self):
        """Test the id cannot be reassigned."""
        txn = Transaction(amount=500)
        with pytest.raises(ValidationError):
            txn.id = "other"

    def test_transaction_occurred_at_is_immutable(self):
        """Test occurred_at cannot be reassigned."""
        txn = Transaction(amount=500)
        with pytest.raises(ValidationError):
            txn.occurred_at = datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_naive_datetime_becomes_aware(self):
        """Test naive datetimes are read as local time."""
        txn = Transaction(amount=1, occurred_at=datetime(2024, 5, 1, 9, 30))
        assert txn.occurred_at.tzinfo is not None


class TestExchangeRateModel:
    """Tests for the ExchangeRate model."""

    def test_fallback_rate(self):
        """Test the fallback constructor."""
        rate = ExchangeRate.fallback()
        assert rate.value == FALLBACK_RATE
        assert rate.updated_at is None
        assert rate.source == RateSource.FALLBACK

    @pytest.mark.parametrize("value", [0, -5, math.inf, math.nan])
    def test_rate_must_be_positive_and_finite(self, value):
        """Test invalid rate values are rejected."""
        with pytest.raises(ValidationError):
            ExchangeRate(value=value)


class TestLedgerState:
    """Tests for the aggregate root defaults."""

    def test_defaults(self):
        """Test a fresh state: zero budget, fallback rate, no transactions."""
        state = LedgerState()
        assert state.budget_krw == 0
        assert state.rate.source == RateSource.FALLBACK
        assert state.transactions == []

    def test_negative_budget_rejected(self):
        """Test the budget can never go negative."""
        state = LedgerState()
        with pytest.raises(ValidationError):
            state.budget_krw = -1

    def test_budget_above_maximum_rejected(self):
        state = LedgerState()
        with pytest.raises(ValidationError):
            state.budget_krw = MAX_AMOUNT_KRW + 1


class TestTotals:
    """Tests for the Totals model."""

    def test_in_display_converts_once(self):
        """Test integer totals are converted with the given rate."""
        totals = Totals(income_total=0, expense_total=1_000_000, remaining=-1_000_000)
        display = totals.in_display(0.000666)
        assert display.expense_total == pytest.approx(666.0)
        assert display.remaining == pytest.approx(-666.0)

    def test_in_display_at_maximum_amounts(self):
        """Test totals built from capped amounts always convert."""
        totals = Totals(income_total=0, expense_total=2 * MAX_AMOUNT_KRW, remaining=-2 * MAX_AMOUNT_KRW)
        display = totals.in_display(FALLBACK_RATE)
        assert math.isfinite(display.expense_total)
        assert display.expense_total == pytest.approx(2 * MAX_AMOUNT_KRW * FALLBACK_RATE)


class TestOperationResult:
    """Tests for OperationResult helpers."""

    def test_ok(self):
        """Test a success carries no error."""
        result = OperationResult.ok("done")
        assert result.success is True
        assert result.error is None
        assert result.is_degraded is False
        assert result.is_rejected is False

    @pytest.mark.parametrize(
        "error", [ErrorKind.INVALID_AMOUNT, ErrorKind.INVALID_RATE, ErrorKind.NOT_FOUND]
    )
    def test_rejections(self, error):
        """Test input errors read as 'try again'."""
        result = OperationResult.fail(error, "no")
        assert result.is_rejected is True
        assert result.is_degraded is False

    @pytest.mark.parametrize(
        "error", [ErrorKind.RATE_FETCH_FAILED, ErrorKind.PERSISTENCE_CORRUPT]
    )
    def test_degraded(self, error):
        """Test stale-data errors read as degraded."""
        result = OperationResult.fail(error, "stale")
        assert result.is_degraded is True
        assert result.is_rejected is False
