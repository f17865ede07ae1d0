"""
Ledger Service

Owns every mutation of the budget and the transaction collection.

DESIGN DECISION: The ledger does not own its state. It is handed the
session's LedgerState and mutates it in place, so the rate provider and
query view always see the same collection without any global object.

GUARANTEES:
- A rejected operation returns a failed OperationResult and changes nothing
- Totals are summed in integer home currency units
- Insertion order is newest first
"""

import math
from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import ValidationError

from trip_budget.logging_config import get_logger
from trip_budget.models.ledger import (
    MAX_AMOUNT_KRW,
    Currency,
    ErrorKind,
    LedgerState,
    LedgerVariant,
    OperationResult,
    Totals,
    Transaction,
    TransactionKind,
    utc_now,
)
from trip_budget.money.conversion import (
    parse_display_amount,
    parse_number,
)

OccurredAt = Union[datetime, date, str, None]


class Ledger:
    """
    Budget and transaction operations over a shared LedgerState.

    The variant decides which kinds are accepted and how an entered
    amount is validated (see LedgerVariant).
    """

    def __init__(
        self,
        state: LedgerState,
        variant: LedgerVariant = LedgerVariant.EXPENSES_ONLY,
    ):
        self._state = state
        self._variant = variant
        self._logger = get_logger(__name__)

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def variant(self) -> LedgerVariant:
        return self._variant

    @property
    def income_enabled(self) -> bool:
        return self._variant is LedgerVariant.INCOME_AND_EXPENSES

    # =========================================================================
    # BUDGET
    # =========================================================================

    def set_budget(self, amount: object) -> OperationResult:
        """Set the trip budget. Clamped to a whole number in [0, MAX_AMOUNT_KRW]."""
        budget = min(MAX_AMOUNT_KRW, max(0, math.floor(parse_number(amount))))
        self._state.budget_krw = budget
        self._logger.info("budget_set", budget_krw=budget)
        return OperationResult.ok(f"Budget set to {budget}")

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def add_transaction(
        self,
        kind: TransactionKind,
        raw_amount: object,
        currency: Currency = Currency.KRW,
        category: str = "",
        notes: str = "",
        occurred_at: OccurredAt = None,
    ) -> OperationResult:
        """
        Validate, convert and prepend a new transaction.

        Args:
            kind: Expense or income (income only on INCOME_AND_EXPENSES)
            raw_amount: Number or text as entered by the user
            currency: Currency the amount was entered in
            category: Free-text label
            notes: Free-text notes
            occurred_at: When it happened; defaults to now

        Returns:
            OperationResult carrying the stored transaction on success
        """
        try:
            kind = TransactionKind(kind)
            currency = Currency(currency)
        except ValueError as e:
            return OperationResult.fail(ErrorKind.UNSUPPORTED_KIND, str(e))
        if kind is TransactionKind.INCOME and not self.income_enabled:
            return OperationResult.fail(
                ErrorKind.UNSUPPORTED_KIND,
                "Income entries are not enabled for this ledger",
            )

        amount = self._convert_amount(raw_amount, currency)
        if not _amount_in_range(amount):
            self._logger.info("transaction_rejected", reason="invalid_amount")
            return _invalid_amount()

        try:
            occurred = _resolve_occurred_at(occurred_at)
        except ValueError:
            return OperationResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Unrecognised date: {occurred_at}",
            )

        transaction = Transaction(
            kind=kind,
            amount=amount,
            category=(category or "").strip(),
            notes=(notes or "").strip(),
            occurred_at=occurred,
        )
        self._state.transactions.insert(0, transaction)

        self._logger.info(
            "transaction_added",
            transaction_id=transaction.id,
            kind=kind.value,
            amount_krw=amount,
        )
        return OperationResult.ok("Transaction added", transaction=transaction)

    def _convert_amount(self, raw_amount: object, currency: Currency) -> int:
        """
        Turn raw input into home currency units, 0 meaning invalid.

        EXPENSES_ONLY validates the raw input, then floors to one unit.
        INCOME_AND_EXPENSES validates the converted amount.
        """
        value = parse_number(raw_amount)
        rate = self._state.rate.value

        if self._variant is LedgerVariant.EXPENSES_ONLY:
            if value <= 0:
                return 0
            if currency is Currency.EUR:
                return parse_display_amount(value, rate)
            return max(1, math.floor(value))

        if currency is Currency.EUR:
            return parse_display_amount(value, rate)
        return math.floor(value)

    def edit_transaction(
        self,
        transaction_id: str,
        new_amount: object,
        new_category: Optional[str] = None,
        new_notes: Optional[str] = None,
    ) -> OperationResult:
        """
        Edit amount, category and notes in place.

        id, kind and occurred_at are not editable. A None category or
        notes keeps the current value.
        """
        transaction = self.get_transaction(transaction_id)
        if transaction is None:
            return OperationResult.fail(
                ErrorKind.NOT_FOUND,
                f"Transaction not found: {transaction_id}",
            )

        amount = math.floor(parse_number(new_amount))
        if not _amount_in_range(amount):
            return _invalid_amount()

        try:
            transaction.amount = amount
        except ValidationError as e:
            return OperationResult.fail(ErrorKind.INVALID_AMOUNT, str(e))
        if new_category is not None:
            transaction.category = new_category.strip()
        if new_notes is not None:
            transaction.notes = new_notes.strip()

        self._logger.info(
            "transaction_edited",
            transaction_id=transaction_id,
            amount_krw=amount,
        )
        return OperationResult.ok("Transaction updated", transaction=transaction)

    def delete_transaction(self, transaction_id: str) -> OperationResult:
        """Remove a transaction. Deleting an unknown id is a no-op."""
        before = len(self._state.transactions)
        self._state.transactions[:] = [
            t for t in self._state.transactions if t.id != transaction_id
        ]
        removed = before - len(self._state.transactions)

        if removed:
            self._logger.info("transaction_deleted", transaction_id=transaction_id)
            return OperationResult.ok("Transaction deleted")
        self._logger.debug("transaction_delete_noop", transaction_id=transaction_id)
        return OperationResult.ok("Nothing to delete")

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._state.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    # =========================================================================
    # TOTALS
    # =========================================================================

    def compute_totals(self) -> Totals:
        """Sum amounts per kind; remaining = budget + income - expense."""
        income = 0
        expenses = 0
        for transaction in self._state.transactions:
            if transaction.kind is TransactionKind.INCOME:
                income += transaction.amount
            else:
                expenses += transaction.amount

        if not self.income_enabled:
            income = 0

        return Totals(
            income_total=income,
            expense_total=expenses,
            remaining=self._state.budget_krw + income - expenses,
        )

    def clear_all(self) -> OperationResult:
        """Reset budget and transactions. The exchange rate is kept."""
        self._state.budget_krw = 0
        self._state.transactions.clear()
        self._logger.info("ledger_cleared")
        return OperationResult.ok("All trip data cleared")


def _amount_in_range(amount: int) -> bool:
    return 1 <= amount <= MAX_AMOUNT_KRW


def _invalid_amount() -> OperationResult:
    return OperationResult.fail(
        ErrorKind.INVALID_AMOUNT,
        f"Enter a valid amount between 1 and {MAX_AMOUNT_KRW:,}",
    )


def _resolve_occurred_at(value: OccurredAt) -> datetime:
    """
    Normalise a supplied date into an aware datetime.

    Dates and naive datetimes are local time. Missing means now.
    """
    if value is None or value == "":
        return utc_now()
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    if isinstance(value, date):
        return datetime.combine(value, time.min).astimezone()
    raise ValueError(f"Unsupported date value: {value!r}")
