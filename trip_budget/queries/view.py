"""
Query View

DESIGN DECISION: Presentation orderings and filters are computed, never
stored. Every call builds a fresh list from the current collection and
the collection itself is never reordered, so insertion order stays the
canonical order for storage and for amount tie-breaks.

Python's sort is stable, including with reverse=True, which gives the
"ties keep collection order" rule for free.
"""

from datetime import date, datetime, tzinfo
from typing import Optional

from trip_budget.models.ledger import (
    LedgerState,
    SortMode,
    Transaction,
    TransactionKind,
    TransactionRow,
)
from trip_budget.money.conversion import to_display


class QueryView:
    """Read-only projections over a LedgerState."""

    def __init__(self, state: LedgerState):
        self._state = state

    def sorted(self, mode: SortMode = SortMode.NEWEST) -> list[Transaction]:
        """
        Return the transactions in presentation order.

        - NEWEST: occurred_at descending
        - AMOUNT_DESC: amount descending, ties in collection order
        - CATEGORY_ASC: category ascending ignoring case, ties newest first
        """
        items = list(self._state.transactions)
        mode = SortMode(mode)

        if mode is SortMode.AMOUNT_DESC:
            return sorted(items, key=lambda t: t.amount, reverse=True)

        if mode is SortMode.CATEGORY_ASC:
            newest_first = sorted(items, key=lambda t: t.occurred_at, reverse=True)
            return sorted(newest_first, key=lambda t: (t.category or "").lower())

        return sorted(items, key=lambda t: t.occurred_at, reverse=True)

    def filter(
        self,
        kind: Optional[TransactionKind] = None,
        category: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        mode: SortMode = SortMode.NEWEST,
    ) -> list[Transaction]:
        """
        Sorted transactions matching every given filter.

        category matches case-insensitively; start and end are inclusive.
        Naive bounds are read as local time.
        """
        start = _aware(start)
        end = _aware(end)
        results = []
        for transaction in self.sorted(mode):
            if kind is not None and transaction.kind is not TransactionKind(kind):
                continue
            if category is not None and transaction.category.lower() != category.lower():
                continue
            if start is not None and transaction.occurred_at < start:
                continue
            if end is not None and transaction.occurred_at > end:
                continue
            results.append(transaction)
        return results

    def for_day(self, day: date, tz: Optional[tzinfo] = None) -> list[Transaction]:
        """
        Transactions on one calendar day, oldest first.

        The day is judged in tz, defaulting to the machine's local zone.
        The ledger's display sort order does not apply here.
        """
        matches = [
            t for t in self._state.transactions
            if t.occurred_at.astimezone(tz).date() == day
        ]
        return sorted(matches, key=lambda t: t.occurred_at)

    def rows(
        self,
        mode: SortMode = SortMode.NEWEST,
        rate: Optional[float] = None,
    ) -> list[TransactionRow]:
        """Display rows with home and converted amounts."""
        rate = self._state.rate.value if rate is None else rate
        return [to_row(t, rate) for t in self.sorted(mode)]

    def categories(self) -> list[str]:
        """Distinct non-empty categories, case-insensitively ordered."""
        seen = {}
        for transaction in self._state.transactions:
            if transaction.category:
                seen.setdefault(transaction.category.lower(), transaction.category)
        return [seen[key] for key in sorted(seen)]


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.astimezone()


def to_row(transaction: Transaction, rate: float) -> TransactionRow:
    return TransactionRow(
        id=transaction.id,
        kind=transaction.kind,
        category=transaction.category,
        notes=transaction.notes,
        occurred_at=transaction.occurred_at,
        amount_home=transaction.amount,
        amount_display=to_display(transaction.amount, rate),
    )
