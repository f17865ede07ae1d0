"""
Daily Report

A one-day summary: every transaction whose occurred_at falls on the
given local calendar day, oldest first, with totals in both currencies
and the rate they were converted at.

DESIGN DECISION: The report is a plain model plus a text rendering.
Page layout (PDF or otherwise) belongs to whoever displays it.
"""

from datetime import date, tzinfo
from typing import Optional

from pydantic import BaseModel, Field

from trip_budget.models.ledger import (
    LedgerState,
    TransactionKind,
    TransactionRow,
)
from trip_budget.money.conversion import (
    format_display,
    format_home,
    format_rate,
    to_display,
)
from trip_budget.queries.view import QueryView, to_row


class DailyReport(BaseModel):
    """Transactions and totals for one calendar day."""

    day: date
    rate: float = Field(..., gt=0)
    rows: list[TransactionRow] = Field(default_factory=list)
    expense_total: int = 0
    income_total: int = 0
    include_income: bool = False

    @property
    def expense_total_display(self) -> float:
        return to_display(self.expense_total, self.rate)

    @property
    def income_total_display(self) -> float:
        return to_display(self.income_total, self.rate)

    @property
    def filename(self) -> str:
        return f"korea_daily_{self.day.isoformat()}"

    def render_text(self, tz: Optional[tzinfo] = None) -> str:
        """Render the report as aligned plain text."""
        lines = [
            "Korea Trip Daily Report",
            f"Date: {self.day.isoformat()}",
            f"Rate: {format_rate(self.rate)}",
            f"Expenses (KRW): {format_home(self.expense_total)}",
            f"Expenses (EUR): {format_display(self.expense_total_display)}",
        ]
        if self.include_income:
            lines.append(f"Income (KRW): {format_home(self.income_total)}")
            lines.append(f"Income (EUR): {format_display(self.income_total_display)}")

        lines.append("")
        lines.append(f"{'Time':<8}{'Category':<22}{'KRW':>14}{'EUR':>12}")
        lines.append("-" * 56)
        for row in self.rows:
            time_str = row.occurred_at.astimezone(tz).strftime("%H:%M")
            category = row.category[:20]
            if row.kind is TransactionKind.INCOME:
                category = f"+ {category}"[:20]
            lines.append(
                f"{time_str:<8}{category:<22}"
                f"{row.amount_home:>14,}{row.amount_display:>12.2f}"
            )
        if not self.rows:
            lines.append("No transactions on this day")
        return "\n".join(lines)


def build_daily_report(
    state: LedgerState,
    day: date,
    tz: Optional[tzinfo] = None,
    include_income: bool = False,
) -> DailyReport:
    """Collect the day's transactions, oldest first, and sum them."""
    rate = state.rate.value
    transactions = QueryView(state).for_day(day, tz)

    expenses = sum(
        t.amount for t in transactions if t.kind is TransactionKind.EXPENSE
    )
    income = sum(
        t.amount for t in transactions if t.kind is TransactionKind.INCOME
    ) if include_income else 0

    return DailyReport(
        day=day,
        rate=rate,
        rows=[to_row(t, rate) for t in transactions],
        expense_total=expenses,
        income_total=income,
        include_income=include_income,
    )
