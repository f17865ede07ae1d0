"""
CSV Export

Produces a spreadsheet-friendly snapshot of the transaction list.

Columns: date, [kind], category, amount_krw, amount_eur, notes.
A value containing a comma, a quote or a newline is wrapped in quotes
with internal quotes doubled; everything else is written bare. Carriage
returns in text are written as newlines so they are always quoted.
"""

import csv
import io
from datetime import tzinfo
from typing import Iterable, Optional

from trip_budget.models.ledger import Transaction
from trip_budget.money.conversion import to_display

CSV_FILENAME = "korea_trip_budget.csv"


def csv_headers(include_kind: bool = False) -> list[str]:
    headers = ["date", "category", "amount_krw", "amount_eur", "notes"]
    if include_kind:
        headers.insert(1, "kind")
    return headers


def _text(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\r", "\n")


def build_csv(
    transactions: Iterable[Transaction],
    rate: float,
    include_kind: bool = False,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Render transactions as CSV text.

    Args:
        transactions: Rows to export, in the order given
        rate: Exchange rate for the amount_eur column
        include_kind: Add the kind column (income-enabled ledgers)
        tz: Zone the date column is expressed in; local by default
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(csv_headers(include_kind))

    for transaction in transactions:
        row = [
            transaction.occurred_at.astimezone(tz).date().isoformat(),
            _text(transaction.category),
            str(transaction.amount),
            f"{to_display(transaction.amount, rate):.2f}",
            _text(transaction.notes),
        ]
        if include_kind:
            row.insert(1, transaction.kind.value)
        writer.writerow(row)

    return buffer.getvalue()
