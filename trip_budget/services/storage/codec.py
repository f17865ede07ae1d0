"""
State Serialization and Versioned Loading

DESIGN DECISION: Loading is an explicit, versioned mapping from every
stored shape we know about to the current LedgerState. It never raises.

Known shapes:
- Version 1 (no "version" key): budgetKrw, rate, rateUpdatedAt as epoch
  milliseconds, transactions of {id, amountKrw, category, notes, dateIso}
  with an optional "type" field.
- Version 2: adds "version", "rateSource" and a "kind" per transaction;
  timestamps are ISO strings.

Recovery is field by field, not all or nothing: a bad budget does not
cost the user their transactions, and one bad transaction does not cost
the others. Every recovery is recorded as an issue so the caller can
report PERSISTENCE_CORRUPT.
"""

import json
import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from trip_budget.models.ledger import (
    FALLBACK_RATE,
    MAX_AMOUNT_KRW,
    ExchangeRate,
    LedgerState,
    LedgerVariant,
    RateSource,
    Transaction,
    TransactionKind,
    is_finite_number,
    new_transaction_id,
)

SCHEMA_VERSION = 2


class LoadedState(BaseModel):
    """Result of loading a stored blob."""

    state: LedgerState
    version: Optional[int] = None
    issues: list[str] = Field(default_factory=list)

    @property
    def is_corrupt(self) -> bool:
        return bool(self.issues)


# =============================================================================
# DUMP
# =============================================================================

def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def state_to_dict(state: LedgerState) -> dict[str, Any]:
    """Convert a LedgerState to the current stored shape."""
    rate = state.rate
    return {
        "version": SCHEMA_VERSION,
        "budgetKrw": state.budget_krw,
        "rate": rate.value,
        "rateUpdatedAt": _iso(rate.updated_at) if rate.updated_at else None,
        "rateSource": rate.source.value,
        "transactions": [
            {
                "id": t.id,
                "kind": t.kind.value,
                "amountKrw": t.amount,
                "category": t.category,
                "notes": t.notes,
                "dateIso": _iso(t.occurred_at),
            }
            for t in state.transactions
        ],
    }


def dump_state(state: LedgerState) -> str:
    return json.dumps(state_to_dict(state), ensure_ascii=False)


# =============================================================================
# LOAD
# =============================================================================

def load_state(
    raw: Optional[str],
    fallback_rate: float = FALLBACK_RATE,
    variant: LedgerVariant = LedgerVariant.EXPENSES_ONLY,
) -> LoadedState:
    """
    Rebuild a LedgerState from stored text.

    Args:
        raw: Stored blob, or None when nothing was ever saved
        fallback_rate: Rate to use when no valid stored rate exists
        variant: Ledger schema; EXPENSES_ONLY maps every kind to EXPENSE

    Returns:
        LoadedState with the recovered state and any issues found
    """
    defaults = LedgerState(rate=ExchangeRate.fallback(fallback_rate))
    if raw is None or not raw.strip():
        return LoadedState(state=defaults)

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        return LoadedState(state=defaults, issues=[f"Stored state is unreadable: {e}"])

    if not isinstance(data, dict):
        return LoadedState(state=defaults, issues=["Stored state is not an object"])

    issues: list[str] = []
    version = _read_version(data, issues)
    budget = _read_budget(data, issues)
    rate = _read_rate(data, version, fallback_rate, issues)
    transactions = _read_transactions(data, variant, issues)

    state = LedgerState(budget_krw=budget, rate=rate, transactions=transactions)
    return LoadedState(state=state, version=version, issues=issues)


def _read_version(data: dict, issues: list[str]) -> int:
    version = data.get("version", 1)
    if version in (1, 2) and not isinstance(version, bool):
        return version
    issues.append(f"Unknown state version {version!r}; reading as current")
    return SCHEMA_VERSION


def _read_budget(data: dict, issues: list[str]) -> int:
    value = data.get("budgetKrw")
    if value is None:
        return 0
    if not is_finite_number(value):
        issues.append(f"Invalid budget {value!r}; reset to 0")
        return 0
    budget = max(0, math.floor(value))
    if budget > MAX_AMOUNT_KRW:
        issues.append(f"Budget {value!r} exceeds the maximum; clamped")
        return MAX_AMOUNT_KRW
    return budget


def _read_rate(
    data: dict,
    version: int,
    fallback_rate: float,
    issues: list[str],
) -> ExchangeRate:
    value = data.get("rate")
    if value is None:
        return ExchangeRate.fallback(fallback_rate)
    if not is_finite_number(value) or value <= 0:
        issues.append(f"Invalid rate {value!r}; using fallback rate")
        return ExchangeRate.fallback(fallback_rate)

    updated_at = None
    stamp = data.get("rateUpdatedAt")
    if stamp is not None:
        updated_at = _parse_timestamp(stamp)
        if updated_at is None:
            issues.append(f"Invalid rate timestamp {stamp!r}; treated as never updated")

    if updated_at is None:
        return ExchangeRate(value=value, updated_at=None, source=RateSource.FALLBACK)

    source = RateSource.FETCHED
    if version >= 2:
        try:
            source = RateSource(data.get("rateSource"))
        except ValueError:
            issues.append(f"Invalid rate source {data.get('rateSource')!r}")
        if source is RateSource.FALLBACK:
            source = RateSource.FETCHED

    return ExchangeRate(value=value, updated_at=updated_at, source=source)


def _read_transactions(
    data: dict,
    variant: LedgerVariant,
    issues: list[str],
) -> list[Transaction]:
    records = data.get("transactions")
    if records is None:
        return []
    if not isinstance(records, list):
        issues.append("Stored transactions are not a list; starting empty")
        return []

    transactions: list[Transaction] = []
    seen_ids: set[str] = set()
    for index, record in enumerate(records):
        transaction = _read_transaction(record, index, variant, issues)
        if transaction is None:
            continue
        if transaction.id in seen_ids:
            issues.append(f"Transaction #{index} repeats id {transaction.id}; new id assigned")
            transaction = transaction.model_copy(update={"id": new_transaction_id()})
        seen_ids.add(transaction.id)
        transactions.append(transaction)
    return transactions


def _read_transaction(
    record: object,
    index: int,
    variant: LedgerVariant,
    issues: list[str],
) -> Optional[Transaction]:
    """Map one stored record to a Transaction, or None to drop it."""
    if not isinstance(record, dict):
        issues.append(f"Transaction #{index} is not an object; dropped")
        return None

    amount = record.get("amountKrw")
    if not is_finite_number(amount) or not 1 <= math.floor(amount) <= MAX_AMOUNT_KRW:
        issues.append(f"Transaction #{index} has invalid amount {amount!r}; dropped")
        return None

    occurred_at = _parse_timestamp(record.get("dateIso"))
    if occurred_at is None:
        issues.append(f"Transaction #{index} has invalid date; dropped")
        return None

    record_id = record.get("id")
    if isinstance(record_id, (int, float)) and not isinstance(record_id, bool):
        record_id = str(record_id)
    if not isinstance(record_id, str) or not record_id:
        issues.append(f"Transaction #{index} has no id; new id assigned")
        record_id = new_transaction_id()

    kind = TransactionKind.EXPENSE
    if variant is LedgerVariant.INCOME_AND_EXPENSES:
        raw_kind = record.get("kind", record.get("type"))
        if raw_kind is not None:
            try:
                kind = TransactionKind(str(raw_kind).strip().lower())
            except ValueError:
                issues.append(f"Transaction #{index} has unknown kind {raw_kind!r}; read as expense")

    try:
        return Transaction(
            id=record_id,
            kind=kind,
            amount=math.floor(amount),
            category=_text(record.get("category")),
            notes=_text(record.get("notes")),
            occurred_at=occurred_at,
        )
    except ValidationError as e:
        issues.append(f"Transaction #{index} is invalid; dropped ({e.error_count()} errors)")
        return None


def _text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _parse_timestamp(value: object) -> Optional[datetime]:
    """Accept epoch milliseconds or ISO 8601 text; None if neither."""
    if is_finite_number(value):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.astimezone()
    return None
