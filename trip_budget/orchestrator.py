"""
Main Orchestrator for Trip Budget

This module ties together all the components and defines the session
lifecycle:
1. Start (load stored state → recover → first-run rate refresh)
2. Mutate (ledger or rate operation → persist)
3. Read (totals, sorted rows, CSV, daily report)

DESIGN DECISION: The session is the single owner of the LedgerState.
It creates the state once, hands the same object to the ledger, the
rate provider and the query view, and writes it back after every
successful mutation. There is no module-level state anywhere.

No error here is fatal. Storage failures are logged and the session
keeps running in memory; a failed rate refresh keeps the old rate.
"""

from datetime import date, datetime, tzinfo
from typing import Callable, Optional

from pydantic import BaseModel

from trip_budget.config import get_settings
from trip_budget.export import DailyReport, build_csv, build_daily_report
from trip_budget.ledger import Ledger
from trip_budget.logging_config import get_logger
from trip_budget.models.ledger import (
    Currency,
    DisplayTotals,
    ErrorKind,
    ExchangeRate,
    LedgerState,
    LedgerVariant,
    OperationResult,
    SortMode,
    Totals,
    Transaction,
    TransactionKind,
    TransactionRow,
    utc_now,
)
from trip_budget.queries import QueryView
from trip_budget.rates import (
    ExchangeRateHostClient,
    RateProvider,
    RateSourceInterface,
)
from trip_budget.services.storage import (
    InMemoryStateStorage,
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
    dump_state,
    load_state,
)


class StartupReport(BaseModel):
    """What happened while a session started."""

    load: OperationResult
    rate_refresh: Optional[OperationResult] = None


class BudgetSession:
    """
    Orchestrates one tracker session.

    Flow:
    1. start() loads the stored blob, recovering field by field
    2. If no rate was ever fetched or entered, one refresh is attempted
    3. Every successful mutation is persisted immediately

    Confirmation prompts (delete, clear) are the UI's job. The session
    exposes the operations as plain requests.
    """

    def __init__(
        self,
        storage: Optional[StateStorageInterface] = None,
        rate_source: Optional[RateSourceInterface] = None,
        variant: Optional[LedgerVariant] = None,
        storage_key: Optional[str] = None,
        fallback_rate: Optional[float] = None,
        auto_refresh_rate: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        settings = get_settings()
        app_settings = settings.app

        self._storage = storage or InMemoryStateStorage()
        self._rate_source = rate_source
        self._variant = variant or app_settings.ledger_variant
        self._storage_key = storage_key or settings.storage.key
        self._fallback_rate = fallback_rate or app_settings.fallback_rate
        self._auto_refresh = (
            app_settings.auto_refresh_rate_on_first_run
            if auto_refresh_rate is None
            else auto_refresh_rate
        )
        self._clock = clock
        self._logger = get_logger(__name__)

        self._bind(LedgerState(rate=ExchangeRate.fallback(self._fallback_rate)))

    def _bind(self, state: LedgerState) -> None:
        """Hand one state object to every component."""
        self._state = state
        self._ledger = Ledger(state, self._variant)
        self._rates = RateProvider(state, self._rate_source, self._clock)
        self._view = QueryView(state)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> StartupReport:
        """
        Load stored state and, on first run, try to fetch a rate.

        A failed first-run refresh is logged and reported, but never
        blocks startup: the session continues on the fallback rate.
        """
        load_result = self.load()
        report = StartupReport(load=load_result)

        if self._auto_refresh and self._rates.needs_initial_refresh:
            self._logger.info("initial_rate_refresh")
            report.rate_refresh = await self.refresh_rate()

        return report

    def load(self) -> OperationResult:
        """Replace the in-memory state with the stored one."""
        issues: list[str] = []
        try:
            raw = self._storage.read(self._storage_key)
        except StorageError as e:
            raw = None
            issues.append(str(e))

        loaded = load_state(raw, self._fallback_rate, self._variant)
        issues.extend(loaded.issues)
        self._bind(loaded.state)

        if issues:
            self._logger.warning(
                "state_recovered_with_issues",
                issues=issues,
                transactions=len(loaded.state.transactions),
            )
            return OperationResult.fail(
                ErrorKind.PERSISTENCE_CORRUPT,
                "Some saved data could not be read and was reset: "
                + "; ".join(issues),
            )

        self._logger.info(
            "state_loaded",
            version=loaded.version,
            transactions=len(loaded.state.transactions),
        )
        return OperationResult.ok("State loaded")

    def _persist(self) -> bool:
        """Write the whole state. Failures are logged, never raised."""
        try:
            self._storage.write(self._storage_key, dump_state(self._state))
            return True
        except StorageError as e:
            self._logger.error("state_save_failed", error=str(e))
            return False

    def _persisted(self, result: OperationResult) -> OperationResult:
        if result.success:
            self._persist()
        return result

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def set_budget(self, amount: object) -> OperationResult:
        return self._persisted(self._ledger.set_budget(amount))

    def add_transaction(
        self,
        kind: TransactionKind,
        raw_amount: object,
        currency: Currency = Currency.KRW,
        category: str = "",
        notes: str = "",
        occurred_at: object = None,
    ) -> OperationResult:
        return self._persisted(
            self._ledger.add_transaction(
                kind=kind,
                raw_amount=raw_amount,
                currency=currency,
                category=category,
                notes=notes,
                occurred_at=occurred_at,
            )
        )

    def edit_transaction(
        self,
        transaction_id: str,
        new_amount: object,
        new_category: Optional[str] = None,
        new_notes: Optional[str] = None,
    ) -> OperationResult:
        return self._persisted(
            self._ledger.edit_transaction(
                transaction_id, new_amount, new_category, new_notes
            )
        )

    def delete_transaction(self, transaction_id: str) -> OperationResult:
        return self._persisted(self._ledger.delete_transaction(transaction_id))

    def clear_all(self) -> OperationResult:
        return self._persisted(self._ledger.clear_all())

    def set_manual_rate(self, value: object) -> OperationResult:
        return self._persisted(self._rates.set_manual(value))

    async def refresh_rate(self) -> OperationResult:
        return self._persisted(await self._rates.refresh_from_remote())

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def variant(self) -> LedgerVariant:
        return self._variant

    @property
    def income_enabled(self) -> bool:
        return self._ledger.income_enabled

    @property
    def rate(self) -> ExchangeRate:
        return self._rates.rate

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._ledger.get_transaction(transaction_id)

    def totals(self) -> Totals:
        return self._ledger.compute_totals()

    def display_totals(self) -> DisplayTotals:
        return self.totals().in_display(self._rates.value)

    def transactions(self, mode: SortMode = SortMode.NEWEST) -> list[Transaction]:
        return self._view.sorted(mode)

    def rows(self, mode: SortMode = SortMode.NEWEST) -> list[TransactionRow]:
        return self._view.rows(mode)

    def export_csv(self, tz: Optional[tzinfo] = None) -> str:
        """CSV of the ledger in its canonical (insertion) order."""
        return build_csv(
            self._state.transactions,
            self._rates.value,
            include_kind=self.income_enabled,
            tz=tz,
        )

    def daily_report(self, day: date, tz: Optional[tzinfo] = None) -> DailyReport:
        return build_daily_report(
            self._state, day, tz, include_income=self.income_enabled
        )


def create_session(
    use_storage: bool = True,
    storage_path: Optional[str] = None,
    use_remote_rates: bool = True,
) -> BudgetSession:
    """
    Factory function to create a fully wired session.

    Args:
        use_storage: Persist to the configured JSON file.
                    Set to False to keep everything in memory.
        storage_path: Override the configured storage file
        use_remote_rates: Attach the HTTP rate source

    Returns:
        An unstarted BudgetSession; call start() before use
    """
    logger = get_logger(__name__)

    storage: StateStorageInterface
    if use_storage:
        storage = JsonFileStateStorage(storage_path)
        logger.info("storage_configured", path=str(storage.path))
    else:
        storage = InMemoryStateStorage()

    rate_source = ExchangeRateHostClient() if use_remote_rates else None

    return BudgetSession(storage=storage, rate_source=rate_source)
