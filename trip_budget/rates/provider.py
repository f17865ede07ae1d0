"""
Rate Provider

Holds the session's exchange rate and the only ways to change it.

States:
    FALLBACK --refresh ok--> FETCHED
    FALLBACK --manual ok---> MANUAL
    any state moves to FETCHED or MANUAL on the matching success.

CRITICAL: A failed refresh or an invalid manual entry leaves value,
timestamp and source exactly as they were. There is no partial update,
and no failure here is fatal: the tracker keeps working on the last
known or fallback rate.
"""

import math
from datetime import datetime
from typing import Callable, Optional

from trip_budget.logging_config import get_logger
from trip_budget.models.ledger import (
    ErrorKind,
    ExchangeRate,
    LedgerState,
    OperationResult,
    RateSource,
    is_finite_number,
    utc_now,
)
from trip_budget.rates.client import RateSourceError, RateSourceInterface


class RateProvider:
    """Exchange rate owner for one LedgerState."""

    def __init__(
        self,
        state: LedgerState,
        source: Optional[RateSourceInterface] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the provider.

        Args:
            state: Shared session state whose rate this provider manages
            source: Remote rate source. If None, refreshes always fail.
            clock: Time source for update timestamps
        """
        self._state = state
        self._source = source
        self._clock = clock
        self._logger = get_logger(__name__)

    @property
    def rate(self) -> ExchangeRate:
        return self._state.rate

    @property
    def value(self) -> float:
        return self._state.rate.value

    @property
    def needs_initial_refresh(self) -> bool:
        """True while no rate was ever fetched or entered."""
        return self._state.rate.updated_at is None

    async def refresh_from_remote(self) -> OperationResult:
        """
        Ask the remote source for a fresh rate.

        On success the rate becomes FETCHED with the current time.
        On any failure the state is untouched and RATE_FETCH_FAILED
        is reported.
        """
        if self._source is None:
            return self._fetch_failed("No rate source configured")

        try:
            value = await self._source.fetch_rate()
        except RateSourceError as e:
            return self._fetch_failed(str(e))
        except Exception as e:
            self._logger.exception("rate_source_crashed")
            return self._fetch_failed(f"Unexpected rate source error: {e}")

        if not is_finite_number(value) or value <= 0:
            return self._fetch_failed(f"Rate source returned an invalid rate: {value!r}")

        rate = ExchangeRate(
            value=float(value),
            updated_at=self._clock(),
            source=RateSource.FETCHED,
        )
        self._state.rate = rate
        self._logger.info("rate_refreshed", rate=rate.value)
        return OperationResult.ok("Exchange rate refreshed", rate=rate)

    def _fetch_failed(self, reason: str) -> OperationResult:
        self._logger.warning(
            "rate_refresh_failed",
            reason=reason,
            kept_rate=self._state.rate.value,
            kept_source=self._state.rate.source.value,
        )
        return OperationResult.fail(
            ErrorKind.RATE_FETCH_FAILED,
            "Could not refresh rate. Using last saved/fallback rate.",
        )

    def set_manual(self, value: object) -> OperationResult:
        """
        Use a rate typed in by the user.

        Rejects non-numeric, non-finite and non-positive values with
        INVALID_RATE.
        """
        parsed = _parse_rate(value)
        if parsed is None:
            self._logger.info("manual_rate_rejected", value=str(value))
            return OperationResult.fail(
                ErrorKind.INVALID_RATE,
                "Enter a valid positive rate.",
            )

        rate = ExchangeRate(
            value=parsed,
            updated_at=self._clock(),
            source=RateSource.MANUAL,
        )
        self._state.rate = rate
        self._logger.info("manual_rate_set", rate=parsed)
        return OperationResult.ok("Exchange rate set", rate=rate)


def _parse_rate(value: object) -> Optional[float]:
    """Return a positive finite rate, or None."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not is_finite_number(value):
        return None
    value = float(value)
    if value <= 0 or not math.isfinite(value):
        return None
    return value
