"""
Exchange Rate Source

DESIGN DECISION: The rate source is an abstract interface so the
provider can be tested with in-memory fakes and the HTTP backend can be
swapped without touching the ledger.

The default backend asks exchangerate.host (no API key) for the KRW to
EUR rate. A successful response carries exactly one positive number at
rates.EUR; any other shape is a failure.

Transport errors (connection, timeout, 5xx) are retried with
exponential backoff. Malformed payloads fail immediately: asking again
will not fix them.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from trip_budget.config import get_settings
from trip_budget.logging_config import get_logger
from trip_budget.models.ledger import is_finite_number


class RateSourceError(Exception):
    """Base exception for rate source errors."""
    pass


class RateTransportError(RateSourceError):
    """The rate source could not be reached or answered with a server error."""
    pass


class RateResponseError(RateSourceError):
    """The rate source answered, but not with a usable rate."""
    pass


class RateSourceInterface(ABC):
    """
    Abstract interface for anything that can quote KRW to EUR.

    Implementations raise RateSourceError on failure.
    """

    @abstractmethod
    async def fetch_rate(self) -> float:
        """
        Fetch the current home-to-display rate.

        Returns:
            A finite rate greater than zero

        Raises:
            RateSourceError: If no valid rate could be obtained
        """
        pass


def parse_rate_payload(payload: object, symbol: str = "EUR") -> float:
    """
    Extract the rate from a decoded exchangerate.host response.

    Raises:
        RateResponseError: If the rate field is missing or not a positive number
    """
    if not isinstance(payload, dict):
        raise RateResponseError("Rate response is not a JSON object")

    rates = payload.get("rates")
    if not isinstance(rates, dict):
        raise RateResponseError("Rate response has no 'rates' object")

    rate = rates.get(symbol)
    if not is_finite_number(rate) or rate <= 0:
        raise RateResponseError(f"Rate response has no positive '{symbol}' rate")

    return float(rate)


class ExchangeRateHostClient(RateSourceInterface):
    """
    HTTP rate source backed by requests.

    The blocking request runs in a worker thread so the caller's event
    loop is never blocked while a refresh is in flight.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings().rate_source
        self._url = url or settings.url
        self._timeout = timeout_seconds or settings.timeout_seconds
        self._max_attempts = max_attempts or settings.max_attempts
        self._session = session
        self._logger = get_logger(__name__)

    async def fetch_rate(self) -> float:
        return await asyncio.to_thread(self._fetch_with_retry)

    def _fetch_with_retry(self) -> float:
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(RateTransportError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._fetch_once()
        raise RateTransportError("Rate source was never attempted")

    def _fetch_once(self) -> float:
        """Perform one request and parse it."""
        getter = self._session.get if self._session else requests.get
        try:
            response = getter(
                self._url,
                timeout=self._timeout,
                headers={"Cache-Control": "no-store"},
            )
        except requests.RequestException as e:
            self._logger.warning("rate_request_failed", error=str(e))
            raise RateTransportError(f"Could not reach rate source: {e}") from e

        if response.status_code >= 500:
            raise RateTransportError(
                f"Rate source returned HTTP {response.status_code}"
            )
        if not response.ok:
            raise RateResponseError(
                f"Rate source returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RateResponseError("Rate response is not valid JSON") from e

        return parse_rate_payload(payload)
