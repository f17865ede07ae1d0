"""Exchange rate package."""

from trip_budget.rates.client import (
    ExchangeRateHostClient,
    RateResponseError,
    RateSourceError,
    RateSourceInterface,
    RateTransportError,
    parse_rate_payload,
)
from trip_budget.rates.provider import RateProvider

__all__ = [
    "ExchangeRateHostClient",
    "RateProvider",
    "RateResponseError",
    "RateSourceError",
    "RateSourceInterface",
    "RateTransportError",
    "parse_rate_payload",
]
