"""Tests for the rate provider and the HTTP rate client."""

import asyncio
import math
from datetime import datetime, timezone

import pytest
import requests

from conftest import FIXED_NOW, FakeRateSource
from trip_budget.models.ledger import (
    ErrorKind,
    ExchangeRate,
    FALLBACK_RATE,
    LedgerState,
    RateSource,
)
from trip_budget.rates import (
    ExchangeRateHostClient,
    RateProvider,
    RateResponseError,
    RateTransportError,
    parse_rate_payload,
)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self._payload = payload
        self.status_code = status_code
        self._invalid_json = invalid_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


def patch_get(monkeypatch, response=None, error=None):
    calls = []

    def fake_get(url, timeout=None, headers=None):
        calls.append({"url": url, "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(requests, "get", fake_get)
    return calls


def manual_state() -> LedgerState:
    stamp = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    return LedgerState(rate=ExchangeRate(value=0.0007, updated_at=stamp, source=RateSource.MANUAL))


class TestRefreshFromRemote:
    """Tests for RateProvider.refresh_from_remote."""

    def test_success_becomes_fetched(self, state, clock):
        """Test a good fetch replaces value and timestamp."""
        provider = RateProvider(state, FakeRateSource(0.00068), clock)
        result = asyncio.run(provider.refresh_from_remote())
        assert result.success is True
        assert state.rate.value == 0.00068
        assert state.rate.updated_at == FIXED_NOW
        assert state.rate.source == RateSource.FETCHED
        assert result.rate == state.rate

    def test_manual_to_fetched(self, clock):
        """Test any state can move to FETCHED."""
        state = manual_state()
        provider = RateProvider(state, FakeRateSource(0.00069), clock)
        asyncio.run(provider.refresh_from_remote())
        assert state.rate.source == RateSource.FETCHED

    @pytest.mark.parametrize(
        "error",
        [RateResponseError("missing rates"), RateTransportError("offline"), RuntimeError("boom")],
    )
    def test_failure_leaves_state_unchanged(self, clock, error):
        """Test a failed refresh keeps value, timestamp and source."""
        state = manual_state()
        before = state.rate.model_copy()
        provider = RateProvider(state, FakeRateSource(error=error), clock)

        result = asyncio.run(provider.refresh_from_remote())

        assert result.success is False
        assert result.error == ErrorKind.RATE_FETCH_FAILED
        assert result.is_degraded is True
        assert state.rate == before

    @pytest.mark.parametrize("value", [0, -1.0, math.nan, math.inf, "0.0007", None])
    def test_invalid_value_from_source(self, state, clock, value):
        """Test a source returning a bad number counts as failure."""
        provider = RateProvider(state, FakeRateSource(value), clock)
        result = asyncio.run(provider.refresh_from_remote())
        assert result.error == ErrorKind.RATE_FETCH_FAILED
        assert state.rate.source == RateSource.FALLBACK

    def test_no_source_configured(self, state):
        provider = RateProvider(state, None)
        result = asyncio.run(provider.refresh_from_remote())
        assert result.error == ErrorKind.RATE_FETCH_FAILED
        assert state.rate.value == FALLBACK_RATE

    def test_missing_rate_field_via_http(self, monkeypatch, state, clock):
        """Test a response without rates.EUR reports RATE_FETCH_FAILED."""
        patch_get(monkeypatch, FakeResponse({"base": "KRW", "rates": {"USD": 0.00072}}))
        client = ExchangeRateHostClient(url="https://rates.test/latest", max_attempts=1)
        provider = RateProvider(state, client, clock)

        result = asyncio.run(provider.refresh_from_remote())

        assert result.error == ErrorKind.RATE_FETCH_FAILED
        assert state.rate.value == FALLBACK_RATE
        assert state.rate.updated_at is None


class TestSetManual:
    """Tests for RateProvider.set_manual."""

    def test_valid_manual_rate(self, state, clock):
        provider = RateProvider(state, clock=clock)
        result = provider.set_manual("0.00071")
        assert result.success is True
        assert state.rate.value == 0.00071
        assert state.rate.source == RateSource.MANUAL
        assert state.rate.updated_at == FIXED_NOW

    def test_negative_rate_rejected(self, clock):
        """Test -5 is rejected and the stored rate is untouched."""
        state = manual_state()
        provider = RateProvider(state, clock=clock)
        result = provider.set_manual(-5)
        assert result.error == ErrorKind.INVALID_RATE
        assert state.rate.value == 0.0007
        assert state.rate.updated_at == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [0, "0", "abc", "", None, math.nan, "inf", True])
    def test_invalid_values_rejected(self, state, value):
        provider = RateProvider(state)
        result = provider.set_manual(value)
        assert result.error == ErrorKind.INVALID_RATE
        assert result.is_rejected is True
        assert state.rate.source == RateSource.FALLBACK


class TestInitialRefreshPolicy:
    """Tests for needs_initial_refresh."""

    def test_fresh_state_needs_refresh(self, state):
        assert RateProvider(state).needs_initial_refresh is True

    def test_stored_rate_does_not(self):
        assert RateProvider(manual_state()).needs_initial_refresh is False


class TestRateClient:
    """Tests for the exchangerate.host client."""

    def test_parse_payload(self):
        assert parse_rate_payload({"rates": {"EUR": 0.000666}}) == 0.000666

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {},
            {"rates": None},
            {"rates": {}},
            {"rates": {"EUR": "0.0006"}},
            {"rates": {"EUR": 0}},
            {"rates": {"EUR": -0.1}},
            {"rates": {"EUR": True}},
        ],
    )
    def test_parse_payload_rejects_bad_shapes(self, payload):
        with pytest.raises(RateResponseError):
            parse_rate_payload(payload)

    def test_fetch_success(self, monkeypatch):
        """Test the client returns the rate and bounds the wait."""
        calls = patch_get(monkeypatch, FakeResponse({"rates": {"EUR": 0.00067}}))
        client = ExchangeRateHostClient(url="https://rates.test/latest", timeout_seconds=3)
        assert asyncio.run(client.fetch_rate()) == 0.00067
        assert calls == [{"url": "https://rates.test/latest", "timeout": 3}]

    def test_network_error(self, monkeypatch):
        patch_get(monkeypatch, error=requests.ConnectionError("offline"))
        client = ExchangeRateHostClient(url="https://rates.test/latest", max_attempts=1)
        with pytest.raises(RateTransportError):
            asyncio.run(client.fetch_rate())

    def test_http_client_error_is_not_retried(self, monkeypatch):
        """Test 4xx answers fail at once even with retries available."""
        calls = patch_get(monkeypatch, FakeResponse(status_code=404))
        client = ExchangeRateHostClient(url="https://rates.test/latest", max_attempts=3)
        with pytest.raises(RateResponseError):
            asyncio.run(client.fetch_rate())
        assert len(calls) == 1

    def test_invalid_json(self, monkeypatch):
        patch_get(monkeypatch, FakeResponse(invalid_json=True))
        client = ExchangeRateHostClient(url="https://rates.test/latest", max_attempts=1)
        with pytest.raises(RateResponseError):
            asyncio.run(client.fetch_rate())
