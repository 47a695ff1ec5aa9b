# tests/test_price_service.py

from pathlib import Path

import pytest
import requests

from sales_dash.config import AppConfig
from sales_dash.price_service import PriceService


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def make_config(key="demo"):
    return AppConfig(
        project_root=Path("."),
        data_file=Path("sales.xlsx"),
        database_file=Path("sales_dash.db"),
        rows_per_page=25,
        alpha_vantage_key=key,
        alpha_vantage_endpoint="https://example.test/query",
    )


@pytest.fixture
def quotes(monkeypatch):
    table = {"USD": "1.0850", "GBP": "0.8420"}
    calls = []

    def fake_get(url, params, timeout):
        calls.append((url, params["from_currency"], params["to_currency"]))
        rate = table.get(params["to_currency"])
        if rate is None:
            return FakeResponse({"Note": "rate limited"})
        return FakeResponse({"Realtime Currency Exchange Rate": {"5. Exchange Rate": rate}})

    monkeypatch.setattr(requests, "get", fake_get)
    return calls


def test_fetch_latest_fx_rate(quotes):
    fx_rate = PriceService(make_config()).fetch_latest_fx_rate("eur", "usd")

    assert fx_rate.base == "EUR"
    assert fx_rate.quote == "USD"
    assert fx_rate.rate == 1.085
    assert fx_rate.source == "alpha_vantage"
    assert quotes == [("https://example.test/query", "EUR", "USD")]


def test_fetch_eur_rates_skips_missing_quotes(quotes):
    rates = PriceService(make_config()).fetch_eur_rates(["USD", "GBP", "TRY"])
    assert rates == {"USD": 1.085, "GBP": 0.842}


def test_without_api_key_nothing_is_requested(quotes):
    service = PriceService(make_config(key=None))
    assert service.fetch_latest_fx_rate("EUR", "USD") is None
    assert service.fetch_eur_rates(["USD"]) == {}
    assert quotes == []


def test_failed_requests_skip_the_quote(monkeypatch):
    def fake_get(url, params, timeout):
        quote = params["to_currency"]
        if quote == "GBP":
            raise requests.ConnectionError("connection refused")
        if quote == "TRY":
            response = requests.Response()
            response.status_code = 503
            return response
        return FakeResponse({"Realtime Currency Exchange Rate": {"5. Exchange Rate": "1.10"}})

    monkeypatch.setattr(requests, "get", fake_get)

    rates = PriceService(make_config()).fetch_eur_rates(["USD", "GBP", "TRY"])

    assert rates == {"USD": 1.1}
