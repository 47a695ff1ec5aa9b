"""Market data helpers for the sales_dash backend."""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, Optional

import requests

from .config import AppConfig
from .models import FxRate

logger = logging.getLogger(__name__)


class PriceService:
    """Fetch live EUR exchange rates from Alpha Vantage."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def fetch_latest_fx_rate(self, base: str, quote: str) -> Optional[FxRate]:
        """Return the latest FX rate between two currencies using Alpha Vantage.

        The function gracefully degrades to ``None`` when the API key is not
        configured or when the external service does not return the expected
        payload structure.
        """

        if not self._config.alpha_vantage_key:
            return None

        params = {
            "function": "CURRENCY_EXCHANGE_RATE",
            "from_currency": base.upper(),
            "to_currency": quote.upper(),
            "apikey": self._config.alpha_vantage_key,
        }
        response = requests.get(self._config.alpha_vantage_endpoint, params=params, timeout=30)
        response.raise_for_status()
        payload = response.json()
        key = "Realtime Currency Exchange Rate"
        if key not in payload:
            return None
        body = payload[key]
        rate_str = body.get("5. Exchange Rate")
        if rate_str is None:
            return None
        try:
            rate = float(rate_str)
        except ValueError:
            return None
        return FxRate(
            base=base.upper(),
            quote=quote.upper(),
            valuation_date=date.today(),
            rate=rate,
            source="alpha_vantage",
        )

    def fetch_eur_rates(self, quotes: Iterable[str]) -> dict[str, float]:
        """Return ``quote -> units per EUR`` for every quote that could be fetched.

        Those values are exactly the divisors the valuation engine expects.
        """

        rates: dict[str, float] = {}
        for quote in quotes:
            try:
                fx_rate = self.fetch_latest_fx_rate("EUR", quote)
            except requests.RequestException as exc:
                logger.warning("EUR/%s rate request failed: %s", quote.upper(), exc)
                continue
            if fx_rate is None or not math.isfinite(fx_rate.rate) or fx_rate.rate <= 0:
                logger.warning("No EUR/%s rate available", quote.upper())
                continue
            rates[fx_rate.quote] = fx_rate.rate
        return rates
