"""Currency classification and EUR valuation.

Rates are expressed against EUR as the base unit: an amount in a foreign
currency divided by its rate yields EUR.  :func:`revalue` is the only place
in the package that writes :attr:`~sales_dash.models.Record.net_eur`.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Iterable, Mapping, Optional

from .errors import RateInvalid
from .models import Record

logger = logging.getLogger(__name__)


DEFAULT_RATES: dict[str, float] = {"USD": 1.08, "GBP": 0.85, "TRY": 35.0}


class CurrencyFamily(str, Enum):
    """Closed set of currency families the dashboard knows how to value."""

    TRY = "TRY"
    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"


# Column of ``Record.net_original`` that is authoritative for each family.
ORIGINAL_COLUMN = {
    CurrencyFamily.TRY: "TL",
    CurrencyFamily.USD: "USD",
    CurrencyFamily.GBP: "GBP",
    CurrencyFamily.EUR: "EUR",
}

_LIRA_CODES = {"TL", "TRY", "TRL"}


def classify(label: Optional[str]) -> CurrencyFamily:
    """Map a free-text currency label onto a :class:`CurrencyFamily`.

    Labels that match nothing fall back to the local currency (Turkish lira).
    """

    text = (label or "TL").strip().upper()
    if text in _LIRA_CODES:
        return CurrencyFamily.TRY
    if text == "USD" or "DOLAR" in text:
        return CurrencyFamily.USD
    if text == "GBP" or "STERLİN" in text or "STERLIN" in text:
        return CurrencyFamily.GBP
    if "EUR" in text or "AVRO" in text:
        return CurrencyFamily.EUR
    return CurrencyFamily.TRY


def original_amount(record: Record) -> float:
    """Return the record's net amount in its own currency."""

    column = ORIGINAL_COLUMN[classify(record.currency)]
    return record.net_original.get(column, 0.0)


def convert_to_eur(record: Record, rates: Mapping[str, float]) -> float:
    """Compute the EUR value of ``record`` without touching it."""

    if record.source_net_eur:
        return record.source_net_eur

    family = classify(record.currency)
    amount = record.net_original.get(ORIGINAL_COLUMN[family], 0.0)
    if family is CurrencyFamily.EUR:
        return amount
    return amount / rates.get(family.value, DEFAULT_RATES[family.value])


def revalue(records: Iterable[Record], rates: Mapping[str, float]) -> int:
    """Recompute ``net_eur`` for every record in place.

    Returns the number of records whose value came from the rates rather than
    from a source-provided EUR figure.
    """

    converted = 0
    for record in records:
        record.net_eur = convert_to_eur(record, rates)
        if not record.source_net_eur:
            converted += 1
    logger.debug("Revalued records; %d converted with manual rates", converted)
    return converted


def validate_rates(raw: Mapping[str, object], base: Optional[Mapping[str, float]] = None) -> dict[str, float]:
    """Return a complete rate table or raise :class:`RateInvalid`.

    ``raw`` replaces the entries it names; anything it omits is taken from
    ``base`` (or :data:`DEFAULT_RATES`).  Keys are upper-cased.
    """

    rates = dict(DEFAULT_RATES)
    if base:
        rates.update(base)
    for key, value in raw.items():
        code = str(key).strip().upper()
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RateInvalid(code, value)
        if not math.isfinite(value) or value <= 0:
            raise RateInvalid(code, value)
        rates[code] = float(value)
    return rates


__all__ = [
    "DEFAULT_RATES",
    "CurrencyFamily",
    "classify",
    "original_amount",
    "convert_to_eur",
    "revalue",
    "validate_rates",
]
