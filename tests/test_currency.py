# tests/test_currency.py

from datetime import date

import pytest

from sales_dash.currency import (
    DEFAULT_RATES,
    CurrencyFamily,
    classify,
    convert_to_eur,
    original_amount,
    revalue,
    validate_rates,
)
from sales_dash.errors import RateInvalid


@pytest.mark.parametrize(
    "label, family",
    [
        ("TL", CurrencyFamily.TRY),
        (" try ", CurrencyFamily.TRY),
        ("TRL", CurrencyFamily.TRY),
        ("USD", CurrencyFamily.USD),
        ("Amerikan Doları", CurrencyFamily.USD),
        ("GBP", CurrencyFamily.GBP),
        ("İngiliz Sterlini", CurrencyFamily.GBP),
        ("STERLİN", CurrencyFamily.GBP),
        ("EUR", CurrencyFamily.EUR),
        ("EURO", CurrencyFamily.EUR),
        ("Avro", CurrencyFamily.EUR),
        ("CHF", CurrencyFamily.TRY),
        ("", CurrencyFamily.TRY),
        (None, CurrencyFamily.TRY),
    ],
)
def test_classify(label, family):
    assert classify(label) is family


def test_source_figure_survives_rate_changes(record_factory):
    record = record_factory(
        0, date(2024, 1, 1), currency="USD", source_net_eur=500.0, net_original={"USD": 1000.0}
    )
    for rates in ({"USD": 1.0, "GBP": 1.0, "TRY": 1.0}, {"USD": 3.7, "GBP": 0.5, "TRY": 40.0}):
        revalue([record], rates)
        assert record.net_eur == 500.0


@pytest.mark.parametrize("usd_rate", [0.5, 1.08, 1.25, 7.3])
def test_usd_records_divide_by_the_usd_rate(record_factory, usd_rate):
    record = record_factory(0, date(2024, 1, 1), currency="USD", net_original={"USD": 1234.56})
    revalue([record], {**DEFAULT_RATES, "USD": usd_rate})
    assert record.net_eur == 1234.56 / usd_rate


def test_conversion_by_family(record_factory):
    rates = {"USD": 2.0, "GBP": 0.5, "TRY": 40.0}
    lira = record_factory(0, date(2024, 1, 1), currency="TL", net_original={"TL": 400.0})
    pound = record_factory(1, date(2024, 1, 1), currency="Sterlin", net_original={"GBP": 10.0})
    euro = record_factory(2, date(2024, 1, 1), currency="EURO", net_original={"EUR": 75.0, "TL": 99.0})
    unknown = record_factory(3, date(2024, 1, 1), currency="JPY", net_original={"TL": 80.0})

    assert convert_to_eur(lira, rates) == 10.0
    assert convert_to_eur(pound, rates) == 20.0
    assert convert_to_eur(euro, rates) == 75.0
    assert convert_to_eur(unknown, rates) == 2.0


def test_revalue_reports_converted_count(record_factory):
    records = [
        record_factory(0, date(2024, 1, 1), currency="TL", net_original={"TL": 35.0}),
        record_factory(1, date(2024, 1, 1), source_net_eur=9.0),
    ]
    assert revalue(records, DEFAULT_RATES) == 1
    assert [r.net_eur for r in records] == [1.0, 9.0]


def test_original_amount_follows_the_record_currency(record_factory):
    record = record_factory(0, date(2024, 1, 1), currency="USD", net_original={"USD": 12.0, "TL": 400.0})
    assert original_amount(record) == 12.0


def test_validate_rates_fills_defaults_and_normalises_keys():
    rates = validate_rates({"usd": 1.2})
    assert rates == {"USD": 1.2, "GBP": DEFAULT_RATES["GBP"], "TRY": DEFAULT_RATES["TRY"]}


@pytest.mark.parametrize("value", [0, -1.5, "abc", None, float("nan"), float("inf"), True])
def test_validate_rates_rejects_bad_values(value):
    with pytest.raises(RateInvalid):
        validate_rates({"USD": value})
