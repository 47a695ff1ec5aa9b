# tests/test_timeseries.py

from datetime import date

import pytest

from sales_dash.timeseries import bucket_key, bucket_label, bucket_range, bucket_series, iso_week


@pytest.mark.parametrize(
    "day, key",
    [
        (date(2021, 1, 1), "2020-W53"),
        (date(2021, 1, 3), "2020-W53"),
        (date(2021, 1, 4), "2021-W01"),
        (date(2024, 12, 30), "2025-W01"),
        (date(2024, 3, 5), "2024-W10"),
    ],
)
def test_iso_week_keys(day, key):
    assert bucket_key(day, "weekly") == key


def test_iso_week_tuple():
    assert iso_week(date(2021, 1, 1)) == (2020, 53)


def test_labels():
    assert bucket_key(date(2024, 3, 5), "daily") == "2024-03-05"
    assert bucket_label(date(2024, 3, 5), "daily") == "05.03.2024"
    assert bucket_label(date(2024, 3, 5), "weekly") == "H10, 2024"


def test_daily_series_has_one_bucket_per_day(march_records):
    buckets = bucket_series(march_records, march_records, "daily")

    assert [b.key for b in buckets] == [
        "2024-03-01",
        "2024-03-02",
        "2024-03-03",
        "2024-03-04",
        "2024-03-05",
    ]
    assert buckets[0].amounts == {"A": 100.0, "B": 0.0, "C": 0.0}
    assert buckets[1].amounts == {"A": 0.0, "B": 0.0, "C": 0.0}
    assert buckets[2].amounts == {"A": 25.0, "B": 50.0, "C": 0.0}
    assert buckets[2].total == 75.0


def test_daily_gap_fill_spans_the_whole_range(record_factory):
    first, last = date(2023, 12, 20), date(2024, 3, 2)
    records = [record_factory(0, last, net_eur=1.0), record_factory(1, first, net_eur=2.0)]

    keys = [b.key for b in bucket_series(records, records, "daily")]

    assert len(keys) == (last - first).days + 1
    assert len(set(keys)) == len(keys)
    assert keys == sorted(keys)
    assert keys[0] == "2023-12-20" and keys[-1] == "2024-03-02"


def test_weekly_series_crosses_the_iso_year(record_factory):
    records = [
        record_factory(0, date(2020, 12, 30), manager="A", net_eur=10.0),
        record_factory(1, date(2021, 1, 12), manager="A", net_eur=5.0),
    ]
    buckets = bucket_series(records, records, "weekly")

    assert [b.key for b in buckets] == ["2020-W53", "2021-W01", "2021-W02"]
    assert [b.amounts["A"] for b in buckets] == [10.0, 0.0, 5.0]


def test_month_filter_pins_the_range_to_the_calendar_month(record_factory):
    view = [record_factory(0, date(2024, 2, 10), net_eur=1.0)]
    buckets = bucket_series(view, view, "daily", month="February 2024")

    assert len(buckets) == 29
    assert buckets[0].key == "2024-02-01"
    assert buckets[-1].key == "2024-02-29"


def test_empty_view_falls_back_to_all_records(march_records):
    buckets = bucket_series([], march_records, "daily")
    assert len(buckets) == 5
    assert all(b.amounts == {} for b in buckets)


def test_no_records_yield_no_buckets():
    assert bucket_range([], []) is None
    assert bucket_series([], [], "weekly") == []


def test_unknown_granularity_is_rejected(march_records):
    with pytest.raises(ValueError):
        bucket_series(march_records, march_records, "monthly")
