"""Daily / ISO-weekly bucketing with gap filling.

Every day inside the computed range is visited, so the resulting series has
one bucket per day (or per ISO week touched by the range) even when no
invoice falls into it.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Literal, Optional, Sequence

from dateutil.relativedelta import relativedelta

from .importers import parse_month_label
from .models import Bucket, Record

Granularity = Literal["daily", "weekly"]
GRANULARITIES = ("daily", "weekly")


def check_granularity(granularity: str) -> Granularity:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}")
    return granularity  # type: ignore[return-value]


def iso_week(value: date) -> tuple[int, int]:
    """Return ``(iso_year, iso_week)``; the week's Thursday decides the year."""

    iso_year, week, _ = value.isocalendar()
    return iso_year, week


def bucket_key(value: date, granularity: Granularity) -> str:
    if granularity == "weekly":
        year, week = iso_week(value)
        return f"{year}-W{week:02d}"
    return value.isoformat()


def bucket_label(value: date, granularity: Granularity) -> str:
    if granularity == "weekly":
        year, week = iso_week(value)
        return f"H{week}, {year}"
    return value.strftime("%d.%m.%Y")


def bucket_range(
    view: Sequence[Record],
    records: Sequence[Record],
    month: str = "",
) -> Optional[tuple[date, date]]:
    """Return the inclusive ``(start, end)`` day range the series must cover.

    An active month filter pins the range to that calendar month.  Otherwise
    the range spans the dates of ``view``, or of ``records`` when the view is
    empty.  ``None`` means there is nothing to plot at all.
    """

    if month:
        first = parse_month_label(month)
        if first is not None:
            return first, first + relativedelta(months=1, days=-1)

    reference = view if view else records
    if not reference:
        return None
    dates = [record.date for record in reference]
    return min(dates), max(dates)


def bucket_series(
    view: Sequence[Record],
    records: Sequence[Record],
    granularity: Granularity = "daily",
    month: str = "",
) -> list[Bucket]:
    """Bucket ``view`` by day or ISO week and fill the whole range.

    Each bucket maps every manager present in ``view`` to its summed
    ``net_eur`` for that slot (``0.0`` when idle).
    """

    granularity = check_granularity(granularity)
    bounds = bucket_range(view, records, month)
    if bounds is None:
        return []

    managers = sorted({record.manager for record in view})
    pivot: dict[str, dict[str, float]] = {}
    for record in view:
        slot = pivot.setdefault(bucket_key(record.date, granularity), {})
        slot[record.manager] = slot.get(record.manager, 0.0) + record.net_eur

    start, end = bounds
    buckets: list[Bucket] = []
    seen: set[str] = set()
    current = start
    while current <= end:
        key = bucket_key(current, granularity)
        if key not in seen:
            seen.add(key)
            slot = pivot.get(key, {})
            buckets.append(
                Bucket(
                    key=key,
                    label=bucket_label(current, granularity),
                    amounts={manager: slot.get(manager, 0.0) for manager in managers},
                )
            )
        current += timedelta(days=1)

    buckets.sort(key=lambda bucket: bucket.key)
    return buckets


__all__ = [
    "Granularity",
    "GRANULARITIES",
    "check_granularity",
    "iso_week",
    "bucket_key",
    "bucket_label",
    "bucket_range",
    "bucket_series",
]
