"""Rollups over the active view.

All functions are pure reductions: they read records and return new
containers.  Group order is first-encountered order, and rankings use
Python's stable sort so that equal totals keep that order.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from .currency import ORIGINAL_COLUMN, CurrencyFamily, classify
from .models import Bucket, Record

DIMENSIONS = {
    "manager": "manager",
    "region": "region",
    "currency": "currency",
    "customer": "firm",
    "firm": "firm",
    "city": "city",
    "type": "type",
}

SERVICE_KEYWORDS = ("SERVİS", "SERVIS", "HİZMET", "HIZMET")


def check_dimension(dimension: str) -> str:
    try:
        return DIMENSIONS[dimension]
    except KeyError:
        raise ValueError(f"Unknown dimension {dimension!r}; expected one of {sorted(DIMENSIONS)}") from None


def group_sum(records: Iterable[Record], dimension: str) -> dict[str, float]:
    """Sum ``net_eur`` per value of ``dimension``."""

    attribute = check_dimension(dimension)
    totals: dict[str, float] = {}
    for record in records:
        key = getattr(record, attribute)
        totals[key] = totals.get(key, 0.0) + record.net_eur
    return totals


def rank(totals: dict[str, float], n: int | None = None) -> list[tuple[str, float]]:
    """Order ``totals`` by value, largest first, keeping insertion order on ties."""

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ordered if n is None else ordered[: max(n, 0)]


def top_n(records: Iterable[Record], dimension: str, n: int | None = None) -> list[tuple[str, float]]:
    return rank(group_sum(records, dimension), n)


def top_customers_by_manager(
    records: Sequence[Record],
    managers: int = 3,
    customers: int = 5,
) -> list[dict[str, object]]:
    """For the best ``managers`` by total, list each one's best ``customers``."""

    result: list[dict[str, object]] = []
    for manager, total in top_n(records, "manager", managers):
        subset = [record for record in records if record.manager == manager]
        result.append(
            {
                "manager": manager,
                "total": total,
                "customers": [
                    {"firm": firm, "total": amount} for firm, amount in top_n(subset, "customer", customers)
                ],
            }
        )
    return result


def top_invoices(records: Iterable[Record], n: int = 5) -> list[Record]:
    return sorted(records, key=lambda record: record.net_eur, reverse=True)[: max(n, 0)]


def cumulative_series(buckets: Sequence[Bucket]) -> dict[str, object]:
    """Running totals under ``"managers"`` (per manager) and ``"total"``.

    The managers are taken from the bucket mappings; each list holds one value
    per bucket, accumulated from zero in bucket order.
    """

    managers: list[str] = []
    for bucket in buckets:
        for manager in bucket.amounts:
            if manager not in managers:
                managers.append(manager)

    running = {manager: 0.0 for manager in managers}
    series: dict[str, list[float]] = {manager: [] for manager in managers}
    grand = 0.0
    totals: list[float] = []
    for bucket in buckets:
        for manager in managers:
            amount = bucket.amounts.get(manager, 0.0)
            running[manager] += amount
            grand += amount
            series[manager].append(running[manager])
        totals.append(grand)
    return {"total": totals, "managers": series}


def currency_actuals(records: Iterable[Record]) -> dict[str, float]:
    """Sum original-currency amounts per currency family.

    Used by the "original currency" display mode.  EUR lines without an
    original EUR figure contribute their ``net_eur``.
    """

    sums = {family.value: 0.0 for family in (CurrencyFamily.EUR, CurrencyFamily.USD, CurrencyFamily.GBP, CurrencyFamily.TRY)}
    for record in records:
        family = classify(record.currency)
        amount = record.net_original.get(ORIGINAL_COLUMN[family], 0.0)
        if family is CurrencyFamily.EUR and not amount:
            amount = record.net_eur
        sums[family.value] += amount
    return sums


def is_service(record: Record) -> bool:
    label = record.type.upper()
    return any(keyword in label for keyword in SERVICE_KEYWORDS)


def kpis(records: Sequence[Record]) -> dict[str, object]:
    """Headline figures for the active view."""

    total = sum(record.net_eur for record in records)
    service = sum(record.net_eur for record in records if is_service(record))
    product = sum(record.net_eur for record in records if not is_service(record))
    return {
        "net_sales_eur": total,
        "invoices": len(records),
        "customers": len({record.firm for record in records}),
        "average_invoice_eur": total / len(records) if records else 0.0,
        "product_eur": product,
        "service_eur": service,
    }


def net_sales(records: Sequence[Record], normalized: bool = True) -> dict[str, float]:
    """Net sales either as one EUR figure or split by original currency.

    The split omits currencies with nothing booked.
    """

    if normalized:
        return {"EUR": sum(record.net_eur for record in records)}
    return {code: amount for code, amount in currency_actuals(records).items() if amount > 0}


__all__ = [
    "DIMENSIONS",
    "check_dimension",
    "group_sum",
    "rank",
    "top_n",
    "top_customers_by_manager",
    "top_invoices",
    "cumulative_series",
    "currency_actuals",
    "is_service",
    "kpis",
    "net_sales",
]
