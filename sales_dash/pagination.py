"""Sorting and paging of the active view."""
from __future__ import annotations

import math
from typing import Callable, Sequence

from .models import Page, Record, ViewSettings

SORT_KEYS: dict[str, Callable[[Record], object]] = {
    "id": lambda r: r.id,
    "date": lambda r: r.date,
    "firm": lambda r: r.firm,
    "manager": lambda r: r.manager,
    "region": lambda r: r.region,
    "city": lambda r: r.city,
    "type": lambda r: r.type,
    "currency": lambda r: r.currency,
    # Invoice numbers arrive as text or numbers depending on the workbook.
    "invoice_number": lambda r: "" if r.invoice_number is None else str(r.invoice_number),
    "net": lambda r: r.net_eur,
    "netOrig": lambda r: r.net_original.get("TL", 0.0),
    "customer": lambda r: r.firm,
}


def check_sort_column(column: str) -> str:
    if column not in SORT_KEYS:
        raise ValueError(f"Unknown sort column {column!r}; expected one of {sorted(SORT_KEYS)}")
    return column


def sort_records(records: Sequence[Record], column: str, ascending: bool = True) -> list[Record]:
    """Return a stably sorted copy; equal keys keep their incoming order."""

    key = SORT_KEYS[check_sort_column(column)]
    return sorted(records, key=key, reverse=not ascending)


def toggle_sort(settings: ViewSettings, column: str) -> ViewSettings:
    """Select ``column``; selecting the active column flips the direction."""

    check_sort_column(column)
    if settings.sort_col == column:
        settings.sort_asc = not settings.sort_asc
    else:
        settings.sort_col = column
        settings.sort_asc = True
    return settings


def total_pages(total: int, rows_per_page: int) -> int:
    return max(1, math.ceil(total / rows_per_page)) if rows_per_page > 0 else 1


def set_page(settings: ViewSettings, page: int, total: int) -> bool:
    """Move to ``page`` when it exists; otherwise leave ``settings`` untouched."""

    if 1 <= page <= total_pages(total, settings.rows_per_page):
        settings.current_page = page
        return True
    return False


def change_page(settings: ViewSettings, delta: int, total: int) -> bool:
    return set_page(settings, settings.current_page + delta, total)


def set_rows_per_page(settings: ViewSettings, rows_per_page: int) -> ViewSettings:
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be at least 1")
    settings.rows_per_page = rows_per_page
    settings.current_page = 1
    return settings


def paginate(records: Sequence[Record], settings: ViewSettings) -> Page:
    """Sort ``records`` per ``settings`` and cut out the current page."""

    ordered = sort_records(records, settings.sort_col, settings.sort_asc)
    total = len(ordered)
    pages = total_pages(total, settings.rows_per_page)
    page = min(max(settings.current_page, 1), pages)
    start = (page - 1) * settings.rows_per_page
    end = min(start + settings.rows_per_page, total)
    window = ordered[start:end]
    return Page(
        records=window,
        page=page,
        total_pages=pages,
        total=total,
        start=start,
        end=end,
        page_total=sum(record.net_eur for record in window),
        view_total=sum(record.net_eur for record in ordered),
    )


__all__ = [
    "SORT_KEYS",
    "check_sort_column",
    "sort_records",
    "toggle_sort",
    "total_pages",
    "set_page",
    "change_page",
    "set_rows_per_page",
    "paginate",
]
