"""Filter engine: derive the active view from the canonical records."""
from __future__ import annotations

from typing import Iterable, Mapping, Optional

from .importers import month_label
from .models import Filters, Record


def normalize_filters(raw: Optional[Mapping[str, object]]) -> Filters:
    """Build a :class:`Filters` value from loosely-typed input.

    ``None`` values and unknown keys are ignored; every predicate is trimmed.
    """

    raw = raw or {}

    def _text(key: str) -> str:
        value = raw.get(key)
        return "" if value is None else str(value).strip()

    return Filters(
        month=_text("month"),
        manager=_text("manager"),
        region=_text("region"),
        city=_text("city"),
        type=_text("type"),
        currency=_text("currency"),
        search=_text("search"),
    )


def matches(record: Record, filters: Filters) -> bool:
    search = filters.search.lower()
    return (
        (not filters.month or month_label(record.date) == filters.month)
        and (not filters.manager or record.manager == filters.manager)
        and (not filters.region or record.region == filters.region)
        and (not filters.city or record.city == filters.city)
        and (not filters.type or record.type == filters.type)
        and (not filters.currency or record.currency == filters.currency)
        and (not search or search in record.firm.lower())
    )


def apply_filters(records: Iterable[Record], filters: Filters) -> list[Record]:
    """Return the records passing every predicate, in their original order."""

    if filters.is_empty():
        return list(records)
    return [record for record in records if matches(record, filters)]


__all__ = ["normalize_filters", "matches", "apply_filters"]
