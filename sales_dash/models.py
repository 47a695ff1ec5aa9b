"""Domain models used by the sales_dash core.

The classes defined here are plain data containers that know nothing about
HTTP, spreadsheets or SQLite.  Derivations (filtering, bucketing, rollups)
live in their own modules and only read these objects; the valuation engine
in :mod:`sales_dash.currency` is the single writer of :attr:`Record.net_eur`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


DEFAULT_REGION = "Unknown"
DEFAULT_TYPE = "Material"
DEFAULT_CURRENCY = "TL"
DEFAULT_MANAGER = "Unassigned"


@dataclass(slots=True)
class Record:
    """A canonical invoice line after normalisation.

    Attributes:
        id: Position of the raw row inside its ingestion batch.  Dropped rows
            leave gaps, so the value stays usable as an external reference.
        net_eur: EUR-equivalent net amount.  Derived; recomputed by
            :func:`sales_dash.currency.revalue` whenever rates change.
        source_net_eur: EUR figure found in the input.  When non-zero it takes
            precedence over any rate-based conversion.
        net_original: Net amount per original currency column (``EUR``,
            ``USD``, ``GBP``, ``TL``).
    """

    id: int
    date: date
    firm: str = ""
    manager: str = DEFAULT_MANAGER
    region: str = DEFAULT_REGION
    city: str = ""
    type: str = DEFAULT_TYPE
    currency: str = DEFAULT_CURRENCY
    invoice_number: object = None
    net_eur: float = 0.0
    source_net_eur: float = 0.0
    net_original: dict[str, float] = field(default_factory=dict)
    vat_amount: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "firm": self.firm,
            "manager": self.manager,
            "region": self.region,
            "city": self.city,
            "type": self.type,
            "currency": self.currency,
            "invoice_number": self.invoice_number,
            "net_eur": self.net_eur,
            "source_net_eur": self.source_net_eur,
            "net_original": dict(self.net_original),
            "vat_amount": self.vat_amount,
        }


@dataclass(frozen=True)
class Filters:
    """Conjunctive predicate set.  Empty strings mean "match all"."""

    month: str = ""
    manager: str = ""
    region: str = ""
    city: str = ""
    type: str = ""
    currency: str = ""
    search: str = ""

    def is_empty(self) -> bool:
        return not any(
            (self.month, self.manager, self.region, self.city, self.type, self.currency, self.search)
        )


@dataclass(slots=True)
class ViewSettings:
    """Presentational state over the active view; never part of the canonical set."""

    sort_col: str = "date"
    sort_asc: bool = True
    rows_per_page: int = 25
    current_page: int = 1


@dataclass(slots=True)
class FilterOptions:
    """Distinct values used to populate the filter drop-downs."""

    managers: list[str] = field(default_factory=list)
    regions: list[str] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    currencies: list[str] = field(default_factory=list)
    months: list[str] = field(default_factory=list)


@dataclass(slots=True)
class IngestResult:
    """Outcome of normalising one batch of raw rows."""

    records: list[Record]
    options: FilterOptions
    total_rows: int
    dropped: int


@dataclass(slots=True)
class Bucket:
    """One gap-filled time slot with the per-manager EUR amounts inside it."""

    key: str
    label: str
    amounts: dict[str, float]

    @property
    def total(self) -> float:
        return sum(self.amounts.values())


@dataclass(slots=True)
class Attainment:
    percent: float
    target_sum: float
    actual_sum: float
    total: float


@dataclass(slots=True)
class FxRate:
    """FX rate as returned by the market data provider."""

    base: str
    quote: str
    valuation_date: date
    rate: float
    source: str


@dataclass(slots=True)
class Page:
    """A window over the sorted active view."""

    records: list[Record]
    page: int
    total_pages: int
    total: int
    start: int
    end: int
    page_total: float
    view_total: float


__all__ = [
    "Record",
    "Filters",
    "ViewSettings",
    "FilterOptions",
    "IngestResult",
    "Bucket",
    "Attainment",
    "FxRate",
    "Page",
]
