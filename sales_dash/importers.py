"""Normalisation of raw sales-invoice rows into canonical records."""
from __future__ import annotations

import logging
import math
import numbers
import re
import zipfile
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Sequence

import pandas as pd

from .currency import DEFAULT_RATES, convert_to_eur
from .errors import ParseError
from .models import (
    DEFAULT_CURRENCY,
    DEFAULT_MANAGER,
    DEFAULT_REGION,
    DEFAULT_TYPE,
    FilterOptions,
    IngestResult,
    Record,
)

logger = logging.getLogger(__name__)


# Canonical headers of the source workbook.
COL_FIRM = "FİRMA ÜNVANI"
COL_DATE = "FAT. TARİHİ"
COL_INVOICE_NO = "FATURA NO"
COL_REGION = "BÖLGE"
COL_CITY = "İL"
COL_TYPE = "CİNSİ"
COL_CURRENCY = "DÖVİZ CİNSİ"
COL_NET_TL = "KDV HARİÇ TL"
COL_VAT_TL = "K.D.V."
COL_NET_EUR_EQV = "KDV HARİÇ EURO KARŞILIĞI"
COL_NET_ORIG_EUR = "KDV HARİÇ (EURO)"
COL_NET_ORIG_USD = "KDV HARİÇ (USD)"
COL_NET_ORIG_GBP = "KDV HARİÇ (GBP)"
COL_MANAGER = "SATIŞ TEMSİLCİSİ"

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Spreadsheet serial day 25569 is 1970-01-01 (epoch 1899-12-30).
_SERIAL_EPOCH = date(1899, 12, 30)
_DOTTED_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_LEADING_NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class ColumnAlias:
    """Ranked alias tokens for one amount column.

    ``tokens`` are tried first as exact header names, then as
    case-insensitive substrings of the available headers.  ``default`` is
    used when nothing matches; the row may simply not carry it.
    """

    key: str
    default: str
    tokens: tuple[str, ...]


AMOUNT_ALIASES: tuple[ColumnAlias, ...] = (
    ColumnAlias("TL", COL_NET_TL, ("KDV HARİÇ TL", "KDV HARİÇ TUTAR", "TUTAR", "NET TUTAR", "TL TUTAR", "TL")),
    ColumnAlias("USD", COL_NET_ORIG_USD, ("KDV HARİÇ (USD)", "USD TUTAR", "USD", "DOLAR")),
    ColumnAlias("GBP", COL_NET_ORIG_GBP, ("KDV HARİÇ (GBP)", "GBP TUTAR", "GBP", "STERLİN")),
    ColumnAlias("EUR", COL_NET_ORIG_EUR, ("KDV HARİÇ (EURO)", "EURO TUTAR", "EURO", "EUR", "AVRO")),
)


def match_column(headers: Sequence[str], tokens: Sequence[str]) -> Optional[str]:
    """Return the header selected by ``tokens`` or ``None`` when none matches."""

    available = set(headers)
    for token in tokens:
        if token in available:
            return token
    for token in tokens:
        needle = token.upper()
        for header in headers:
            if needle in str(header).upper():
                return header
    return None


def resolve_columns(headers: Sequence[str], aliases: Iterable[ColumnAlias] = AMOUNT_ALIASES) -> dict[str, str]:
    """Map each alias key to the header that carries it in this batch."""

    resolved: dict[str, str] = {}
    for alias in aliases:
        resolved[alias.key] = match_column(headers, alias.tokens) or alias.default
    return resolved


class InvoiceNormaliser:
    """Turn loosely-typed invoice rows into :class:`Record` instances.

    The normaliser resolves the amount columns once per batch (against the
    headers of the first row), converts every row and drops the ones without
    a usable date or EUR amount.  ``rates`` are only needed to compute the
    initial ``net_eur``; the caller owns later revaluations.
    """

    def __init__(self, rates: Optional[Mapping[str, float]] = None) -> None:
        self.rates = dict(rates or DEFAULT_RATES)

    def load(self, rows: object) -> IngestResult:
        """Normalise a full batch.

        Raises:
            ParseError: ``rows`` is not a non-empty sequence of mappings, or
                its first row carries neither a date nor an amount column.
        """

        batch = self._validate_batch(rows)
        columns = resolve_columns(list(batch[0].keys()))
        logger.debug("Resolved amount columns: %s", columns)

        records = list(self._iter_records(batch, columns))
        dropped = len(batch) - len(records)
        if dropped:
            logger.info("Dropped %d of %d rows without a usable date or amount", dropped, len(batch))
        logger.info("Normalised %d invoice rows", len(records))
        return IngestResult(
            records=records,
            options=build_options(records),
            total_rows=len(batch),
            dropped=dropped,
        )

    @staticmethod
    def _validate_batch(rows: object) -> list[Mapping[str, object]]:
        if isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
            raise ParseError("Expected a sequence of rows")
        if not rows:
            raise ParseError("The input contains no rows")
        if not all(isinstance(row, Mapping) for row in rows):
            raise ParseError("Every row must be a mapping of column name to value")

        headers = [str(key) for key in rows[0].keys()]
        known = [COL_DATE, COL_NET_EUR_EQV]
        known.extend(header for header in resolve_columns(headers).values() if header in headers)
        if not any(header in headers for header in known):
            raise ParseError(f"Unrecognised columns: {headers}")
        return list(rows)

    def _iter_records(self, batch: Sequence[Mapping[str, object]], columns: Mapping[str, str]) -> Iterator[Record]:
        for index, row in enumerate(batch):
            record = self._normalise_row(index, row, columns)
            if record is not None:
                yield record

    def _normalise_row(self, index: int, row: Mapping[str, object], columns: Mapping[str, str]) -> Optional[Record]:
        invoice_date = parse_date(row.get(COL_DATE))
        if invoice_date is None:
            logger.debug("Row %d dropped: unresolvable date %r", index, row.get(COL_DATE))
            return None

        record = Record(
            id=index,
            date=invoice_date,
            firm=_clean_string(row.get(COL_FIRM)),
            manager=_clean_string(row.get(COL_MANAGER)) or DEFAULT_MANAGER,
            region=_clean_string(row.get(COL_REGION)) or DEFAULT_REGION,
            city=_clean_string(row.get(COL_CITY)),
            type=_clean_string(row.get(COL_TYPE)) or DEFAULT_TYPE,
            currency=_clean_string(row.get(COL_CURRENCY)) or DEFAULT_CURRENCY,
            invoice_number=row.get(COL_INVOICE_NO),
            source_net_eur=parse_number(row.get(COL_NET_EUR_EQV)),
            net_original={key: parse_number(row.get(header)) for key, header in columns.items()},
            vat_amount=parse_number(row.get(COL_VAT_TL)),
        )
        record.net_eur = convert_to_eur(record, self.rates)
        if not math.isfinite(record.net_eur):
            logger.debug("Row %d dropped: EUR amount is not a finite number", index)
            return None
        return record


def build_options(records: Sequence[Record]) -> FilterOptions:
    """Collect the distinct values offered by the filter drop-downs."""

    months: list[str] = []
    for record in records:
        label = month_label(record.date)
        if label not in months:
            months.append(label)
    return FilterOptions(
        managers=sorted({r.manager for r in records}),
        regions=sorted({r.region for r in records}),
        cities=sorted({r.city for r in records if r.city}),
        types=sorted({r.type for r in records}),
        currencies=sorted({r.currency for r in records}),
        months=months,
    )


def month_label(value: date) -> str:
    """Return the month filter key for ``value``, e.g. ``"March 2024"``."""

    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def parse_month_label(label: str) -> Optional[date]:
    """Inverse of :func:`month_label`; returns the first day of the month."""

    parts = label.strip().split()
    if len(parts) != 2 or parts[0] not in MONTH_NAMES or not parts[1].isdigit():
        return None
    return date(int(parts[1]), MONTH_NAMES.index(parts[0]) + 1, 1)


def dominant_quarter(records: Iterable[Record]) -> Optional[str]:
    """Return the most frequent ``"Q<n> <year>"`` label; on a tie the later label wins."""

    census = Counter(f"Q{(r.date.month - 1) // 3 + 1} {r.date.year}" for r in records)
    best: Optional[str] = None
    for label, count in census.items():
        if best is None or count >= census[best]:
            best = label
    return best


def read_workbook(path: str | Path) -> list[dict[str, object]]:
    """Read the first sheet of an Excel workbook into row dictionaries."""

    try:
        dataframe = pd.read_excel(path, sheet_name=0, dtype=object)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise ParseError(f"Unable to read workbook {path}: {exc}") from exc
    dataframe.columns = [str(column).strip() for column in dataframe.columns]
    return [row.fillna("").to_dict() for _, row in dataframe.iterrows()]


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _clean_string(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_number(value: object) -> float:
    """Parse a Turkish-formatted amount (``1.234,56``); unparseable text is 0."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, numbers.Real):
        return float(value)
    stringified = str(value).strip()
    if not stringified:
        return 0.0
    normalised = stringified.replace(".", "").replace(",", ".", 1)
    # Trailing text such as a currency suffix is ignored.
    match = _LEADING_NUMBER.match(normalised)
    if not match:
        return 0.0
    return float(match.group(0))


def parse_date(value: object) -> Optional[date]:
    """Parse a spreadsheet serial number, a date object or ``DD.MM.YYYY`` text."""

    if value is None or value is pd.NaT or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real):
        if not math.isfinite(value):
            return None
        try:
            return _SERIAL_EPOCH + timedelta(days=math.floor(value))
        except OverflowError:
            return None
    if isinstance(value, str):
        match = _DOTTED_DATE.match(value.strip())
        if not match:
            return None
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


__all__ = [
    "ColumnAlias",
    "AMOUNT_ALIASES",
    "InvoiceNormaliser",
    "match_column",
    "resolve_columns",
    "build_options",
    "month_label",
    "parse_month_label",
    "dominant_quarter",
    "read_workbook",
    "parse_number",
    "parse_date",
]
