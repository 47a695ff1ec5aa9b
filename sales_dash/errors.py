"""Exception types raised by the sales_dash core.

Only structural failures are raised.  Per-row problems during ingestion are
counted on :class:`~sales_dash.models.IngestResult` instead, and a missing
target sum is reported by :func:`~sales_dash.targets.attainment` returning
``None``.
"""
from __future__ import annotations


class SalesDashError(Exception):
    """Base class for every error raised by the package."""


class ParseError(SalesDashError):
    """The input batch is unusable as a whole (empty, not tabular, unknown columns)."""


class RateInvalid(SalesDashError):
    """A rate update contained a non-numeric or non-positive divisor."""

    def __init__(self, currency: str, value: object) -> None:
        super().__init__(f"Invalid rate for {currency!r}: {value!r}")
        self.currency = currency
        self.value = value


__all__ = ["SalesDashError", "ParseError", "RateInvalid"]
