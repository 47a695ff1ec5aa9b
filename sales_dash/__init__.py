"""Sales invoice normalisation, valuation and rollup engine."""
from __future__ import annotations

from .errors import ParseError, RateInvalid, SalesDashError
from .models import Filters, Record, ViewSettings
from .services import DashboardService

__all__ = [
    "DashboardService",
    "Filters",
    "ParseError",
    "RateInvalid",
    "Record",
    "SalesDashError",
    "ViewSettings",
]
