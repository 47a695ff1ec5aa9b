"""High-level application service orchestrating the sales_dash core."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Mapping, Optional, Sequence

from . import aggregation, pagination
from .config import AppConfig
from .currency import DEFAULT_RATES, original_amount, revalue, validate_rates
from .database import SQLiteRepository
from .filters import apply_filters, normalize_filters
from .importers import InvoiceNormaliser, dominant_quarter, read_workbook
from .models import Attainment, Bucket, FilterOptions, Filters, IngestResult, Page, Record, ViewSettings
from .price_service import PriceService
from .targets import attainment, clean_targets, manager_performance
from .timeseries import Granularity, bucket_series, check_granularity

logger = logging.getLogger(__name__)

REFRESHED_CURRENCIES = ("USD", "GBP", "TRY")


class DashboardService:
    """Owns the dashboard state and derives every view from it.

    The canonical records, rates, targets, filters and view settings all live
    on this object.  Mutators rebuild the active view from scratch; queries
    read the current snapshot under the same lock, so a concurrent revaluation
    never lands halfway through a rollup.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        repository: Optional[SQLiteRepository] = None,
        price_service: Optional[PriceService] = None,
    ) -> None:
        self._config = config
        self._repository = repository
        self._price_service = price_service
        self._lock = threading.RLock()

        self._records: list[Record] = []
        self._view: list[Record] = []
        self._options = FilterOptions()
        self._dropped = 0
        self._filters = Filters()
        self._settings = ViewSettings(rows_per_page=config.rows_per_page if config else 25)
        self._rates = repository.load_rates() if repository else dict(DEFAULT_RATES)
        self._targets = repository.load_targets() if repository else {}

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def records(self) -> list[Record]:
        with self._lock:
            return list(self._records)

    @property
    def view(self) -> list[Record]:
        with self._lock:
            return list(self._view)

    @property
    def rates(self) -> dict[str, float]:
        return dict(self._rates)

    @property
    def targets(self) -> dict[str, float]:
        return dict(self._targets)

    @property
    def filters(self) -> Filters:
        return self._filters

    @property
    def settings(self) -> ViewSettings:
        return self._settings

    @property
    def options(self) -> FilterOptions:
        return self._options

    @property
    def dropped_rows(self) -> int:
        return self._dropped

    # ------------------------------------------------------------------
    # Ingestion workflows
    # ------------------------------------------------------------------
    def ingest(self, rows: Sequence[Mapping[str, object]]) -> IngestResult:
        """Replace the canonical set with a freshly normalised batch.

        The batch is normalised completely before anything is swapped in, so a
        :class:`~sales_dash.errors.ParseError` leaves the previous set intact.
        """

        result = InvoiceNormaliser(self._rates).load(rows)
        with self._lock:
            self._records = result.records
            self._options = result.options
            self._dropped = result.dropped
            self._settings.current_page = 1
            self._refresh_view()
        return result

    def import_workbook(self, path: Optional[Path | str] = None) -> IngestResult:
        """Read the configured workbook (or ``path``) and ingest its first sheet."""

        if path is None:
            if self._config is None:
                raise ValueError("No workbook path given and no configuration available")
            path = self._config.data_file
        logger.info("Importing workbook %s", path)
        return self.ingest(read_workbook(path))

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def set_rates(self, rates: Mapping[str, object]) -> dict[str, float]:
        """Replace the manual rates and revalue every record.

        Raises :class:`~sales_dash.errors.RateInvalid` (keeping the current
        rates) when any value is not a positive number.
        """

        return self._apply_rates(validate_rates(rates))

    def refresh_rates(self) -> Optional[dict[str, float]]:
        """Pull EUR rates from the market data provider and apply them.

        Currencies the provider could not quote keep their current rate.
        Returns ``None`` when nothing could be fetched.
        """

        if self._price_service is None:
            return None
        fetched = self._price_service.fetch_eur_rates(REFRESHED_CURRENCIES)
        if not fetched:
            return None
        return self._apply_rates(validate_rates(fetched, base=self._rates))

    def _apply_rates(self, rates: dict[str, float]) -> dict[str, float]:
        with self._lock:
            self._rates = rates
            converted = revalue(self._records, rates)
            self._refresh_view()
        logger.info("Rates updated to %s; %d records converted", rates, converted)
        if self._repository is not None:
            self._repository.save_rates(rates)
        return dict(rates)

    def set_targets(self, targets: Mapping[str, object]) -> dict[str, float]:
        """Replace the manager targets; unusable entries mean "no target"."""

        cleaned = clean_targets(targets)
        with self._lock:
            self._targets = cleaned
        logger.info("Targets updated for %d managers", len(cleaned))
        if self._repository is not None:
            self._repository.save_targets(cleaned)
        return dict(cleaned)

    def set_filters(self, filters: Filters | Mapping[str, object] | None) -> list[Record]:
        """Replace the whole filter set and return the new active view."""

        if not isinstance(filters, Filters):
            filters = normalize_filters(filters)
        with self._lock:
            self._filters = filters
            self._settings.current_page = 1
            self._refresh_view()
            return list(self._view)

    def reset_filters(self) -> list[Record]:
        return self.set_filters(Filters())

    def _refresh_view(self) -> None:
        self._view = apply_filters(self._records, self._filters)

    # ------------------------------------------------------------------
    # Rollups
    # ------------------------------------------------------------------
    def aggregate_by(self, dimension: str) -> dict[str, float]:
        """Group sums for ``dimension``, largest first."""

        with self._lock:
            return dict(aggregation.top_n(self._view, dimension))

    def top_n(self, dimension: str, n: int) -> list[tuple[str, float]]:
        with self._lock:
            return aggregation.top_n(self._view, dimension, n)

    def top_customers(self, managers: int = 3, customers: int = 5) -> list[dict[str, object]]:
        with self._lock:
            return aggregation.top_customers_by_manager(self._view, managers, customers)

    def top_invoices(self, n: int = 5) -> list[Record]:
        with self._lock:
            return aggregation.top_invoices(self._view, n)

    def bucket_series(self, granularity: Granularity = "daily") -> list[Bucket]:
        granularity = check_granularity(granularity)
        with self._lock:
            return bucket_series(self._view, self._records, granularity, self._filters.month)

    def cumulative(self, granularity: Granularity = "daily") -> dict[str, object]:
        # Buckets hold copied amounts, so the running sums need no lock.
        buckets = self.bucket_series(granularity)
        series = aggregation.cumulative_series(buckets)
        series["keys"] = [bucket.key for bucket in buckets]
        series["labels"] = [bucket.label for bucket in buckets]
        return series

    def currency_actuals(self) -> dict[str, float]:
        with self._lock:
            return aggregation.currency_actuals(self._view)

    def kpis(self, normalized: bool = True) -> dict[str, object]:
        with self._lock:
            payload = aggregation.kpis(self._view)
            payload["net_sales"] = aggregation.net_sales(self._view, normalized)
            payload["quarter"] = dominant_quarter(self._records)
            result = attainment(self._view, self._targets)
        payload["normalized"] = normalized
        payload["attainment"] = None if result is None else result.percent
        return payload

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------
    def attainment(self) -> Optional[Attainment]:
        with self._lock:
            return attainment(self._view, self._targets)

    def manager_performance(self) -> list[dict[str, object]]:
        with self._lock:
            return manager_performance(self._view, self._targets)

    # ------------------------------------------------------------------
    # Table
    # ------------------------------------------------------------------
    def sort_by(self, column: str) -> ViewSettings:
        with self._lock:
            return pagination.toggle_sort(self._settings, column)

    def set_page(self, page: int) -> bool:
        with self._lock:
            return pagination.set_page(self._settings, page, len(self._view))

    def change_page(self, delta: int) -> bool:
        with self._lock:
            return pagination.change_page(self._settings, delta, len(self._view))

    def set_rows_per_page(self, rows_per_page: int) -> ViewSettings:
        with self._lock:
            return pagination.set_rows_per_page(self._settings, rows_per_page)

    def page(self) -> Page:
        with self._lock:
            return pagination.paginate(self._view, self._settings)

    def record_detail(self, record_id: int) -> Optional[dict[str, object]]:
        """Return one canonical record with its amount in its own currency."""

        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    detail = record.to_dict()
                    detail["original_amount"] = original_amount(record)
                    return detail
        return None
