"""FastAPI application exposing the sales_dash core."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Annotated, Any, Literal

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import load_config
from .database import SQLiteRepository
from .errors import ParseError, RateInvalid
from .models import IngestResult, Page
from .price_service import PriceService
from .schemas import FiltersModel, IngestRequest, PageSizeRequest, SortRequest
from .services import DashboardService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Initialise shared services once and reuse them across requests."""

    config = load_config()
    repository = SQLiteRepository(config.database_file)
    repository.initialise_schema()
    price_service = PriceService(config)
    dashboard_service = DashboardService(config, repository, price_service)

    app.state.config = config
    app.state.repository = repository
    app.state.dashboard = dashboard_service

    yield

    repository.close()


app = FastAPI(lifespan=lifespan, title="sales_dash backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency injection ------------------------------------------------------

def get_dashboard_service() -> DashboardService:
    service: DashboardService = app.state.dashboard
    return service


Dashboard = Annotated[DashboardService, Depends(get_dashboard_service)]


# Serialisation helpers -----------------------------------------------------

def _ingest_payload(result: IngestResult) -> dict[str, object]:
    return {
        "imported": len(result.records),
        "total_rows": result.total_rows,
        "dropped": result.dropped,
        "options": asdict(result.options),
    }


def _page_payload(page: Page) -> dict[str, object]:
    return {
        "records": [record.to_dict() for record in page.records],
        "page": page.page,
        "total_pages": page.total_pages,
        "total": page.total,
        "start": page.start,
        "end": page.end,
        "page_total": page.page_total,
        "view_total": page.view_total,
    }


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


# Routes --------------------------------------------------------------------


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return a basic heartbeat payload for monitoring purposes."""

    return {"status": "ok"}


@app.post("/ingest")
def ingest_rows(request: IngestRequest, dashboard: Dashboard) -> dict[str, object]:
    """Replace the canonical set with the posted rows."""

    try:
        result = dashboard.ingest(request.rows)
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _ingest_payload(result)


@app.post("/import")
def import_workbook(dashboard: Dashboard) -> dict[str, object]:
    """Import the configured Excel workbook."""

    try:
        result = dashboard.import_workbook()
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _ingest_payload(result)


@app.get("/options")
def filter_options(dashboard: Dashboard) -> dict[str, object]:
    return asdict(dashboard.options)


@app.get("/rates")
def get_rates(dashboard: Dashboard) -> dict[str, float]:
    return dashboard.rates


@app.put("/rates")
def put_rates(dashboard: Dashboard, rates: Annotated[dict[str, Any], Body()]) -> dict[str, float]:
    try:
        return dashboard.set_rates(rates)
    except RateInvalid as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/rates/refresh")
def refresh_rates(dashboard: Dashboard) -> dict[str, float]:
    rates = dashboard.refresh_rates()
    if rates is None:
        raise HTTPException(status_code=503, detail="FX rates unavailable. Ensure the Alpha Vantage API key is configured.")
    return rates


@app.get("/targets")
def get_targets(dashboard: Dashboard) -> dict[str, float]:
    return dashboard.targets


@app.put("/targets")
def put_targets(dashboard: Dashboard, targets: Annotated[dict[str, Any], Body()]) -> dict[str, float]:
    return dashboard.set_targets(targets)


@app.get("/filters")
def get_filters(dashboard: Dashboard) -> dict[str, str]:
    return asdict(dashboard.filters)


@app.put("/filters")
def put_filters(filters: FiltersModel, dashboard: Dashboard) -> dict[str, object]:
    view = dashboard.set_filters(filters.model_dump())
    return {"filters": asdict(dashboard.filters), "count": len(view)}


@app.delete("/filters")
def reset_filters(dashboard: Dashboard) -> dict[str, object]:
    view = dashboard.reset_filters()
    return {"filters": asdict(dashboard.filters), "count": len(view)}


@app.get("/aggregate/{dimension}")
def aggregate(dimension: str, dashboard: Dashboard) -> dict[str, float]:
    try:
        return dashboard.aggregate_by(dimension)
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.get("/top/{dimension}")
def top(
    dimension: str,
    dashboard: Dashboard,
    n: Annotated[int, Query(ge=1, le=1000)] = 10,
) -> list[dict[str, object]]:
    try:
        ranking = dashboard.top_n(dimension, n)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return [{"key": key, "total": total} for key, total in ranking]


@app.get("/top-customers")
def top_customers(
    dashboard: Dashboard,
    managers: Annotated[int, Query(ge=1, le=50)] = 3,
    customers: Annotated[int, Query(ge=1, le=50)] = 5,
) -> list[dict[str, object]]:
    return dashboard.top_customers(managers, customers)


@app.get("/series")
def series(
    dashboard: Dashboard,
    granularity: Literal["daily", "weekly"] = "daily",
    cumulative: bool = False,
) -> dict[str, object]:
    if cumulative:
        return dashboard.cumulative(granularity)
    buckets = dashboard.bucket_series(granularity)
    return {
        "buckets": [
            {"key": bucket.key, "label": bucket.label, "amounts": bucket.amounts, "total": bucket.total}
            for bucket in buckets
        ]
    }


@app.get("/attainment")
def get_attainment(dashboard: Dashboard) -> dict[str, object]:
    result = dashboard.attainment()
    if result is None:
        return {"configured": False}
    return {"configured": True, **asdict(result)}


@app.get("/kpis")
def kpis(dashboard: Dashboard, normalized: bool = True) -> dict[str, object]:
    return dashboard.kpis(normalized)


@app.get("/managers")
def managers(dashboard: Dashboard) -> list[dict[str, object]]:
    return dashboard.manager_performance()


@app.get("/invoices/top")
def top_invoices(dashboard: Dashboard, n: Annotated[int, Query(ge=1, le=100)] = 5) -> list[dict[str, object]]:
    return [record.to_dict() for record in dashboard.top_invoices(n)]


@app.get("/records")
def list_records(dashboard: Dashboard, page: Annotated[int | None, Query(ge=1)] = None) -> dict[str, object]:
    if page is not None:
        dashboard.set_page(page)
    return _page_payload(dashboard.page())


@app.put("/view/sort")
def sort_records(request: SortRequest, dashboard: Dashboard) -> dict[str, object]:
    try:
        settings = dashboard.sort_by(request.column)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return {"sort_col": settings.sort_col, "sort_asc": settings.sort_asc}


@app.put("/view/page-size")
def page_size(request: PageSizeRequest, dashboard: Dashboard) -> dict[str, object]:
    settings = dashboard.set_rows_per_page(request.rows_per_page)
    return {"rows_per_page": settings.rows_per_page, "current_page": settings.current_page}


@app.get("/records/{record_id}")
def record_detail(record_id: int, dashboard: Dashboard) -> dict[str, object]:
    detail = dashboard.record_detail(record_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return detail
