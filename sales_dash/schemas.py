"""Request bodies accepted by the HTTP API."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class IngestRequest(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class FiltersModel(BaseModel):
    month: str = ""
    manager: str = ""
    region: str = ""
    city: str = ""
    type: str = ""
    currency: str = ""
    search: str = ""


class SortRequest(BaseModel):
    column: str


class PageSizeRequest(BaseModel):
    rows_per_page: int = Field(ge=1, le=1000)
