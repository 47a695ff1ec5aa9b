"""Application configuration utilities for the sales_dash backend.

This module centralises environment-driven configuration so the rest of the
code base does not need to read environment variables directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load any variables defined in a local .env file. The call is idempotent, so
# doing it at import time keeps load_config() free of side effects.
load_dotenv()


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed container for runtime configuration.

    Attributes:
        project_root: Root directory of the project. Used to derive default
            paths so the app works out of the box after cloning the repo.
        data_file: Path to the sales workbook loaded by ``POST /import``.
        database_file: SQLite file holding the persisted targets and rates.
        rows_per_page: Default page size of the invoice table.
        alpha_vantage_key: Optional API key for the Alpha Vantage service,
            required to refresh the EUR exchange rates automatically.
        alpha_vantage_endpoint: Endpoint URL used when talking to Alpha
            Vantage. Defaults to the public REST API endpoint.
    """

    project_root: Path
    data_file: Path
    database_file: Path
    rows_per_page: int
    alpha_vantage_key: Optional[str]
    alpha_vantage_endpoint: str


def load_config() -> AppConfig:
    """Create a new :class:`AppConfig` instance based on environment settings.

    Environment variables override the default values, allowing users to
    customise the runtime without touching the source code.
    """

    project_root = Path(__file__).resolve().parent.parent
    data_file = Path(
        getenv_with_default(
            "SALES_DASH_DATA_FILE",
            project_root / "data" / "sales.xlsx",
        )
    )
    database_file = Path(
        getenv_with_default(
            "SALES_DASH_DB_FILE",
            project_root / "sales_dash.db",
        )
    )
    rows_per_page = _parse_positive_int(getenv_with_default("SALES_DASH_ROWS_PER_PAGE", "25"), 25)

    alpha_vantage_key = getenv_with_default("ALPHAVANTAGE_API_KEY")
    alpha_vantage_endpoint = getenv_with_default(
        "ALPHAVANTAGE_ENDPOINT",
        "https://www.alphavantage.co/query",
    )

    # Ensure the directories exist so later code can safely create files.
    database_file.parent.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        project_root=project_root,
        data_file=data_file,
        database_file=database_file,
        rows_per_page=rows_per_page,
        alpha_vantage_key=alpha_vantage_key,
        alpha_vantage_endpoint=alpha_vantage_endpoint,
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    """Return the value of an environment variable or a sensible default.

    ``None`` values are propagated so callers can make explicit decisions about
    optional configuration values. Paths are converted to strings, keeping the
    return type uniform and easy to serialise.
    """

    from os import getenv

    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)


def _parse_positive_int(value: Optional[str], fallback: int) -> int:
    try:
        parsed = int(value) if value is not None else fallback
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback
