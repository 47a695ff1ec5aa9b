"""SQLite persistence for dashboard settings.

Only the user-edited settings survive a restart: the manager targets and the
manual exchange rates, each stored as a flat JSON object.  Invoice records are
rebuilt from the workbook on every ingestion and are never written here.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Mapping, Optional

from .currency import DEFAULT_RATES, validate_rates
from .errors import RateInvalid
from .targets import clean_targets

logger = logging.getLogger(__name__)

TARGETS_KEY = "targets"
RATES_KEY = "rates"


class SQLiteRepository:
    """Encapsulates all SQLite access for the application."""

    def __init__(self, database_path: Path | str) -> None:
        self._database_path = database_path
        # FastAPI runs sync routes in a thread pool; access is serialised by the service lock.
        self._connection = sqlite3.connect(database_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row

    def close(self) -> None:
        """Close the underlying SQLite connection."""

        self._connection.close()

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------
    def initialise_schema(self) -> None:
        """Create the settings table if it does not exist."""

        self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        self._connection.commit()

    # ------------------------------------------------------------------
    # Settings helpers
    # ------------------------------------------------------------------
    def set_setting(self, key: str, value: str) -> None:
        self._connection.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, value),
        )
        self._connection.commit()

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self._connection.execute(
            "SELECT value FROM settings WHERE key = ?",
            (key,),
        ).fetchone()
        if row is None:
            return default
        return str(row["value"])

    # ------------------------------------------------------------------
    # Targets and rates
    # ------------------------------------------------------------------
    def save_targets(self, targets: Mapping[str, float]) -> None:
        self.set_setting(TARGETS_KEY, json.dumps(dict(targets), ensure_ascii=False))

    def load_targets(self) -> dict[str, float]:
        """Return the stored targets, or ``{}`` when missing or unreadable."""

        return clean_targets(self._load_json(TARGETS_KEY))

    def save_rates(self, rates: Mapping[str, float]) -> None:
        self.set_setting(RATES_KEY, json.dumps(dict(rates)))

    def load_rates(self) -> dict[str, float]:
        """Return the stored rates, or the defaults when missing or unreadable."""

        raw = self._load_json(RATES_KEY)
        if not isinstance(raw, dict):
            return dict(DEFAULT_RATES)
        try:
            return validate_rates(raw)
        except RateInvalid as exc:
            logger.warning("Ignoring persisted rates: %s", exc)
            return dict(DEFAULT_RATES)

    def _load_json(self, key: str) -> object:
        payload = self.get_setting(key)
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Persisted setting %r is not valid JSON; using defaults", key)
            return None
