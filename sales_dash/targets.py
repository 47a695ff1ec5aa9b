"""Target attainment per sales manager."""
from __future__ import annotations

import logging
import math
import numbers
from typing import Mapping, Optional, Sequence

from .aggregation import group_sum, rank
from .models import Attainment, Record

logger = logging.getLogger(__name__)


def clean_targets(raw: object) -> dict[str, float]:
    """Keep the entries of ``raw`` that are usable EUR targets.

    Entries whose value is not a finite, non-negative number are treated as
    "no target" and dropped, matching an emptied input field.
    """

    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("Ignoring targets of unexpected type %s", type(raw).__name__)
        return {}

    targets: dict[str, float] = {}
    for manager, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            continue
        if not math.isfinite(value) or value < 0:
            continue
        targets[str(manager).strip()] = float(value)
    return targets


def attainment(records: Sequence[Record], targets: Mapping[str, float]) -> Optional[Attainment]:
    """Compare the active view against the configured targets.

    Only managers that appear in the view *and* have a target feed
    ``target_sum`` and ``actual_sum``.  The percentage, however, divides the
    total of the whole view (untargeted managers included) by ``target_sum``.
    Returns ``None`` when no manager in the view has a positive target sum.
    """

    actuals = group_sum(records, "manager")
    target_sum = 0.0
    actual_sum = 0.0
    for manager, actual in actuals.items():
        if manager in targets:
            target_sum += targets[manager]
            actual_sum += actual

    if target_sum <= 0:
        return None

    total = sum(actuals.values())
    return Attainment(
        percent=total / target_sum * 100,
        target_sum=target_sum,
        actual_sum=actual_sum,
        total=total,
    )


def manager_performance(records: Sequence[Record], targets: Mapping[str, float]) -> list[dict[str, object]]:
    """Actual vs target per manager, best seller first."""

    rows: list[dict[str, object]] = []
    for manager, actual in rank(group_sum(records, "manager")):
        target = targets.get(manager)
        percent = round(actual / target * 100) if target else None
        rows.append(
            {
                "manager": manager,
                "actual": actual,
                "target": target,
                "percent": percent,
                "met": bool(target) and actual >= target,
            }
        )
    return rows


__all__ = ["clean_targets", "attainment", "manager_performance"]
