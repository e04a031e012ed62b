"""
Coverage metrics over a built schedule.

- min_dscr: minimum DSCR across years that carry debt service
  (0.0 is the "not applicable" sentinel, never a real ratio).
- summarize_dscr: min / avg / max and the count of years below the floor.
- check_compliance: statutory revenue cap and DSCR floor checks.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from constants import STATUTORY_CHECK_ABS_TOL, STATUTORY_REVENUE_SHARE
from finance.plan_types import ComplianceResult, ScheduleRow

logger = logging.getLogger(__name__)

__all__ = [
    "min_dscr",
    "dscr_series",
    "summarize_dscr",
    "check_compliance",
]


def min_dscr(rows: Sequence[ScheduleRow]) -> float:
    """
    Minimum DSCR among rows with positive debt service and a defined DSCR.

    Returns 0.0 when no row qualifies. Callers must check ``> 0`` before
    treating the value as a real coverage figure.
    """
    lowest = math.inf
    for row in rows:
        if row.debt_service > 0 and row.dscr is not None:
            lowest = min(lowest, row.dscr)
    return lowest if math.isfinite(lowest) else 0.0


def dscr_series(rows: Sequence[ScheduleRow]) -> List[Optional[float]]:
    return [row.dscr for row in rows]


def summarize_dscr(rows: Sequence[ScheduleRow], floor: float) -> Dict[str, Any]:
    """
    Summary statistics for the DSCR series.

    Returns
    -------
    dict
        {
            'dscr_min': float or None,
            'dscr_avg': float or None,
            'dscr_max': float or None,
            'years_with_dscr': int,
            'years_below_floor': int,
        }
    """
    valid = [r.dscr for r in rows if r.debt_service > 0 and r.dscr is not None]

    if not valid:
        return {
            'dscr_min': None,
            'dscr_avg': None,
            'dscr_max': None,
            'years_with_dscr': 0,
            'years_below_floor': 0,
        }

    return {
        'dscr_min': min(valid),
        'dscr_avg': sum(valid) / len(valid),
        'dscr_max': max(valid),
        'years_with_dscr': len(valid),
        'years_below_floor': sum(1 for d in valid if d < floor),
    }


def check_compliance(
    debt_amount: float,
    total_revenue: float,
    min_dscr_value: float,
    floor: float,
) -> ComplianceResult:
    """
    Check a debt amount against the statutory cap and the schedule's DSCR.

    The DSCR check fails on the 0.0 sentinel: a schedule with no debt service
    never demonstrates coverage.
    """
    within_cap = debt_amount <= STATUTORY_REVENUE_SHARE * total_revenue + STATUTORY_CHECK_ABS_TOL
    dscr_ok = min_dscr_value > 0 and min_dscr_value >= floor

    if not within_cap:
        logger.debug(
            "Debt %.2f exceeds statutory cap %.2f",
            debt_amount,
            STATUTORY_REVENUE_SHARE * total_revenue,
        )

    return ComplianceResult(within_statutory_cap=within_cap, dscr_meets_minimum=dscr_ok)
