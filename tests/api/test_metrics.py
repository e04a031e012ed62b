"""
Tests for finance.metrics: min DSCR sentinel, summary stats and compliance.
"""

from __future__ import annotations

from typing import Optional

import pytest

from finance.metrics import check_compliance, dscr_series, min_dscr, summarize_dscr
from finance.plan_types import ScheduleRow


def _row(year: int, debt_service: float, dscr: Optional[float]) -> ScheduleRow:
    return ScheduleRow(
        year=year,
        beg_balance=0.0,
        interest=debt_service,
        principal=0.0,
        debt_service=debt_service,
        revenue=0.0,
        opex=0.0,
        available_for_ds=0.0,
        dscr=dscr,
        reserve_target=0.0,
        reserve_alloc=0.0,
        reserve_beg=0.0,
        reserve_end=0.0,
        surplus=0.0,
    )


def test_min_dscr_skips_years_without_debt_service():
    rows = [_row(1, 0.0, None), _row(2, 10.0, 3.2), _row(3, 10.0, 2.7), _row(4, 10.0, 4.0)]
    assert min_dscr(rows) == pytest.approx(2.7)
    assert dscr_series(rows) == [None, 3.2, 2.7, 4.0]


def test_min_dscr_sentinel_when_nothing_qualifies():
    assert min_dscr([]) == 0.0
    assert min_dscr([_row(1, 0.0, None), _row(2, 0.0, None)]) == 0.0


def test_min_dscr_keeps_negative_coverage():
    # A deficit year is a real (bad) ratio, not the sentinel
    rows = [_row(1, 10.0, -0.5), _row(2, 10.0, 1.5)]
    assert min_dscr(rows) == pytest.approx(-0.5)


def test_summarize_dscr_counts_years_below_floor():
    rows = [_row(1, 10.0, 3.0), _row(2, 10.0, 2.0), _row(3, 10.0, 1.0), _row(4, 0.0, None)]
    summary = summarize_dscr(rows, floor=2.5)
    assert summary["dscr_min"] == pytest.approx(1.0)
    assert summary["dscr_max"] == pytest.approx(3.0)
    assert summary["dscr_avg"] == pytest.approx(2.0)
    assert summary["years_with_dscr"] == 3
    assert summary["years_below_floor"] == 2


def test_summarize_dscr_empty():
    summary = summarize_dscr([_row(1, 0.0, None)], floor=2.5)
    assert summary["dscr_min"] is None
    assert summary["years_with_dscr"] == 0


def test_check_compliance_statutory_cap_with_tolerance():
    assert check_compliance(750.0, 1000.0, 3.0, 2.5).within_statutory_cap
    assert check_compliance(750.0 + 1e-7, 1000.0, 3.0, 2.5).within_statutory_cap
    assert not check_compliance(751.0, 1000.0, 3.0, 2.5).within_statutory_cap


def test_check_compliance_dscr_floor_and_sentinel():
    assert check_compliance(0.0, 1000.0, 2.5, 2.5).dscr_meets_minimum
    assert not check_compliance(0.0, 1000.0, 2.49, 2.5).dscr_meets_minimum
    # Sentinel never passes, even against a zero floor
    result = check_compliance(0.0, 1000.0, 0.0, 0.0)
    assert not result.dscr_meets_minimum
    assert not result.compliant
    assert check_compliance(100.0, 1000.0, 3.0, 2.5).compliant
