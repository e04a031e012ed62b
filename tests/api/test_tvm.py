"""
Tests for finance.tvm:

- pmt / pv known values and zero-rate degeneration.
- pmt and pv are inverses of each other.
- Non-positive periods return 0.
"""

import pytest

from finance.tvm import pmt, pv


def test_pmt_known_value():
    # 1,000 over 8 years at 8% -> 174.0148 per year
    assert pmt(0.08, 8, 1000.0) == pytest.approx(174.0148, abs=1e-4)


def test_pv_known_value():
    # 100 per year for 10 years at 8% -> 671.0081
    assert pv(0.08, 10, 100.0) == pytest.approx(671.0081, abs=1e-4)


def test_zero_rate_is_linear():
    assert pmt(0.0, 4, 1000.0) == pytest.approx(250.0)
    assert pmt(0.0, 4, 1000.0, fv=200.0) == pytest.approx(300.0)
    assert pv(0.0, 4, 250.0) == pytest.approx(1000.0)
    assert pv(0.0, 4, 250.0, fv=100.0) == pytest.approx(1100.0)


@pytest.mark.parametrize("nper", [0, -3])
def test_non_positive_periods_return_zero(nper):
    assert pmt(0.08, nper, 1000.0) == 0.0
    assert pv(0.08, nper, 100.0) == 0.0


@pytest.mark.parametrize(
    "rate, nper, principal",
    [(0.08, 10, 1_000_000_000_000.0), (0.035, 25, 5_000.0), (0.15, 1, 42.0)],
)
def test_pmt_inverts_pv(rate, nper, principal):
    assert pmt(rate, nper, pv(rate, nper, principal)) == pytest.approx(principal, rel=1e-9)
    assert pv(rate, nper, pmt(rate, nper, principal)) == pytest.approx(principal, rel=1e-9)


def test_due_at_start_payment_is_smaller():
    ordinary = pmt(0.08, 10, 1000.0)
    due = pmt(0.08, 10, 1000.0, due_at_start=1)
    assert due == pytest.approx(ordinary / 1.08)
