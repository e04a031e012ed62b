"""Year-by-year amortisation and reserve schedule.

Interest basis (``debt_type``):

- ``bond``: fixed coupon on the original principal every year; after grace
  the principal sinks straight-line over the *whole* term
  (``principal / term_years``).
- ``outstanding_balance``: interest on the beginning balance; after grace the
  principal follows ``payment_type``:
    * ``annuity`` - level payment over the amortising years,
      principal = payment - interest;
    * ``equal_principal`` - ``principal / amort_years`` each year.

Principal is always clamped to the beginning balance. Reserves are funded one
year ahead: the target for year ``y`` is the projected debt service of year
``y + 1``, and only ``reserve_ratio`` of the shortfall is allocated.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple

from finance.capacity import net_financing, total_opex, total_revenue
from finance.plan_types import (
    DEBT_BOND,
    PAYMENT_ANNUITY,
    InputParameters,
    ScheduleRow,
)
from finance.tvm import pmt

logger = logging.getLogger(__name__)


class DebtService(NamedTuple):
    interest: float
    principal: float
    total: float


class LoanTerms(NamedTuple):
    principal: float
    rate: float
    term_years: int
    grace_years: int
    amort_years: int
    payment_type: str
    debt_type: str
    level_payment: float


def loan_terms(params: InputParameters, principal: float) -> LoanTerms:
    amort_years = max(0, int(params.term_years - params.grace_years))
    return LoanTerms(
        principal=principal,
        rate=params.rate,
        term_years=int(params.term_years),
        grace_years=int(params.grace_years),
        amort_years=amort_years,
        payment_type=params.payment_type,
        debt_type=params.debt_type,
        level_payment=pmt(params.rate, amort_years, principal),
    )


def debt_service_for_year(terms: LoanTerms, year: int, beg_balance: float) -> DebtService:
    """Interest, principal and total debt service due in ``year``.

    Used both for the current year and for the one-year look-ahead that sets
    the reserve target, so the two can never disagree.
    """
    if terms.debt_type == DEBT_BOND:
        interest = terms.principal * terms.rate
    else:
        interest = beg_balance * terms.rate

    if year <= terms.grace_years:
        return DebtService(interest, 0.0, interest)

    if terms.debt_type == DEBT_BOND:
        scheduled = terms.principal / terms.term_years if terms.term_years > 0 else 0.0
    elif terms.amort_years <= 0:
        scheduled = 0.0
    elif terms.payment_type == PAYMENT_ANNUITY:
        scheduled = terms.level_payment - interest
    else:
        scheduled = terms.principal / terms.amort_years

    principal = max(0.0, min(beg_balance, scheduled))
    return DebtService(interest, principal, interest + principal)


def build_schedule(params: InputParameters, principal: float) -> List[ScheduleRow]:
    """Build one row per year ``1..term_years`` for the amount actually drawn."""
    n = max(0, int(params.term_years))
    terms = loan_terms(params, principal)

    rows: List[ScheduleRow] = []
    beg_balance = principal
    revenue = (total_revenue(params) + net_financing(params)) * (1.0 + params.rev_growth)
    opex = total_opex(params) * (1.0 + params.opex_growth)
    reserve_beg = params.init_reserve

    for year in range(1, n + 1):
        current = debt_service_for_year(terms, year, beg_balance)
        next_balance = max(beg_balance - current.principal, 0.0)

        if year < n:
            reserve_target = debt_service_for_year(terms, year + 1, next_balance).total
        else:
            reserve_target = 0.0
        reserve_alloc = max(reserve_target - reserve_beg, 0.0) * params.reserve_ratio
        reserve_end = reserve_beg + reserve_alloc

        available = revenue - opex
        dscr = available / current.total if current.total > 0 else None
        surplus = available - current.total - reserve_alloc

        rows.append(
            ScheduleRow(
                year=year,
                beg_balance=beg_balance,
                interest=current.interest,
                principal=current.principal,
                debt_service=current.total,
                revenue=revenue,
                opex=opex,
                available_for_ds=available,
                dscr=dscr,
                reserve_target=reserve_target,
                reserve_alloc=reserve_alloc,
                reserve_beg=reserve_beg,
                reserve_end=reserve_end,
                surplus=surplus,
            )
        )
        logger.debug(
            "Year %d: balance=%.2f interest=%.2f principal=%.2f DSCR=%s",
            year,
            beg_balance,
            current.interest,
            current.principal,
            "n/a" if dscr is None else f"{dscr:.2f}",
        )

        beg_balance = next_balance
        revenue *= 1.0 + params.rev_growth
        opex *= 1.0 + params.opex_growth
        reserve_beg = reserve_end

    return rows


def ending_balance(rows: List[ScheduleRow]) -> float:
    """Balance left after the final year's principal (the balloon, if any)."""
    if not rows:
        return 0.0
    last = rows[-1]
    return max(last.beg_balance - last.principal, 0.0)
