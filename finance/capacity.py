"""Debt capacity under the statutory revenue cap and the DSCR floor.

Two ceilings are derived from the prior-year budget:

- Statutory rule: debt <= 75% of total prior-year (audited) revenue.
- Coverage rule: the principal whose debt service, at the required minimum
  DSCR, can be carried by Net Operating Income. The annual debt service
  budget ``NOI / min_dscr`` is discounted as a level annuity over the
  amortising years and then back through the interest-only grace years;
  when the rate is positive the ceiling is also capped at the principal
  whose interest alone consumes the budget.

The allowed debt is the lower of the two, floored at zero.
"""

from __future__ import annotations

import logging
import math

from constants import (
    BINDING_COVERAGE,
    BINDING_REL_TOL,
    BINDING_STATUTORY,
    STATUTORY_REVENUE_SHARE,
)
from finance.plan_types import CapacityResult, InputParameters
from finance.tvm import pv

logger = logging.getLogger(__name__)


def total_revenue(params: InputParameters) -> float:
    return float(sum(params.revenue.values()))


def net_financing(params: InputParameters) -> float:
    """Financing receipts minus financing expenditures (may be negative)."""
    return params.financing_receipts - params.financing_expenditures


def total_opex(params: InputParameters) -> float:
    return params.opex.total


def _max_annual_debt_service(noi: float, min_dscr: float) -> float:
    # A zero floor imposes no coverage constraint; a negative one leaves a
    # negative budget, so the coverage ceiling floors the allowed debt at 0.
    if min_dscr == 0:
        return math.inf
    return noi / min_dscr


def compute_capacity(params: InputParameters) -> CapacityResult:
    revenue = total_revenue(params)
    financing = net_financing(params)
    opex = total_opex(params)

    noi = max(revenue + financing - opex, 0.0)
    max_debt_revenue_rule = STATUTORY_REVENUE_SHARE * revenue
    max_annual_ds = _max_annual_debt_service(noi, params.min_dscr)

    amort_years = max(params.term_years - params.grace_years, 0)
    if amort_years > 0:
        pv_after_grace = pv(params.rate, amort_years, max_annual_ds) / (1.0 + params.rate) ** params.grace_years
    else:
        pv_after_grace = 0.0
    cap_interest_only = max_annual_ds / params.rate if params.rate > 0 else math.inf
    dscr_pv = min(pv_after_grace, cap_interest_only)

    allowed_debt = max(0.0, min(max_debt_revenue_rule, dscr_pv))
    if math.isclose(allowed_debt, max_debt_revenue_rule, rel_tol=BINDING_REL_TOL):
        binding = BINDING_STATUTORY
    else:
        binding = BINDING_COVERAGE

    logger.debug(
        "Capacity: NOI=%.2f, statutory=%.2f, max annual DS=%.2f, DSCR PV=%.2f",
        noi,
        max_debt_revenue_rule,
        max_annual_ds,
        dscr_pv,
    )

    return CapacityResult(
        noi=noi,
        total_revenue=revenue,
        net_financing=financing,
        total_opex=opex,
        max_debt_revenue_rule=max_debt_revenue_rule,
        max_annual_ds=max_annual_ds,
        dscr_pv=dscr_pv,
        allowed_debt=allowed_debt,
        binding=binding,
    )
