"""
Stress test: re-run a plan on shocked inputs.

Shocks are level shifts applied to the prior-year base before growth:

- rate: ``max(0, rate + bps / 10_000)``
- revenue: every revenue component x ``(1 + pct / 100)``
- opex: the override (when set) or every component x ``(1 + pct / 100)``

The stressed plan schedules the debt the base plan actually draws, so its
minimum DSCR shows whether that debt survives the shock. The stressed
capacity (what could be borrowed under the shock) is reported alongside.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from analytics.contracts import DebtSelection, StressResult, StressShock
from analytics.evaluate_plan import evaluate_plan
from finance.plan_types import InputParameters, OperatingExpenses

logger = logging.getLogger(__name__)


def _scale_opex(opex: OperatingExpenses, factor: float) -> OperatingExpenses:
    if opex.override is not None:
        return replace(opex, override=opex.override * factor)
    return replace(opex, components={k: v * factor for k, v in opex.components.items()})


def apply_shock(params: InputParameters, shock: StressShock) -> InputParameters:
    """Return a copy of ``params`` with ``shock`` applied."""
    revenue_factor = 1.0 + shock.revenue_pct / 100.0
    opex_factor = 1.0 + shock.opex_pct / 100.0
    return replace(
        params,
        rate=max(0.0, params.rate + shock.rate_bps / 10_000.0),
        revenue={k: v * revenue_factor for k, v in params.revenue.items()},
        opex=_scale_opex(params.opex, opex_factor),
    )


def run_stress_test(
    params: InputParameters,
    shock: StressShock,
    selection: Optional[DebtSelection] = None,
    scenario_name: str = "scenario",
) -> StressResult:
    base = evaluate_plan(params, selection, scenario_name=scenario_name)
    fixed_draw = DebtSelection(
        allowed_debt_override=base.amount_drawn,
        requested_draw=base.amount_drawn,
    )
    stressed = evaluate_plan(
        apply_shock(params, shock),
        fixed_draw,
        scenario_name=f"{scenario_name} (stressed)",
    )
    result = StressResult(shock=shock, base=base, stressed=stressed)

    logger.info(
        "[%s] Stress %+.0f bps / revenue %+.1f%% / opex %+.1f%%: "
        "allowed debt %.0f -> %.0f, min DSCR on %.0f drawn %.2f -> %.2f",
        scenario_name,
        shock.rate_bps,
        shock.revenue_pct,
        shock.opex_pct,
        base.capacity.allowed_debt,
        result.stressed_allowed_debt,
        base.amount_drawn,
        base.min_dscr,
        stressed.min_dscr,
    )
    if not result.resilient:
        logger.warning(
            "[%s] Vulnerable under stress: minimum DSCR %.2f is below %.2f. "
            "Consider reducing debt, extending term, increasing grace or boosting reserves.",
            scenario_name,
            stressed.min_dscr,
            params.min_dscr,
        )
    return result


__all__ = ["apply_shock", "run_stress_test"]
