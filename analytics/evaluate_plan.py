"""Central plan evaluator: capacity -> debt selection -> schedule -> coverage."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from analytics.contracts import DebtSelection, PlanResult, PlanWarning
from analytics.scenario_loader import build_inputs, load_scenario_config, scenario_name_for
from analytics.schema_guard import validate_config
from constants import BALLOON_ABS_TOL, BINDING_STATUTORY
from finance.capacity import compute_capacity
from finance.metrics import check_compliance, min_dscr, summarize_dscr
from finance.plan_types import CapacityResult, InputParameters
from finance.schedule import build_schedule, ending_balance

logger = logging.getLogger(__name__)


def _collect_warnings(
    params: InputParameters,
    selection: DebtSelection,
    capacity: CapacityResult,
    effective_ceiling: float,
    amount_drawn: float,
    worst_dscr: float,
    within_cap: bool,
    balloon: float,
) -> List[PlanWarning]:
    warnings: List[PlanWarning] = []

    if params.grace_years >= params.term_years:
        warnings.append(
            PlanWarning(
                code="GRACE_COVERS_TERM",
                severity="warn",
                message=(
                    f"Grace period ({params.grace_years}y) covers the whole term "
                    f"({params.term_years}y); no principal is ever repaid."
                ),
                context={"grace_years": params.grace_years, "term_years": params.term_years},
            )
        )

    if params.min_dscr <= 0:
        warnings.append(
            PlanWarning(
                code="MIN_DSCR_NOT_POSITIVE",
                severity="warn",
                message=(
                    f"Minimum DSCR {params.min_dscr} is not positive; "
                    + (
                        "the coverage rule imposes no ceiling."
                        if params.min_dscr == 0
                        else "the coverage ceiling is negative and allowed debt floors at zero."
                    )
                ),
                context={"min_dscr": params.min_dscr},
            )
        )

    if (
        selection.allowed_debt_override is not None
        and selection.allowed_debt_override > capacity.allowed_debt
    ):
        warnings.append(
            PlanWarning(
                code="OVERRIDE_EXCEEDS_CEILING",
                severity="warn",
                message=(
                    f"Allowed-debt override {selection.allowed_debt_override:,.0f} exceeds "
                    f"the calculated ceiling {capacity.allowed_debt:,.0f}."
                ),
                context={
                    "override": selection.allowed_debt_override,
                    "calculated": capacity.allowed_debt,
                },
            )
        )

    if selection.requested_draw is not None and selection.requested_draw > effective_ceiling:
        warnings.append(
            PlanWarning(
                code="DRAW_CAPPED",
                severity="info",
                message=(
                    f"Requested draw {selection.requested_draw:,.0f} capped to "
                    f"{amount_drawn:,.0f}."
                ),
                context={"requested": selection.requested_draw, "drawn": amount_drawn},
            )
        )

    if balloon > BALLOON_ABS_TOL:
        warnings.append(
            PlanWarning(
                code="BALLOON_REMAINING",
                severity="warn",
                message=f"Balance of {balloon:,.0f} remains unpaid after the final year.",
                context={"balloon_remaining": balloon},
            )
        )

    if amount_drawn > 0 and not (worst_dscr > 0 and worst_dscr >= params.min_dscr):
        warnings.append(
            PlanWarning(
                code="DSCR_BELOW_MINIMUM",
                severity="critical",
                message=f"Minimum DSCR {worst_dscr:.2f} is below the floor {params.min_dscr:.2f}.",
                context={"min_dscr": worst_dscr, "floor": params.min_dscr},
            )
        )

    if not within_cap:
        warnings.append(
            PlanWarning(
                code="STATUTORY_CAP_EXCEEDED",
                severity="critical",
                message=(
                    f"Effective ceiling {effective_ceiling:,.0f} exceeds the statutory cap "
                    f"{capacity.max_debt_revenue_rule:,.0f}."
                ),
                context={
                    "effective_ceiling": effective_ceiling,
                    "statutory_cap": capacity.max_debt_revenue_rule,
                },
            )
        )

    return warnings


def evaluate_plan(
    params: InputParameters,
    selection: Optional[DebtSelection] = None,
    scenario_name: str = "scenario",
) -> PlanResult:
    """Run the full plan for already-normalised inputs.

    Parameters
    ----------
    params : InputParameters
        Engine inputs (see analytics.scenario_loader.build_inputs).
    selection : DebtSelection, optional
        Override / requested draw. Defaults to drawing the calculated ceiling.
    scenario_name : str
        Label carried into the result and log lines.

    Returns
    -------
    PlanResult
    """
    selection = selection or DebtSelection()

    capacity = compute_capacity(params)
    logger.info(
        "[%s] Allowed debt %.0f (%s rule binding; statutory %.0f, coverage %.0f)",
        scenario_name,
        capacity.allowed_debt,
        capacity.binding,
        capacity.max_debt_revenue_rule,
        capacity.dscr_pv,
    )

    effective_ceiling = selection.effective_ceiling(capacity.allowed_debt)
    drawn = selection.amount_drawn(capacity.allowed_debt)

    rows = build_schedule(params, drawn)
    worst = min_dscr(rows)
    summary = summarize_dscr(rows, params.min_dscr)
    compliance = check_compliance(effective_ceiling, capacity.total_revenue, worst, params.min_dscr)
    balloon = ending_balance(rows)

    if worst > 0:
        logger.info("[%s] Drawn %.0f, minimum DSCR %.2f", scenario_name, drawn, worst)
    else:
        logger.info("[%s] Drawn %.0f, no year carries debt service", scenario_name, drawn)

    warnings = _collect_warnings(
        params,
        selection,
        capacity,
        effective_ceiling,
        drawn,
        worst,
        compliance.within_statutory_cap,
        balloon,
    )
    for w in warnings:
        logger.warning("[%s] %s: %s", scenario_name, w.code, w.message)

    return PlanResult(
        scenario_name=scenario_name,
        inputs=params,
        selection=selection,
        capacity=capacity,
        effective_ceiling=effective_ceiling,
        amount_drawn=drawn,
        schedule=rows,
        min_dscr=worst,
        dscr_summary=summary,
        compliance=compliance,
        balloon_remaining=balloon,
        warnings=warnings,
    )


def evaluate_scenario(
    config_path: str,
    scenario_name: Optional[str] = None,
    validation_mode: str = "strict",
) -> PlanResult:
    """Load, validate and evaluate a single scenario file.

    Parameters
    ----------
    config_path : str
        Path to YAML/JSON scenario config.
    scenario_name : Optional[str]
        Override scenario name (default: from config or filename).
    validation_mode : str
        "strict", "relaxed" or "none".
    """
    path_obj = Path(config_path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    logger.info("Loading scenario: %s", config_path)
    config = load_scenario_config(path_obj)
    validate_config(config, config_path=str(config_path), modules=["plan"], mode=validation_mode)

    params, selection = build_inputs(config)
    name = scenario_name or scenario_name_for(config, path_obj)
    return evaluate_plan(params, selection, scenario_name=name)


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def plan_result_as_dict(result: PlanResult) -> Dict[str, Any]:
    """Flatten a PlanResult into JSON-safe primitives (non-finite -> None)."""
    cap = result.capacity
    return {
        "scenario_name": result.scenario_name,
        "capacity": {
            "noi": cap.noi,
            "total_revenue": cap.total_revenue,
            "net_financing": cap.net_financing,
            "total_opex": cap.total_opex,
            "max_debt_revenue_rule": cap.max_debt_revenue_rule,
            "max_annual_ds": _finite_or_none(cap.max_annual_ds),
            "dscr_pv": _finite_or_none(cap.dscr_pv),
            "allowed_debt": cap.allowed_debt,
            "binding": cap.binding,
            "statutory_binding": cap.binding == BINDING_STATUTORY,
        },
        "effective_ceiling": result.effective_ceiling,
        "amount_drawn": result.amount_drawn,
        "min_dscr": result.min_dscr,
        "dscr_summary": dict(result.dscr_summary),
        "compliance": {
            "within_statutory_cap": result.compliance.within_statutory_cap,
            "dscr_meets_minimum": result.compliance.dscr_meets_minimum,
            "compliant": result.compliance.compliant,
        },
        "balloon_remaining": result.balloon_remaining,
        "warnings": [
            {"code": w.code, "severity": w.severity, "message": w.message}
            for w in result.warnings
        ],
        "schedule": [asdict(row) for row in result.schedule],
    }


__all__ = ["evaluate_plan", "evaluate_scenario", "plan_result_as_dict"]
