"""
Scenario configuration loader for the debt capacity planner.

Responsibilities:
- Load YAML / JSON scenario files.
- Register the plan's config fields with analytics.config_schema.
- Normalise a raw config mapping into InputParameters + DebtSelection.

Expected layout::

    scenario_name: base_case
    revenue:            {local_revenue_pad: ..., balancing_fund: ...}
    financing:          {receipts: ..., expenditures: ...}
    opex:               {components: {...}, override: ...}   # or a bare number
    growth:             {revenue: 0.05, opex: 0.03}
    loan:               {rate: 0.08, term_years: 10, grace_years: 0,
                         payment_type: annuity, debt_type: bond}
    reserve:            {ratio: 1.0, initial_balance: 0}
    coverage:           {min_dscr: 2.5}
    debt:               {allowed_override: ..., requested_draw: ...}
"""

from __future__ import annotations

import json
import logging
from numbers import Number
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from analytics.config_schema import RequiredFieldSpec, register_required_fields
from analytics.contracts import DebtSelection
from finance.plan_types import (
    DEBT_BOND,
    DEBT_OUTSTANDING_BALANCE,
    DEBT_TYPES,
    PAYMENT_TYPES,
    InputParameters,
    OperatingExpenses,
)
from finance.utils import as_amounts, as_float, as_int

logger = logging.getLogger(__name__)

# Labels used by regional lenders for interest-on-outstanding-balance loans
DEBT_TYPE_ALIASES = {
    "ptsmi_other": DEBT_OUTSTANDING_BALANCE,
    "outstanding": DEBT_OUTSTANDING_BALANCE,
    "loan": DEBT_OUTSTANDING_BALANCE,
}


class ScenarioConfigError(ValueError):
    """Configuration-level error for scenario loading."""


# ---------------------------------------------------------------------------
# Field registration
# ---------------------------------------------------------------------------


def _is_number(v: Any) -> bool:
    return isinstance(v, Number) and not isinstance(v, bool)


def _has_revenue(v: Any) -> bool:
    return isinstance(v, Mapping) and any(_is_number(x) for x in v.values())


def _is_opex(v: Any) -> bool:
    if _is_number(v):
        return True
    if not isinstance(v, Mapping):
        return False
    return _is_number(v.get("override")) or _has_revenue(v.get("components"))


def _is_whole_at_least(minimum: int):
    def check(v: Any) -> bool:
        return _is_number(v) and float(v) == int(v) and int(v) >= minimum

    return check


_PLAN_SPECS = [
    RequiredFieldSpec(
        module="plan",
        name="revenue",
        paths=[("revenue",)],
        description="mapping of prior-year revenue sources with at least one amount",
        validator=_has_revenue,
    ),
    RequiredFieldSpec(
        module="plan",
        name="opex",
        paths=[("opex",)],
        description="prior-year operating expenses: a number, 'override' or 'components'",
        validator=_is_opex,
    ),
    RequiredFieldSpec(
        module="plan",
        name="rate",
        paths=[("loan", "rate")],
        description="annual interest rate as a decimal",
        validator=lambda v: _is_number(v) and v >= 0,
    ),
    RequiredFieldSpec(
        module="plan",
        name="term_years",
        paths=[("loan", "term_years")],
        description="whole years, at least 1",
        validator=_is_whole_at_least(1),
    ),
    RequiredFieldSpec(
        module="plan",
        name="grace_years",
        paths=[("loan", "grace_years")],
        required=False,
        description="whole interest-only years, at least 0",
        validator=_is_whole_at_least(0),
    ),
    RequiredFieldSpec(
        module="plan",
        name="payment_type",
        paths=[("loan", "payment_type")],
        required=False,
        description=f"one of {', '.join(PAYMENT_TYPES)}",
        validator=lambda v: str(v).lower() in PAYMENT_TYPES,
    ),
    RequiredFieldSpec(
        module="plan",
        name="debt_type",
        paths=[("loan", "debt_type")],
        required=False,
        description=f"one of {', '.join(DEBT_TYPES)}",
        validator=lambda v: str(v).lower() in DEBT_TYPES or str(v).lower() in DEBT_TYPE_ALIASES,
    ),
    RequiredFieldSpec(
        module="plan",
        name="min_dscr",
        paths=[("coverage", "min_dscr")],
        description="regulatory coverage floor, greater than 0",
        validator=lambda v: _is_number(v) and v > 0,
    ),
    RequiredFieldSpec(
        module="plan",
        name="reserve_ratio",
        paths=[("reserve", "ratio")],
        required=False,
        severity="warning",
        description="share of the reserve shortfall funded each year, between 0 and 1",
        validator=lambda v: _is_number(v) and 0 <= v <= 1,
    ),
    RequiredFieldSpec(
        module="plan",
        name="growth",
        paths=[("growth",)],
        required=False,
        severity="warning",
        description="mapping with 'revenue' and 'opex' growth rates",
        validator=lambda v: isinstance(v, Mapping),
    ),
]

register_required_fields("plan", _PLAN_SPECS)


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _load_raw_config(path: Path) -> Dict[str, Any]:
    """
    Load a raw scenario configuration from YAML or JSON.

    Only checks that the top level is a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Scenario config not found: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in (".yml", ".yaml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ScenarioConfigError(
                f"Unsupported scenario config extension '{suffix}' for {path}"
            )

    if data is None:
        raise ScenarioConfigError(f"Empty configuration in file: {path}")

    if not isinstance(data, dict):
        raise ScenarioConfigError(
            f"Expected a mapping at top level of {path}, "
            f"got {type(data).__name__}"
        )

    return data


def _ensure_meta_source(cfg: Dict[str, Any], path: Path) -> None:
    """Attach a 'meta.source_path' breadcrumb, if not already present."""
    meta = cfg.setdefault("meta", {})
    meta.setdefault("source_path", str(path))


def _payment_type(raw: Any) -> str:
    value = str(raw).strip().lower()
    if value not in PAYMENT_TYPES:
        raise ScenarioConfigError(
            f"Unknown payment_type '{raw}'; expected one of {', '.join(PAYMENT_TYPES)}"
        )
    return value


def _debt_type(raw: Any) -> str:
    value = str(raw).strip().lower()
    value = DEBT_TYPE_ALIASES.get(value, value)
    if value not in DEBT_TYPES:
        raise ScenarioConfigError(
            f"Unknown debt_type '{raw}'; expected one of {', '.join(DEBT_TYPES)}"
        )
    return value


def _operating_expenses(raw: Any) -> OperatingExpenses:
    """Single normalisation point for a bare figure, an override, or components."""
    if isinstance(raw, Mapping):
        return OperatingExpenses(
            components=as_amounts(raw.get("components")),
            override=as_float(raw.get("override"), None),
        )
    return OperatingExpenses(override=as_float(raw, None))


def _section(cfg: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Return the ``key`` sub-mapping, empty when absent."""
    value = cfg.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ScenarioConfigError(
            f"Section '{key}' must be a mapping, got {type(value).__name__}"
        )
    return value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_scenario_config(path: str | Path) -> Dict[str, Any]:
    """Load a scenario file and attach meta.source_path for traceability."""
    p = Path(path)
    cfg = _load_raw_config(p)
    _ensure_meta_source(cfg, p)
    return cfg


def build_inputs(config: Mapping[str, Any]) -> Tuple[InputParameters, DebtSelection]:
    """
    Normalise a raw config mapping into engine inputs.

    Missing optional numbers default to zero (growth, grace, reserves);
    the engine itself never validates.
    """
    cfg = dict(config)
    loan = _section(cfg, "loan")
    growth = _section(cfg, "growth")
    financing = _section(cfg, "financing")
    reserve = _section(cfg, "reserve")
    coverage = _section(cfg, "coverage")
    debt = _section(cfg, "debt")

    params = InputParameters(
        revenue=as_amounts(cfg.get("revenue")),
        financing_receipts=as_float(financing.get("receipts"), 0.0),
        financing_expenditures=as_float(financing.get("expenditures"), 0.0),
        opex=_operating_expenses(cfg.get("opex")),
        rev_growth=as_float(growth.get("revenue"), 0.0),
        opex_growth=as_float(growth.get("opex"), 0.0),
        rate=as_float(loan.get("rate"), 0.0),
        term_years=as_int(loan.get("term_years"), 0),
        grace_years=as_int(loan.get("grace_years"), 0),
        payment_type=_payment_type(loan.get("payment_type", PAYMENT_TYPES[0])),
        debt_type=_debt_type(loan.get("debt_type", DEBT_OUTSTANDING_BALANCE)),
        reserve_ratio=as_float(reserve.get("ratio"), 0.0),
        min_dscr=as_float(coverage.get("min_dscr"), 0.0),
        init_reserve=as_float(reserve.get("initial_balance"), 0.0),
    )
    selection = DebtSelection(
        allowed_debt_override=as_float(debt.get("allowed_override"), None),
        requested_draw=as_float(debt.get("requested_draw"), None),
    )

    if params.debt_type == DEBT_BOND and "payment_type" in loan:
        logger.debug("payment_type is ignored for bond debt (straight-line sinking fund)")

    return params, selection


def scenario_name_for(config: Mapping[str, Any], path: Optional[str | Path] = None) -> str:
    name = config.get("scenario_name")
    if name:
        return str(name)
    if path is not None:
        return Path(path).stem
    return "scenario"


__all__ = [
    "DEBT_TYPE_ALIASES",
    "ScenarioConfigError",
    "build_inputs",
    "load_scenario_config",
    "scenario_name_for",
]
