"""Plan contracts: debt selection, warnings, plan and stress results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from finance.plan_types import (
    CapacityResult,
    ComplianceResult,
    InputParameters,
    ScheduleRow,
)


@dataclass(frozen=True)
class DebtSelection:
    """How much of the capacity is actually drawn.

    The engine always computes a calculated ceiling. ``allowed_debt_override``
    replaces it as the effective ceiling when set; ``requested_draw`` is the
    amount the municipality asks for and is capped to the effective ceiling.
    """

    allowed_debt_override: Optional[float] = None
    requested_draw: Optional[float] = None

    def effective_ceiling(self, calculated_ceiling: float) -> float:
        if self.allowed_debt_override is not None:
            return float(self.allowed_debt_override)
        return calculated_ceiling

    def amount_drawn(self, calculated_ceiling: float) -> float:
        ceiling = self.effective_ceiling(calculated_ceiling)
        if self.requested_draw is None:
            return max(0.0, ceiling)
        return max(0.0, min(float(self.requested_draw), ceiling))


@dataclass(frozen=True)
class PlanWarning:
    code: str
    severity: str  # "info" | "warn" | "critical"
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlanResult:
    """Complete evaluation of one scenario."""

    scenario_name: str
    inputs: InputParameters
    selection: DebtSelection
    capacity: CapacityResult
    effective_ceiling: float
    amount_drawn: float
    schedule: List[ScheduleRow]
    min_dscr: float
    dscr_summary: Dict[str, Any]
    compliance: ComplianceResult
    balloon_remaining: float
    warnings: List[PlanWarning] = field(default_factory=list)

    @property
    def first_year(self) -> Optional[ScheduleRow]:
        return self.schedule[0] if self.schedule else None


@dataclass(frozen=True)
class StressShock:
    rate_bps: float = 0.0
    revenue_pct: float = 0.0
    opex_pct: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.rate_bps == 0 and self.revenue_pct == 0 and self.opex_pct == 0


@dataclass
class StressResult:
    shock: StressShock
    base: PlanResult
    stressed: PlanResult

    @property
    def stressed_rate(self) -> float:
        return self.stressed.inputs.rate

    @property
    def stressed_allowed_debt(self) -> float:
        return self.stressed.capacity.allowed_debt

    @property
    def resilient(self) -> bool:
        return self.stressed.min_dscr >= self.base.inputs.min_dscr


__all__ = [
    "CapacityResult",
    "ComplianceResult",
    "DebtSelection",
    "InputParameters",
    "PlanResult",
    "PlanWarning",
    "ScheduleRow",
    "StressResult",
    "StressShock",
]
