from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

PAYMENT_ANNUITY = "annuity"
PAYMENT_EQUAL_PRINCIPAL = "equal_principal"
PAYMENT_TYPES = (PAYMENT_ANNUITY, PAYMENT_EQUAL_PRINCIPAL)

DEBT_BOND = "bond"
DEBT_OUTSTANDING_BALANCE = "outstanding_balance"
DEBT_TYPES = (DEBT_BOND, DEBT_OUTSTANDING_BALANCE)


@dataclass(frozen=True)
class OperatingExpenses:
    """Prior-year operating expenses: a breakdown, or one override figure."""

    components: Dict[str, float] = field(default_factory=dict)
    override: Optional[float] = None

    @property
    def total(self) -> float:
        if self.override is not None:
            return float(self.override)
        return float(sum(self.components.values()))


@dataclass(frozen=True)
class InputParameters:
    revenue: Dict[str, float] = field(default_factory=dict)
    financing_receipts: float = 0.0
    financing_expenditures: float = 0.0
    opex: OperatingExpenses = field(default_factory=OperatingExpenses)
    rev_growth: float = 0.0
    opex_growth: float = 0.0
    rate: float = 0.08
    term_years: int = 10
    grace_years: int = 0
    payment_type: str = PAYMENT_ANNUITY
    debt_type: str = DEBT_OUTSTANDING_BALANCE
    reserve_ratio: float = 0.0
    min_dscr: float = 2.5
    init_reserve: float = 0.0


@dataclass(frozen=True)
class CapacityResult:
    noi: float
    total_revenue: float
    net_financing: float
    total_opex: float
    max_debt_revenue_rule: float
    max_annual_ds: float
    dscr_pv: float
    allowed_debt: float
    binding: str


@dataclass(frozen=True)
class ScheduleRow:
    year: int
    beg_balance: float
    interest: float
    principal: float
    debt_service: float
    revenue: float
    opex: float
    available_for_ds: float
    dscr: Optional[float]
    reserve_target: float
    reserve_alloc: float
    reserve_beg: float
    reserve_end: float
    surplus: float


@dataclass(frozen=True)
class ComplianceResult:
    within_statutory_cap: bool
    dscr_meets_minimum: bool

    @property
    def compliant(self) -> bool:
        return self.within_statutory_cap and self.dscr_meets_minimum
