"""Policy constants shared by the debt capacity engine and its exporters."""

# Statutory ceiling: new/outstanding debt <= 75% of prior-year audited revenue
STATUTORY_REVENUE_SHARE = 0.75

# Relative tolerance used to decide whether the statutory rule is binding
BINDING_REL_TOL = 1e-6

# Absolute tolerance for the "debt <= statutory ceiling" compliance check
STATUTORY_CHECK_ABS_TOL = 1e-6

BINDING_STATUTORY = "statutory"
BINDING_COVERAGE = "coverage"

DEFAULT_CURRENCY = "IDR"

# Column order of the delimited schedule export
SCHEDULE_CSV_COLUMNS = [
    ("year", "Year"),
    ("beg_balance", "Beg Balance"),
    ("interest", "Interest"),
    ("principal", "Principal"),
    ("debt_service", "Debt Service"),
    ("revenue", "Revenue"),
    ("opex", "O&M"),
    ("available_for_ds", "Available for DS"),
    ("dscr", "DSCR"),
    ("reserve_target", "Reserve Target"),
    ("reserve_alloc", "Reserve Allocation"),
    ("reserve_beg", "Reserve Begin"),
    ("reserve_end", "Reserve End"),
    ("surplus", "Surplus/Deficit"),
]

# Ending balances below this are float residue, not a balloon
BALLOON_ABS_TOL = 0.5
