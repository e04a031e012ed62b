"""Shared scenario fixtures for the planner test-suite."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

_BASE_CONFIG: Dict[str, Any] = {
    "scenario_name": "unit_case",
    "revenue": {
        "local_own_source_revenue": 600_000_000_000.0,
        "balancing_fund": 400_000_000_000.0,
    },
    "financing": {"receipts": 0.0, "expenditures": 0.0},
    "opex": {"components": {"staff": 500_000_000_000.0, "goods": 300_000_000_000.0}},
    "growth": {"revenue": 0.0, "opex": 0.0},
    "loan": {
        "rate": 0.08,
        "term_years": 10,
        "grace_years": 2,
        "payment_type": "annuity",
        "debt_type": "outstanding_balance",
    },
    "reserve": {"ratio": 0.0, "initial_balance": 0.0},
    "coverage": {"min_dscr": 2.5},
}


@pytest.fixture
def plan_config() -> Dict[str, Any]:
    """A valid plan config: 1e12 revenue, 8e11 opex, 8%, 10y with 2y grace."""
    return copy.deepcopy(_BASE_CONFIG)


@pytest.fixture
def write_scenario(tmp_path):
    """Write a config mapping to ``tmp_path/<name>`` as YAML and return the path."""

    def _write(config: Dict[str, Any], name: str = "scenario.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
        return path

    return _write
