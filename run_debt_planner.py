"""CLI for the municipal debt capacity planner.

Evaluates one scenario file:

- debt capacity under the statutory cap and the DSCR floor
- amortisation / reserve schedule for the amount drawn
- compliance checks and configuration warnings
- optional stress test and CSV / Excel / chart / JSON exports
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional

from analytics.contracts import PlanResult, StressResult, StressShock
from analytics.evaluate_plan import evaluate_scenario, plan_result_as_dict
from analytics.export_helpers import (
    ChartGenerator,
    ExcelExporter,
    format_currency,
    write_schedule_csv,
)
from analytics.scenario_loader import ScenarioConfigError
from analytics.schema_guard import VALIDATION_MODES, ConfigValidationError
from analytics.stress import run_stress_test

logger = logging.getLogger(__name__)


def _yes_no(flag: bool) -> str:
    return "PASS" if flag else "FAIL"


def print_summary(result: PlanResult) -> None:
    cap = result.capacity
    first = result.first_year

    print("=" * 72)
    print(f"DEBT CAPACITY: {result.scenario_name}")
    print("=" * 72)
    print(f"Total revenue:            {format_currency(cap.total_revenue)}")
    print(f"NOI:                      {format_currency(cap.noi)}")
    print(f"Statutory ceiling (75%):  {format_currency(cap.max_debt_revenue_rule)}")
    coverage = format_currency(cap.dscr_pv) if math.isfinite(cap.dscr_pv) else "unbounded"
    print(f"Coverage ceiling (PV):    {coverage}")
    print(f"Allowed debt:             {format_currency(cap.allowed_debt)} ({cap.binding} rule binding)")
    print(f"Effective ceiling:        {format_currency(result.effective_ceiling)}")
    print(f"Amount drawn:             {format_currency(result.amount_drawn)}")

    if first is not None:
        print("")
        print("Year 1:")
        print(f"  Debt service:           {format_currency(first.debt_service)}")
        print(f"  DSCR:                   {'n/a' if first.dscr is None else f'{first.dscr:.2f}x'}")
        print(f"  Reserve allocation:     {format_currency(first.reserve_alloc)}")

    print("")
    min_label = f"{result.min_dscr:.2f}x" if result.min_dscr > 0 else "n/a"
    print(f"Minimum DSCR:             {min_label} (floor {result.inputs.min_dscr:.2f}x)")
    print(f"Debt <= 75% of revenue:   {_yes_no(result.compliance.within_statutory_cap)}")
    print(f"DSCR >= minimum:          {_yes_no(result.compliance.dscr_meets_minimum)}")

    if result.warnings:
        print("")
        print("Warnings:")
        for w in result.warnings:
            print(f"  [{w.severity}] {w.code}: {w.message}")


def print_stress_summary(stress: StressResult) -> None:
    shock = stress.shock
    print("")
    print("-" * 72)
    print(
        f"STRESS TEST: rate {shock.rate_bps:+.0f} bps, revenue {shock.revenue_pct:+.1f}%, "
        f"opex {shock.opex_pct:+.1f}%"
    )
    print("-" * 72)
    print(f"Stressed rate:            {stress.stressed_rate * 100:.2f}%")
    print(f"Stressed allowed debt:    {format_currency(stress.stressed_allowed_debt)}")
    print(f"Debt tested:              {format_currency(stress.stressed.amount_drawn)}")
    stressed_min = stress.stressed.min_dscr
    print(f"Stressed minimum DSCR:    {f'{stressed_min:.2f}x' if stressed_min > 0 else 'n/a'}")
    print(f"Resilient:                {'YES' if stress.resilient else 'NO'}")


def _write_json(result: PlanResult, stress: Optional[StressResult], path: str) -> None:
    data = plan_result_as_dict(result)
    if stress is not None:
        data["stress"] = {
            "rate_bps": stress.shock.rate_bps,
            "revenue_pct": stress.shock.revenue_pct,
            "opex_pct": stress.shock.opex_pct,
            "stressed_rate": stress.stressed_rate,
            "stressed_allowed_debt": stress.stressed_allowed_debt,
            "stressed_amount_drawn": stress.stressed.amount_drawn,
            "stressed_min_dscr": stress.stressed.min_dscr,
            "resilient": stress.resilient,
        }
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info("Results exported to: %s", out)


def run(args: argparse.Namespace) -> int:
    """Evaluate, print and export. Returns the process exit code."""
    try:
        result = evaluate_scenario(args.scenario, validation_mode=args.validation)

        shock = StressShock(
            rate_bps=args.rate_shock_bps,
            revenue_pct=args.revenue_shock_pct,
            opex_pct=args.opex_shock_pct,
        )
        stress = None
        if not shock.is_zero:
            stress = run_stress_test(
                result.inputs, shock, result.selection, scenario_name=result.scenario_name
            )

        print_summary(result)
        if stress is not None:
            print_stress_summary(stress)

        if args.csv:
            write_schedule_csv(result.schedule, args.csv)
        if args.excel:
            ExcelExporter(args.excel).export_plan(result)
        if args.chart:
            chart = Path(args.chart)
            ChartGenerator(chart.parent).plot_dscr_trend(
                result.schedule, result.inputs.min_dscr, output_file=chart.name,
                title=f"DSCR by Year: {result.scenario_name}",
            )
        if args.json:
            _write_json(result, stress, args.json)

    except (FileNotFoundError, ScenarioConfigError, ConfigValidationError) as exc:
        logger.error("Scenario evaluation failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Export failed: %s", exc)
        return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Municipal debt capacity planner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_debt_planner.py scenarios/base_case.yaml

  python run_debt_planner.py scenarios/base_case.yaml \\
      --csv outputs/schedule.csv --excel outputs/plan.xlsx --chart outputs/dscr.png

  # Stress: +200 bps, revenue -10%, opex +5%
  python run_debt_planner.py scenarios/base_case.yaml \\
      --rate-shock-bps 200 --revenue-shock-pct -10 --opex-shock-pct 5
        """,
    )
    parser.add_argument("scenario", help="Path to scenario config file (YAML/JSON)")
    parser.add_argument(
        "--validation",
        default="strict",
        choices=list(VALIDATION_MODES),
        help="Schema validation mode (default: strict)",
    )
    parser.add_argument("--csv", default=None, help="Write the schedule as CSV")
    parser.add_argument("--excel", default=None, help="Write a Summary/Schedule workbook")
    parser.add_argument("--chart", default=None, help="Write a DSCR trend PNG")
    parser.add_argument("--json", default=None, help="Write results as JSON")
    parser.add_argument("--rate-shock-bps", type=float, default=0.0, help="Interest rate shock (bps)")
    parser.add_argument("--revenue-shock-pct", type=float, default=0.0, help="Revenue level shock (%%)")
    parser.add_argument("--opex-shock-pct", type=float, default=0.0, help="Opex level shock (%%)")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
