from __future__ import annotations

import csv
import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from analytics.contracts import PlanResult
from constants import DEFAULT_CURRENCY, SCHEDULE_CSV_COLUMNS
from finance.metrics import dscr_series
from finance.plan_types import ScheduleRow

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# =====================================================================
# Formatting / tabular views
# =====================================================================


def format_currency(value: Optional[float], symbol: str = DEFAULT_CURRENCY) -> str:
    """Whole units with thousands separators; None and non-finite values render as 0."""
    if value is None or not math.isfinite(value):
        value = 0.0
    return f"{symbol} {round(value):,}"


def schedule_to_dataframe(rows: Sequence[ScheduleRow]) -> pd.DataFrame:
    """One row per year with the engine's field names as columns."""
    columns = [attr for attr, _ in SCHEDULE_CSV_COLUMNS]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([asdict(r) for r in rows], columns=columns)


def _export_cell(attr: str, value: Optional[float]) -> Union[int, float, str]:
    if attr == "year":
        return int(value)
    finite = value is not None and math.isfinite(value)
    if attr == "dscr":
        return value if finite else ""
    return round(value) if finite else 0


def write_schedule_csv(rows: Sequence[ScheduleRow], output_path: PathLike) -> Path:
    """Write the schedule as CSV with the fixed export column order.

    Monetary figures are rounded to whole units (non-finite as 0); DSCR is
    left raw, blank when undefined.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([header for _, header in SCHEDULE_CSV_COLUMNS])
        for row in rows:
            writer.writerow(
                [_export_cell(attr, getattr(row, attr)) for attr, _ in SCHEDULE_CSV_COLUMNS]
            )

    logger.info("Schedule CSV written to %s (%d rows)", path, len(rows))
    return path


def plan_summary_dataframe(result: PlanResult) -> pd.DataFrame:
    """Two-column (metric, value) view of a plan for the Summary sheet."""
    cap = result.capacity
    first = result.first_year
    items = [
        ("Scenario", result.scenario_name),
        ("Total revenue", cap.total_revenue),
        ("Net financing", cap.net_financing),
        ("Total opex", cap.total_opex),
        ("NOI", cap.noi),
        ("Statutory ceiling (75% revenue)", cap.max_debt_revenue_rule),
        ("Max annual debt service", cap.max_annual_ds if math.isfinite(cap.max_annual_ds) else None),
        ("Coverage ceiling (PV)", cap.dscr_pv if math.isfinite(cap.dscr_pv) else None),
        ("Allowed debt", cap.allowed_debt),
        ("Binding rule", cap.binding),
        ("Effective ceiling", result.effective_ceiling),
        ("Amount drawn", result.amount_drawn),
        ("Year 1 debt service", first.debt_service if first else None),
        ("Year 1 DSCR", first.dscr if first else None),
        ("Year 1 reserve allocation", first.reserve_alloc if first else None),
        ("Minimum DSCR", result.min_dscr if result.min_dscr > 0 else None),
        ("Within statutory cap", result.compliance.within_statutory_cap),
        ("DSCR meets minimum", result.compliance.dscr_meets_minimum),
        ("Balloon remaining", result.balloon_remaining),
    ]
    return pd.DataFrame(items, columns=["metric", "value"])


def _csv_frame(rows: Sequence[ScheduleRow]) -> pd.DataFrame:
    df = schedule_to_dataframe(rows)
    return df.rename(columns=dict(SCHEDULE_CSV_COLUMNS))


# =====================================================================
# Excel export helpers
# =====================================================================


class ExcelExporter:
    """Helper for writing a plan to an Excel workbook.

    - Summary sheet (metric / value)
    - Schedule sheet (export headers, frozen header row)
    - Warnings sheet when the plan carries any
    """

    def __init__(self, output_path: PathLike) -> None:
        self.output_path = Path(output_path)
        # Created lazily so nothing is written if no sheet is added.
        self._writer: Optional[pd.ExcelWriter] = None

    # ------------------------------------------------------------------
    # Core writer lifecycle
    # ------------------------------------------------------------------
    def _ensure_writer(self) -> pd.ExcelWriter:
        if self._writer is None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = pd.ExcelWriter(self.output_path, engine="openpyxl")
        return self._writer

    def save(self) -> None:
        """Persist the workbook to disk. Safe to call more than once."""
        if self._writer is not None:
            self._writer.close()
            self._writer = None
            logger.info("ExcelExporter: wrote workbook to %s", self.output_path)

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------
    def add_dataframe_sheet(
        self,
        sheet_name: str,
        df: pd.DataFrame,
        freeze_panes: Optional[str] = None,
        format_headers: bool = True,
        auto_filter: bool = True,
    ) -> None:
        """Write ``df`` to ``sheet_name`` with bold headers, filter and frozen panes."""
        from openpyxl.styles import Font

        writer = self._ensure_writer()
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]

        if format_headers:
            for cell in ws[1]:
                cell.font = Font(bold=True)
        if auto_filter and not df.empty:
            ws.auto_filter.ref = ws.dimensions
        if freeze_panes:
            ws.freeze_panes = freeze_panes

    def autofit_all(self) -> None:
        """Size every column to its longest rendered value."""
        if self._writer is None:
            return
        from openpyxl.utils import get_column_letter

        for ws in self._writer.book.worksheets:
            for column_cells in ws.columns:
                max_length = max(
                    (len(str(c.value)) for c in column_cells if c.value is not None),
                    default=0,
                )
                col_letter = get_column_letter(column_cells[0].column)
                ws.column_dimensions[col_letter].width = max_length + 2

    def export_plan(self, result: PlanResult) -> Path:
        """Write Summary / Schedule (/ Warnings) sheets and save."""
        self.add_dataframe_sheet("Summary", plan_summary_dataframe(result), auto_filter=False)
        self.add_dataframe_sheet("Schedule", _csv_frame(result.schedule), freeze_panes="B2")
        if result.warnings:
            warnings_df = pd.DataFrame(
                [(w.code, w.severity, w.message) for w in result.warnings],
                columns=["code", "severity", "message"],
            )
            self.add_dataframe_sheet("Warnings", warnings_df)
        self.autofit_all()
        self.save()
        return self.output_path


# =====================================================================
# Chart export helpers (PNG generation, CI/CLI friendly)
# =====================================================================


class ChartGenerator:
    """PNG charts for a plan, usable from the CLI without touching workbooks.

        cg = ChartGenerator(output_dir=tmp_path)
        path = cg.plot_dscr_trend(result.schedule, min_dscr=2.5)
    """

    def __init__(self, output_dir: PathLike) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _get_plt(self):
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        return plt

    def _resolve_path(self, output_file: PathLike) -> Path:
        """Resolve output_file relative to output_dir and ensure parent exists."""
        path = Path(output_file)
        if not path.is_absolute():
            path = self.output_dir / path
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def plot_dscr_trend(
        self,
        rows: Sequence[ScheduleRow],
        min_dscr: float,
        output_file: PathLike = "dscr_trend.png",
        title: str = "DSCR by Year",
    ) -> Path:
        """Year vs DSCR with the minimum-DSCR floor as a dashed reference line.

        Years without debt service have no DSCR and are left as gaps.
        """
        plt = self._get_plt()
        out_path = self._resolve_path(output_file)

        years: List[int] = [r.year for r in rows]
        dscr = [float("nan") if d is None else d for d in dscr_series(rows)]

        fig, ax = plt.subplots(figsize=(8, 4.5))
        try:
            ax.plot(years, dscr, marker="o", label="DSCR")
            if min_dscr > 0:
                ax.axhline(
                    min_dscr, linestyle="--", linewidth=1, color="red",
                    label=f"Minimum DSCR ({min_dscr:.2f})",
                )
            ax.set_xlabel("Year")
            ax.set_ylabel("DSCR")
            ax.set_title(title)
            ax.legend()
            fig.tight_layout()
            fig.savefig(out_path)
        finally:
            plt.close(fig)

        logger.info("ChartGenerator: DSCR trend written to %s", out_path)
        return out_path


__all__ = [
    "ChartGenerator",
    "ExcelExporter",
    "format_currency",
    "plan_summary_dataframe",
    "schedule_to_dataframe",
    "write_schedule_csv",
]
