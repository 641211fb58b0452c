"""Summaries of run logs."""
from __future__ import annotations

from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from formgrid.core.classify import Status

STATUS_COLUMNS = [status.value for status in Status]


def read_run_log(path: Path) -> pd.DataFrame:
    return pd.read_csv(path, dtype={"region": str, "status": str, "signals": str, "downloads": str})


def latest_run_log(runs_dir: Path) -> Path:
    candidates = sorted(runs_dir.glob("run_*.csv"))
    if not candidates:
        raise FileNotFoundError(f"no run logs under {runs_dir}")
    return candidates[-1]


def summarize(df: pd.DataFrame, by: str = "region") -> pd.DataFrame:
    """Status counts per ``by`` value, with every status present as a column."""
    if df.empty:
        return pd.DataFrame(columns=[by, *STATUS_COLUMNS, "total"])
    counts = (
        df.groupby([by, "status"]).size().unstack("status", fill_value=0).reindex(columns=STATUS_COLUMNS, fill_value=0)
    )
    counts["total"] = counts.sum(axis=1)
    return counts.reset_index()


def missing_months(df: pd.DataFrame) -> pd.DataFrame:
    """Cells whose file does not exist, grouped per region and year."""
    absent = df[df["status"] == Status.EXPECTED_ABSENCE.value]
    return (
        absent.groupby(["region", "year"])["month"]
        .apply(lambda months: ",".join(str(month) for month in sorted(months)))
        .reset_index(name="months")
    )


def render_summary(summary: pd.DataFrame, title: str, console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title=title)
    for column in summary.columns:
        table.add_column(str(column), justify="left" if column == summary.columns[0] else "right")
    for row in summary.itertuples(index=False):
        table.add_row(*(str(value) for value in row))
    console.print(table)
