"""CLI entrypoint for formgrid."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from formgrid.config import load_config
from formgrid.core.classify import Status
from formgrid.core.runner import RunState
from formgrid.paths import Paths
from formgrid.pipeline import grid_from_config, run_download
from formgrid.report import latest_run_log, missing_months, read_run_log, render_summary, summarize

app = typer.Typer(help="Bulk downloads through a region/year/month form")
console = Console()


@app.command()
def download(
    config: str = typer.Option(..., "--config", help="Path to config TOML"),
    region: list[str] = typer.Option([], "--region", help="Limit to specific region(s); repeatable."),
    year: list[int] = typer.Option([], "--year", help="Limit to specific year(s); repeatable."),
    headed: bool = typer.Option(False, "--headed", help="Run with a visible browser window."),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Attach to a running browser (CDP URL) instead of launching one."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Walk the whole grid, downloading every file the form offers."""
    cfg = load_config(config)
    try:
        grid_from_config(cfg, regions=region or None, years=year or None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    result = run_download(
        cfg,
        regions=region or None,
        years=year or None,
        headless=None if not headed else False,
        endpoint=endpoint,
        verbose=verbose,
    )
    counts = result.counts
    console.print(
        f"{result.state.value}: {len(result.outcomes)}/{result.total_cells} cells, "
        f"{counts[Status.SUCCESS]} downloaded, {counts[Status.EXPECTED_ABSENCE]} absent, "
        f"{counts[Status.UNEXPECTED_ERROR]} errors"
    )
    if result.state is RunState.ABORTED:
        console.print(f"[red]Aborted:[/red] {result.error}")
        raise typer.Exit(code=1)


@app.command()
def plan(
    config: str = typer.Option(..., "--config"),
    region: list[str] = typer.Option([], "--region"),
    year: list[int] = typer.Option([], "--year"),
) -> None:
    """Show the grid a download run would walk."""
    cfg = load_config(config)
    try:
        axes = grid_from_config(cfg, regions=region or None, years=year or None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    cells = axes.cells()
    console.print(f"regions: {', '.join(axes.regions)}")
    console.print(f"years: {axes.years[0]}..{axes.years[-1]}")
    console.print(f"months: {', '.join(str(month) for month in axes.months)}")
    console.print(f"{len(cells)} cells, first {cells[0].label()}, last {cells[-1].label()}")


@app.command()
def summary(
    config: str = typer.Option(..., "--config"),
    log: Optional[Path] = typer.Option(None, "--log", help="Run log CSV; defaults to the latest run."),
    by: str = typer.Option("region", "--by", help="Group by region or year."),
    missing: bool = typer.Option(False, "--missing", help="List months with no file per region/year."),
) -> None:
    """Summarise a run log."""
    if by not in {"region", "year"}:
        raise typer.BadParameter("--by must be 'region' or 'year'")
    cfg = load_config(config)
    if log is None:
        try:
            log = latest_run_log(Paths.from_config(cfg).output / "runs")
        except FileNotFoundError as exc:
            raise typer.BadParameter(str(exc)) from exc
    df = read_run_log(log)
    render_summary(summarize(df, by=by), title=f"{log.name} by {by}", console=console)
    if missing:
        render_summary(missing_months(df), title="No file for", console=console)


if __name__ == "__main__":
    app()
