"""Download run orchestration and manifest writing."""
from __future__ import annotations

import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from formgrid.browser.playwright_driver import open_driver
from formgrid.config import AppConfig
from formgrid.core.grid import GridAxes, build_grid
from formgrid.core.runlog import RunLog
from formgrid.core.runner import GridRunner, RunResult
from formgrid.logging import setup_logging
from formgrid.paths import Paths
from formgrid.utils.hashing import dict_hash


def _git_hash(root: Path) -> str:
    try:
        result = subprocess.run(
            ["git", "-C", str(root), "rev-parse", "HEAD"],
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()
    except (subprocess.SubprocessError, OSError):
        return "unknown"


def record_manifest(
    paths: Paths,
    config_payload: dict,
    step: str,
    inputs: Iterable[Path],
    outputs: Iterable[Path],
    summary: Optional[dict] = None,
) -> None:
    manifest_path = paths.output / "run_manifest.json"
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "step": step,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "inputs": [str(path) for path in inputs],
        "outputs": [str(path) for path in outputs],
    }
    if summary:
        record["summary"] = summary
    config_hash = dict_hash(config_payload)
    payload = {
        "git_commit": _git_hash(paths.root),
        "config_hash": config_hash,
        "runs": [record],
    }
    if manifest_path.exists():
        existing = json.loads(manifest_path.read_text())
        existing.setdefault("runs", []).append(record)
        existing["git_commit"] = payload["git_commit"]
        existing["config_hash"] = payload["config_hash"]
        manifest_path.write_text(json.dumps(existing, indent=2))
    else:
        manifest_path.write_text(json.dumps(payload, indent=2))


def grid_from_config(
    config: AppConfig,
    regions: Optional[Iterable[str]] = None,
    years: Optional[Iterable[int]] = None,
) -> GridAxes:
    """Build the grid, optionally narrowed to a subset of regions and years."""
    all_regions = list(config.grid.regions)
    all_years = config.grid.years
    if regions:
        wanted = {region.upper() for region in regions}
        unknown = wanted - set(all_regions)
        if unknown:
            raise ValueError(f"regions not in config: {sorted(unknown)}")
        all_regions = [region for region in all_regions if region in wanted]
    if years:
        wanted_years = set(years)
        unknown_years = wanted_years - set(all_years)
        if unknown_years:
            raise ValueError(f"years outside {all_years[0]}..{all_years[-1]}: {sorted(unknown_years)}")
        all_years = [year for year in all_years if year in wanted_years]
    return build_grid(all_regions, all_years, config.grid.months)


def run_download(
    config: AppConfig,
    *,
    regions: Optional[Iterable[str]] = None,
    years: Optional[Iterable[int]] = None,
    headless: Optional[bool] = None,
    endpoint: Optional[str] = None,
    verbose: bool = False,
    root: Optional[Path] = None,
) -> RunResult:
    started = datetime.now()
    paths = Paths.from_config(config, root=root)
    paths.ensure()
    logger = setup_logging(paths.log_file_path(started), verbose=verbose)

    axes = grid_from_config(config, regions=regions, years=years)
    browser = config.browser
    overrides: dict = {}
    if headless is not None:
        overrides["headless"] = headless
    if endpoint is not None:
        overrides["endpoint"] = endpoint
        if browser.mode == "launch":
            overrides["mode"] = "cdp"
    if overrides:
        browser = browser.model_validate({**browser.model_dump(), **overrides})

    run_log = RunLog(paths.run_log_path(started))
    logger.info("Starting grid download from %s (%s browser)", config.site.url, browser.mode)
    with open_driver(browser, paths.downloads) as driver:
        runner = GridRunner(
            driver,
            config.site,
            axes,
            run_log=run_log,
            retry=config.retry,
            debug_dir=paths.debug_dir(),
        )
        result = runner.run()

    record_manifest(
        paths,
        config.model_dump(),
        "download",
        [],
        [run_log.path, paths.downloads],
        summary={
            "state": result.state.value,
            "cells": result.total_cells,
            "logged": len(result.outcomes),
            "counts": {status.value: count for status, count in result.counts.items()},
        },
    )
    logger.info("Run log written to %s", run_log.path)
    return result
