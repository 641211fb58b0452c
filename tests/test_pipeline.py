import json
from contextlib import contextmanager

import pytest

from formgrid.config import load_config
from formgrid.core.classify import Status
from formgrid.core.grid import GridCell
from formgrid.core.runner import RunState
from formgrid.pipeline import grid_from_config, run_download
from formgrid.report import read_run_log

from conftest import NOT_FOUND, FakeFormDriver


def _patch_driver(monkeypatch, driver):
    opened = {}

    @contextmanager
    def fake_open_driver(browser, downloads_dir):
        opened["browser"] = browser
        opened["downloads_dir"] = downloads_dir
        try:
            yield driver
        finally:
            driver.close()

    monkeypatch.setattr("formgrid.pipeline.open_driver", fake_open_driver)
    return opened


def _config():
    config = load_config("config/default.toml")
    config.retry.backoff_seconds = 0
    config.retry.max_backoff_seconds = 0
    return config


def test_run_download_writes_log_and_manifest(monkeypatch, tmp_path):
    config = _config()
    driver = FakeFormDriver(config.site, responses={GridCell("TAS", 1998, 1): [NOT_FOUND]})
    opened = _patch_driver(monkeypatch, driver)

    result = run_download(config, regions=["tas"], years=[1998], root=tmp_path)

    assert result.state is RunState.DONE
    assert len(result.outcomes) == 12
    assert result.counts[Status.EXPECTED_ABSENCE] == 1
    assert driver.closed
    assert opened["downloads_dir"] == tmp_path / "data" / "downloads"

    run_logs = sorted((tmp_path / "output" / "runs").glob("run_*.csv"))
    assert len(run_logs) == 1
    df = read_run_log(run_logs[0])
    assert len(df) == 12
    assert df.loc[0, "status"] == "expected_absence"

    manifest = json.loads((tmp_path / "output" / "run_manifest.json").read_text())
    summary = manifest["runs"][-1]["summary"]
    assert summary["state"] == "done"
    assert summary["logged"] == 12
    assert summary["counts"]["success"] == 11


def test_endpoint_switches_to_remote_browser(monkeypatch, tmp_path):
    config = _config()
    driver = FakeFormDriver(config.site)
    opened = _patch_driver(monkeypatch, driver)

    run_download(
        config, regions=["VIC"], years=[2020], endpoint="http://localhost:9222", headless=False, root=tmp_path
    )

    assert opened["browser"].mode == "cdp"
    assert opened["browser"].endpoint == "http://localhost:9222"
    assert opened["browser"].headless is False


def test_grid_filters():
    config = _config()
    axes = grid_from_config(config, regions=["VIC", "nsw"], years=[2001, 2002])
    assert axes.regions == ("NSW", "VIC")
    assert axes.years == (2001, 2002)
    assert len(axes) == 2 * 2 * 12

    with pytest.raises(ValueError):
        grid_from_config(config, regions=["WA"])
    with pytest.raises(ValueError):
        grid_from_config(config, years=[1990])
    with pytest.raises(ValueError):
        grid_from_config(config, years=[2001, 2003])
