from typer.testing import CliRunner

from formgrid.cli import app
from formgrid.core.classify import AttemptOutcome, Status
from formgrid.core.grid import GridCell
from formgrid.core.runlog import RunLog

runner = CliRunner()


def test_plan_reports_grid_size():
    result = runner.invoke(app, ["plan", "--config", "config/default.toml", "--region", "TAS", "--year", "1998"])
    assert result.exit_code == 0
    assert "12 cells" in result.output
    assert "TAS 1998-01" in result.output
    assert "TAS 1998-12" in result.output


def test_plan_rejects_unknown_region():
    result = runner.invoke(app, ["plan", "--config", "config/default.toml", "--region", "WA"])
    assert result.exit_code != 0


def test_summary_of_run_log(tmp_path):
    log_path = tmp_path / "run_20240101T000000.csv"
    log = RunLog(log_path)
    log.append(AttemptOutcome(GridCell("TAS", 1998, 1), Status.EXPECTED_ABSENCE, ("404",)))
    log.append(AttemptOutcome(GridCell("TAS", 1998, 2), Status.SUCCESS))

    result = runner.invoke(
        app, ["summary", "--config", "config/default.toml", "--log", str(log_path), "--missing"]
    )
    assert result.exit_code == 0
    assert "TAS" in result.output


def test_download_run_errors_are_not_reported_as_bad_parameters(monkeypatch):
    def failing_run(*_args, **_kwargs):
        raise ValueError("outcome for TAS 1998-01 already logged")

    monkeypatch.setattr("formgrid.cli.run_download", failing_run)
    result = runner.invoke(app, ["download", "--config", "config/default.toml", "--region", "TAS"])
    assert result.exit_code == 1
    assert isinstance(result.exception, ValueError)


def test_download_rejects_unknown_year():
    result = runner.invoke(app, ["download", "--config", "config/default.toml", "--year", "1990"])
    assert result.exit_code == 2
