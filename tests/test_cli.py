"""Tests for paycron.cli."""

from unittest.mock import AsyncMock, MagicMock, patch

import yaml
from typer.testing import CliRunner

from paycron import __version__
from paycron.cli.commands import app
from paycron.errors import ConfigurationError

runner = CliRunner()

_PATCH_CHECK = "paycron.nodes.lnd.check_connection"
_PATCH_SCHEDULER = "paycron.core.cron.scheduler.PaymentScheduler"
_PATCH_LOGGING = "paycron.core.log.setup_logging"

JOB = {
    "name": "coffee",
    "cron_expression": "0 0 9 * * *",
    "amount_sats": 10_000,
    "ln_address_or_lnurl": "alice@example.com",
}


def _write_config(tmp_path, jobs=None):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"server_url": "https://node:8080", "jobs": jobs or []}))
    return path


def test_cli_help():
    """--help works and shows command names."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("run", "jobs", "check", "init"):
        assert name in result.output


def test_cli_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


# ── init ──────────────────────────────────────────────────


def test_init_writes_config(tmp_path):
    path = tmp_path / "config.yaml"
    result = runner.invoke(app, ["init", "-c", str(path)])
    assert result.exit_code == 0
    assert "server_url" in path.read_text()


def test_init_refuses_existing(tmp_path):
    path = _write_config(tmp_path)
    before = path.read_text()
    result = runner.invoke(app, ["init", "-c", str(path)])
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert path.read_text() == before


# ── jobs ──────────────────────────────────────────────────


def test_jobs_table(tmp_path):
    path = _write_config(tmp_path, [JOB])
    result = runner.invoke(app, ["jobs", "-c", str(path)])
    assert result.exit_code == 0
    assert "coffee" in result.output
    assert "10000" in result.output


def test_jobs_empty(tmp_path):
    path = _write_config(tmp_path)
    result = runner.invoke(app, ["jobs", "-c", str(path)])
    assert result.exit_code == 0
    assert "No jobs configured" in result.output


def test_jobs_invalid_schedule(tmp_path):
    path = _write_config(tmp_path, [{**JOB, "cron_expression": "nope"}])
    result = runner.invoke(app, ["jobs", "-c", str(path)])
    assert result.exit_code == 1
    assert "Invalid schedule" in result.output


# ── check ─────────────────────────────────────────────────


def test_check_ok(tmp_path):
    path = _write_config(tmp_path)
    with patch(_PATCH_CHECK, AsyncMock(return_value={"alias": "mynode", "version": "0.18"})):
        result = runner.invoke(app, ["check", "-c", str(path)])
    assert result.exit_code == 0
    assert "mynode" in result.output


def test_check_unreachable(tmp_path):
    path = _write_config(tmp_path)
    error = ConfigurationError("Failed to verify connection to node")
    with patch(_PATCH_CHECK, AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["check", "-c", str(path)])
    assert result.exit_code == 1
    assert "Failed to verify" in result.output


# ── run ───────────────────────────────────────────────────


def test_run_missing_config_writes_default(tmp_path):
    path = tmp_path / "config.yaml"
    with patch(_PATCH_LOGGING):
        result = runner.invoke(app, ["run", "-c", str(path)])
    assert result.exit_code == 1
    assert "No jobs to run" in result.output
    assert path.exists()


def test_run_starts_scheduler(tmp_path):
    path = _write_config(tmp_path, [JOB])
    scheduler = MagicMock()
    scheduler.run = AsyncMock()
    scheduler.shutdown = AsyncMock()

    with (
        patch(_PATCH_LOGGING) as setup_logging,
        patch(_PATCH_CHECK, AsyncMock(return_value={})) as check,
        patch(_PATCH_SCHEDULER, return_value=scheduler) as scheduler_cls,
    ):
        result = runner.invoke(app, ["run", "-c", str(path), "-l", str(tmp_path / "paycron.log")])

    assert result.exit_code == 0
    setup_logging.assert_called_once()
    check.assert_awaited_once()
    jobs, connection = scheduler_cls.call_args.args
    assert [job.name for job in jobs] == ["coffee"]
    assert connection.server_url == "https://node:8080"
    scheduler.run.assert_awaited_once()
    scheduler.shutdown.assert_awaited_once()


def test_run_node_unreachable(tmp_path):
    path = _write_config(tmp_path, [JOB])
    error = ConfigurationError("Failed to verify connection to node")
    with (
        patch(_PATCH_LOGGING),
        patch(_PATCH_CHECK, AsyncMock(side_effect=error)),
        patch(_PATCH_SCHEDULER) as scheduler_cls,
    ):
        result = runner.invoke(app, ["run", "-c", str(path)])

    assert result.exit_code == 1
    scheduler_cls.assert_not_called()


def test_main_module():
    """python -m paycron entry point is importable."""
    from paycron.__main__ import app as main_app

    assert main_app is app
