from datetime import UTC, datetime

from typer.testing import CliRunner

from nemory import cli, worker
from nemory.scheduler_tasks import InvocationReport


def test_cli_config_masks_secrets():
    result = CliRunner().invoke(cli.app, ["config"])

    assert result.exit_code == 0
    assert "Current Configuration" in result.output
    assert "test-cron-secret" not in result.output


def test_cli_due_rejects_bad_date():
    result = CliRunner().invoke(cli.app, ["due", "--on", "not-a-date"])
    assert result.exit_code == 1


def test_worker_runs_daily_cron():
    job = worker.WorkerSettings.cron_jobs[0]
    assert job.coroutine is worker.daily_invocation
    assert job.hour == 9
    assert job.minute == 0


async def test_daily_invocation_reports_counts(monkeypatch):
    async def fake_run_invocation():
        return InvocationReport(timestamp=datetime(2026, 10, 19, tzinfo=UTC), due_schedules=2, executed=1, skipped=1)

    monkeypatch.setattr("nemory.scheduler_tasks.run_invocation", fake_run_invocation)

    assert await worker.daily_invocation({}) == {"due": 2, "executed": 1, "skipped": 1}
