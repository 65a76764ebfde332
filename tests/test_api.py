from datetime import UTC, datetime

import httpx
import pytest

from helpers import make_schedule
from nemory.app import create_app
from nemory.db.session import get_db
from nemory.models.execution import ScheduleExecution
from nemory.scheduler_tasks import InvocationReport, ScheduleOutcome
from nemory.services.execution_recorder import ExecutionRecord, ExecutionStatus

AUTH = {"Authorization": "Bearer test-cron-secret"}
NOW = datetime(2026, 10, 19, 9, tzinfo=UTC)


@pytest.fixture
async def app(session_factory):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def _store(session_factory, *rows):
    async with session_factory() as db:
        db.add_all(rows)
        await db.commit()


class TestCronRun:
    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "test-cron-secret"}],
    )
    async def test_rejects_bad_secret(self, app, client, headers):
        called = []

        async def invoke():
            called.append(True)

        app.state.invoke = invoke
        resp = await client.post("/api/cron/run", headers=headers)
        assert resp.status_code == 401
        assert called == []

    async def test_returns_invocation_report(self, app, client):
        async def invoke():
            return InvocationReport(
                timestamp=NOW,
                total_schedules=3,
                due_schedules=2,
                executed=1,
                skipped=1,
                outcomes=[
                    ScheduleOutcome(schedule_id="a", status="success", execution_id="exec_1", content_processed=4),
                    ScheduleOutcome(schedule_id="b", status="skipped"),
                ],
            )

        app.state.invoke = invoke
        resp = await client.post("/api/cron/run", headers=AUTH)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert (body["total_schedules"], body["due_schedules"], body["executed"], body["skipped"]) == (3, 2, 1, 1)
        assert body["executions"][0] == {
            "schedule_id": "a",
            "status": "success",
            "execution_id": "exec_1",
            "content_processed": 4,
            "error": None,
        }


async def test_status_reports_schedules_and_recent_runs(client, session_factory):
    await _store(
        session_factory,
        make_schedule(id="d1"),
        make_schedule(id="w1", frequency="weekly", days_of_week=["monday"]),
        make_schedule(id="m1", frequency="monthly", day_of_month=1, is_active=False),
        ScheduleExecution(id="e1", schedule_id="d1", user_id="user_1", executed_at=NOW, status="success"),
        ScheduleExecution(id="e2", schedule_id="w1", user_id="user_1", executed_at=NOW, status="failed"),
    )

    resp = await client.get("/api/cron/status")

    assert resp.status_code == 200
    body = resp.json()
    assert body["schedules"] == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "by_frequency": {"daily": 1, "weekly": 1, "monthly": 1},
    }
    assert body["executions"]["recent_count"] == 2
    assert body["executions"]["success_rate"] == "50.0%"
    assert body["environment"]["has_cron_secret"] is True
    assert body["overall"]["health"] == "degraded"
    assert "Missing AI model API key" in body["overall"]["issues"]


class TestManualExecute:
    async def test_unknown_schedule(self, client):
        resp = await client.post("/api/schedules/missing/execute", json={"user_id": "user_1"})
        assert resp.status_code == 404

    async def test_wrong_owner(self, client, session_factory):
        await _store(session_factory, make_schedule(id="s1", user_id="owner"))
        resp = await client.post("/api/schedules/s1/execute", json={"user_id": "intruder"})
        assert resp.status_code == 403

    async def test_runs_once_then_rejects_duplicate(self, app, client, session_factory):
        await _store(session_factory, make_schedule(id="s1"))
        ran = []

        async def execute_one(schedule):
            ran.append(schedule.id)
            return ExecutionRecord(
                schedule_id=schedule.id,
                user_id=schedule.user_id,
                executed_at=NOW,
                status=ExecutionStatus.SUCCESS,
                content_processed=2,
                is_manual=True,
            )

        app.state.execute_one = execute_one

        first = await client.post("/api/schedules/s1/execute", json={"user_id": "user_1"})
        second = await client.post("/api/schedules/s1/execute", json={"user_id": "user_1"})

        assert first.status_code == 200
        execution = first.json()["execution"]
        assert execution["status"] == "success"
        assert execution["is_manual"] is True
        assert execution["content_processed"] == 2
        assert second.status_code == 429
        assert ran == ["s1"]


async def test_failed_manual_run_can_be_retried(app, client, session_factory):
    await _store(session_factory, make_schedule(id="s1"))
    attempts = []

    async def execute_one(schedule):
        attempts.append(schedule.id)
        if len(attempts) == 1:
            raise RuntimeError("database went away")
        return ExecutionRecord(schedule_id=schedule.id, user_id=schedule.user_id, status=ExecutionStatus.SUCCESS)

    app.state.execute_one = execute_one

    with pytest.raises(RuntimeError):
        await client.post("/api/schedules/s1/execute", json={"user_id": "user_1"})
    retry = await client.post("/api/schedules/s1/execute", json={"user_id": "user_1"})

    assert retry.status_code == 200
    assert attempts == ["s1", "s1"]
