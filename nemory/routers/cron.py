"""Trigger routes: scheduled invocation and configuration health."""

import logging
import secrets
from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nemory.config import get_settings
from nemory.constants import RECENT_EXECUTIONS_LIMIT
from nemory.db.session import get_db
from nemory.models.execution import ScheduleExecution
from nemory.models.schedule import Schedule
from nemory.schemas.execution import InvocationReportOut
from nemory.utils import now_utc

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """Shared-secret check for the periodic invoker (``Authorization: Bearer <CRON_SECRET>``)."""
    expected = f"Bearer {get_settings().cron_secret}"
    if not authorization or not secrets.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/run", response_model=InvocationReportOut, dependencies=[Depends(verify_cron_secret)])
async def run_cron(request: Request):
    """Run every schedule due today and report per-schedule outcomes."""
    logger.info("Daily invocation triggered at %s", now_utc().isoformat())
    report = await request.app.state.invoke()
    return InvocationReportOut(
        timestamp=report.timestamp,
        total_schedules=report.total_schedules,
        due_schedules=report.due_schedules,
        executed=report.executed,
        skipped=report.skipped,
        executions=[asdict(outcome) for outcome in report.outcomes],
    )


@router.get("/status")
async def cron_status(db: AsyncSession = Depends(get_db)):
    """Configuration and recent-execution health for the scheduling system."""
    settings = get_settings()
    environment = {
        "has_gemini_key": bool(settings.gemini_api_key),
        "has_openai_key": bool(settings.openai_api_key),
        "has_telegram_token": bool(settings.telegram_bot_token),
        "has_cron_secret": bool(settings.cron_secret),
    }

    rows = await db.execute(
        select(Schedule.frequency, Schedule.is_active, func.count()).group_by(Schedule.frequency, Schedule.is_active)
    )
    by_frequency: dict[str, int] = {}
    active = inactive = 0
    for frequency, is_active, count in rows.all():
        by_frequency[frequency] = by_frequency.get(frequency, 0) + count
        if is_active:
            active += count
        else:
            inactive += count

    recent = await db.execute(
        select(ScheduleExecution.status, ScheduleExecution.executed_at)
        .order_by(ScheduleExecution.executed_at.desc())
        .limit(RECENT_EXECUTIONS_LIMIT)
    )
    recent_rows = recent.all()
    breakdown = {"success": 0, "failed": 0}
    for status, _ in recent_rows:
        breakdown[status] = breakdown.get(status, 0) + 1

    issues = []
    if not (environment["has_gemini_key"] or environment["has_openai_key"]):
        issues.append("Missing AI model API key")
    if not environment["has_telegram_token"]:
        issues.append("Missing Telegram bot token")

    return {
        "timestamp": now_utc().isoformat(),
        "environment": environment,
        "schedules": {
            "total": active + inactive,
            "active": active,
            "inactive": inactive,
            "by_frequency": by_frequency,
        },
        "executions": {
            "recent_count": len(recent_rows),
            "last_execution": recent_rows[0][1].isoformat() if recent_rows else None,
            "success_rate": (
                f"{breakdown['success'] / len(recent_rows) * 100:.1f}%" if recent_rows else "No data"
            ),
            "status_breakdown": breakdown,
        },
        "overall": {"health": "healthy" if not issues else "degraded", "issues": issues},
    }
