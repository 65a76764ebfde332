"""Scheduler tasks: decide which schedules are due today and run them in sequence."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nemory.config import Settings, get_settings
from nemory.http_client import create_http_client
from nemory.models.schedule import Schedule
from nemory.services.execution_recorder import ExecutionRecorder
from nemory.services.schedule_runner import ScheduleRunner, build_runner
from nemory.utils import now_utc

logger = logging.getLogger(__name__)

_WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


class MalformedRecurrenceError(ValueError):
    """The schedule's recurrence cannot be interpreted."""


@dataclass(frozen=True)
class Recurrence:
    frequency: str
    weekdays: frozenset[int] = frozenset()  # date.weekday() numbering, Monday = 0
    day_of_month: int | None = None


def _parse_weekday(value: object) -> int:
    if isinstance(value, str):
        name = value.strip().lower()
        if name in _WEEKDAY_NAMES:
            return _WEEKDAY_NAMES[name]
        if name.isdigit():
            value = int(name)
    # Integers use the dashboard's JavaScript numbering: Sunday = 0 ... Saturday = 6
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6:
        return (value - 1) % 7
    raise MalformedRecurrenceError(f"Invalid weekday: {value!r}")


def parse_recurrence(schedule: Schedule) -> Recurrence:
    frequency = (schedule.frequency or "").strip().lower()

    if frequency == "daily":
        return Recurrence("daily")

    if frequency == "weekly":
        days = schedule.days_of_week
        if not isinstance(days, list) or not days:
            raise MalformedRecurrenceError("Weekly schedule has no days of week")
        return Recurrence("weekly", weekdays=frozenset(_parse_weekday(day) for day in days))

    if frequency == "monthly":
        day = schedule.day_of_month
        if not isinstance(day, int) or isinstance(day, bool) or not 1 <= day <= 31:
            raise MalformedRecurrenceError(f"Invalid day of month: {day!r}")
        return Recurrence("monthly", day_of_month=day)

    raise MalformedRecurrenceError(f"Unknown frequency: {schedule.frequency!r}")


def is_due(schedule: Schedule, today: date) -> bool:
    """Whether *schedule* should run on *today*. Time of day is not considered."""
    try:
        recurrence = parse_recurrence(schedule)
    except MalformedRecurrenceError as e:
        logger.warning("Schedule %s has a malformed recurrence, not running: %s", schedule.id, e)
        return False

    if recurrence.frequency == "daily":
        return True
    if recurrence.frequency == "weekly":
        return today.weekday() in recurrence.weekdays
    return today.day == recurrence.day_of_month


def select_due_schedules(schedules: Iterable[Schedule], today: date) -> list[Schedule]:
    return [s for s in schedules if s.is_active and is_due(s, today)]


def invocation_slot(today: date) -> str:
    """Idempotency slot for automatic runs: one per calendar day."""
    return today.isoformat()


@dataclass
class ScheduleOutcome:
    schedule_id: str
    status: str
    execution_id: str | None = None
    content_processed: int = 0
    error: str | None = None


@dataclass
class InvocationReport:
    timestamp: datetime
    total_schedules: int = 0
    due_schedules: int = 0
    executed: int = 0
    skipped: int = 0
    outcomes: list[ScheduleOutcome] = field(default_factory=list)


async def run_due_schedules(
    session_factory: async_sessionmaker[AsyncSession],
    runner: ScheduleRunner,
    recorder: ExecutionRecorder,
    now: datetime | None = None,
) -> InvocationReport:
    """Run every due schedule once, sequentially, and report per-schedule outcomes."""
    now = now or now_utc()
    today = now.date()
    slot = invocation_slot(today)

    async with session_factory() as db:
        result = await db.execute(select(Schedule).where(Schedule.is_active == True))  # noqa: E712
        schedules = list(result.scalars().all())

    due = select_due_schedules(schedules, today)
    report = InvocationReport(timestamp=now, total_schedules=len(schedules), due_schedules=len(due))
    logger.info("Scheduler: %d active schedules, %d due for %s", len(schedules), len(due), slot)

    for schedule in due:
        try:
            if await recorder.already_processed(schedule.id, slot):
                logger.info("Schedule %s already delivered for %s, skipping", schedule.id, slot)
                report.skipped += 1
                report.outcomes.append(ScheduleOutcome(schedule_id=schedule.id, status="skipped"))
                continue
        except Exception as e:
            logger.warning("Could not check execution log for schedule %s: %s", schedule.id, e)

        try:
            execution = await runner.run(schedule, slot=slot)
        except Exception as e:
            logger.exception("Failed to execute schedule %s", schedule.id)
            report.outcomes.append(ScheduleOutcome(schedule_id=schedule.id, status="failed", error=str(e)))
            continue

        report.executed += 1
        document = execution.to_document()
        report.outcomes.append(
            ScheduleOutcome(
                schedule_id=schedule.id,
                status=document["status"],
                execution_id=execution.id,
                content_processed=execution.content_processed,
                error=document.get("error"),
            )
        )

    return report


async def run_invocation(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> InvocationReport:
    """One full invocation with its own HTTP client, closed afterwards."""
    settings = settings or get_settings()
    if session_factory is None:
        from nemory.db.session import async_session_factory

        session_factory = async_session_factory

    async with create_http_client() as client:
        runner = build_runner(client, session_factory, settings)
        return await run_due_schedules(session_factory, runner, runner.recorder, now=now)
