"""ARQ worker: the periodic invoker for scheduled summaries."""

import logging

from arq import cron
from arq.connections import RedisSettings

from nemory.config import get_settings
from nemory.constants import ARQ_JOB_TIMEOUT, ARQ_MAX_JOBS, DAILY_INVOCATION_HOUR
from nemory.utils import setup_logging

logger = logging.getLogger(__name__)


async def daily_invocation(ctx: dict) -> dict:
    """Cron job: once a day, run every schedule due today."""
    from nemory.scheduler_tasks import run_invocation

    report = await run_invocation()
    logger.info(
        "Invocation complete: %d due, %d executed, %d skipped",
        report.due_schedules,
        report.executed,
        report.skipped,
    )
    return {"due": report.due_schedules, "executed": report.executed, "skipped": report.skipped}


async def startup(ctx: dict) -> None:
    setup_logging(get_settings().debug)


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [daily_invocation]
    cron_jobs = [cron(daily_invocation, hour=DAILY_INVOCATION_HOUR, minute=0)]
    on_startup = startup

    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)

    max_jobs = ARQ_MAX_JOBS
    job_timeout = ARQ_JOB_TIMEOUT
