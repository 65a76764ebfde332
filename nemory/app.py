"""FastAPI application factory for the trigger endpoints."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from nemory.config import get_settings
from nemory.routers import cron, schedules
from nemory.services.request_cache import RecentRequestCache
from nemory.utils import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # Auto-create tables for SQLite (dev mode); PostgreSQL uses Alembic
    from nemory.db.session import engine
    from nemory.models import Base

    settings = get_settings()
    if settings.database_url.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()


async def _invoke():
    from nemory.scheduler_tasks import run_invocation

    return await run_invocation()


async def _execute_one(schedule):
    """Manual run of a single schedule with its own HTTP client."""
    from nemory.db.session import async_session_factory
    from nemory.http_client import create_http_client
    from nemory.services.schedule_runner import build_runner

    async with create_http_client() as client:
        runner = build_runner(client, async_session_factory)
        return await runner.run(schedule, manual=True)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.debug)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.manual_requests = RecentRequestCache(settings.manual_run_cooldown_seconds)
    app.state.invoke = _invoke
    app.state.execute_one = _execute_one

    # --- Routers ---
    app.include_router(cron.router)
    app.include_router(schedules.router)

    return app


app = create_app()
