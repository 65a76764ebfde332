"""CLI for Nemory using Typer."""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

# Load .env from project directory only
_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(_env_path, override=False)

from nemory.config import get_settings, show_settings  # noqa: E402
from nemory.utils import now_utc, setup_logging  # noqa: E402

# CLI styles
STYLE_HEADER = "bold blue"
STYLE_SUCCESS = "bold green"
STYLE_WARNING = "bold yellow"
STYLE_ERROR = "bold red"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="nemory",
    help="Nemory - scheduled Notion summaries delivered to Telegram.",
    add_completion=False,
)
console = Console()

VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")]


def _status_style(status: str) -> str:
    return {"success": STYLE_SUCCESS, "skipped": STYLE_WARNING}.get(status, STYLE_ERROR)


@app.command()
def run(verbose: VerboseOption = False):
    """
    Run one invocation now.

    Executes every active schedule that is due today, exactly as the
    daily cron job would, and prints a per-schedule outcome table.
    """
    setup_logging(verbose)
    from nemory.scheduler_tasks import run_invocation

    console.print(f"[{STYLE_HEADER}]Running scheduled summaries...[/{STYLE_HEADER}]")
    report = asyncio.run(run_invocation())

    table = Table(title=f"Invocation {report.timestamp:%Y-%m-%d %H:%M} UTC")
    table.add_column("Schedule")
    table.add_column("Status")
    table.add_column("Pages", justify="right")
    table.add_column("Error")
    for outcome in report.outcomes:
        style = _status_style(outcome.status)
        table.add_row(
            outcome.schedule_id,
            f"[{style}]{outcome.status}[/{style}]",
            str(outcome.content_processed),
            outcome.error or "",
        )
    console.print(table)
    console.print(
        f"{report.total_schedules} active, {report.due_schedules} due, "
        f"{report.executed} executed, {report.skipped} skipped"
    )


@app.command()
def due(
    on: Annotated[Optional[str], typer.Option(help="Date to check (YYYY-MM-DD), default today")] = None,
    verbose: VerboseOption = False,
):
    """List the active schedules that would run on a given day, without running them."""
    setup_logging(verbose)
    from nemory.scheduler_tasks import select_due_schedules

    try:
        day = date.fromisoformat(on) if on else now_utc().date()
    except ValueError:
        console.print(f"[{STYLE_ERROR}]Invalid date: {on}[/{STYLE_ERROR}]")
        raise typer.Exit(1)

    async def _load():
        from sqlalchemy import select

        from nemory.db.session import async_session_factory
        from nemory.models.schedule import Schedule

        async with async_session_factory() as db:
            result = await db.execute(select(Schedule).where(Schedule.is_active == True))  # noqa: E712
            return list(result.scalars().all())

    schedules = select_due_schedules(asyncio.run(_load()), day)
    if not schedules:
        console.print(f"[{STYLE_WARNING}]No schedules due on {day.isoformat()}.[/{STYLE_WARNING}]")
        return

    table = Table(title=f"Due on {day:%A %Y-%m-%d}")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Frequency")
    table.add_column("Owner")
    for schedule in schedules:
        table.add_row(schedule.id, schedule.name, schedule.frequency, schedule.user_id)
    console.print(table)


@app.command()
def execute(
    schedule_id: Annotated[str, typer.Argument(help="Schedule to run")],
    verbose: VerboseOption = False,
):
    """
    Manually execute a single schedule.

    The run is recorded as manual and is not subject to the once-per-day check.
    """
    setup_logging(verbose)

    async def _execute():
        from sqlalchemy import select

        from nemory.db.session import async_session_factory
        from nemory.http_client import create_http_client
        from nemory.models.schedule import Schedule
        from nemory.services.schedule_runner import build_runner

        async with async_session_factory() as db:
            result = await db.execute(select(Schedule).where(Schedule.id == schedule_id))
            schedule = result.scalar_one_or_none()
        if schedule is None:
            return None

        async with create_http_client() as client:
            runner = build_runner(client, async_session_factory)
            return await runner.run(schedule, manual=True)

    record = asyncio.run(_execute())
    if record is None:
        console.print(f"[{STYLE_ERROR}]Schedule not found: {schedule_id}[/{STYLE_ERROR}]")
        raise typer.Exit(1)

    document = record.to_document()
    style = _status_style(document["status"])
    console.print(f"[{style}]Execution {record.id}: {document['status']}[/{style}]")
    console.print(f"Pages processed: {record.content_processed}")
    for channel, result in document["delivery_results"].items():
        console.print(f"  {channel}: {result['status']}" + (f" ({result['error']})" if result.get("error") else ""))
    if document.get("error"):
        console.print(f"[{STYLE_ERROR}]{document['error']}[/{STYLE_ERROR}]")
        raise typer.Exit(1)


@app.command()
def config():
    """
    Show current configuration.

    Values come from environment variables and the .env file; secrets are masked.
    """
    console.print(show_settings(get_settings()))


if __name__ == "__main__":
    app()
