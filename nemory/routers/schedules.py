"""Manual schedule execution."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nemory.db.session import get_db
from nemory.models.schedule import Schedule
from nemory.schemas.execution import ManualExecuteRequest, ManualExecuteResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/schedules", tags=["schedules"])


@router.post("/{schedule_id}/execute", response_model=ManualExecuteResponse)
async def execute_schedule(
    schedule_id: str,
    body: ManualExecuteRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Run one schedule now, on behalf of its owner.

    ``user_id`` is taken as already authenticated: the caller (the dashboard
    backend) must have verified the identity upstream. This route only checks
    that the schedule belongs to that user.
    """
    result = await db.execute(select(Schedule).where(Schedule.id == schedule_id))
    schedule = result.scalar_one_or_none()
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    if schedule.user_id != body.user_id:
        raise HTTPException(status_code=403, detail="Unauthorized")

    cache = request.app.state.manual_requests
    key = f"{body.user_id}:{schedule_id}"
    if not cache.check_and_mark(key):
        raise HTTPException(status_code=429, detail="This schedule was just executed; try again shortly")

    try:
        execution = await request.app.state.execute_one(schedule)
    except Exception:
        # The run never happened; let the user retry straight away
        cache.forget(key)
        logger.exception("Manual execution of schedule %s failed", schedule_id)
        raise
    return ManualExecuteResponse(execution=execution.to_document())
