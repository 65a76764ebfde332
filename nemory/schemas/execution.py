"""Execution and invocation response schemas."""

from datetime import datetime

from pydantic import BaseModel


class DeliveryResultOut(BaseModel):
    status: str
    timestamp: datetime
    error: str | None = None
    message_id: int | None = None


class ExecutionOut(BaseModel):
    id: str
    schedule_id: str
    status: str
    executed_at: datetime
    content_processed: int
    delivery_results: dict[str, DeliveryResultOut] = {}
    error: str | None = None
    is_manual: bool = False


class ScheduleOutcomeOut(BaseModel):
    schedule_id: str
    status: str
    execution_id: str | None = None
    content_processed: int = 0
    error: str | None = None


class InvocationReportOut(BaseModel):
    success: bool = True
    timestamp: datetime
    total_schedules: int
    due_schedules: int
    executed: int
    skipped: int
    executions: list[ScheduleOutcomeOut]


class ManualExecuteRequest(BaseModel):
    user_id: str


class ManualExecuteResponse(BaseModel):
    success: bool = True
    execution: ExecutionOut
