"""SQLAlchemy models for schedules, Notion integrations and execution logs."""

from .base import Base
from .integration import NotionIntegration
from .schedule import Schedule
from .execution import ScheduleExecution

__all__ = [
    "Base",
    "NotionIntegration",
    "Schedule",
    "ScheduleExecution",
]
