"""Execution records: build, scrub and persist one outcome row per schedule run.

Fields that were never computed hold the ``UNSET`` sentinel rather than
``None``; they are scrubbed before writing so the stored row only carries
values the run actually produced. ``None`` and empty containers are
intentional values and survive scrubbing.
"""

import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nemory.models.execution import ScheduleExecution
from nemory.utils import now_utc

logger = logging.getLogger(__name__)


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class DeliveryStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"


@dataclass
class DeliveryResult:
    status: DeliveryStatus
    timestamp: datetime = field(default_factory=now_utc)
    error: Any = UNSET
    message_id: Any = UNSET

    def to_document(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "error": self.error,
            "message_id": self.message_id,
        }


@dataclass
class ExecutionRecord:
    schedule_id: str
    user_id: str
    id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex}")
    executed_at: datetime = field(default_factory=now_utc)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    content_processed: int = 0
    delivery_results: dict[str, DeliveryResult] = field(default_factory=dict)
    error: Any = UNSET
    is_manual: bool = False
    invocation_slot: Any = UNSET

    @property
    def delivered(self) -> bool:
        return any(r.status is DeliveryStatus.SUCCESS for r in self.delivery_results.values())

    def to_document(self) -> dict[str, Any]:
        """Scrubbed plain-dict view used for persistence and API responses."""
        document: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "delivery_results":
                value = {channel: result.to_document() for channel, result in value.items()}
            elif isinstance(value, Enum):
                value = value.value
            document[f.name] = value
        return scrub(document)


def scrub(value: Any) -> Any:
    """Recursively drop UNSET entries from dicts and lists. Idempotent."""
    if isinstance(value, dict):
        return {k: scrub(v) for k, v in value.items() if v is not UNSET}
    if isinstance(value, list):
        return [scrub(v) for v in value if v is not UNSET]
    return value


class RecordingError(Exception):
    """The record could not be written or was not finalized."""


class ExecutionRecorder:
    """Appends finalized execution records to ``schedule_executions``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(self, record: ExecutionRecord) -> None:
        """Write *record* once. Refuses records still marked running."""
        if record.status is ExecutionStatus.RUNNING:
            raise RecordingError(f"Refusing to persist unfinished execution {record.id}")

        document = record.to_document()

        row = ScheduleExecution(
            id=document["id"],
            schedule_id=document["schedule_id"],
            user_id=document["user_id"],
            executed_at=document["executed_at"],
            status=document["status"],
            content_processed=document["content_processed"],
            delivery_results=document["delivery_results"],
            is_manual=document["is_manual"],
        )
        # Absent keys leave the column at its default
        if "error" in document:
            row.error = document["error"]
        if "invocation_slot" in document:
            row.invocation_slot = document["invocation_slot"]

        async with self.session_factory() as db:
            db.add(row)
            await db.commit()
        logger.info("Execution %s logged for schedule %s with status %s", record.id, record.schedule_id, record.status.value)

    async def already_processed(self, schedule_id: str, slot: str) -> bool:
        """True when a successful run is already logged for this schedule and slot."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(ScheduleExecution.id)
                .where(
                    ScheduleExecution.schedule_id == schedule_id,
                    ScheduleExecution.invocation_slot == slot,
                    ScheduleExecution.status == ExecutionStatus.SUCCESS.value,
                )
                .limit(1)
            )
            return result.scalar_one_or_none() is not None
