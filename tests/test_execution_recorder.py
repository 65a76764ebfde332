from datetime import UTC, datetime

import pytest
from sqlalchemy import select

from nemory.models.execution import ScheduleExecution
from nemory.services.execution_recorder import (
    UNSET,
    DeliveryResult,
    DeliveryStatus,
    ExecutionRecord,
    ExecutionRecorder,
    ExecutionStatus,
    RecordingError,
    scrub,
)

STAMP = datetime(2026, 10, 19, 9, tzinfo=UTC)


def test_scrub_drops_unset_at_every_depth():
    value = {"a": UNSET, "b": None, "c": {"d": UNSET, "e": [1, UNSET, {"f": UNSET}]}, "g": []}
    assert scrub(value) == {"b": None, "c": {"e": [1, {}]}, "g": []}


def test_scrub_is_idempotent():
    value = {"a": UNSET, "b": {"c": UNSET, "d": 0}}
    assert scrub(scrub(value)) == scrub(value)


def test_unset_is_falsy_singleton():
    assert not UNSET
    assert type(UNSET)() is UNSET


def test_document_omits_fields_never_computed():
    record = ExecutionRecord(schedule_id="s1", user_id="u1", executed_at=STAMP, status=ExecutionStatus.SUCCESS)
    record.delivery_results["telegram"] = DeliveryResult(DeliveryStatus.SUCCESS, timestamp=STAMP, message_id=7)
    record.delivery_results["email"] = DeliveryResult(DeliveryStatus.SKIPPED, timestamp=STAMP)

    document = record.to_document()

    assert "error" not in document
    assert "invocation_slot" not in document
    assert document["status"] == "success"
    assert document["delivery_results"] == {
        "telegram": {"status": "success", "timestamp": STAMP.isoformat(), "message_id": 7},
        "email": {"status": "skipped", "timestamp": STAMP.isoformat()},
    }
    assert record.delivered


def test_explicit_none_error_survives():
    record = ExecutionRecord(schedule_id="s1", user_id="u1", status=ExecutionStatus.FAILED, error=None)
    assert record.to_document()["error"] is None


def test_record_ids_are_unique():
    assert ExecutionRecord("s", "u").id != ExecutionRecord("s", "u").id


async def test_refuses_running_records(session_factory):
    with pytest.raises(RecordingError):
        await ExecutionRecorder(session_factory).record(ExecutionRecord(schedule_id="s1", user_id="u1"))


async def test_record_persists_row(session_factory):
    record = ExecutionRecord(
        schedule_id="s1",
        user_id="u1",
        executed_at=STAMP,
        status=ExecutionStatus.FAILED,
        content_processed=3,
        error="discovering stage failed: boom",
        invocation_slot="2026-10-19",
    )
    record.delivery_results["telegram"] = DeliveryResult(DeliveryStatus.FAILED, timestamp=STAMP, error="nope")

    await ExecutionRecorder(session_factory).record(record)

    async with session_factory() as db:
        row = (await db.execute(select(ScheduleExecution))).scalar_one()
    assert row.id == record.id
    assert row.status == "failed"
    assert row.content_processed == 3
    assert row.error == "discovering stage failed: boom"
    assert row.invocation_slot == "2026-10-19"
    assert row.delivery_results["telegram"] == {"status": "failed", "timestamp": STAMP.isoformat(), "error": "nope"}
    assert row.is_manual is False


async def test_manual_record_has_no_slot(session_factory):
    record = ExecutionRecord(schedule_id="s1", user_id="u1", status=ExecutionStatus.SUCCESS, is_manual=True)
    await ExecutionRecorder(session_factory).record(record)

    async with session_factory() as db:
        row = (await db.execute(select(ScheduleExecution))).scalar_one()
    assert row.is_manual is True
    assert row.invocation_slot is None
    assert row.error is None


async def test_already_processed_only_counts_success(session_factory):
    recorder = ExecutionRecorder(session_factory)
    await recorder.record(
        ExecutionRecord("s1", "u1", status=ExecutionStatus.FAILED, error="x", invocation_slot="2026-10-19")
    )
    assert not await recorder.already_processed("s1", "2026-10-19")

    await recorder.record(ExecutionRecord("s1", "u1", status=ExecutionStatus.SUCCESS, invocation_slot="2026-10-19"))
    assert await recorder.already_processed("s1", "2026-10-19")
    assert not await recorder.already_processed("s1", "2026-10-20")
    assert not await recorder.already_processed("s2", "2026-10-19")
