"""Schedule runner: discover → extract → summarize → deliver → record, per schedule.

Any stage failure short-circuits to recording a failed execution; nothing
escapes :meth:`ScheduleRunner.run`, so one broken schedule never stops the
rest of an invocation.
"""

import logging
from collections.abc import Callable
from datetime import datetime

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nemory.config import Settings, get_settings
from nemory.models.schedule import Schedule
from nemory.services.content_discovery import ContentContext, ContentDiscovery, DiscoveryResult
from nemory.services.content_extractor import ExtractedContent, extract_documents
from nemory.services.credentials import CredentialStore
from nemory.services.execution_recorder import (
    UNSET,
    DeliveryResult,
    DeliveryStatus,
    ExecutionRecord,
    ExecutionRecorder,
    ExecutionStatus,
)
from nemory.services.formatter import format_summary_message
from nemory.services.notion_provider import NotionProvider, WorkspaceDocument
from nemory.services.run_state import RunStage, RunStateMachine
from nemory.services.summary_service import SummaryEngine, SummaryGenerationError, SummaryOptions
from nemory.services.telegram_service import DeliveryConfigError, TelegramDeliverer
from nemory.utils import now_utc

logger = logging.getLogger(__name__)

NO_CONTENT_LABEL = "**📭 No recent content**"
MANUAL_LABEL = "**📝 Manual Execution Summary**"


def build_title_digest(documents: list[WorkspaceDocument]) -> str:
    """Non-AI fallback: list the titles of the pages that would have been summarized."""
    lines = ["**Recently edited pages** (AI summary unavailable)", ""]
    lines.extend(f"• {document.title or 'Untitled'}" for document in documents)
    return "\n".join(lines)


class ScheduleRunner:
    """Runs one schedule end to end and returns its finalized execution record."""

    def __init__(
        self,
        credentials: CredentialStore,
        discovery_factory: Callable[[str], ContentDiscovery],
        summarizer: SummaryEngine,
        deliverer: TelegramDeliverer | None,
        recorder: ExecutionRecorder,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.credentials = credentials
        self.discovery_factory = discovery_factory
        self.summarizer = summarizer
        self.deliverer = deliverer
        self.recorder = recorder
        self.settings = settings or get_settings()
        self._clock = clock

    async def run(self, schedule: Schedule, *, manual: bool = False, slot: str | None = None) -> ExecutionRecord:
        record = ExecutionRecord(
            schedule_id=schedule.id,
            user_id=schedule.user_id,
            executed_at=self._clock(),
            is_manual=manual,
            invocation_slot=slot if slot is not None else UNSET,
        )
        state = RunStateMachine()
        logger.info("Executing schedule %s (%s)%s", schedule.name, schedule.id, " [manual]" if manual else "")

        try:
            state.advance(RunStage.DISCOVERING)
            token = await self.credentials.get_notion_token(schedule.user_id)
            discovery = self.discovery_factory(token)
            found = await discovery.discover(schedule.content_days or self.settings.content_window_days)

            state.advance(RunStage.EXTRACTING)
            documents = await discovery.load_documents(found.documents)
            extracted = extract_documents(documents)
            record.content_processed = extracted.documents_processed
            logger.info(
                "Schedule %s: %d of %d pages, context %s%s%s",
                schedule.id,
                extracted.documents_processed,
                found.pages_seen,
                found.context.value,
                f" after {', '.join(found.attempts)} came up empty" if found.attempts else "",
                " (content truncated)" if extracted.truncated else "",
            )

            state.advance(RunStage.SUMMARIZING)
            summary = await self._summarize(schedule, found, documents, extracted, manual)

            state.advance(RunStage.DELIVERING)
            message = format_summary_message(summary, record.executed_at)
            await self._deliver(schedule, message, record)

            if record.delivered:
                record.status = ExecutionStatus.SUCCESS
            else:
                record.status = ExecutionStatus.FAILED
                record.error = "No delivery channel succeeded"
        except Exception as e:
            logger.error("Schedule %s failed during %s: %s", schedule.id, state.stage.value, e)
            record.status = ExecutionStatus.FAILED
            record.error = f"{state.stage.value} stage failed: {e}"

        state.advance(RunStage.RECORDING)
        try:
            await self.recorder.record(record)
        except Exception:
            logger.exception("Failed to log execution %s for schedule %s", record.id, schedule.id)

        state.advance(RunStage.SUCCESS if record.status is ExecutionStatus.SUCCESS else RunStage.FAILED)
        logger.debug("Schedule %s stages: %s", schedule.id, " -> ".join(stage.value for stage in state.history))
        return record

    async def _summarize(
        self,
        schedule: Schedule,
        found: DiscoveryResult,
        documents: list[WorkspaceDocument],
        extracted: ExtractedContent,
        manual: bool,
    ) -> str:
        options = SummaryOptions.from_schedule(schedule)
        context = found.context
        if manual and context is ContentContext.NORMAL:
            context = ContentContext.MANUAL

        try:
            summary = await self.summarizer.summarize(extracted.text, options, context, found.window_days)
        except SummaryGenerationError:
            if not (self.settings.summary_title_fallback and documents):
                raise
            logger.warning("All AI backends failed for schedule %s; sending title digest", schedule.id)
            summary = build_title_digest(documents)

        if found.is_empty:
            summary = f"{NO_CONTENT_LABEL}\n\n{summary}"
        if manual:
            summary = (
                f"{MANUAL_LABEL}\n\n{summary}\n\n"
                f"This summary was manually triggered and processed {extracted.documents_processed} recent pages."
            )
        return summary

    async def _deliver(self, schedule: Schedule, message: str, record: ExecutionRecord) -> None:
        """Attempt every enabled channel independently."""
        results = record.delivery_results

        if not schedule.telegram_enabled:
            results["telegram"] = DeliveryResult(DeliveryStatus.SKIPPED, timestamp=self._clock())
        elif not schedule.telegram_chat_id:
            results["telegram"] = DeliveryResult(
                DeliveryStatus.SKIPPED, timestamp=self._clock(), error="No Telegram chat ID configured"
            )
        else:
            try:
                if self.deliverer is None:
                    raise DeliveryConfigError("Telegram bot token not configured")
                ack = await self.deliverer.send_message(schedule.telegram_chat_id, message)
                results["telegram"] = DeliveryResult(
                    DeliveryStatus.SUCCESS, timestamp=self._clock(), message_id=ack.message_id
                )
            except Exception as e:
                logger.error("Telegram delivery failed for schedule %s: %s", schedule.id, e)
                results["telegram"] = DeliveryResult(DeliveryStatus.FAILED, timestamp=self._clock(), error=str(e))

        if schedule.email_enabled and schedule.email_address:
            results["email"] = DeliveryResult(
                DeliveryStatus.PENDING, timestamp=self._clock(), error="Email delivery not yet implemented"
            )
        else:
            results["email"] = DeliveryResult(DeliveryStatus.SKIPPED, timestamp=self._clock())


def build_runner(
    client: httpx.AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
) -> ScheduleRunner:
    """Wire a runner from settings for one invocation's HTTP client."""
    settings = settings or get_settings()

    def discovery_factory(token: str) -> ContentDiscovery:
        provider = NotionProvider(client, token, settings.notion_version)
        return ContentDiscovery(provider, page_size=settings.notion_page_size)

    deliverer: TelegramDeliverer | None = None
    if settings.telegram_bot_token:
        deliverer = TelegramDeliverer(client, settings.telegram_bot_token)
    else:
        logger.warning("TELEGRAM_BOT_TOKEN not set; Telegram deliveries will fail")

    return ScheduleRunner(
        credentials=CredentialStore(session_factory),
        discovery_factory=discovery_factory,
        summarizer=SummaryEngine.from_settings(client, settings),
        deliverer=deliverer,
        recorder=ExecutionRecorder(session_factory),
        settings=settings,
    )
