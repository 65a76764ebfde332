"""Test doubles for the pipeline's collaborators."""

from datetime import datetime, timedelta

from nemory.models.schedule import Schedule
from nemory.services.notion_provider import WorkspaceDocument
from nemory.services.telegram_service import TelegramAck
from nemory.utils import now_utc


def make_schedule(**overrides) -> Schedule:
    values = dict(
        id="sched_1",
        user_id="user_1",
        name="Morning digest",
        is_active=True,
        frequency="daily",
        days_of_week=None,
        day_of_month=None,
        time="09:00",
        timezone="UTC",
        summary_style="executive",
        summary_length="medium",
        focus_areas=["tasks", "decisions"],
        content_days=None,
        include_action_items=True,
        include_priority=False,
        telegram_enabled=True,
        telegram_chat_id="123456789",
        email_enabled=False,
        email_address=None,
    )
    values.update(overrides)
    return Schedule(**values)


def make_document(page_id: str, title: str, age_days: float, now: datetime | None = None) -> WorkspaceDocument:
    stamp = (now or now_utc()) - timedelta(days=age_days)
    return WorkspaceDocument(
        id=page_id,
        title=title,
        last_edited_time=stamp,
        created_time=stamp - timedelta(days=1),
    )


def paragraph(text: str, **extra) -> dict:
    return {"type": "paragraph", "paragraph": {"rich_text": [{"plain_text": text}]}, **extra}


class FakeProvider:
    """Stands in for NotionProvider."""

    def __init__(self, pages=None, blocks=None, search_error=None, block_errors=None):
        self.pages = list(pages or [])
        self.blocks = blocks or {}
        self.search_error = search_error
        self.block_errors = block_errors or {}
        self.search_calls: list[int] = []
        self.fetched: list[str] = []

    async def search_recent_pages(self, page_size):
        self.search_calls.append(page_size)
        if self.search_error:
            raise self.search_error
        return self.pages[:page_size]

    async def fetch_block_tree(self, block_id, depth=0):
        self.fetched.append(block_id)
        if block_id in self.block_errors:
            raise self.block_errors[block_id]
        return list(self.blocks.get(block_id, []))


class FakeSummarizer:
    def __init__(self, text="**Highlights**\n• Shipped the beta", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def summarize(self, content, options, context, window_days=None):
        self.calls.append({"content": content, "options": options, "context": context, "window_days": window_days})
        if self.error:
            raise self.error
        return self.text


class FakeDeliverer:
    def __init__(self, error=None):
        self.error = error
        self.sent: list[tuple[str, str]] = []

    async def send_message(self, chat_id, text):
        if self.error:
            raise self.error
        self.sent.append((chat_id, text))
        return TelegramAck(chat_id=chat_id, message_id=len(self.sent))


class FakeCredentials:
    def __init__(self, token="secret_token", error=None):
        self.token = token
        self.error = error

    async def get_notion_token(self, user_id):
        if self.error:
            raise self.error
        return self.token


class FakeRecorder:
    def __init__(self, error=None):
        self.error = error
        self.records = []

    async def record(self, record):
        if self.error:
            raise self.error
        self.records.append(record)

    async def already_processed(self, schedule_id, slot):
        return False


async def no_sleep(seconds):
    return None
