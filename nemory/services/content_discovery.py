"""Content discovery: pick the Notion pages a run should summarize.

The window widens when it comes up empty (configured window, then 30 days,
then simply the most recently edited pages) so a daily run does not go
silent just because nothing changed yesterday.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from nemory.constants import (
    DEFAULT_CONTENT_WINDOW_DAYS,
    EXTENDED_CONTENT_WINDOW_DAYS,
    MAX_DOCUMENTS_PER_RUN,
    MOST_RECENT_FALLBACK_COUNT,
    NOTION_REQUEST_DELAY,
)
from nemory.fallback import Strategy, first_success
from nemory.services.notion_provider import NotionProvider, WorkspaceDocument, WorkspaceUnavailableError
from nemory.utils import now_utc

logger = logging.getLogger(__name__)


class ContentContext(str, Enum):
    """Why the summarized content looks the way it does; folded into the prompt."""

    NORMAL = "normal"
    EXTENDED_WINDOW = "extended_window"
    MOST_RECENT_FALLBACK = "most_recent_fallback"
    NO_CONTENT = "no_content"
    MANUAL = "manual"


@dataclass
class DiscoveryResult:
    documents: list[WorkspaceDocument]
    window_days: int | None
    context: ContentContext
    pages_seen: int = 0
    attempts: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.documents


def edited_within(document: WorkspaceDocument, start: datetime, end: datetime) -> bool:
    """True when the page was edited or created inside ``[start, end]``."""
    for stamp in (document.last_edited_time, document.created_time):
        if stamp is not None and start <= stamp <= end:
            return True
    return False


class ContentDiscovery:
    """Finds recent pages for one owner and loads their block trees."""

    def __init__(
        self,
        provider: NotionProvider,
        page_size: int = 50,
        max_documents: int = MAX_DOCUMENTS_PER_RUN,
        request_delay: float = NOTION_REQUEST_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.provider = provider
        self.page_size = page_size
        self.max_documents = max_documents
        self.request_delay = request_delay
        self._sleep = sleep
        self._clock = clock

    async def discover(self, window_days: int | None = None) -> DiscoveryResult:
        """Return the candidate pages and the window that produced them.

        Never returns more than ``page_size`` candidates. Credential and
        availability errors from Notion propagate.
        """
        window = window_days or DEFAULT_CONTENT_WINDOW_DAYS
        pages = await self.provider.search_recent_pages(self.page_size)
        now = self._clock()

        if not pages:
            logger.info("Notion workspace returned no pages")
            return DiscoveryResult(documents=[], window_days=None, context=ContentContext.NO_CONTENT)

        def within(days: int):
            context = ContentContext.NORMAL if days == window else ContentContext.EXTENDED_WINDOW

            async def run():
                start = now - timedelta(days=days)
                return [p for p in pages if edited_within(p, start, now)], days, context

            return run

        async def most_recent():
            return pages[:MOST_RECENT_FALLBACK_COUNT], None, ContentContext.MOST_RECENT_FALLBACK

        strategies = [Strategy(f"window_{window}d", within(window))]
        if window < EXTENDED_CONTENT_WINDOW_DAYS:
            strategies.append(Strategy(f"window_{EXTENDED_CONTENT_WINDOW_DAYS}d", within(EXTENDED_CONTENT_WINDOW_DAYS)))
        strategies.append(Strategy("most_recent", most_recent))

        outcome = await first_success(strategies, accept=lambda result: bool(result[0]))
        documents, used_window, context = outcome.value
        documents = documents[: self.page_size]

        logger.info(
            "Discovery picked %d of %d pages via %s",
            len(documents), len(pages), outcome.strategy,
        )
        return DiscoveryResult(
            documents=documents,
            window_days=used_window,
            context=context,
            pages_seen=len(pages),
            attempts=[a.name for a in outcome.attempts],
        )

    async def load_documents(self, documents: list[WorkspaceDocument]) -> list[WorkspaceDocument]:
        """Fetch block trees for up to ``max_documents`` pages, pausing between pages.

        A page Notion fails to serve is kept with an empty body; a rejected
        credential propagates.
        """
        loaded: list[WorkspaceDocument] = []
        for index, document in enumerate(documents[: self.max_documents]):
            if index and self.request_delay:
                await self._sleep(self.request_delay)
            try:
                document.blocks = await self.provider.fetch_block_tree(document.id)
            except WorkspaceUnavailableError as e:
                logger.warning("Failed to get content for page %s: %s", document.id, e)
                document.blocks = []
            loaded.append(document)
        return loaded
