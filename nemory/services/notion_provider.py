"""Notion API provider: lists recently edited pages and fetches their block trees."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

from nemory.config import get_settings
from nemory.constants import (
    NOTION_API_TIMEOUT,
    NOTION_BLOCK_CHILDREN_URL,
    NOTION_CHILDREN_PAGE_SIZE,
    NOTION_MAX_BLOCK_DEPTH,
    NOTION_SEARCH_URL,
)
from nemory.utils import parse_timestamp

logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Base class for Notion workspace failures."""


class WorkspaceAuthError(WorkspaceError):
    """The stored Notion credential was rejected (revoked or expired)."""


class WorkspaceUnavailableError(WorkspaceError):
    """Notion returned a non-auth error or could not be reached."""


@dataclass
class WorkspaceDocument:
    """Transient read-only copy of one Notion page for a single run."""

    id: str
    title: str
    last_edited_time: datetime | None
    created_time: datetime | None
    url: str | None = None
    blocks: list[dict[str, Any]] = field(default_factory=list)


def page_title(page: dict[str, Any]) -> str:
    """Return the plain-text title of a Notion page (the property typed ``title``)."""
    for prop in (page.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return "".join(run.get("plain_text", "") for run in prop.get("title") or [])
    return ""


class NotionProvider:
    """Thin async client over the Notion REST API for one owner's credential."""

    def __init__(self, client: httpx.AsyncClient, access_token: str, notion_version: str | None = None):
        self.client = client
        self.access_token = access_token
        self.notion_version = notion_version or get_settings().notion_version

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Notion-Version": self.notion_version,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self.client.request(
                method, url, headers=self._headers, timeout=NOTION_API_TIMEOUT, **kwargs
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Notion API error: %s - %s", status, e.response.text[:500])
            if status in (401, 403):
                raise WorkspaceAuthError(f"Notion rejected the access token (HTTP {status})") from e
            raise WorkspaceUnavailableError(f"Notion API error: HTTP {status}") from e
        except httpx.HTTPError as e:
            logger.error("Notion connection error: %s", e)
            raise WorkspaceUnavailableError(f"Could not reach Notion: {e}") from e

    async def search_recent_pages(self, page_size: int) -> list[WorkspaceDocument]:
        """List up to *page_size* pages, most recently edited first."""
        payload = {
            "filter": {"property": "object", "value": "page"},
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
            "page_size": page_size,
        }
        data = await self._request("POST", NOTION_SEARCH_URL, json=payload)
        pages = [self._transform_page(page) for page in data.get("results", [])]
        logger.info("Notion search returned %d pages", len(pages))
        return pages[:page_size]

    def _transform_page(self, page: dict[str, Any]) -> WorkspaceDocument:
        return WorkspaceDocument(
            id=page["id"],
            title=page_title(page) or "Untitled",
            last_edited_time=parse_timestamp(page.get("last_edited_time")),
            created_time=parse_timestamp(page.get("created_time")),
            url=page.get("url"),
        )

    async def fetch_children(self, block_id: str) -> list[dict[str, Any]]:
        """Fetch all immediate children of a block, following pagination cursors."""
        children: list[dict[str, Any]] = []
        cursor: str | None = None
        url = NOTION_BLOCK_CHILDREN_URL.format(block_id=block_id)

        while True:
            params: dict[str, Any] = {"page_size": NOTION_CHILDREN_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            data = await self._request("GET", url, params=params)
            children.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                return children
            cursor = data["next_cursor"]

    async def fetch_block_tree(self, block_id: str, depth: int = 0) -> list[dict[str, Any]]:
        """Fetch a block's children, recursing into nested blocks up to the depth limit.

        Nested children are attached under each raw block's ``"children"`` key.
        """
        blocks = await self.fetch_children(block_id)
        if depth + 1 >= NOTION_MAX_BLOCK_DEPTH:
            return blocks

        for block in blocks:
            if block.get("has_children") and block.get("type") != "child_page":
                block["children"] = await self.fetch_block_tree(block["id"], depth + 1)
        return blocks

