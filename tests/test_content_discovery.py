from datetime import UTC, datetime

import pytest

from helpers import FakeProvider, make_document, no_sleep, paragraph
from nemory.services.content_discovery import ContentContext, ContentDiscovery, edited_within
from nemory.services.notion_provider import WorkspaceAuthError, WorkspaceUnavailableError

NOW = datetime(2026, 10, 19, 9, tzinfo=UTC)


def discovery(provider, **kwargs):
    kwargs.setdefault("sleep", no_sleep)
    return ContentDiscovery(provider, clock=lambda: NOW, **kwargs)


async def test_recent_pages_use_configured_window():
    provider = FakeProvider(pages=[make_document("a", "A", 1, NOW), make_document("old", "Old", 40, NOW)])

    result = await discovery(provider).discover(14)

    assert [d.id for d in result.documents] == ["a"]
    assert result.window_days == 14
    assert result.context is ContentContext.NORMAL
    assert result.attempts == []


async def test_widens_to_thirty_days():
    provider = FakeProvider(pages=[make_document("b", "B", 20, NOW), make_document("old", "Old", 45, NOW)])

    result = await discovery(provider).discover(7)

    assert [d.id for d in result.documents] == ["b"]
    assert result.window_days == 30
    assert result.context is ContentContext.EXTENDED_WINDOW
    assert result.attempts == ["window_7d"]


async def test_falls_back_to_most_recent_pages():
    pages = [make_document(str(i), f"P{i}", 60 + i, NOW) for i in range(8)]
    provider = FakeProvider(pages=pages)

    result = await discovery(provider).discover(14)

    assert [d.id for d in result.documents] == ["0", "1", "2", "3", "4"]
    assert result.window_days is None
    assert result.context is ContentContext.MOST_RECENT_FALLBACK


async def test_long_window_skips_the_thirty_day_step():
    provider = FakeProvider(pages=[make_document("old", "Old", 90, NOW)])

    result = await discovery(provider).discover(60)

    assert result.attempts == ["window_60d"]
    assert result.context is ContentContext.MOST_RECENT_FALLBACK


async def test_empty_workspace_is_no_content():
    result = await discovery(FakeProvider()).discover(14)

    assert result.is_empty
    assert result.context is ContentContext.NO_CONTENT


async def test_candidates_bounded_by_page_size():
    provider = FakeProvider(pages=[make_document(str(i), "P", 1, NOW) for i in range(80)])

    result = await discovery(provider, page_size=50).discover(14)

    assert provider.search_calls == [50]
    assert len(result.documents) <= 50
    assert result.pages_seen == 50


async def test_search_errors_propagate():
    provider = FakeProvider(search_error=WorkspaceAuthError("revoked"))
    with pytest.raises(WorkspaceAuthError):
        await discovery(provider).discover(14)


def test_created_time_counts_as_recent():
    doc = make_document("a", "A", 100, NOW)
    doc.created_time = datetime(2026, 10, 18, tzinfo=UTC)
    assert edited_within(doc, datetime(2026, 10, 10, tzinfo=UTC), NOW)


class TestLoadDocuments:
    async def test_pauses_between_pages_and_caps_count(self):
        pauses = []

        async def record_sleep(seconds):
            pauses.append(seconds)

        docs = [make_document(str(i), "P", 1, NOW) for i in range(12)]
        provider = FakeProvider(blocks={"0": [paragraph("hello")]})

        loaded = await discovery(provider, sleep=record_sleep, max_documents=10).load_documents(docs)

        assert len(loaded) == 10
        assert provider.fetched == [str(i) for i in range(10)]
        assert pauses == [0.35] * 9
        assert loaded[0].blocks[0]["type"] == "paragraph"

    async def test_unavailable_page_keeps_empty_body(self):
        docs = [make_document("a", "A", 1, NOW), make_document("b", "B", 1, NOW)]
        provider = FakeProvider(
            blocks={"b": [paragraph("ok")]},
            block_errors={"a": WorkspaceUnavailableError("HTTP 502")},
        )

        loaded = await discovery(provider).load_documents(docs)

        assert [d.blocks for d in loaded] == [[], [paragraph("ok")]]

    async def test_auth_error_propagates(self):
        provider = FakeProvider(block_errors={"a": WorkspaceAuthError("revoked")})
        with pytest.raises(WorkspaceAuthError):
            await discovery(provider).load_documents([make_document("a", "A", 1, NOW)])
