"""Unit tests for discord_dump.scrape.pager."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import make_messages

from discord_dump.scrape.client import DiscordAPIError
from discord_dump.scrape.errors import ErrorKind, ScrapeError
from discord_dump.scrape.pager import PAGE_SIZE, MessagePager, oldest_message_id


def _make_pager(page: list | None = None, page_size: int = PAGE_SIZE) -> MessagePager:
    client = MagicMock()
    client.get_messages = AsyncMock(return_value=page or [])
    return MessagePager(client, page_size=page_size)


class TestMessagePager:
    """Tests for MessagePager."""

    @pytest.mark.asyncio
    async def test_first_page_has_no_cursor(self):
        pager = _make_pager(make_messages(3))

        page = await pager.fetch_page(7)

        assert len(page) == 3
        pager.client.get_messages.assert_awaited_once_with(
            channel_id=7, limit=100, before=None
        )

    @pytest.mark.asyncio
    async def test_passes_cursor(self):
        pager = _make_pager(make_messages(3, base=100))

        await pager.fetch_page(7, before=500)

        pager.client.get_messages.assert_awaited_once_with(
            channel_id=7, limit=100, before=500
        )

    @pytest.mark.asyncio
    async def test_page_not_older_than_cursor_rejected(self):
        pager = _make_pager(make_messages(3, base=100))

        with pytest.raises(ScrapeError) as exc_info:
            await pager.fetch_page(7, before=102)

        assert exc_info.value.kind is ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_errors_propagate_without_retry(self):
        pager = _make_pager()
        pager.client.get_messages.side_effect = DiscordAPIError(403, "Missing Access")

        with pytest.raises(DiscordAPIError):
            await pager.fetch_page(7)

        assert pager.client.get_messages.await_count == 1

    @pytest.mark.asyncio
    async def test_custom_page_size(self):
        pager = _make_pager(page_size=25)

        await pager.fetch_page(7)

        _, kwargs = pager.client.get_messages.call_args
        assert kwargs["limit"] == 25

    @pytest.mark.parametrize("page_size", [0, 101, -1])
    def test_invalid_page_size(self, page_size):
        with pytest.raises(ValueError):
            MessagePager(MagicMock(), page_size=page_size)

    @pytest.mark.parametrize(
        "count, last",
        [(0, True), (1, True), (99, True), (100, False)],
    )
    def test_is_last_page(self, count, last):
        pager = _make_pager()

        assert pager.is_last_page(make_messages(count)) is last


class TestOldestMessageId:
    """Tests for oldest_message_id."""

    def test_newest_first_page(self):
        assert oldest_message_id(make_messages(5, base=100)) == 101

    def test_unordered_page(self):
        page = [{"id": "5"}, {"id": "3"}, {"id": "9"}]

        assert oldest_message_id(page) == 3
