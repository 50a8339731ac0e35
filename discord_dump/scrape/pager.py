"""Cursor-based message paging.

Messages are fetched newest first. The first call for a channel has no
cursor; each following call asks for messages strictly older than the oldest
message already fetched. A page shorter than the page size ends the channel.
"""

from __future__ import annotations

from typing import Any

from discord_dump.scrape.client import DiscordClient
from discord_dump.scrape.errors import ErrorKind, ScrapeError
from discord_dump.scrape.logger import logger


PAGE_SIZE = 100


def oldest_message_id(page: list[dict[str, Any]]) -> int:
    """Return the ID of the oldest message in a page."""
    # Discord returns newest-first, so this is normally the last item
    return min(int(m["id"]) for m in page)


class MessagePager:
    """Fetches one bounded page of messages at a time. Never retries."""

    def __init__(self, client: DiscordClient, page_size: int = PAGE_SIZE) -> None:
        if not 1 <= page_size <= 100:
            raise ValueError(f"page_size must be between 1 and 100, got {page_size}")
        self.client = client
        self.page_size = page_size

    async def fetch_page(
        self, channel_id: int, before: int | None = None
    ) -> list[dict[str, Any]]:
        """Fetch the newest page, or the page strictly older than ``before``.

        Raises:
            ScrapeError: The request failed, or the page contains a message
                that is not older than ``before``.
        """
        logger.debug(f"Fetching message page {channel_id}/{before}")
        page = await self.client.get_messages(
            channel_id=channel_id,
            limit=self.page_size,
            before=before,
        )

        if before is not None and page and max(int(m["id"]) for m in page) >= before:
            raise ScrapeError(
                ErrorKind.TRANSPORT,
                f"Page for channel {channel_id} is not older than cursor {before}",
            )
        return page

    def is_last_page(self, page: list[dict[str, Any]]) -> bool:
        """A short or empty page means the history is exhausted."""
        return len(page) < self.page_size
