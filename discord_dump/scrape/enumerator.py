"""Channel and thread discovery.

Turns the guild's channel listings into work items. Only text channels and
public/private threads are eligible; everything else is logged and dropped
here, so it never reaches the work list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from discord_dump.scrape.channel_types import (
    ChannelKind,
    channel_kind,
    channel_type_name,
)
from discord_dump.scrape.client import DiscordClient
from discord_dump.scrape.errors import ScrapeError
from discord_dump.scrape.logger import logger
from discord_dump.utils.snowflake import parse_optional_snowflake, parse_snowflake


@dataclass(frozen=True)
class WorkItem:
    """A channel or thread awaiting message extraction."""

    id: int
    kind: ChannelKind
    type: int
    parent_id: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_channel(cls, data: dict[str, Any]) -> "WorkItem":
        """Build a work item from a raw channel object."""
        return cls(
            id=parse_snowflake(data["id"]),
            kind=channel_kind(data["type"]),
            type=data["type"],
            parent_id=parse_optional_snowflake(data.get("parent_id")),
            raw=data,
        )

    @property
    def name(self) -> str:
        return self.raw.get("name") or f"Channel {self.id}"

    @property
    def type_name(self) -> str:
        return channel_type_name(self.type)


ThreadPageFetcher = Callable[..., Awaitable[dict[str, Any]]]


class ChannelEnumerator:
    """Discovers the channels and threads of a guild."""

    def __init__(self, client: DiscordClient) -> None:
        self.client = client

    async def list_top_level_channels(self, guild_id: int) -> list[WorkItem]:
        """List the guild's eligible top-level channels."""
        channels = await self.client.get_guild_channels(guild_id)
        return self._eligible(channels)

    async def list_active_threads(self, guild_id: int) -> list[WorkItem]:
        """List the guild's eligible active threads."""
        result = await self.client.get_active_threads(guild_id)
        return self._eligible(result.get("threads", []))

    async def list_archived_threads(self, channel_id: int) -> list[WorkItem]:
        """List public and private archived threads of a text channel.

        The two sets are listed independently. Listing private threads needs
        MANAGE_THREADS, so a set that fails is logged and whatever was listed
        is still returned, including pages fetched before the failure.

        Raises:
            ScrapeError: Neither set could be listed.
        """
        fetchers = {
            "public": self.client.get_public_archived_threads,
            "private": self.client.get_private_archived_threads,
        }
        threads: list[dict[str, Any]] = []
        errors: list[ScrapeError] = []
        for visibility, fetch in fetchers.items():
            try:
                await self._fetch_archived(fetch, channel_id, threads)
            except ScrapeError as e:
                logger.warning(
                    f"Cannot list {visibility} archived threads of {channel_id}: {e}"
                )
                errors.append(e)

        if len(errors) == len(fetchers):
            raise errors[0]
        return self._eligible(threads)

    async def get_work_item(self, channel_id: int) -> WorkItem:
        """Fetch a single channel by ID."""
        return WorkItem.from_channel(await self.client.get_channel(channel_id))

    async def _fetch_archived(
        self, fetch: ThreadPageFetcher, channel_id: int, into: list[dict[str, Any]]
    ) -> None:
        """Follow ``has_more`` pagination for one archived thread set."""
        before: str | None = None
        while True:
            result = await fetch(channel_id, before=before)
            page = result.get("threads", [])
            into.extend(page)
            if not result.get("has_more", False) or not page:
                return
            before = page[-1]["thread_metadata"]["archive_timestamp"]

    def _eligible(self, channels: list[dict[str, Any]]) -> list[WorkItem]:
        items = []
        for data in channels:
            item = WorkItem.from_channel(data)
            if not item.kind.eligible:
                logger.channel_skip(item.id, f"bad type {item.type_name}")
                continue
            items.append(item)
        return items
