"""Shared fixtures for discord-dump tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from discord_dump.scrape.checkpoint import CheckpointStore, ProgressRecord
from discord_dump.scrape.client import DiscordAPIError

GUILD_ID = 123456789


def make_channel(
    channel_id: int,
    channel_type: int = 0,
    name: str | None = None,
    parent_id: int | None = None,
) -> dict[str, Any]:
    """Build a minimal raw channel dict."""
    data: dict[str, Any] = {
        "id": str(channel_id),
        "type": channel_type,
        "guild_id": str(GUILD_ID),
        "name": name or f"channel-{channel_id}",
    }
    if parent_id is not None:
        data["parent_id"] = str(parent_id)
    return data


def make_messages(count: int, base: int = 1_000_000) -> list[dict[str, Any]]:
    """Build ``count`` messages, newest first, with IDs base+count .. base+1."""
    return [
        {"id": str(base + i), "content": f"message {i}"}
        for i in range(count, 0, -1)
    ]


def is_complete_array(path: Path) -> bool:
    """Check whether a messages file holds a syntactically complete array."""
    try:
        data = json.loads(path.read_bytes())
    except ValueError:
        return False
    return isinstance(data, list)


class FakeDiscordClient:
    """In-memory stand-in for DiscordClient.

    Messages are stored newest first per channel; ``get_messages`` honours
    ``before`` and ``limit`` like the real endpoint.
    """

    def __init__(
        self,
        channels: list[dict[str, Any]] | None = None,
        active_threads: list[dict[str, Any]] | None = None,
        public_archived: dict[int, list[dict[str, Any]]] | None = None,
        private_archived: dict[int, list[dict[str, Any]]] | None = None,
        messages: dict[int, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.channels = channels or []
        self.active_threads = active_threads or []
        self.public_archived = public_archived or {}
        self.private_archived = private_archived or {}
        self.messages = messages or {}
        self.public_archived_errors: dict[int, Exception] = {}
        self.private_archived_errors: dict[int, Exception] = {}
        # (channel_id, call number starting at 1) -> error to raise
        self.message_errors: dict[tuple[int, int], Exception] = {}
        self.message_calls: list[tuple[int, int | None]] = []
        self.channel_lookups: list[int] = []

    async def get_guild(self, guild_id: int) -> dict[str, Any]:
        return {"id": str(guild_id), "name": "Test Guild"}

    async def get_guild_channels(self, guild_id: int) -> list[dict[str, Any]]:
        return list(self.channels)

    async def get_active_threads(self, guild_id: int) -> dict[str, Any]:
        return {"threads": list(self.active_threads)}

    async def get_public_archived_threads(
        self, channel_id: int, before: str | None = None, limit: int = 100
    ) -> dict[str, Any]:
        if channel_id in self.public_archived_errors:
            raise self.public_archived_errors[channel_id]
        return {"threads": list(self.public_archived.get(channel_id, [])), "has_more": False}

    async def get_private_archived_threads(
        self, channel_id: int, before: str | None = None, limit: int = 100
    ) -> dict[str, Any]:
        if channel_id in self.private_archived_errors:
            raise self.private_archived_errors[channel_id]
        return {"threads": list(self.private_archived.get(channel_id, [])), "has_more": False}

    async def get_channel(self, channel_id: int) -> dict[str, Any]:
        self.channel_lookups.append(channel_id)
        everything = self.channels + self.active_threads
        for threads in (*self.public_archived.values(), *self.private_archived.values()):
            everything += threads
        for data in everything:
            if int(data["id"]) == channel_id:
                return data
        raise DiscordAPIError(404, "Unknown Channel")

    async def get_messages(
        self, channel_id: int, limit: int = 100, before: int | None = None
    ) -> list[dict[str, Any]]:
        self.message_calls.append((channel_id, before))
        call_number = sum(1 for c, _ in self.message_calls if c == channel_id)
        error = self.message_errors.pop((channel_id, call_number), None)
        if error is not None:
            raise error

        history = self.messages.get(channel_id, [])
        if before is not None:
            history = [m for m in history if int(m["id"]) < before]
        return history[:limit]

    def fetched_channels(self) -> list[int]:
        """Channel IDs in the order their first page was requested."""
        order: list[int] = []
        for channel_id, _ in self.message_calls:
            if channel_id not in order:
                order.append(channel_id)
        return order


class CrashAfterSave(Exception):
    """Simulated process death."""


class CrashingStore(CheckpointStore):
    """Checkpoint store that dies after (or instead of) a chosen save."""

    def __init__(
        self,
        path: Any,
        crash_after: int | None = None,
        crash_before: Any = None,
    ) -> None:
        super().__init__(path)
        self.crash_after = crash_after
        self.crash_before = crash_before
        self.saves = 0

    def save(self, record: ProgressRecord) -> None:
        if self.crash_before is not None and self.crash_before(record):
            raise CrashAfterSave("died before saving")
        super().save(record)
        self.saves += 1
        if self.crash_after is not None and self.saves == self.crash_after:
            raise CrashAfterSave(f"died after save {self.saves}")


@pytest.fixture
def guild_id() -> int:
    """Sample guild ID."""
    return GUILD_ID
