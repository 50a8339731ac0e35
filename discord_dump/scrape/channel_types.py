"""Discord channel type constants and the scraper's eligibility rules."""

from __future__ import annotations

from enum import Enum


CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_DM = 1
CHANNEL_TYPE_VOICE = 2
CHANNEL_TYPE_GROUP_DM = 3
CHANNEL_TYPE_CATEGORY = 4
CHANNEL_TYPE_ANNOUNCEMENT = 5
CHANNEL_TYPE_ANNOUNCEMENT_THREAD = 10
CHANNEL_TYPE_PUBLIC_THREAD = 11
CHANNEL_TYPE_PRIVATE_THREAD = 12
CHANNEL_TYPE_STAGE = 13
CHANNEL_TYPE_DIRECTORY = 14
CHANNEL_TYPE_FORUM = 15
CHANNEL_TYPE_MEDIA = 16


class ChannelKind(str, Enum):
    """What the scraper does with a channel."""

    TEXT = "text"
    PUBLIC_THREAD = "public_thread"
    PRIVATE_THREAD = "private_thread"
    OTHER = "other"

    @property
    def eligible(self) -> bool:
        """Whether messages are extracted from channels of this kind."""
        return self is not ChannelKind.OTHER


_KINDS = {
    CHANNEL_TYPE_TEXT: ChannelKind.TEXT,
    CHANNEL_TYPE_PUBLIC_THREAD: ChannelKind.PUBLIC_THREAD,
    CHANNEL_TYPE_PRIVATE_THREAD: ChannelKind.PRIVATE_THREAD,
}


def channel_kind(channel_type: int) -> ChannelKind:
    """Classify a raw Discord channel type."""
    return _KINDS.get(channel_type, ChannelKind.OTHER)


def channel_type_name(channel_type: int) -> str:
    """Get human-readable channel type name."""
    names = {
        CHANNEL_TYPE_TEXT: "text",
        CHANNEL_TYPE_DM: "dm",
        CHANNEL_TYPE_VOICE: "voice",
        CHANNEL_TYPE_GROUP_DM: "group_dm",
        CHANNEL_TYPE_CATEGORY: "category",
        CHANNEL_TYPE_ANNOUNCEMENT: "announcement",
        CHANNEL_TYPE_ANNOUNCEMENT_THREAD: "announcement_thread",
        CHANNEL_TYPE_PUBLIC_THREAD: "public_thread",
        CHANNEL_TYPE_PRIVATE_THREAD: "private_thread",
        CHANNEL_TYPE_STAGE: "stage",
        CHANNEL_TYPE_DIRECTORY: "directory",
        CHANNEL_TYPE_FORUM: "forum",
        CHANNEL_TYPE_MEDIA: "media",
    }
    return names.get(channel_type, f"unknown({channel_type})")
