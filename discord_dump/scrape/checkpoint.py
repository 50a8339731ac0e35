"""Durable progress record for resumable scraping.

The checkpoint is the only durable signal of progress. It is rewritten in
full after every side effect it describes, through a temp file that is
fsynced and then atomically renamed over the previous checkpoint.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    model_validator,
)

from discord_dump.scrape.errors import CheckpointMismatchError
from discord_dump.scrape.logger import logger


class ChannelCursor(BaseModel):
    """Where a channel's paging stopped and how much output backs it."""

    model_config = ConfigDict(frozen=True)

    last_seen_message_id: int | None = None
    output_size: int = Field(ge=1)


class ProgressRecord(BaseModel):
    """Snapshot of traversal progress for one guild.

    Records are immutable. Each transition returns a new record, which the
    caller persists with ``CheckpointStore.save``.
    """

    model_config = ConfigDict(frozen=True)

    guild_id: int
    current_channel: int | None = None
    last_seen_message_id: int | None = None
    output_size: int | None = None
    completed_channels: frozenset[int] = frozenset()
    deferred_channels: dict[int, ChannelCursor] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_invariants(self) -> "ProgressRecord":
        if self.current_channel is None:
            if self.last_seen_message_id is not None or self.output_size is not None:
                raise ValueError("cursor set without a current channel")
        else:
            if self.output_size is None:
                raise ValueError("current channel has no output size")
            if self.current_channel in self.completed_channels:
                raise ValueError(f"channel {self.current_channel} is already completed")
            if self.current_channel in self.deferred_channels:
                raise ValueError(f"channel {self.current_channel} is also deferred")
        overlap = self.completed_channels.intersection(self.deferred_channels)
        if overlap:
            raise ValueError(f"channels both completed and deferred: {sorted(overlap)}")
        return self

    @field_serializer("completed_channels")
    def _serialize_completed(self, value: frozenset[int]) -> list[int]:
        return sorted(value)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_completed(self, channel_id: int) -> bool:
        return channel_id in self.completed_channels

    def resume_point(self, channel_id: int) -> ChannelCursor | None:
        """Cursor of a channel that was started but not completed, if any."""
        if channel_id == self.current_channel:
            return ChannelCursor(
                last_seen_message_id=self.last_seen_message_id,
                output_size=self.output_size,
            )
        return self.deferred_channels.get(channel_id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start_channel(self, channel_id: int, output_size: int) -> "ProgressRecord":
        """Make a never-started channel current, with no pages fetched yet."""
        if self.resume_point(channel_id) is not None:
            raise ValueError(f"channel {channel_id} was already started")
        return self._evolve(
            current_channel=channel_id,
            last_seen_message_id=None,
            output_size=output_size,
            deferred_channels=self._deferred_with_current(),
        )

    def resume_channel(self, channel_id: int) -> "ProgressRecord":
        """Make a previously started channel current again."""
        if channel_id == self.current_channel:
            return self
        deferred = self._deferred_with_current()
        try:
            cursor = deferred.pop(channel_id)
        except KeyError:
            raise ValueError(f"channel {channel_id} has no resume point") from None
        return self._evolve(
            current_channel=channel_id,
            last_seen_message_id=cursor.last_seen_message_id,
            output_size=cursor.output_size,
            deferred_channels=deferred,
        )

    def advance(self, last_seen_message_id: int, output_size: int) -> "ProgressRecord":
        """Record a page durably written to the current channel's output."""
        if self.current_channel is None:
            raise ValueError("no channel in progress")
        return self._evolve(
            last_seen_message_id=last_seen_message_id,
            output_size=output_size,
        )

    def complete_current(self) -> "ProgressRecord":
        """Mark the current channel completed and clear the cursor."""
        if self.current_channel is None:
            raise ValueError("no channel in progress")
        return self._evolve(
            current_channel=None,
            last_seen_message_id=None,
            output_size=None,
            completed_channels=self.completed_channels | {self.current_channel},
        )

    def defer_current(self) -> "ProgressRecord":
        """Park the current channel, keeping its cursor for a later run."""
        if self.current_channel is None:
            raise ValueError("no channel in progress")
        return self._evolve(
            current_channel=None,
            last_seen_message_id=None,
            output_size=None,
            deferred_channels=self._deferred_with_current(),
        )

    def _deferred_with_current(self) -> dict[int, ChannelCursor]:
        deferred = dict(self.deferred_channels)
        if self.current_channel is not None:
            deferred[self.current_channel] = ChannelCursor(
                last_seen_message_id=self.last_seen_message_id,
                output_size=self.output_size,
            )
        return deferred

    def _evolve(self, **changes: Any) -> "ProgressRecord":
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)


class CheckpointStore:
    """Loads, saves and deletes the checkpoint file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> ProgressRecord | None:
        """Load the stored record; missing or corrupt means no prior run."""
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            # Invalid UTF-8 is reported as a ValidationError too
            return ProgressRecord.model_validate_json(data)
        except ValidationError as e:
            logger.warning(
                f"Ignoring corrupt checkpoint {self.path} ({e.error_count()} errors)"
            )
            return None

    def load_or_create(self, guild_id: int) -> ProgressRecord:
        """Load the record for ``guild_id`` or start a fresh one.

        Raises:
            CheckpointMismatchError: The checkpoint belongs to another guild.
        """
        record = self.load()
        if record is None:
            return ProgressRecord(guild_id=guild_id)
        if record.guild_id != guild_id:
            raise CheckpointMismatchError(expected=guild_id, found=record.guild_id)
        return record

    def save(self, record: ProgressRecord) -> None:
        """Atomically replace the checkpoint with ``record``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            delete=False,
            dir=str(self.path.parent),
            prefix=f"{self.path.name}.",
            suffix=".tmp",
        ) as tmp:
            tmp_path = Path(tmp.name)
            try:
                tmp.write(record.model_dump_json())
                tmp.flush()
                os.fsync(tmp.fileno())
            except BaseException:
                tmp.close()
                tmp_path.unlink(missing_ok=True)
                raise
        os.replace(tmp_path, self.path)

    def delete(self) -> None:
        """Remove the checkpoint."""
        self.path.unlink(missing_ok=True)
