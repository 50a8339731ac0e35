"""Per-channel output files.

Each channel gets two files in the output directory:

- ``<channel-id>.meta.json``: the channel descriptor, written once.
- ``<channel-id>.messages.json``: a JSON array streamed one page at a time.

The messages file only becomes a valid JSON array when ``close_channel``
writes the closing bracket. A file whose channel was interrupted is missing
exactly that bracket and is resumed by appending, never recreated.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, BinaryIO

from discord_dump.scrape.checkpoint import ChannelCursor
from discord_dump.scrape.enumerator import WorkItem
from discord_dump.scrape.errors import FileConflictError, SerializationError
from discord_dump.scrape.logger import logger


META_SUFFIX = ".meta.json"
MESSAGES_SUFFIX = ".messages.json"

OPEN_ARRAY = b"["
SEPARATOR = b","
CLOSE_ARRAY = b"]"


def encode_record(record: Any) -> bytes:
    """Serialize one record as compact UTF-8 JSON."""
    try:
        return json.dumps(record, ensure_ascii=False, separators=(",", ":")).encode(
            "utf-8"
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize record: {e}") from e


class ChannelOutput:
    """Open handle on one channel's messages file."""

    def __init__(
        self,
        channel_id: int,
        path: Path,
        file: BinaryIO,
        size: int,
        has_records: bool,
    ) -> None:
        self.channel_id = channel_id
        self.path = path
        self.size = size
        self.has_records = has_records
        self.records_written = 0
        self._file = file

    def __enter__(self) -> "ChannelOutput":
        return self

    def __exit__(self, *args: Any) -> None:
        # Leaves the array unterminated unless close_channel ran
        self._file.close()


class OutputWriter:
    """Creates, resumes and terminates per-channel output files."""

    def __init__(self, output_dir: str | Path, fsync: bool = True) -> None:
        self.output_dir = Path(output_dir)
        self.fsync = fsync

    def meta_path(self, channel_id: int) -> Path:
        return self.output_dir / f"{channel_id}{META_SUFFIX}"

    def messages_path(self, channel_id: int) -> Path:
        return self.output_dir / f"{channel_id}{MESSAGES_SUFFIX}"

    def open_for_channel(
        self, channel: WorkItem, resume: ChannelCursor | None = None
    ) -> ChannelOutput:
        """Open a channel's output.

        Without ``resume`` the channel is brand new: the meta file is written
        and the messages file is created holding only ``[``. With ``resume``
        the existing messages file is reopened for appending, cut back to the
        size the checkpoint recorded.

        Raises:
            FileConflictError: A file to create already exists, or a file to
                resume is missing or shorter than recorded.
        """
        if resume is None:
            return self._create(channel)
        return self._reopen(channel, resume)

    def append_page(self, output: ChannelOutput, messages: list[dict[str, Any]]) -> int:
        """Append a page of records and return the new file size.

        The data is flushed to disk before returning, so a checkpoint saved
        afterwards never describes bytes that are not yet durable.
        """
        if not messages:
            return output.size

        chunks = [encode_record(m) for m in messages]
        payload = SEPARATOR.join(chunks)
        if output.has_records:
            payload = SEPARATOR + payload

        output._file.write(payload)
        self._sync(output._file)
        output.size += len(payload)
        output.has_records = True
        output.records_written += len(messages)
        return output.size

    def close_channel(self, output: ChannelOutput) -> None:
        """Terminate the array and close the file."""
        output._file.write(CLOSE_ARRAY)
        self._sync(output._file)
        output.size += len(CLOSE_ARRAY)
        output._file.close()

    def _create(self, channel: WorkItem) -> ChannelOutput:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        meta_path = self.meta_path(channel.id)
        meta = encode_record(channel.raw)
        try:
            with open(meta_path, "xb") as f:
                f.write(meta)
                self._sync(f)
        except FileExistsError as e:
            raise FileConflictError(f"{meta_path} already exists") from e

        path = self.messages_path(channel.id)
        try:
            file = open(path, "xb")
        except FileExistsError as e:
            raise FileConflictError(f"{path} already exists") from e

        file.write(OPEN_ARRAY)
        self._sync(file)
        return ChannelOutput(
            channel_id=channel.id,
            path=path,
            file=file,
            size=len(OPEN_ARRAY),
            has_records=False,
        )

    def _reopen(self, channel: WorkItem, resume: ChannelCursor) -> ChannelOutput:
        path = self.messages_path(channel.id)
        try:
            file = open(path, "r+b")
        except FileNotFoundError as e:
            raise FileConflictError(f"Cannot resume {path}: file is missing") from e

        actual = os.fstat(file.fileno()).st_size
        if actual < resume.output_size:
            file.close()
            raise FileConflictError(
                f"Cannot resume {path}: {actual} bytes on disk, "
                f"checkpoint recorded {resume.output_size}"
            )
        if actual > resume.output_size:
            logger.warning(
                f"Discarding {actual - resume.output_size} unrecorded bytes from {path}"
            )
            file.truncate(resume.output_size)

        file.seek(resume.output_size)
        return ChannelOutput(
            channel_id=channel.id,
            path=path,
            file=file,
            size=resume.output_size,
            has_records=resume.last_seen_message_id is not None,
        )

    def _sync(self, file: BinaryIO) -> None:
        file.flush()
        if self.fsync:
            os.fsync(file.fileno())
