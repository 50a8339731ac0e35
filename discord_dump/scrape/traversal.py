"""Resumable guild traversal.

Drives enumeration, paging and output for one guild, checkpointing after
every durable side effect:

1. Load or create the progress record and save it straight away.
2. Build the work list from top-level channels and active threads, with any
   channel the checkpoint shows as started pushed on top.
3. Pop channels one at a time. Text channels get their archived threads
   discovered and pushed. Each channel's output is opened (fresh or by
   append), its pages are written and checkpointed one by one, then the
   array is closed and the channel is marked completed.
4. When the work list is empty and nothing was deferred, delete the
   checkpoint. That is the only success signal.

A page fetch failure ends the channel's paging loop and defers the channel:
its output stays unterminated and its cursor is kept, so the next run
appends to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from discord_dump.scrape.channel_types import ChannelKind
from discord_dump.scrape.checkpoint import CheckpointStore, ProgressRecord
from discord_dump.scrape.enumerator import ChannelEnumerator, WorkItem
from discord_dump.scrape.errors import ErrorKind, ScrapeError
from discord_dump.scrape.logger import logger
from discord_dump.scrape.pager import MessagePager, oldest_message_id
from discord_dump.scrape.work_list import WorkList
from discord_dump.scrape.writer import ChannelOutput, OutputWriter
from discord_dump.utils.snowflake import snowflake_date


@dataclass
class TraversalResult:
    """Statistics for one traversal run."""

    channels_completed: int = 0
    messages_written: int = 0
    pages_fetched: int = 0
    channels_skipped: int = 0
    threads_discovered: int = 0
    deferred_channels: list[int] = field(default_factory=list)
    finished: bool = False


class GuildTraversal:
    """Checkpointed, depth-first traversal of one guild's channels."""

    def __init__(
        self,
        guild_id: int,
        enumerator: ChannelEnumerator,
        pager: MessagePager,
        writer: OutputWriter,
        store: CheckpointStore,
        skip_forbidden_channels: bool = False,
    ) -> None:
        self.guild_id = guild_id
        self.enumerator = enumerator
        self.pager = pager
        self.writer = writer
        self.store = store
        self.skip_forbidden_channels = skip_forbidden_channels

        self.record = ProgressRecord(guild_id=guild_id)
        self.work = WorkList()
        self.result = TraversalResult()
        self._attempted: set[int] = set()

    async def run(self) -> TraversalResult:
        """Run the traversal until the work list drains.

        Raises:
            CheckpointMismatchError: The checkpoint is for another guild.
            FileConflictError: An output file could not be created or resumed.
            ScrapeError: Enumerating the guild's channels failed.
        """
        self._commit(self.store.load_or_create(self.guild_id))
        record = self.record
        if record.completed_channels or record.current_channel or record.deferred_channels:
            logger.info(
                f"Resuming: {len(record.completed_channels):,} channels completed, "
                f"{len(record.deferred_channels) + (record.current_channel is not None)} "
                f"in progress"
            )

        self.work = await self.build_work_list()

        while self.work:
            await self.process(self.work.pop())

        if self.record.current_channel is not None:
            # Started in an earlier run but no longer reachable this run
            self._commit(self.record.defer_current())

        if self.record.deferred_channels:
            self.result.deferred_channels = sorted(self.record.deferred_channels)
            logger.warning(
                f"{len(self.result.deferred_channels)} channels are incomplete; "
                f"checkpoint kept at {self.store.path}"
            )
        else:
            self.store.delete()
            self.result.finished = True

        return self.result

    async def build_work_list(self) -> WorkList:
        """Enumerate the initial work list.

        Channels already started in an earlier run are pushed last so they are
        popped first, the current channel before any deferred one.
        """
        channels = await self.enumerator.list_top_level_channels(self.guild_id)
        logger.enumeration("channels", len(channels))
        threads = await self.enumerator.list_active_threads(self.guild_id)
        logger.enumeration("active threads", len(threads))

        work = WorkList(channels)
        work.extend(threads)

        started = sorted(self.record.deferred_channels)
        if self.record.current_channel is not None:
            started.append(self.record.current_channel)

        known = {item.id: item for item in work}
        for channel_id in started:
            item = known.get(channel_id)
            if item is None:
                try:
                    item = await self.enumerator.get_work_item(channel_id)
                except ScrapeError as e:
                    logger.warning(f"Cannot look up started channel {channel_id}: {e}")
                    continue
            work.push(item)

        return work

    async def process(self, item: WorkItem) -> None:
        """Handle one popped work item."""
        if not item.kind.eligible:
            self._skip(item, f"bad type {item.type_name}")
            return
        if item.id in self._attempted:
            self._skip(item, "already attempted this run")
            return
        self._attempted.add(item.id)

        if item.kind is ChannelKind.TEXT:
            await self.discover_threads(item)

        if self.record.is_completed(item.id):
            self._skip(item, "already done")
            return

        await self.extract(item)

    async def discover_threads(self, item: WorkItem) -> None:
        """Push a text channel's archived threads onto the work list.

        Runs even for completed channels, so threads found before an earlier
        run died are still reached. Failures are logged and ignored.
        """
        try:
            threads = await self.enumerator.list_archived_threads(item.id)
        except ScrapeError as e:
            logger.warning(f"Error fetching archived threads of {item.id}: {e}")
            return

        self.work.extend(threads)
        self.result.threads_discovered += len(threads)
        logger.threads_discovered(item.id, len(threads))

    async def extract(self, item: WorkItem) -> None:
        """Write every message of one channel, resuming if it was started."""
        resume = self.record.resume_point(item.id)
        logger.channel_start(
            item.name, item.id, item.type_name, "resume" if resume else "fresh"
        )

        with self.writer.open_for_channel(item, resume) as output:
            if resume is None:
                self._commit(self.record.start_channel(item.id, output.size))
            else:
                self._commit(self.record.resume_channel(item.id))

            failure = await self._page_through(item, output)
            if failure is not None:
                if not (
                    self.skip_forbidden_channels
                    and failure.kind is ErrorKind.AUTHORIZATION
                ):
                    self._commit(self.record.defer_current())
                    logger.channel_deferred(item.id, failure)
                    return
                logger.warning(
                    f"Cannot read {item.id}, it is forbidden or was deleted ({failure}); "
                    f"closing with what was written"
                )

            self.writer.close_channel(output)

        self._commit(self.record.complete_current())
        self.result.channels_completed += 1
        completed = len(self.record.completed_channels)
        logger.channel_complete(
            completed, completed + len(self.work), item.id, output.records_written
        )

    async def _page_through(
        self, item: WorkItem, output: ChannelOutput
    ) -> ScrapeError | None:
        """Write pages until the last one; return the fetch error that stopped it early.

        Only fetch errors are returned. Errors from the writer propagate.
        """
        cursor = self.record.last_seen_message_id
        while True:
            try:
                page = await self.pager.fetch_page(item.id, before=cursor)
            except ScrapeError as e:
                return e
            self.result.pages_fetched += 1

            oldest_date = None
            if page:
                size = self.writer.append_page(output, page)
                cursor = oldest_message_id(page)
                self._commit(self.record.advance(cursor, size))
                self.result.messages_written += len(page)
                oldest_date = snowflake_date(cursor)

            logger.page_received(
                len(page), self.pager.page_size, output.records_written, oldest_date
            )
            if self.pager.is_last_page(page):
                return None

    def _skip(self, item: WorkItem, reason: str) -> None:
        self.result.channels_skipped += 1
        logger.channel_skip(item.id, reason)

    def _commit(self, record: ProgressRecord) -> None:
        """Persist ``record`` and make it the current state."""
        self.store.save(record)
        self.record = record
