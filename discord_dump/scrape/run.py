"""Main orchestration for the guild scrape pipeline.

Wires the Discord client, checkpoint store, output writer, enumerator and
pager into a ``GuildTraversal`` for the configured guild.
"""

from __future__ import annotations

from pathlib import Path

from discord_dump.config.settings import ScrapeSettings, load_settings
from discord_dump.core import BaseOrchestrator
from discord_dump.scrape.checkpoint import CheckpointStore
from discord_dump.scrape.client import DiscordClient
from discord_dump.scrape.enumerator import ChannelEnumerator
from discord_dump.scrape.logger import logger
from discord_dump.scrape.pager import MessagePager
from discord_dump.scrape.traversal import GuildTraversal, TraversalResult
from discord_dump.scrape.writer import OutputWriter


class ScrapeOrchestrator(BaseOrchestrator):
    """Orchestrates a full scrape of one guild."""

    def __init__(self, settings: ScrapeSettings) -> None:
        super().__init__(settings)
        self.result = TraversalResult()

    async def _run_pipeline(self) -> None:
        """Execute the scrape pipeline."""
        settings = self.settings
        async with DiscordClient(
            authorization=settings.authorization,
            user_agent=settings.user_agent,
        ) as client:
            guild = await client.get_guild(settings.guild_id)
            logger.guild_start(settings.guild_id, guild.get("name") or "Unknown guild")

            traversal = GuildTraversal(
                guild_id=settings.guild_id,
                enumerator=ChannelEnumerator(client),
                pager=MessagePager(client, page_size=settings.page_size),
                writer=OutputWriter(settings.output_dir, fsync=settings.fsync),
                store=CheckpointStore(settings.state_path),
                skip_forbidden_channels=settings.skip_forbidden_channels,
            )
            # Keep the live result so the summary reflects partial progress
            self.result = traversal.result
            self.result = await traversal.run()

    def _log_summary(self, elapsed: float) -> None:
        """Log the final scrape summary."""
        logger.summary(
            channels=self.result.channels_completed,
            messages=self.result.messages_written,
            pages=self.result.pages_fetched,
            skipped=self.result.channels_skipped,
            deferred=len(self.result.deferred_channels),
            elapsed=elapsed,
            finished=self.result.finished,
        )


async def run_scrape(
    config_path: str | Path | None = None,
    guild_id: int | None = None,
    output_dir: str | Path | None = None,
    state_file: str | Path | None = None,
) -> TraversalResult:
    """Entry point for running the scrape pipeline."""
    settings = load_settings(
        config_path,
        guild_id=guild_id,
        output_dir=output_dir,
        state_file=state_file,
    )
    orchestrator = ScrapeOrchestrator(settings)
    await orchestrator.run()
    return orchestrator.result
