"""Rich-based logging for the guild scrape pipeline.

Reports which channel is being processed, the size of every page received
and running completion counts on the diagnostic stream.
"""

from __future__ import annotations

from typing import Any

from discord_dump.scrape.errors import ScrapeError
from discord_dump.utils.pipeline_logger import BasePipelineLogger


class ScrapeLogger(BasePipelineLogger):
    """Logger for scrape operations with rich output."""

    def __init__(self) -> None:
        super().__init__(__name__)

    # -------------------------------------------------------------------------
    # Rate Limiting & Retries
    # -------------------------------------------------------------------------

    def rate_limit(self, retry_after: float) -> None:
        """Log a rate limit warning with retry time."""
        self._logger.warning(f"Rate limited. Waiting {retry_after:.1f}s...")

    def retry(
        self, attempt: int, max_attempts: int, wait_time: float, reason: str = ""
    ) -> None:
        """Log a retry attempt with optional reason."""
        msg = f"Retry {attempt}/{max_attempts} in {wait_time:.1f}s"
        if reason:
            msg += f" ({reason})"
        self._logger.warning(msg)

    # -------------------------------------------------------------------------
    # Guild & Enumeration
    # -------------------------------------------------------------------------

    def guild_start(self, guild_id: int, guild_name: str) -> None:
        """Log the start of guild processing."""
        self.console.print()
        self.console.rule(f"[bold cyan]{guild_name}[/bold cyan]", style="cyan")
        self.console.print(f"[dim]Guild ID: {guild_id}[/dim]")

    def enumeration(self, what: str, count: int) -> None:
        """Log how many work items an enumeration step produced."""
        self._logger.info(f"Found {count:,} {what}")

    def threads_discovered(self, channel_id: int, count: int) -> None:
        """Log archived threads discovered under a text channel."""
        if count:
            self._logger.info(f"Discovered {count:,} archived threads in {channel_id}")

    # -------------------------------------------------------------------------
    # Channel Processing
    # -------------------------------------------------------------------------

    def channel_start(self, channel_name: str, channel_id: int, kind: str, mode: str) -> None:
        """Log the start of channel processing."""
        mode_color = "yellow" if mode == "resume" else "green"
        self._clear_progress_line()
        self.console.print(
            f"\n[bold]{channel_name}[/bold] [dim]({kind}, {channel_id})[/dim] "
            f"[[{mode_color}]{mode}[/{mode_color}]]"
        )

    def channel_skip(self, channel_id: int, reason: str) -> None:
        """Log a skipped channel."""
        self._logger.info(f"Skipping {channel_id} ({reason})")

    def page_received(
        self, received: int, page_size: int, total: int, oldest_date: str | None = None
    ) -> None:
        """Log a received page (inline update)."""
        date_info = f" [→ {oldest_date}]" if oldest_date else ""
        self._write_progress_line(
            f"    [dim]Received {received}/{page_size}, "
            f"{total:,} messages written{date_info}[/dim]"
        )
        self._logger.debug(f"Received message page {received}/{page_size}")

    def channel_complete(self, done: int, total: int, channel_id: int, messages: int) -> None:
        """Log channel completion with the running completion count."""
        self._clear_progress_line()
        self.console.print(
            f"  [green]✓[/green] [{done:,}/{total:,}] Completed channel "
            f"{channel_id} ({messages:,} messages)"
        )

    def channel_deferred(self, channel_id: int, error: ScrapeError) -> None:
        """Log a channel left in progress for the next run."""
        self._clear_progress_line()
        msg = f"Deferring channel {channel_id} to next run: {error}"
        if not error.kind.retryable:
            msg += f" ({error.kind.value} error, rerunning alone may not help)"
        self._logger.warning(msg)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(
        self,
        channels: int = 0,
        messages: int = 0,
        pages: int = 0,
        skipped: int = 0,
        deferred: int = 0,
        elapsed: float = 0.0,
        finished: bool = True,
        **kwargs: Any,
    ) -> None:
        """Print final scrape summary."""
        self.print_summary(
            "Scrape Complete" if finished else "Scrape Incomplete",
            elapsed=elapsed,
            stats={
                "Channels completed": channels,
                "Messages written": messages,
                "Pages fetched": pages,
                "Channels skipped": skipped,
                "Channels deferred": deferred,
            },
            style="cyan" if finished else "yellow",
        )


# Global logger instance
logger = ScrapeLogger()
