"""Base pipeline logger.

Pipeline loggers mix two kinds of output on the shared stderr console:

- ordinary log records, routed through Python logging and ``RichHandler``
- a single in-place progress line (page counts while a channel is paged),
  which must be wiped before anything else is printed

``BasePipelineLogger`` owns the progress line and the final summary panel;
subclasses add the pipeline's own messages.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from discord_dump.utils.logging import console


CLEAR_LINE = "\033[2K"


class BasePipelineLogger(ABC):
    """Abstract base class for pipeline loggers."""

    def __init__(self, logger_name: str | None = None) -> None:
        """Initialize the pipeline logger.

        Args:
            logger_name: Name for the Python logger. If None, uses the module name.
        """
        self.console: Console = console
        self._has_progress_line = False
        self._logger = logging.getLogger(logger_name or self.__class__.__module__)

    # -------------------------------------------------------------------------
    # Progress Line
    # -------------------------------------------------------------------------

    def _write_progress_line(self, markup: str) -> None:
        """Replace the progress line with ``markup``, leaving the cursor on it."""
        self.console.file.write(CLEAR_LINE)
        self.console.print(markup, end="\r")
        self._has_progress_line = True

    def _clear_progress_line(self) -> None:
        if self._has_progress_line:
            self.console.file.write(CLEAR_LINE + "\r")
            self._has_progress_line = False

    # -------------------------------------------------------------------------
    # Standard Logging
    # -------------------------------------------------------------------------

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def success(self, message: str) -> None:
        """Print a message with a green checkmark, bypassing logging."""
        self._clear_progress_line()
        self.console.print(f"[green]✓[/green] {message}")

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def print_summary(
        self,
        title: str,
        *,
        elapsed: float,
        stats: dict[str, int | str],
        style: str = "cyan",
    ) -> None:
        """Print a bordered panel with one row per statistic and the run time."""
        self._clear_progress_line()

        table = Table.grid(padding=(0, 2))
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="green")
        for label, value in stats.items():
            table.add_row(label, f"{value:,}" if isinstance(value, int) else str(value))
        table.add_row("Time elapsed", f"{elapsed:.1f}s")

        self.console.print()
        self.console.print(
            Panel(
                table,
                title=f"[bold]{title}[/bold]",
                border_style=style,
                padding=(1, 2),
            )
        )

    @abstractmethod
    def summary(self, **kwargs: Any) -> None:
        """Print the pipeline's final summary."""
        ...
