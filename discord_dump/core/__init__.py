"""Base orchestrator for pipeline execution.

An orchestrator owns one run of a pipeline: it prepares the filesystem,
times the run, and always reports a summary, including when the pipeline
raises. Subclasses provide the pipeline itself:

    class MyOrchestrator(BaseOrchestrator):
        async def _run_pipeline(self):
            ...

        def _log_summary(self, elapsed):
            ...
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord_dump.config.settings import ScrapeSettings


class BaseOrchestrator(ABC):
    """Abstract base class for pipeline orchestrators."""

    def __init__(self, settings: "ScrapeSettings") -> None:
        self.settings = settings
        self.start_time: float = 0.0

    def prepare(self) -> None:
        """Create the output directory and the checkpoint's directory."""
        self.settings.output_dir.mkdir(parents=True, exist_ok=True)
        self.settings.state_path.parent.mkdir(parents=True, exist_ok=True)

    async def run(self) -> None:
        """Run the pipeline; the summary is logged even if it fails midway."""
        self.start_time = time.time()
        self.prepare()
        try:
            await self._run_pipeline()
        finally:
            self._log_summary(time.time() - self.start_time)

    @abstractmethod
    async def _run_pipeline(self) -> None:
        ...

    @abstractmethod
    def _log_summary(self, elapsed: float) -> None:
        """Log final statistics; ``elapsed`` is the run time in seconds."""
        ...
