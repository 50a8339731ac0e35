"""Logging setup for discord-dump.

Everything diagnostic goes to stderr through one rich ``Console``: log
records (via ``RichHandler``), the in-place page counter and the summary
panel. Exported data only ever goes to the output files.

    from discord_dump.utils.logging import setup_logging

    setup_logging(level=logging.DEBUG, log_file="scrape.log")

Modules log through ``logging.getLogger(__name__)`` or a pipeline logger;
``setup_logging`` is called once, by the CLI.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


console = Console(stderr=True)

# Chatty HTTP libraries, silenced unless --debug is given
THIRD_PARTY_LOGGERS = ("httpx", "httpcore")

FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
    debug_third_party: bool = False,
) -> None:
    """Route the root logger to the shared console and, optionally, a file.

    Args:
        level: Root logger level
        log_file: Also append plain-text records to this file
        debug_third_party: Let httpx/httpcore log at DEBUG instead of WARNING
    """
    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_path=False, rich_tracebacks=True)
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)

    third_party_level = logging.DEBUG if debug_third_party else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)
