"""CLI entry point for discord_dump.scrape.

Usage:
    python -m discord_dump.scrape                     # Guild from GUILD_ID
    python -m discord_dump.scrape --guild-id 123      # Specific guild
    python -m discord_dump.scrape --output-dir out/   # Output directory
    python -m discord_dump.scrape --verbose           # Show more details
    python -m discord_dump.scrape --debug             # Show debug info

Exit status is 0 only when every channel was exported and the checkpoint
was deleted; rerun after any non-zero exit to resume.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from discord_dump.scrape.errors import CheckpointMismatchError, ScrapeError
from discord_dump.scrape.logger import logger
from discord_dump.scrape.run import run_scrape
from discord_dump.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export every message of a Discord guild, resumably",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  BOT_TOKEN=... GUILD_ID=123456789 python -m discord_dump.scrape
      Export the guild into the current directory

  python -m discord_dump.scrape --guild-id 123456789 --output-dir dump/
      Export into dump/ (the checkpoint lives there too)

  python -m discord_dump.scrape --config scrape.json
      Read settings from a JSON config file
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Optional path to a JSON config file",
    )
    parser.add_argument(
        "--guild-id",
        type=str,
        help="Guild to export (default: GUILD_ID environment variable)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory for output files (default: current directory)",
    )
    parser.add_argument(
        "--state-file",
        type=str,
        help="Checkpoint path (default: <output-dir>/.discord_scrape_state)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with third-party library logs",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.debug or args.verbose else logging.INFO,
        log_file=args.log_file,
        debug_third_party=args.debug,
    )

    logger.info("Starting Discord guild export")

    try:
        result = asyncio.run(
            run_scrape(
                config_path=args.config,
                guild_id=args.guild_id,
                output_dir=args.output_dir,
                state_file=args.state_file,
            )
        )
    except KeyboardInterrupt:
        logger.warning("Interrupted by user; rerun to resume")
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except (CheckpointMismatchError, ScrapeError) as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    if not result.finished:
        logger.warning(
            f"{len(result.deferred_channels)} channels incomplete; rerun to resume"
        )
        sys.exit(1)

    logger.success("Export complete!")


if __name__ == "__main__":
    main()
