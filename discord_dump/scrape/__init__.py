"""Discord guild scrape pipeline.

This package exports every message of a guild's text channels and threads
into per-channel JSON files, resumably.

Usage:
    python -m discord_dump.scrape                    # Guild from GUILD_ID
    python -m discord_dump.scrape --guild-id X       # Specific guild
    python -m discord_dump.scrape --output-dir out/  # Write files under out/
"""
