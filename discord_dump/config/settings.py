"""Configuration management using pydantic-settings.

Settings come from, in decreasing priority:
- explicit overrides (CLI flags)
- an optional JSON config file
- environment variables (``BOT_TOKEN``, ``GUILD_ID``, ...)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from discord_dump import __version__

DEFAULT_STATE_FILE = ".discord_scrape_state"
DEFAULT_USER_AGENT = f"DiscordBot (https://github.com/discord-dump, {__version__})"


class ScrapeSettings(BaseSettings):
    """Scraper settings with validation."""

    bot_token: str = Field(min_length=1)
    guild_id: int
    output_dir: Path = Path(".")
    state_file: Path | None = None
    user_agent: str = DEFAULT_USER_AGENT
    page_size: int = Field(default=100, ge=1, le=100)
    skip_forbidden_channels: bool = False
    is_bot: bool = True
    fsync: bool = True

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    @field_validator("bot_token", mode="before")
    @classmethod
    def strip_token(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("guild_id", mode="before")
    @classmethod
    def parse_guild_id(cls, v: Any) -> int:
        """Guild IDs are positive integer snowflakes, given as int or digits."""
        if isinstance(v, bool):
            raise ValueError("guild_id must be a snowflake")
        if isinstance(v, str):
            v = v.strip()
            if not v.isdigit():
                raise ValueError(f"malformed guild_id {v!r}")
        guild_id = int(v)
        if guild_id <= 0:
            raise ValueError(f"malformed guild_id {v!r}")
        return guild_id

    @property
    def authorization(self) -> str:
        """Value of the Authorization header."""
        if self.is_bot and not self.bot_token.startswith("Bot "):
            return f"Bot {self.bot_token}"
        return self.bot_token

    @property
    def state_path(self) -> Path:
        """Checkpoint location, defaulting to the output directory."""
        return self.state_file or self.output_dir / DEFAULT_STATE_FILE

    @classmethod
    def from_json(
        cls, path: str | Path | None = None, **overrides: Any
    ) -> "ScrapeSettings":
        """Load settings from an optional JSON config file.

        Args:
            path: Path to the JSON config file; ignored if it does not exist
            overrides: Values that win over both the file and the environment

        Returns:
            ScrapeSettings instance with validated configuration
        """
        data: dict[str, Any] = {}
        if path is not None:
            config_path = Path(path)
            if config_path.exists():
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> ScrapeSettings:
    """Load and validate settings (see ``ScrapeSettings.from_json``)."""
    return ScrapeSettings.from_json(config_path, **overrides)
