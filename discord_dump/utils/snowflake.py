# discord_dump/utils/snowflake.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

DISCORD_EPOCH = 1420070400000  # 2015-01-01 UTC (ms)


def parse_snowflake(value: str | int) -> int:
    snowflake = int(value)
    if snowflake <= 0:
        raise ValueError(f"invalid snowflake: {value!r}")
    return snowflake


def parse_optional_snowflake(value: Any) -> int | None:
    if value is None:
        return None
    return parse_snowflake(value)


def snowflake_to_datetime(snowflake: int) -> datetime:
    ms = (snowflake >> 22) + DISCORD_EPOCH
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def snowflake_date(snowflake: int) -> str:
    """Format the creation date encoded in a snowflake as YYYY-MM-DD."""
    return snowflake_to_datetime(snowflake).strftime("%Y-%m-%d")
