"""Tests for discord_dump.utils.snowflake."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from discord_dump.utils.snowflake import (
    DISCORD_EPOCH,
    parse_optional_snowflake,
    parse_snowflake,
    snowflake_date,
    snowflake_to_datetime,
)


class TestParseSnowflake:
    def test_string(self) -> None:
        assert parse_snowflake("175928847299117063") == 175928847299117063

    def test_int(self) -> None:
        assert parse_snowflake(42) == 42

    @pytest.mark.parametrize("value", ["0", "-5", 0])
    def test_non_positive_rejected(self, value) -> None:
        with pytest.raises(ValueError):
            parse_snowflake(value)

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_snowflake("abc")

    def test_optional(self) -> None:
        assert parse_optional_snowflake(None) is None
        assert parse_optional_snowflake("7") == 7


class TestSnowflakeToDatetime:
    def test_epoch(self) -> None:
        # Timestamp bits of zero means the Discord epoch itself
        dt = snowflake_to_datetime(1)

        assert dt == datetime.fromtimestamp(DISCORD_EPOCH / 1000, tz=timezone.utc)

    def test_known_snowflake(self) -> None:
        # Example from Discord's developer docs: 2016-04-30 11:18:25.796 UTC
        dt = snowflake_to_datetime(175928847299117063)

        assert dt.year == 2016
        assert dt.month == 4
        assert dt.day == 30
        assert dt.tzinfo == timezone.utc

    def test_date_string(self) -> None:
        assert snowflake_date(175928847299117063) == "2016-04-30"
