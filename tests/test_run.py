"""Unit tests for discord_dump.scrape.run."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from conftest import FakeDiscordClient, make_channel, make_messages

from discord_dump.config.settings import DEFAULT_STATE_FILE, ScrapeSettings
from discord_dump.scrape.client import DiscordAPIError, DiscordTransportError
from discord_dump.scrape.run import ScrapeOrchestrator, run_scrape


@pytest.fixture
def fake_client():
    fake = FakeDiscordClient(
        channels=[make_channel(1, name="general")],
        messages={1: make_messages(3)},
    )
    # ``async with DiscordClient(...)`` yields the fake
    with patch("discord_dump.scrape.run.DiscordClient") as mock_cls:
        mock_cls.return_value.__aenter__.return_value = fake
        yield fake


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch, guild_id: int) -> None:
    monkeypatch.setenv("BOT_TOKEN", "abc")
    monkeypatch.setenv("GUILD_ID", str(guild_id))
    monkeypatch.delenv("STATE_FILE", raising=False)
    monkeypatch.delenv("OUTPUT_DIR", raising=False)


def _settings(tmp_path: Path, guild_id: int) -> ScrapeSettings:
    return ScrapeSettings(bot_token="abc", guild_id=guild_id, output_dir=tmp_path, fsync=False)


# ---------------------------------------------------------------------------
# TestRunScrape
# ---------------------------------------------------------------------------


class TestRunScrape:
    """Tests for run_scrape."""

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("env")
    async def test_exports_guild(self, tmp_path: Path, fake_client):
        result = await run_scrape(output_dir=tmp_path)

        assert result.finished is True
        assert result.messages_written == 3
        assert len(json.loads((tmp_path / "1.messages.json").read_bytes())) == 3
        assert not (tmp_path / DEFAULT_STATE_FILE).exists()

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("env")
    async def test_client_gets_bot_authorization(self, tmp_path: Path, fake_client):
        with patch("discord_dump.scrape.run.DiscordClient") as mock_cls:
            mock_cls.return_value.__aenter__.return_value = fake_client

            await run_scrape(output_dir=tmp_path)

        _, kwargs = mock_cls.call_args
        assert kwargs["authorization"] == "Bot abc"

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("env")
    async def test_explicit_state_file(self, tmp_path: Path, fake_client):
        state = tmp_path / "state" / "progress.json"
        fake_client.message_errors[(1, 1)] = DiscordTransportError("reset")

        result = await run_scrape(output_dir=tmp_path / "out", state_file=state)

        assert result.finished is False
        assert state.exists()
        assert not (tmp_path / "out" / DEFAULT_STATE_FILE).exists()


# ---------------------------------------------------------------------------
# TestScrapeOrchestrator
# ---------------------------------------------------------------------------


class TestScrapeOrchestrator:
    """Tests for ScrapeOrchestrator."""

    @pytest.mark.asyncio
    @patch("discord_dump.scrape.run.logger")
    async def test_summary_marks_incomplete_run(
        self, mock_logger, tmp_path: Path, guild_id, fake_client
    ):
        fake_client.message_errors[(1, 1)] = DiscordTransportError("reset")
        orch = ScrapeOrchestrator(_settings(tmp_path, guild_id))

        await orch.run()

        kwargs = mock_logger.summary.call_args.kwargs
        assert kwargs["finished"] is False
        assert kwargs["deferred"] == 1

    @pytest.mark.asyncio
    @patch("discord_dump.scrape.run.logger")
    async def test_summary_logged_when_guild_lookup_fails(
        self, mock_logger, tmp_path: Path, guild_id, fake_client
    ):
        fake_client.get_guild = AsyncMock(side_effect=DiscordAPIError(401, "Unauthorized"))
        orch = ScrapeOrchestrator(_settings(tmp_path, guild_id))

        with pytest.raises(DiscordAPIError):
            await orch.run()

        mock_logger.summary.assert_called_once()
        assert mock_logger.summary.call_args.kwargs["finished"] is False
        assert not (tmp_path / DEFAULT_STATE_FILE).exists()

    def test_prepare_creates_directories(self, tmp_path: Path, guild_id):
        settings = ScrapeSettings(
            bot_token="abc",
            guild_id=guild_id,
            output_dir=tmp_path / "out",
            state_file=tmp_path / "state" / "s.json",
        )

        ScrapeOrchestrator(settings).prepare()

        assert (tmp_path / "out").is_dir()
        assert (tmp_path / "state").is_dir()
