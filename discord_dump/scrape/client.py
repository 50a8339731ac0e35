"""Discord REST API client with rate limit handling.

This module provides an async HTTP client for the endpoints the scraper needs:
- Automatic rate limit handling (429 responses)
- Exponential backoff for server errors (5xx), timeouts and transport errors
- Classified failures (see ``discord_dump.scrape.errors``)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from discord_dump.scrape.errors import ErrorKind, ScrapeError, SerializationError
from discord_dump.scrape.logger import logger


# Discord API base URL
BASE_URL = "https://discord.com/api/v10"

# Retry configuration
MAX_RETRIES = 5
MAX_RATE_LIMIT_RETRIES = 30  # Cap on consecutive 429 retries
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 64.0  # seconds

AUTHORIZATION_STATUSES = (401, 403, 404)


def error_kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status_code in AUTHORIZATION_STATUSES:
        return ErrorKind.AUTHORIZATION
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    return ErrorKind.TRANSPORT


class DiscordAPIError(ScrapeError):
    """Raised when Discord API returns an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(
            error_kind_for_status(status_code),
            f"Discord API error {status_code}: {message}",
        )
        self.message = message


class DiscordTransportError(ScrapeError):
    """Raised when the network keeps failing after all retries."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.TRANSPORT, message)


@dataclass
class DiscordClient:
    """Async Discord REST API client.

    Handles rate limits and retries automatically.
    """

    authorization: str
    user_agent: str

    def __post_init__(self) -> None:
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Build request headers."""
        return {
            "Authorization": self.authorization,
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
        }

    async def __aenter__(self) -> "DiscordClient":
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            headers=self.headers,
            timeout=30.0,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request with rate limit and retry handling."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with.")

        backoff = INITIAL_BACKOFF
        rate_limit_retries = 0
        attempt = 0

        while True:
            try:
                response = await self._client.request(method, path, params=params)
            except httpx.TransportError as e:
                # httpx.TimeoutException is a TransportError subclass
                reason = "timeout" if isinstance(e, httpx.TimeoutException) else str(e)
                if attempt < MAX_RETRIES:
                    attempt += 1
                    logger.retry(attempt, MAX_RETRIES, backoff, reason)
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    continue
                raise DiscordTransportError(f"{method} {path} failed: {reason}") from e

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    raise SerializationError(f"Invalid JSON from {path}: {e}") from e

            if response.status_code == 204:
                return None

            # Rate limited - wait and retry (doesn't count as attempt)
            if response.status_code == 429:
                rate_limit_retries += 1
                if rate_limit_retries > MAX_RATE_LIMIT_RETRIES:
                    raise DiscordAPIError(429, "Max rate limit retries exceeded")
                retry_after = float(response.headers.get("Retry-After", 1.0))
                logger.rate_limit(retry_after)
                await asyncio.sleep(retry_after)
                continue

            # Client errors - fail immediately
            if response.status_code in AUTHORIZATION_STATUSES:
                error_msg = response.text
                try:
                    error_msg = response.json().get("message", response.text)
                except Exception:
                    pass
                raise DiscordAPIError(response.status_code, error_msg)

            # Server errors - retry with backoff
            if response.status_code >= 500 and attempt < MAX_RETRIES:
                attempt += 1
                logger.retry(
                    attempt, MAX_RETRIES, backoff, f"HTTP {response.status_code}"
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue

            raise DiscordAPIError(response.status_code, response.text)

    # -------------------------------------------------------------------------
    # Guild endpoints
    # -------------------------------------------------------------------------

    async def get_guild(self, guild_id: int) -> dict[str, Any]:
        """Fetch guild information."""
        return await self._request("GET", f"/guilds/{guild_id}")

    async def get_guild_channels(self, guild_id: int) -> list[dict[str, Any]]:
        """Fetch all channels in a guild (excludes threads)."""
        return await self._request("GET", f"/guilds/{guild_id}/channels")

    # -------------------------------------------------------------------------
    # Thread endpoints
    # -------------------------------------------------------------------------

    async def get_active_threads(self, guild_id: int) -> dict[str, Any]:
        """Fetch all active threads in a guild."""
        return await self._request("GET", f"/guilds/{guild_id}/threads/active")

    async def get_public_archived_threads(
        self, channel_id: int, before: str | None = None, limit: int = 100
    ) -> dict[str, Any]:
        """Fetch public archived threads in a channel."""
        params: dict[str, Any] = {"limit": limit}
        if before:
            params["before"] = before
        return await self._request(
            "GET", f"/channels/{channel_id}/threads/archived/public", params=params
        )

    async def get_private_archived_threads(
        self, channel_id: int, before: str | None = None, limit: int = 100
    ) -> dict[str, Any]:
        """Fetch private archived threads in a channel (requires MANAGE_THREADS)."""
        params: dict[str, Any] = {"limit": limit}
        if before:
            params["before"] = before
        return await self._request(
            "GET", f"/channels/{channel_id}/threads/archived/private", params=params
        )

    # -------------------------------------------------------------------------
    # Channel endpoints
    # -------------------------------------------------------------------------

    async def get_channel(self, channel_id: int) -> dict[str, Any]:
        """Fetch channel information."""
        return await self._request("GET", f"/channels/{channel_id}")

    # -------------------------------------------------------------------------
    # Message endpoints
    # -------------------------------------------------------------------------

    async def get_messages(
        self,
        channel_id: int,
        limit: int = 100,
        before: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch messages from a channel.

        Args:
            channel_id: The channel to fetch from
            limit: Max messages to return (1-100)
            before: Get messages strictly older than this message ID

        Returns:
            List of message objects, ordered by ID descending (newest first)
        """
        params: dict[str, Any] = {"limit": min(limit, 100)}
        if before:
            params["before"] = before
        return await self._request(
            "GET", f"/channels/{channel_id}/messages", params=params
        )
