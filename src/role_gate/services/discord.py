"""Discord REST client used to deliver codes and grant roles.

This module provides the DiscordClient class, the single collaborator the
verification workflow talks to. It implements both the messaging gateway
(direct messages) and the membership gateway (member lookup and role grant)
on top of the Discord HTTP API, and drives the readiness state machine:

- ``connect`` authenticates the bot token and marks the client ready
- any 401 response marks it disconnected until the connector reconnects
- ``close`` releases the HTTP client and marks it disconnected
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from role_gate.core.settings import settings
from role_gate.services.collaborators import Account, AccountNotFoundError, CollaboratorError
from role_gate.services.readiness import ReadinessTracker

# Configure logger for this module
logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429

USER_AGENT = f"DiscordBot (role-gate, {settings.app_version})"


class DiscordError(CollaboratorError):
    """Base exception raised for Discord API failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DiscordAuthError(DiscordError):
    """Raised when Discord rejects the bot token."""


class DiscordMemberNotFoundError(DiscordError, AccountNotFoundError):
    """Raised when the user is not a member of the configured guild."""


@dataclass(frozen=True)
class DiscordConfig:
    """Immutable configuration for Discord API access."""

    base_url: str
    bot_token: str
    guild_id: str
    timeout_seconds: float


@dataclass(frozen=True)
class BotUser:
    """The authenticated bot account."""

    id: str
    username: str


def load_discord_config() -> DiscordConfig:
    """Build configuration object from global settings."""

    return DiscordConfig(
        base_url=settings.discord_api_base_url,
        bot_token=settings.bot_token,
        guild_id=settings.guild_id,
        timeout_seconds=float(settings.discord_http_timeout_seconds),
    )


def _member_to_account(identity: str, payload: Mapping[str, Any]) -> Account:
    user = payload.get("user") or {}
    display_name = payload.get("nick") or user.get("global_name") or user.get("username")
    roles = payload.get("roles") or []
    return Account(
        identity=str(user.get("id", identity)),
        display_name=display_name,
        privilege_ids=frozenset(str(role) for role in roles),
    )


class DiscordClient:
    """HTTP client wrapper for the Discord API."""

    def __init__(
        self,
        config: DiscordConfig | None = None,
        *,
        readiness: ReadinessTracker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_discord_config()
        self.readiness = readiness or ReadinessTracker()
        self.bot_user: BotUser | None = None
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    headers={
                        "Authorization": f"Bot {self.config.bot_token}",
                        "User-Agent": USER_AGENT,
                    },
                    transport=self._transport,
                )
        return self._client

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""
        method: str
        path: str
        json_data: Any | None = None

    async def _request(self, params: RequestParams) -> httpx.Response:
        client = await self._ensure_client()
        endpoint = f"{params.method} {params.path}"

        try:
            response = await client.request(
                params.method,
                params.path,
                json=params.json_data,
            )
        except httpx.HTTPError as exc:
            logger.warning("Discord request %s failed: %s", endpoint, exc)
            raise DiscordError(f"Discord request failed: {exc}") from exc

        if response.status_code == HTTP_UNAUTHORIZED:
            self.readiness.mark_disconnected("Discord rejected the bot token")
            raise DiscordAuthError("Discord rejected the bot token", HTTP_UNAUTHORIZED)
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            logger.warning("Discord rate limited %s", endpoint)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        detail = ""
        try:
            body = response.json()
            if isinstance(body, Mapping):
                detail = str(body.get("message", ""))
        except ValueError:
            detail = response.text[:200]
        raise DiscordError(
            f"Discord responded with {response.status_code} while trying to {action}"
            + (f": {detail}" if detail else ""),
            response.status_code,
        )

    @staticmethod
    def _json_object(response: httpx.Response, action: str) -> Mapping[str, Any]:
        """Decode a successful response body that must be a JSON object."""
        try:
            body = response.json()
        except ValueError as exc:
            raise DiscordError(
                f"Discord returned a malformed body while trying to {action}",
                response.status_code,
            ) from exc
        if not isinstance(body, Mapping):
            raise DiscordError(
                f"Discord returned an unexpected body while trying to {action}",
                response.status_code,
            )
        return body

    async def connect(self) -> BotUser:
        """Authenticate the bot token and mark the client ready."""
        self.readiness.mark_connecting()
        try:
            response = await self._request(self.RequestParams(method="GET", path="/users/@me"))
            self._raise_for_status(response, "authenticate")
            payload = self._json_object(response, "authenticate")
        except DiscordError as exc:
            self.readiness.mark_disconnected(str(exc))
            raise

        self.bot_user = BotUser(id=str(payload.get("id", "")), username=payload.get("username", ""))
        self.readiness.mark_ready()
        logger.info("Bot connected as %s", self.bot_user.username)
        return self.bot_user

    async def fetch_account(self, identity: str) -> Account:
        """Fetch a member of the configured guild."""
        response = await self._request(
            self.RequestParams(
                method="GET", path=f"/guilds/{self.config.guild_id}/members/{identity}"
            )
        )
        # Discord answers 400 for snowflakes that cannot belong to any user.
        if response.status_code in (HTTP_NOT_FOUND, HTTP_BAD_REQUEST):
            raise DiscordMemberNotFoundError(
                f"User {identity} is not a member of the server", response.status_code
            )
        self._raise_for_status(response, "fetch the member")
        return _member_to_account(identity, self._json_object(response, "fetch the member"))

    def account_has_privilege(self, account: Account, privilege_id: str) -> bool:
        return privilege_id in account.privilege_ids

    async def grant_privilege(self, account: Account, privilege_id: str) -> None:
        """Add the role ``privilege_id`` to the member."""
        response = await self._request(
            self.RequestParams(
                method="PUT",
                path=(
                    f"/guilds/{self.config.guild_id}/members/{account.identity}"
                    f"/roles/{privilege_id}"
                ),
            )
        )
        self._raise_for_status(response, "add the role")

    async def send_direct_message(self, identity: str, text: str) -> None:
        """Open (or reuse) the DM channel with ``identity`` and post ``text``."""
        response = await self._request(
            self.RequestParams(
                method="POST",
                path="/users/@me/channels",
                json_data={"recipient_id": identity},
            )
        )
        self._raise_for_status(response, "open a direct message channel")
        channel_id = self._json_object(response, "open a direct message channel").get("id")
        if not channel_id:
            raise DiscordError("Discord did not return a direct message channel")

        response = await self._request(
            self.RequestParams(
                method="POST",
                path=f"/channels/{channel_id}/messages",
                json_data={"content": text},
            )
        )
        # 403 here usually means the user has closed DMs from server members.
        self._raise_for_status(response, "send the direct message")

    async def close(self) -> None:
        """Close the HTTP client."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None
        self.readiness.mark_disconnected("client closed")
