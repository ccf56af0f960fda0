"""Team-chat adapter — reads DMs and recent channel history over the chat Web API."""

from __future__ import annotations

import asyncio
import math
from datetime import datetime
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from rapport_schema import Integration, IntegrationType

from ..config import ChatAPIConfig, RetryConfig, ScanConfig
from ..errors import SourceError
from ..models import ChatChannel, ChatIdentity, ChatMessage
from .base import SourceAdapter

logger = structlog.get_logger()

CHANNEL_TYPES = "public_channel,private_channel"
DIRECT_MESSAGE_TYPES = "im"


class ChatAdapter(SourceAdapter):
    """Chat source adapter.

    ``fetch_recent`` returns DM history first, then the recent history of
    the first ``max_channels`` channels, each capped to
    ``max_messages_per_channel`` messages.  Every message carries a
    resolved ``sender_name``.
    """

    integration_type = IntegrationType.CHAT

    def __init__(
        self,
        integration: Integration,
        *,
        api: ChatAPIConfig,
        scan: ScanConfig,
        retry: RetryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            integration,
            base_url=api.base_url,
            timeout_seconds=api.timeout_seconds,
            retry=retry,
            transport=transport,
        )
        self._scan = scan
        self._identities: dict[str, ChatIdentity | None] = {}

    async def fetch_recent(self, since: datetime) -> list[ChatMessage]:
        messages = await self.direct_messages(since)

        try:
            channels = await self.list_channels()
        except SourceError as exc:
            logger.warning(
                "chat_channel_list_failed",
                integration_id=self.integration_id,
                error=str(exc),
            )
            channels = []

        selected = channels[: self._scan.max_channels]
        histories = await asyncio.gather(
            *(
                self.channel_history(channel.id, since, limit=self._scan.channel_history_limit)
                for channel in selected
            ),
            return_exceptions=True,
        )
        for channel, history in zip(selected, histories):
            if isinstance(history, BaseException):
                if not isinstance(history, Exception):
                    raise history
                logger.warning(
                    "chat_channel_history_failed",
                    integration_id=self.integration_id,
                    channel_id=channel.id,
                    error=str(history),
                )
                continue
            messages.extend(history[: self._scan.max_messages_per_channel])

        await self._attach_sender_names(messages)
        logger.info(
            "chat_fetch_complete",
            integration_id=self.integration_id,
            channels=len(selected),
            messages=len(messages),
        )
        return messages

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_channels(self) -> list[ChatChannel]:
        """Public and private channels the token can see, archived excluded."""
        return await self._list_conversations(CHANNEL_TYPES)

    async def list_direct_channels(self) -> list[ChatChannel]:
        return await self._list_conversations(DIRECT_MESSAGE_TYPES)

    async def _list_conversations(self, types: str) -> list[ChatChannel]:
        data = await self._call(
            "conversations.list",
            {"types": types, "exclude_archived": "true"},
        )
        return [ChatChannel.model_validate(c) for c in data.get("channels") or []]

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def channel_history(
        self,
        channel_id: str,
        since: datetime | None = None,
        *,
        limit: int = 100,
    ) -> list[ChatMessage]:
        """Messages in *channel_id*, newest first, sent at or after *since*."""
        params: dict[str, Any] = {"channel": channel_id, "limit": limit}
        if since is not None:
            params["oldest"] = str(math.floor(since.timestamp()))

        data = await self._call("conversations.history", params)
        return [
            ChatMessage.model_validate({**raw, "channel": channel_id, "text": raw.get("text") or ""})
            for raw in data.get("messages") or []
            if raw.get("ts")
        ]

    async def direct_messages(self, since: datetime | None = None) -> list[ChatMessage]:
        """History of every DM conversation.

        A failure listing DM conversations propagates.  A failure reading
        one conversation's history is logged and that conversation skipped.
        """
        dm_channels = await self.list_direct_channels()
        histories = await asyncio.gather(
            *(
                self.channel_history(channel.id, since, limit=self._scan.dm_history_limit)
                for channel in dm_channels
            ),
            return_exceptions=True,
        )

        messages: list[ChatMessage] = []
        for channel, history in zip(dm_channels, histories):
            if isinstance(history, BaseException):
                if not isinstance(history, Exception):
                    raise history
                logger.warning(
                    "chat_dm_history_failed",
                    integration_id=self.integration_id,
                    channel_id=channel.id,
                    error=str(history),
                )
                continue
            messages.extend(history)
        return messages

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def resolve_sender_identity(self, user_id: str) -> ChatIdentity | None:
        """Look up a user's profile; ``None`` on any failure.

        Results (including failures) are memoised for the adapter's lifetime.
        """
        if user_id in self._identities:
            return self._identities[user_id]

        identity: ChatIdentity | None = None
        try:
            data = await self._call("users.info", {"user": user_id})
            identity = _parse_identity(data.get("user") or {})
        except (SourceError, ValidationError) as exc:
            logger.warning(
                "chat_identity_lookup_failed",
                integration_id=self.integration_id,
                user_id=user_id,
                error=str(exc),
            )

        self._identities[user_id] = identity
        return identity

    async def display_name(self, user_id: str | None) -> str:
        """Best display name for *user_id*, falling back to ``User <id>``."""
        if not user_id:
            return "Unknown"
        identity = await self.resolve_sender_identity(user_id)
        if identity is not None:
            name = identity.real_name or identity.display_name
            if name:
                return name
        return f"User {user_id}"

    async def _attach_sender_names(self, messages: list[ChatMessage]) -> None:
        user_ids = list(dict.fromkeys(m.user for m in messages if m.user))
        names = await asyncio.gather(*(self.display_name(uid) for uid in user_ids))
        by_id = dict(zip(user_ids, names))
        for message in messages:
            message.sender_name = by_id.get(message.user) if message.user else "Unknown"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """Invoke a Web API *method*; an ``ok: false`` envelope is an error."""
        data = await self._get(method, params)
        if not data.get("ok", False):
            raise SourceError(self.provider, f"{method} returned error {data.get('error', 'unknown')}")
        return data


def _parse_identity(user: Any) -> ChatIdentity | None:
    if not isinstance(user, dict) or not user.get("id"):
        return None
    profile = user.get("profile")
    if not isinstance(profile, dict):
        profile = {}
    return ChatIdentity(
        id=user["id"],
        name=user.get("name"),
        real_name=user.get("real_name") or profile.get("real_name") or None,
        display_name=profile.get("display_name") or None,
    )
