"""Mail adapter — lists and reads recent messages over the mail provider's REST API."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
import structlog

from rapport_schema import Integration, IntegrationType

from ..config import MailAPIConfig, RetryConfig, ScanConfig
from ..errors import SourceError
from ..models import MailMessage
from ..payload import extract_body, extract_headers
from .base import SourceAdapter

logger = structlog.get_logger()

# Concurrent message-get requests per adapter
MAX_CONCURRENT_GETS = 10


class MailAdapter(SourceAdapter):
    """Mail source adapter.

    Access is via the integration's OAuth2 access token.  The refresh
    token is carried on the integration record for the token service;
    this adapter never refreshes it.
    """

    integration_type = IntegrationType.MAIL

    def __init__(
        self,
        integration: Integration,
        *,
        api: MailAPIConfig,
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
        self._semaphore = asyncio.Semaphore(MAX_CONCURRENT_GETS)

    async def fetch_recent(self, since: datetime) -> list[MailMessage]:
        query = build_since_query(since)
        refs = await self.list_messages(query, max_results=self._scan.max_mail_messages)

        results = await asyncio.gather(
            *(self._get_bounded(ref["id"]) for ref in refs),
            return_exceptions=True,
        )

        since_ms = int(since.timestamp() * 1000)
        messages: list[MailMessage] = []
        for ref, result in zip(refs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "mail_message_fetch_failed",
                    integration_id=self.integration_id,
                    message_id=ref["id"],
                    error=str(result),
                )
                continue
            if _internal_date_ms(result) < since_ms:
                continue
            messages.append(result)

        logger.info(
            "mail_fetch_complete",
            integration_id=self.integration_id,
            listed=len(refs),
            messages=len(messages),
        )
        return messages

    async def list_messages(self, query: str = "", *, max_results: int = 100) -> list[dict[str, str]]:
        """Message refs (``{"id", "threadId"}``) matching *query*, newest first."""
        params: dict[str, Any] = {"maxResults": max_results}
        if query:
            params["q"] = query
        data = await self._get("users/me/messages", params)
        refs = [ref for ref in data.get("messages") or [] if ref.get("id")]
        return refs[:max_results]

    async def get_message(self, message_id: str) -> MailMessage:
        data = await self._get(f"users/me/messages/{message_id}", {"format": "full"})
        try:
            return MailMessage.model_validate(data)
        except ValueError as exc:
            raise SourceError(self.provider, f"malformed message {message_id}") from exc

    async def _get_bounded(self, message_id: str) -> MailMessage:
        async with self._semaphore:
            return await self.get_message(message_id)

    # Payload helpers are exposed here so callers holding the adapter
    # need not know where they live.
    @staticmethod
    def extract_body(payload: Any) -> str:
        return extract_body(payload)

    @staticmethod
    def extract_headers(payload: Any) -> dict[str, str]:
        return extract_headers(payload)


def build_since_query(since: datetime) -> str:
    """Search query for messages received after *since* (epoch-second precision)."""
    return f"after:{int(since.timestamp())}"


def _internal_date_ms(message: MailMessage) -> int:
    try:
        return int(message.internal_date)
    except ValueError:
        # Unparseable dates are left for the normalizer to reject
        return 2**63
