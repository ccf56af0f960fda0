"""Shared test fixtures for the rapport test suite."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from rapport_schema import Communication, Integration, IntegrationType
from rapport_scan.adapters.base import SourceAdapter
from rapport_scan.analyzer import BatchAnalyzer
from rapport_scan.config import (
    AnalyzerConfig,
    ChatAPIConfig,
    MailAPIConfig,
    RetryConfig,
    ScanConfig,
    Settings,
)
from rapport_scan.models import RawRecord

CHAT_BASE_URL = "https://chat.test/api"
MAIL_BASE_URL = "https://mail.test/v1"

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _test_settings(**overrides) -> Settings:
    """Create Settings with test defaults."""
    defaults = {
        "jwt_secret": "test-secret",
        "chat": ChatAPIConfig(base_url=CHAT_BASE_URL, client_id="chat-id", client_secret="chat-secret"),
        "mail": MailAPIConfig(base_url=MAIL_BASE_URL, client_id="mail-id", client_secret="mail-secret"),
        "analyzer": AnalyzerConfig(api_key="test-key", timeout_seconds=5.0),
        "retry": RetryConfig(max_attempts=2, initial_wait_seconds=0.01, max_wait_seconds=0.02),
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def settings() -> Settings:
    return _test_settings()


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_wait_seconds=0.01,
        max_wait_seconds=0.1,
        multiplier=2.0,
    )


@pytest.fixture
def scan_config() -> ScanConfig:
    return ScanConfig(source_timeout_seconds=5.0)


@pytest.fixture
def chat_api_config() -> ChatAPIConfig:
    return ChatAPIConfig(base_url=CHAT_BASE_URL)


@pytest.fixture
def mail_api_config() -> MailAPIConfig:
    return MailAPIConfig(base_url=MAIL_BASE_URL)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_integration(
    integration_type: str = "chat",
    *,
    id: str | None = None,
    account_id: str = "acct-1",
    is_active: bool = True,
) -> Integration:
    return Integration(
        id=id or f"int-{integration_type}",
        account_id=account_id,
        type=integration_type,
        access_token=f"{integration_type}-token",
        is_active=is_active,
    )


def make_communication(**overrides) -> Communication:
    defaults = dict(
        content="Can we move the renewal call to Friday?",
        timestamp=NOW - timedelta(hours=1),
        sender_name="Dana Client",
        sender_email=None,
        integration_type=IntegrationType.CHAT,
        external_id="C1-1717239600.000100",
        thread_id=None,
    )
    defaults.update(overrides)
    return Communication(**defaults)


def chat_ts(when: datetime, micros: int = 100) -> str:
    """Provider-style fractional-seconds epoch string for *when*."""
    return f"{int(when.timestamp())}.{micros:06d}"


def chat_message_payload(
    text: str | None = "hello",
    *,
    ts: str | None = None,
    user: str | None = "U1",
    thread_ts: str | None = None,
) -> dict:
    payload: dict = {"type": "message", "ts": ts or chat_ts(NOW - timedelta(hours=1))}
    if text is not None:
        payload["text"] = text
    if user is not None:
        payload["user"] = user
    if thread_ts is not None:
        payload["thread_ts"] = thread_ts
    return payload


def b64url(text: str) -> str:
    """Unpadded base64url, as the mail provider encodes body data."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def mail_message_payload(
    id: str = "m1",
    *,
    body: str = "Thanks for the demo, we'd like a quote.",
    sender: str | None = "Dana <dana@client.test>",
    internal_date: datetime | None = None,
    thread_id: str = "t1",
) -> dict:
    headers = [{"name": "Subject", "value": "Follow-up"}]
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    when = internal_date or NOW - timedelta(hours=2)
    return {
        "id": id,
        "threadId": thread_id,
        "snippet": body[:20],
        "internalDate": str(int(when.timestamp() * 1000)),
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "body": {"size": 0},
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64url(body)}},
            ],
        },
    }


def analysis_json(sentiment: float = 0.4, insights: list[dict] | None = None) -> str:
    if insights is None:
        insights = [
            {
                "type": "follow_up",
                "priority": "high",
                "title": "Send renewal quote",
                "description": "Client asked for a quote after the demo.",
                "context_quote": "we'd like a quote",
                "confidence_score": 0.9,
                "client": "dana@client.test",
            }
        ]
    return json.dumps({"sentiment_score": sentiment, "insights": insights})


@pytest.fixture
def fake_engine() -> AsyncMock:
    """Reasoning engine double answering with one follow-up insight."""
    engine = AsyncMock()
    engine.complete = AsyncMock(return_value=analysis_json())
    return engine


@pytest.fixture
def analyzer(fake_engine) -> BatchAnalyzer:
    return BatchAnalyzer(fake_engine, timeout_seconds=5.0)


class FakeAdapter(SourceAdapter):
    """Adapter that serves canned records without any HTTP."""

    def __init__(self, integration, *, records=(), error=None, delay=0.0, kind=IntegrationType.CHAT):
        super().__init__(integration, base_url="http://unused", timeout_seconds=1.0, retry=RetryConfig())
        self.integration_type = kind
        self._records = list(records)
        self._error = error
        self._delay = delay
        self.started = False
        self.stopped = False
        self.since: datetime | None = None

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def fetch_recent(self, since: datetime) -> Sequence[RawRecord]:
        self.since = since
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._records
