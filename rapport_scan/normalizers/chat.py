"""Chat normalizer — ChatMessage → Communication."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from rapport_schema import Communication, IntegrationType

from ..errors import NormalizationError
from ..models import ChatMessage

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_chat_message(message: ChatMessage) -> Communication | None:
    """Convert a chat message; ``None`` when it has no text."""
    content = message.text or ""
    if not content.strip():
        return None

    return Communication(
        content=content,
        timestamp=parse_chat_ts(message.ts),
        sender_name=message.sender_name or _fallback_name(message.user),
        integration_type=IntegrationType.CHAT,
        external_id=chat_external_id(message.channel, message.ts),
        thread_id=message.thread_ts,
    )


def chat_external_id(channel: str, ts: str) -> str:
    """``{channel}-{ts}``: ``ts`` is unique within a channel."""
    return f"{channel}-{ts}"


def parse_chat_ts(ts: str) -> datetime:
    """Parse a fractional-seconds epoch string to UTC, truncated to the millisecond.

    Decimal arithmetic keeps ``1717243200.123999`` at ``.123`` where a
    float round-trip could land on ``.124``.
    """
    try:
        millis = int(Decimal(ts) * 1000)
        return EPOCH + timedelta(milliseconds=millis)
    except (ArithmeticError, TypeError, ValueError) as exc:
        # InvalidOperation and OverflowError are both ArithmeticError
        raise NormalizationError(f"invalid chat timestamp {ts!r}") from exc


def _fallback_name(user_id: str | None) -> str:
    return f"User {user_id}" if user_id else "Unknown"
