"""Mail normalizer — MailMessage → Communication."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from rapport_schema import Communication, IntegrationType

from ..errors import NormalizationError
from ..models import MailMessage
from ..payload import extract_body, extract_headers

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_mail_message(message: MailMessage) -> Communication | None:
    """Convert a mail message; ``None`` when its text body is empty.

    The raw ``From`` header doubles as sender name and address: the
    provider gives no structured identity.
    """
    content = extract_body(message.payload)
    if not content.strip():
        return None

    sender = extract_headers(message.payload).get("from")

    return Communication(
        content=content,
        timestamp=parse_internal_date(message.internal_date),
        sender_name=sender or "Unknown",
        sender_email=sender,
        integration_type=IntegrationType.MAIL,
        external_id=message.id,
        thread_id=message.thread_id,
    )


def parse_internal_date(value: str) -> datetime:
    """Parse a millisecond epoch string to a UTC datetime."""
    try:
        return EPOCH + timedelta(milliseconds=int(value))
    except (OverflowError, TypeError, ValueError) as exc:
        raise NormalizationError(f"invalid mail internalDate {value!r}") from exc
