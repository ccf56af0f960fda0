"""Normalizer dispatch — one normalization function per integration type."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from rapport_schema import Communication, IntegrationType

from ..errors import NormalizationError
from ..models import ChatMessage, MailMessage, RawRecord
from .chat import normalize_chat_message
from .mail import normalize_mail_message

Normalizer = Callable[[Any], Communication | None]

NORMALIZERS: dict[IntegrationType, tuple[type, Normalizer]] = {
    IntegrationType.CHAT: (ChatMessage, normalize_chat_message),
    IntegrationType.MAIL: (MailMessage, normalize_mail_message),
}


def normalize(record: RawRecord, integration_type: IntegrationType) -> Communication | None:
    """Normalize *record* with the function registered for *integration_type*.

    Returns ``None`` for records with no usable text.  Raises
    :class:`NormalizationError` when the record cannot be converted.
    """
    try:
        record_type, normalizer = NORMALIZERS[integration_type]
    except KeyError:
        raise NormalizationError(f"no normalizer for {integration_type!r}") from None

    if not isinstance(record, record_type):
        raise NormalizationError(
            f"{integration_type.value} normalizer got {type(record).__name__}",
        )
    try:
        return normalizer(record)
    except (ArithmeticError, ValueError) as exc:
        # pydantic rejects records whose fields fail Communication validation
        raise NormalizationError(str(exc)) from exc


def supported_types() -> list[str]:
    return [t.value for t in NORMALIZERS]
