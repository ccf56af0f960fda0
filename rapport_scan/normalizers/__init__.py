"""Provider normalizers for the scan pipeline."""

from .chat import chat_external_id, normalize_chat_message, parse_chat_ts
from .mail import normalize_mail_message, parse_internal_date
from .registry import NORMALIZERS, normalize, supported_types

__all__ = [
    "NORMALIZERS",
    "chat_external_id",
    "normalize",
    "normalize_chat_message",
    "normalize_mail_message",
    "parse_chat_ts",
    "parse_internal_date",
    "supported_types",
]
