"""Canonical communication schema — the provider-agnostic record every source is normalized into."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, SecretStr, field_validator


class IntegrationType(str, Enum):
    """Provider that produced a communication."""

    CHAT = "chat"
    MAIL = "mail"


class Communication(BaseModel):
    """Canonical message record produced by the normalizers.

    Every message, whatever the source provider, is normalized into this
    schema before being batched for analysis and handed to storage.
    """

    content: str = Field(description="Extracted plain-text body (never blank)")
    timestamp: datetime = Field(description="When the message was sent (UTC)")
    sender_name: str | None = Field(default=None, description="Best-effort sender display name")
    sender_email: str | None = Field(default=None, description="Sender address, when the source has one")
    integration_type: IntegrationType = Field(description="Originating provider")
    external_id: str = Field(
        min_length=1,
        description="Provider-scoped id, deterministic across runs (dedup key)",
    )
    thread_id: str | None = Field(default=None, description="Parent conversation grouping key")

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return value.astimezone(timezone.utc)


class Integration(BaseModel):
    """A configured source for one account, as returned by the integration registry.

    ``type`` is kept as a free string so records for providers this build
    does not know about can be read and skipped.
    """

    id: str = Field(description="Registry identifier of the integration")
    account_id: str = Field(description="Account that owns the integration")
    type: str = Field(description="Provider tag (e.g. chat, mail)")
    access_token: SecretStr = Field(description="Bearer / OAuth2 access token")
    refresh_token: SecretStr | None = Field(default=None, description="OAuth2 refresh token")
    is_active: bool = Field(default=True, description="Inactive integrations are never scanned")

    @property
    def integration_type(self) -> IntegrationType | None:
        """The known provider enum for ``type``, or None if unsupported."""
        try:
            return IntegrationType(self.type)
        except ValueError:
            return None
