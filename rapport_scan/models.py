"""Raw provider records yielded by the source adapters, before normalization."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatChannel(BaseModel):
    """A chat conversation (public/private channel or DM)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    is_im: bool = False


class ChatIdentity(BaseModel):
    """Profile of a chat user, as returned by the identity lookup."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    real_name: str | None = None
    display_name: str | None = None


class ChatMessage(BaseModel):
    """A chat message as delivered by the history endpoint.

    ``ts`` is the provider's fractional-seconds epoch string, which is
    also unique per channel; ``channel`` is filled in by the adapter.
    """

    model_config = ConfigDict(extra="ignore")

    ts: str = Field(description="Fractional-seconds epoch string, e.g. '1717243200.000100'")
    channel: str = Field(description="Conversation the message was read from")
    user: str | None = Field(default=None, description="Provider-native sender id")
    text: str = Field(default="", description="Message text")
    thread_ts: str | None = Field(default=None, description="Parent message ts for replies")
    sender_name: str | None = Field(
        default=None,
        description="Display name resolved by the adapter",
    )


class MailMessage(BaseModel):
    """A mail message in the provider's ``format=full`` shape.

    ``payload`` is the nested MIME part tree, kept as raw dicts so body
    extraction can tolerate any malformation.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    thread_id: str | None = Field(default=None, alias="threadId")
    snippet: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)
    internal_date: str = Field(alias="internalDate", description="Millisecond epoch string")


RawRecord = ChatMessage | MailMessage
