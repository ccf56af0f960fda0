"""Scan service configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScanConfig(BaseSettings):
    """Lookback window and per-source fetch caps for one pipeline run."""

    model_config = {"env_prefix": "SCAN_"}

    lookback_hours: float = Field(default=24.0, gt=0, description="Size of the ingestion window")
    max_channels: int = Field(
        default=5,
        ge=0,
        description="Chat channels whose history is read per run",
    )
    max_messages_per_channel: int = Field(
        default=10,
        ge=0,
        description="Most recent chat channel messages kept per channel",
    )
    dm_history_limit: int = Field(default=50, ge=1, description="Page size for DM history")
    channel_history_limit: int = Field(default=100, ge=1, description="Page size for channel history")
    max_mail_messages: int = Field(default=100, ge=1, description="Mail messages fetched per run")
    source_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Budget for one integration's whole fetch",
    )
    skip_seen_communications: bool = Field(
        default=True,
        description="Drop communications the store already holds before analysis",
    )
    analysis_label: str = Field(
        default="Client Communications",
        description="Label passed to the reasoning engine with each batch",
    )


class ChatAPIConfig(BaseSettings):
    """Team-chat provider API settings."""

    model_config = {"env_prefix": "CHAT_"}

    base_url: str = Field(default="https://slack.com/api", description="Web API base URL")
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    client_id: str | None = Field(default=None, description="OAuth app client id")
    client_secret: SecretStr | None = Field(default=None, description="OAuth app client secret")


class MailAPIConfig(BaseSettings):
    """Mail provider API settings."""

    model_config = {"env_prefix": "MAIL_"}

    base_url: str = Field(
        default="https://gmail.googleapis.com/gmail/v1",
        description="REST API base URL",
    )
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    client_id: str | None = Field(default=None, description="OAuth2 client id")
    client_secret: SecretStr | None = Field(default=None, description="OAuth2 client secret")


class AnalyzerConfig(BaseSettings):
    """Reasoning engine settings."""

    model_config = {"env_prefix": "ANALYZER_"}

    api_key: SecretStr | None = Field(default=None, description="Anthropic API key")
    model: str = Field(default="claude-sonnet-4-5", description="Model used for batch analysis")
    max_tokens: int = Field(default=4096, description="Response token budget")
    timeout_seconds: float = Field(default=120.0, description="Timeout for the single analysis call")


class RetryConfig(BaseSettings):
    """Retry / backoff settings driven by Tenacity."""

    model_config = {"env_prefix": "RETRY_"}

    max_attempts: int = Field(default=3, description="Maximum attempts per provider request")
    initial_wait_seconds: float = Field(
        default=0.5,
        description="Initial backoff wait in seconds",
    )
    max_wait_seconds: float = Field(
        default=8.0,
        description="Maximum backoff wait in seconds",
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class Settings(BaseSettings):
    """Top-level settings for the scan service.

    All env vars are prefixed with ``RAPPORT_``; nested sections use
    their own prefixes.
    Example: ``RAPPORT_JWT_SECRET=mysecret``
    """

    model_config = SettingsConfigDict(env_prefix="RAPPORT_")

    # --- Auth ---------------------------------------------------------------
    jwt_secret: SecretStr = Field(description="Secret key used to verify session tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )

    # --- Pipeline -----------------------------------------------------------
    integrations_file: str | None = Field(
        default=None,
        description="JSON file of integration records served by the in-process registry",
    )
    scan: ScanConfig = Field(default_factory=ScanConfig)
    chat: ChatAPIConfig = Field(default_factory=ChatAPIConfig)
    mail: MailAPIConfig = Field(default_factory=MailAPIConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    def missing_provider_credentials(self) -> list[str]:
        """Providers whose OAuth app credentials are not configured."""
        missing: list[str] = []
        if not (self.chat.client_id and self.chat.client_secret):
            missing.append("chat")
        if not (self.mail.client_id and self.mail.client_secret):
            missing.append("mail")
        return missing
