"""Adapter registry — maps integration type strings to adapter factories."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import structlog

from rapport_schema import Integration, IntegrationType

from ..config import Settings
from .base import SourceAdapter
from .chat import ChatAdapter
from .mail import MailAdapter

logger = structlog.get_logger()

AdapterFactory = Callable[[Integration], SourceAdapter]


class AdapterRegistry:
    """Registry of adapter factories, keyed by integration type value string."""

    def __init__(self) -> None:
        self._factories: dict[str, AdapterFactory] = {}

    def register(self, integration_type: IntegrationType, factory: AdapterFactory) -> None:
        """Register the factory building adapters for *integration_type*."""
        key = integration_type.value
        self._factories[key] = factory
        logger.debug("adapter_registered", integration_type=key)

    def get(self, integration_type: str) -> AdapterFactory | None:
        """Look up a factory by type string. Returns None if unsupported."""
        return self._factories.get(integration_type)

    def create(self, integration: Integration) -> SourceAdapter | None:
        """Build an adapter for *integration*, or None if its type is unsupported."""
        factory = self.get(integration.type)
        if factory is None:
            return None
        return factory(integration)

    @property
    def supported_types(self) -> list[str]:
        """List of type strings that have registered factories."""
        return list(self._factories.keys())


def build_default_registry(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AdapterRegistry:
    """Registry with the chat and mail adapters wired to *settings*."""
    registry = AdapterRegistry()
    registry.register(
        IntegrationType.CHAT,
        lambda integration: ChatAdapter(
            integration,
            api=settings.chat,
            scan=settings.scan,
            retry=settings.retry,
            transport=transport,
        ),
    )
    registry.register(
        IntegrationType.MAIL,
        lambda integration: MailAdapter(
            integration,
            api=settings.mail,
            scan=settings.scan,
            retry=settings.retry,
            transport=transport,
        ),
    )
    return registry
