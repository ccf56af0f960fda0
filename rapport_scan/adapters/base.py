"""SourceAdapter — the ABC every provider adapter implements."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType
from typing import Any, ClassVar

import httpx
import structlog

from rapport_schema import Integration, IntegrationType

from ..config import RetryConfig
from ..errors import SourceError
from ..models import RawRecord
from ..retry import with_retry

logger = structlog.get_logger()


class SourceAdapter(abc.ABC):
    """Talks to one external communication provider on behalf of one integration.

    Concrete adapters implement :meth:`fetch_recent`, which returns the
    provider-native records sent at or after *since*, in the order the
    provider delivered them.  A failure to read the primary listing is
    raised as :class:`SourceError`; failures enriching individual items
    are logged and the item is skipped.

    Adapters own an ``httpx.AsyncClient`` between :meth:`start` and
    :meth:`stop`; ``async with adapter:`` does both.
    """

    integration_type: ClassVar[IntegrationType]

    def __init__(
        self,
        integration: Integration,
        *,
        base_url: str,
        timeout_seconds: float,
        retry: RetryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._integration = integration
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._retry = retry
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def provider(self) -> str:
        return self.integration_type.value

    @property
    def integration_id(self) -> str:
        return self._integration.id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        token = self._integration.access_token.get_secret_value()
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_seconds),
            headers={"Authorization": f"Bearer {token}"},
            transport=self._transport,
        )
        logger.debug(
            "source_adapter_started",
            provider=self.provider,
            integration_id=self.integration_id,
        )

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SourceAdapter:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def fetch_recent(self, since: datetime) -> Sequence[RawRecord]:
        """Return provider records sent at or after *since*, in provider order."""

    # ------------------------------------------------------------------
    # HTTP helper
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET *path* and return the decoded JSON object.

        Transport errors are retried per :class:`RetryConfig`.  Anything
        that still fails is raised as :class:`SourceError`.
        """
        if self._client is None:
            raise AssertionError("Adapter not started")
        client = self._client

        @with_retry(self._retry)
        async def _send() -> httpx.Response:
            return await client.get(path, params=params)

        try:
            response = await _send()
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SourceError(
                self.provider,
                f"HTTP {exc.response.status_code} from {path}",
            ) from exc
        except httpx.TransportError as exc:
            raise SourceError(self.provider, f"request to {path} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise SourceError(self.provider, f"invalid JSON from {path}") from exc
        if not isinstance(data, dict):
            raise SourceError(self.provider, f"unexpected response shape from {path}")
        return data
