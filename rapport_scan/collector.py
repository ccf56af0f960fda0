"""Fan-out collector — fetch every active integration concurrently and merge one batch."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import structlog

from rapport_schema import Communication, Integration

from .adapters.base import SourceAdapter
from .adapters.registry import AdapterRegistry
from .config import ScanConfig
from .errors import NormalizationError
from .normalizers import normalize

logger = structlog.get_logger()


@dataclass(frozen=True)
class LookbackWindow:
    """The ``[start, end]`` range of send times eligible for one run."""

    start: datetime
    end: datetime

    @classmethod
    def ending_at(cls, end: datetime, hours: float) -> LookbackWindow:
        return cls(start=end - timedelta(hours=hours), end=end)


@dataclass
class CollectionResult:
    """One run's merged batch plus bookkeeping for logs and tests."""

    communications: list[Communication]
    window: LookbackWindow
    failed_integrations: list[str] = field(default_factory=list)
    skipped_integrations: list[str] = field(default_factory=list)
    records_fetched: int = 0


@dataclass
class _SourceBatch:
    communications: list[Communication]
    records_fetched: int


class FanOutCollector:
    """Fans out over integrations and merges their normalized communications.

    Integrations are fetched concurrently; one integration raising (or
    exceeding ``source_timeout_seconds``) is logged and contributes
    nothing.  The merged batch keeps integration order and each source's
    own order, drops records outside the window, and keeps the first
    occurrence of each ``external_id``.
    """

    def __init__(self, registry: AdapterRegistry, config: ScanConfig) -> None:
        self._registry = registry
        self._config = config

    async def collect(
        self,
        integrations: Sequence[Integration],
        *,
        now: datetime | None = None,
    ) -> CollectionResult:
        end = now or datetime.now(timezone.utc)
        window = LookbackWindow.ending_at(end, self._config.lookback_hours)
        result = CollectionResult(communications=[], window=window)

        branches: list[tuple[Integration, SourceAdapter]] = []
        for integration in integrations:
            if not integration.is_active:
                continue
            adapter = self._registry.create(integration)
            if adapter is None:
                logger.debug(
                    "integration_type_unsupported",
                    integration_id=integration.id,
                    integration_type=integration.type,
                )
                result.skipped_integrations.append(integration.id)
                continue
            branches.append((integration, adapter))

        outcomes = await asyncio.gather(
            *(self._collect_one(adapter, window) for _, adapter in branches),
            return_exceptions=True,
        )

        seen: set[str] = set()
        for (integration, _), outcome in zip(branches, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    "source_fetch_failed",
                    integration_id=integration.id,
                    integration_type=integration.type,
                    error=str(outcome) or type(outcome).__name__,
                )
                result.failed_integrations.append(integration.id)
                continue

            result.records_fetched += outcome.records_fetched
            for communication in outcome.communications:
                if communication.external_id in seen:
                    continue
                seen.add(communication.external_id)
                result.communications.append(communication)

        logger.info(
            "collection_complete",
            integrations=len(branches),
            failed=len(result.failed_integrations),
            records_fetched=result.records_fetched,
            communications=len(result.communications),
            window_start=window.start.isoformat(),
        )
        return result

    async def _collect_one(self, adapter: SourceAdapter, window: LookbackWindow) -> _SourceBatch:
        async with asyncio.timeout(self._config.source_timeout_seconds):
            async with adapter:
                records = await adapter.fetch_recent(window.start)

        communications: list[Communication] = []
        for record in records:
            try:
                communication = normalize(record, adapter.integration_type)
            except NormalizationError as exc:
                logger.warning(
                    "record_normalization_failed",
                    integration_id=adapter.integration_id,
                    error=str(exc),
                )
                continue
            if communication is None:
                continue
            if communication.timestamp < window.start:
                continue
            communications.append(communication)

        logger.debug(
            "source_collected",
            integration_id=adapter.integration_id,
            records=len(records),
            communications=len(communications),
        )
        return _SourceBatch(communications=communications, records_fetched=len(records))
