"""Contracts for the services the pipeline reads from and hands results to.

The integration registry and the communication store live outside this
service.  The in-process implementations here back local runs and tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog
from pydantic import TypeAdapter

from rapport_schema import ClientSummary, Communication, Insight, Integration

logger = structlog.get_logger()


class IntegrationRegistry(Protocol):
    """Read-only view of the integrations configured per account."""

    async def active_integrations(self, account_id: str) -> list[Integration]: ...


class CommunicationStore(Protocol):
    """Durable storage for a run's communications and insights.

    ``save`` must be idempotent on ``Communication.external_id``: runs
    over overlapping windows hand over the same messages again.
    """

    async def save(
        self,
        account_id: str,
        communications: Sequence[Communication],
        insights: Sequence[Insight],
    ) -> None: ...

    async def known_external_ids(self, account_id: str, external_ids: Iterable[str]) -> set[str]: ...


@runtime_checkable
class InsightReader(Protocol):
    """Stores that can serve insights back to the account."""

    def list_insights(
        self,
        account_id: str,
        *,
        limit: int = 20,
        client: str | None = None,
        include_dismissed: bool = False,
    ) -> list[Insight]: ...


@runtime_checkable
class ClientReader(Protocol):
    """Stores that can list the clients their insights are attributed to."""

    def list_clients(self, account_id: str) -> list[ClientSummary]: ...


class InMemoryIntegrationRegistry:
    """Integration registry backed by a list."""

    def __init__(self, integrations: Iterable[Integration] = ()) -> None:
        self._integrations = list(integrations)

    def add(self, integration: Integration) -> None:
        self._integrations.append(integration)

    async def active_integrations(self, account_id: str) -> list[Integration]:
        return [
            i for i in self._integrations if i.account_id == account_id and i.is_active
        ]


class LoggingStore:
    """Store that only logs the hand-off; nothing is kept between runs."""

    async def save(
        self,
        account_id: str,
        communications: Sequence[Communication],
        insights: Sequence[Insight],
    ) -> None:
        logger.info(
            "scan_results_handed_off",
            account_id=account_id,
            communications=len(communications),
            insights=len(insights),
        )
        for insight in insights:
            logger.info(
                "insight_generated",
                account_id=account_id,
                type=insight.type.value,
                priority=insight.priority.value,
                title=insight.title,
            )

    async def known_external_ids(self, account_id: str, external_ids: Iterable[str]) -> set[str]:
        return set()


class InMemoryStore:
    """Process-local store, keyed by account then ``external_id``."""

    def __init__(self) -> None:
        self._communications: dict[str, dict[str, Communication]] = {}
        self._insights: dict[str, list[Insight]] = {}

    async def save(
        self,
        account_id: str,
        communications: Sequence[Communication],
        insights: Sequence[Insight],
    ) -> None:
        stored = self._communications.setdefault(account_id, {})
        for communication in communications:
            stored.setdefault(communication.external_id, communication)
        self._insights.setdefault(account_id, []).extend(insights)

    async def known_external_ids(self, account_id: str, external_ids: Iterable[str]) -> set[str]:
        stored = self._communications.get(account_id, {})
        return {eid for eid in external_ids if eid in stored}

    def communications(self, account_id: str) -> list[Communication]:
        return list(self._communications.get(account_id, {}).values())

    def list_insights(
        self,
        account_id: str,
        *,
        limit: int = 20,
        client: str | None = None,
        include_dismissed: bool = False,
    ) -> list[Insight]:
        """Newest first, optionally filtered to one client identity."""
        insights = [
            i
            for i in self._insights.get(account_id, [])
            if (include_dismissed or not i.is_dismissed)
            and (client is None or (i.client_ref is not None and i.client_ref.identity == client))
        ]
        insights.sort(key=lambda i: i.date, reverse=True)
        return insights[:limit]

    def list_clients(self, account_id: str) -> list[ClientSummary]:
        """Clients named by non-dismissed insights, most recently updated first."""
        clients: dict[str, ClientSummary] = {}
        for insight in self._insights.get(account_id, []):
            if insight.client_ref is None or insight.is_dismissed:
                continue
            identity = insight.client_ref.identity
            current = clients.get(identity)
            if current is None:
                clients[identity] = ClientSummary(identity=identity, insights_count=1, updated_at=insight.date)
                continue
            current.insights_count += 1
            current.updated_at = max(current.updated_at, insight.date)
        return sorted(clients.values(), key=lambda c: c.updated_at, reverse=True)


def load_integrations(path: str | Path) -> InMemoryIntegrationRegistry:
    """Build a registry from a JSON file holding a list of integration records."""
    raw = Path(path).read_bytes()
    integrations = TypeAdapter(list[Integration]).validate_json(raw)
    logger.info("integrations_loaded", path=str(path), count=len(integrations))
    return InMemoryIntegrationRegistry(integrations)
