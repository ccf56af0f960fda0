"""Tests for rapport_scan.collaborators."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from rapport_schema import AnalysisResult, InsightDraft
from rapport_scan.collaborators import (
    ClientReader,
    InMemoryIntegrationRegistry,
    InMemoryStore,
    InsightReader,
    LoggingStore,
    load_integrations,
)
from rapport_scan.mapper import map_insights
from tests.conftest import NOW, make_communication, make_integration


def _insights(*titles: str, client: str | None = None, run_at=NOW):
    drafts = [
        InsightDraft(
            type="risk",
            priority="high",
            title=title,
            description="d",
            confidence_score=0.6,
            client=client,
        )
        for title in titles
    ]
    return map_insights(AnalysisResult(sentiment_score=0.0, insights=drafts), "acct-1", run_at)


class TestInMemoryIntegrationRegistry:
    @pytest.mark.asyncio
    async def test_filters_by_account_and_active(self):
        registry = InMemoryIntegrationRegistry(
            [
                make_integration("chat", id="a", account_id="acct-1"),
                make_integration("mail", id="b", account_id="acct-1", is_active=False),
                make_integration("mail", id="c", account_id="acct-2"),
            ]
        )
        registry.add(make_integration("mail", id="d", account_id="acct-1"))

        active = await registry.active_integrations("acct-1")

        assert [i.id for i in active] == ["a", "d"]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "integrations.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "i1", "account_id": "acct-1", "type": "chat", "access_token": "xoxb"},
                    {"id": "i2", "account_id": "acct-1", "type": "mail", "access_token": "ya29", "is_active": False},
                ]
            )
        )

        registry = load_integrations(path)

        assert isinstance(registry, InMemoryIntegrationRegistry)
        assert registry._integrations[0].access_token.get_secret_value() == "xoxb"
        assert registry._integrations[1].is_active is False


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_save_is_idempotent_on_external_id(self):
        store = InMemoryStore()
        first = make_communication(external_id="x", content="original")
        await store.save("acct-1", [first], [])
        await store.save("acct-1", [make_communication(external_id="x", content="again")], [])

        stored = store.communications("acct-1")
        assert len(stored) == 1
        assert stored[0].content == "original"

    @pytest.mark.asyncio
    async def test_known_external_ids(self):
        store = InMemoryStore()
        await store.save("acct-1", [make_communication(external_id="x")], [])

        assert await store.known_external_ids("acct-1", ["x", "y"]) == {"x"}
        assert await store.known_external_ids("acct-2", ["x"]) == set()

    @pytest.mark.asyncio
    async def test_list_insights_newest_first_with_limit(self):
        store = InMemoryStore()
        await store.save("acct-1", [], _insights("old", run_at=NOW - timedelta(days=1)))
        await store.save("acct-1", [], _insights("new"))

        assert [i.title for i in store.list_insights("acct-1")] == ["new", "old"]
        assert [i.title for i in store.list_insights("acct-1", limit=1)] == ["new"]

    @pytest.mark.asyncio
    async def test_list_insights_client_filter(self):
        store = InMemoryStore()
        await store.save("acct-1", [], _insights("acme", client="Acme"))
        await store.save("acct-1", [], _insights("none"))

        assert [i.title for i in store.list_insights("acct-1", client="Acme")] == ["acme"]

    @pytest.mark.asyncio
    async def test_dismissed_hidden_by_default(self):
        store = InMemoryStore()
        keep, hide = _insights("keep", "hide")
        hide.is_dismissed = True
        await store.save("acct-1", [], [keep, hide])

        assert [i.title for i in store.list_insights("acct-1")] == ["keep"]
        assert len(store.list_insights("acct-1", include_dismissed=True)) == 2

    @pytest.mark.asyncio
    async def test_list_clients_newest_updated_first(self):
        store = InMemoryStore()
        await store.save("acct-1", [], _insights("a1", "a2", client="Acme", run_at=NOW - timedelta(days=2)))
        await store.save("acct-1", [], _insights("g1", client="Globex", run_at=NOW - timedelta(days=1)))
        await store.save("acct-1", [], _insights("a3", client="Acme"))
        await store.save("acct-1", [], _insights("unattributed"))
        await store.save("acct-2", [], _insights("other", client="Initech"))

        clients = store.list_clients("acct-1")

        assert [c.identity for c in clients] == ["Acme", "Globex"]
        assert clients[0].insights_count == 3
        assert clients[0].updated_at == NOW
        assert clients[1].insights_count == 1

    @pytest.mark.asyncio
    async def test_list_clients_ignores_dismissed(self):
        store = InMemoryStore()
        (hidden,) = _insights("hidden", client="Acme")
        hidden.is_dismissed = True
        await store.save("acct-1", [], [hidden])

        assert store.list_clients("acct-1") == []
        assert store.list_clients("acct-9") == []

    def test_serves_insights_and_clients(self):
        assert isinstance(InMemoryStore(), InsightReader)
        assert isinstance(InMemoryStore(), ClientReader)
        assert not isinstance(LoggingStore(), InsightReader)
        assert not isinstance(LoggingStore(), ClientReader)


class TestLoggingStore:
    @pytest.mark.asyncio
    async def test_save_and_known_ids(self):
        store = LoggingStore()
        await store.save("acct-1", [make_communication()], _insights("t"))
        assert await store.known_external_ids("acct-1", ["C1-1717239600.000100"]) == set()
