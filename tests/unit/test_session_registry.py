"""Tests for SessionRegistry — session reuse, idle eviction and resync."""

from unittest.mock import AsyncMock, patch

import pytest

from src.tk_account.registry import SessionRegistry
from src.tk_account.session import Identity
from src.tk_common.errors import StoreUnavailableError
from src.tk_store.infrastructure.memory_store import InMemoryLedgerStore


@pytest.fixture
def use_store(store: InMemoryLedgerStore):
    with patch("src.tk_account.registry.get_store", AsyncMock(return_value=store)):
        yield store


class TestSessionRegistry:
    async def test_same_user_same_session(self, use_store: InMemoryLedgerStore) -> None:
        registry = SessionRegistry(idle_seconds=60)
        first = await registry.session_for(Identity("u1"))
        second = await registry.session_for(Identity("u1"))
        assert first is second
        assert len(registry) == 1

    async def test_idle_sessions_evicted_and_unsubscribed(
        self, use_store: InMemoryLedgerStore
    ) -> None:
        registry = SessionRegistry(idle_seconds=60)
        with patch("src.tk_account.registry.monotonic", return_value=1000.0):
            idle = await registry.session_for(Identity("u1"))
        with patch("src.tk_account.registry.monotonic", return_value=1030.0):
            await registry.session_for(Identity("u2"))
        with patch("src.tk_account.registry.monotonic", return_value=1070.0):
            evicted = await registry.evict_idle()

        assert evicted == 1
        assert len(registry) == 1
        assert idle.identity is None
        assert [s.path for s in use_store._subscriptions] == ["orders"]

    async def test_evicted_user_gets_fresh_session(self, use_store: InMemoryLedgerStore) -> None:
        registry = SessionRegistry(idle_seconds=60)
        with patch("src.tk_account.registry.monotonic", return_value=0.0):
            old = await registry.session_for(Identity("u1"))
        with patch("src.tk_account.registry.monotonic", return_value=500.0):
            new = await registry.session_for(Identity("u1"))
        assert new is not old
        assert new.summary().grand_total == 47.50

    async def test_zero_disables_eviction(self, use_store: InMemoryLedgerStore) -> None:
        registry = SessionRegistry(idle_seconds=0)
        with patch("src.tk_account.registry.monotonic", return_value=0.0):
            await registry.session_for(Identity("u1"))
        with patch("src.tk_account.registry.monotonic", return_value=10**9):
            assert await registry.evict_idle() == 0
        assert len(registry) == 1

    async def test_lost_stream_resynced_on_lookup(self, use_store: InMemoryLedgerStore) -> None:
        handlers: list = []
        subscribe = use_store.subscribe

        async def capturing(path, handler, on_error=None):
            handlers.append(on_error)
            return await subscribe(path, handler, on_error)

        use_store.subscribe = capturing
        registry = SessionRegistry(idle_seconds=60)
        session = await registry.session_for(Identity("u1"))
        handlers[-1](StoreUnavailableError())
        assert session.sync_lost

        again = await registry.session_for(Identity("u1"))

        assert again is session
        assert not session.sync_lost
        assert len(handlers) == 2
