"""Tests for AccountSession — identity lifecycle, notices and profile flow."""

from unittest.mock import AsyncMock

import pytest

from src.tk_account.session import (
    DELETE_FAILED_NOTICE,
    SYNC_LOST_NOTICE,
    AccountSession,
    Identity,
)
from src.tk_common.errors import NotSignedInError, OrderNotFoundError, StoreUnavailableError
from src.tk_store.infrastructure.memory_store import InMemoryLedgerStore


@pytest.fixture
async def session(store: InMemoryLedgerStore) -> AccountSession:
    s = AccountSession(store)
    await s.on_auth_state_changed(Identity("u1", "giulia@example.com"))
    return s


class TestIdentityLifecycle:
    async def test_sign_in_loads_profile_and_orders(self, session: AccountSession) -> None:
        assert session.profile.display_name == "Giulia"
        assert [o.id for o in session.orders] == ["o2", "o1"]
        assert session.summary().grand_total == 47.50

    async def test_sign_out_tears_down(
        self, session: AccountSession, store: InMemoryLedgerStore
    ) -> None:
        await session.on_auth_state_changed(None)

        assert session.identity is None
        assert session.orders == []
        with pytest.raises(NotSignedInError):
            session.summary()
        await store.remove("orders/o1")  # no listener left to notify

    async def test_switching_user_never_mixes_orders(self, session: AccountSession) -> None:
        await session.on_auth_state_changed(Identity("u2"))
        assert [o.id for o in session.orders] == ["o3"]
        assert session.profile.first_name == ""

    async def test_email_falls_back_to_identity(self, store: InMemoryLedgerStore) -> None:
        s = AccountSession(store)
        await s.sign_in(Identity("u7", "new@example.com"))
        assert s.profile.email == "new@example.com"
        assert s.profile.display_name == "Utente"

    async def test_failed_sign_in_leaves_signed_out(self, store: InMemoryLedgerStore) -> None:
        store.subscribe = AsyncMock(side_effect=StoreUnavailableError())
        s = AccountSession(store)
        with pytest.raises(StoreUnavailableError):
            await s.sign_in(Identity("u1"))
        assert s.identity is None

    async def test_sign_out_discards_edits(self, session: AccountSession) -> None:
        session.begin_edit("o1")
        session.set_quantity("o1", "t1", 8)
        await session.sign_out()
        await session.sign_in(Identity("u1"))
        assert session.summary().grand_total == 47.50


class TestNotices:
    async def test_failed_delete_sets_dismissible_notice(
        self, session: AccountSession, store: InMemoryLedgerStore
    ) -> None:
        store.remove = AsyncMock(side_effect=StoreUnavailableError())

        with pytest.raises(StoreUnavailableError):
            await session.delete_order("o1")

        summary = session.summary()
        assert summary.notice == DELETE_FAILED_NOTICE
        assert {o.id for o in summary.orders} == {"o1", "o2"}

        session.dismiss_notice()
        assert session.summary().notice is None

    async def test_not_found_is_not_a_notice(self, session: AccountSession) -> None:
        with pytest.raises(OrderNotFoundError):
            await session.delete_order("o3")
        assert session.notice is None


class TestProfileFlow:
    async def test_edit_commit(
        self, session: AccountSession, store: InMemoryLedgerStore
    ) -> None:
        session.begin_profile_edit()
        session.update_profile_form({"first_name": "Anna", "payment_method": "paypal"})
        assert session.profile.first_name == "Giulia"

        await session.commit_profile_edit()

        assert session.profile.first_name == "Anna"
        assert not session.profile_editor.editing
        stored = await store.get("users/u1")
        assert stored["firstName"] == "Anna"
        assert stored["paymentInfo"]["paymentMethod"] == "paypal"

    async def test_discard(self, session: AccountSession) -> None:
        session.begin_profile_edit()
        session.update_profile_form({"first_name": "Anna"})
        session.discard_profile_edit()
        assert session.profile.first_name == "Giulia"
        assert not session.profile_editor.editing


class TestLostOrderStream:
    @pytest.fixture
    def error_handlers(self, store: InMemoryLedgerStore) -> list:
        handlers: list = []
        subscribe = store.subscribe

        async def capturing(path, handler, on_error=None):
            handlers.append(on_error)
            return await subscribe(path, handler, on_error)

        store.subscribe = capturing
        return handlers

    async def test_loss_sets_notice_and_keeps_orders(
        self, store: InMemoryLedgerStore, error_handlers: list
    ) -> None:
        session = AccountSession(store)
        await session.sign_in(Identity("u1"))

        error_handlers[-1](StoreUnavailableError())

        assert session.sync_lost
        summary = session.summary()
        assert summary.notice == SYNC_LOST_NOTICE
        assert summary.grand_total == 47.50

    async def test_resync_resumes_and_keeps_edits(
        self, store: InMemoryLedgerStore, error_handlers: list
    ) -> None:
        session = AccountSession(store)
        await session.sign_in(Identity("u1"))
        session.begin_edit("o1")
        session.set_quantity("o1", "t1", 3)
        error_handlers[-1](StoreUnavailableError())

        await session.resync()

        assert not session.sync_lost
        assert session.summary().grand_total == 57.50
        await store.remove("orders/o2")
        assert [o.id for o in session.orders] == ["o1"]

    async def test_resync_is_noop_while_live(
        self, store: InMemoryLedgerStore, error_handlers: list
    ) -> None:
        session = AccountSession(store)
        await session.sign_in(Identity("u1"))
        await session.resync()
        assert len(error_handlers) == 1
