"""Integration-test fixtures.

The app runs against the in-memory ledger backend. Each test gets a fresh
store and session registry so live subscriptions never leak between tests.
"""

from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.tk_account.registry import close_registry
from src.tk_gateway.auth.jwt_handler import create_access_token
from src.tk_store.client import close_store, get_store


@pytest.fixture
async def ledger_store(orders_snapshot: dict):
    store = await get_store()
    await store.set("orders", orders_snapshot)
    await store.set("users/u1", {"firstName": "Giulia", "email": "giulia@example.com"})
    yield store
    await close_registry()
    await close_store()


@pytest.fixture
async def client(ledger_store) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    def _headers(user_id: str = "u1", email: str | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}

    return _headers
