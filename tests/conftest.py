"""Shared test fixtures.

Settings are read at import time, so the environment is prepared before
anything under src/ or config/ is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ["LEDGER_BACKEND"] = "memory"

import pytest  # noqa: E402

from src.tk_store.infrastructure.memory_store import InMemoryLedgerStore  # noqa: E402


def make_orders_snapshot() -> dict:
    """Raw orders collection: two orders for u1 (35.00 and 12.50), one for u2."""
    return {
        "o1": {
            "userId": "u1",
            "date": "2024-05-01",
            "timestamp": "1714550400000",
            "total": 35,
            "tickets": {
                "t1": {"type": "Adult", "price": 10, "quantity": 2},
                "t2": {"type": "Child", "price": 5, "quantity": 3},
            },
        },
        "o2": {
            "userId": "u1",
            "date": "2024-05-02",
            "timestamp": "1714636800000",
            "paymentInfo": {"paymentMethod": "card"},
            "tickets": {
                "t1": {"type": "Adult", "price": "12.50", "quantity": 1},
            },
        },
        "o3": {
            "userId": "u2",
            "date": "2024-05-03",
            "timestamp": "1714723200000",
            "tickets": {
                "t1": {"type": "Adult", "price": 100, "quantity": 1},
            },
        },
    }


@pytest.fixture
def orders_snapshot() -> dict:
    return make_orders_snapshot()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore(
        {
            "orders": make_orders_snapshot(),
            "users": {
                "u1": {
                    "firstName": "Giulia",
                    "lastName": "Rossi",
                    "email": "giulia@example.com",
                    "paymentInfo": {"paymentMethod": "card", "cardName": "Giulia Rossi"},
                },
            },
        }
    )
