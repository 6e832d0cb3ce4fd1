"""Ledger store Protocol — the remote real-time document store contract.

The store is schemaless and path-addressed ("users/u1", "orders",
"orders/o1"). Values are JSON-like: dicts, lists, str, int, float, bool.
Absent nodes read as None.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the in-memory and Redis implementations.
"""

from collections.abc import Callable
from typing import Any, Protocol

# Receives the full subtree under the subscribed path (None when empty).
SnapshotHandler = Callable[[Any], None]

# Called once when a live subscription is lost; no snapshots follow.
ErrorHandler = Callable[[Exception], None]


class Subscription(Protocol):
    """Cancellation handle returned by ``subscribe``."""

    @property
    def path(self) -> str: ...

    @property
    def active(self) -> bool: ...

    async def cancel(self) -> None: ...


class LedgerStoreProtocol(Protocol):
    async def get(self, path: str) -> Any | None: ...

    async def set(self, path: str, value: Any) -> None: ...

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        """Partial update. Keys are paths relative to ``path``; siblings are untouched."""
        ...

    async def remove(self, path: str) -> None: ...

    async def subscribe(
        self, path: str, handler: SnapshotHandler, on_error: ErrorHandler | None = None
    ) -> Subscription:
        """Deliver the current snapshot now and again after every change.

        If the subscription is lost later (connection dropped, re-read
        failed), on_error receives a StoreUnavailableError and the handle
        becomes inactive.
        """
        ...

    async def close(self) -> None: ...


def split_path(path: str) -> list[str]:
    """'orders/o1/tickets' -> ['orders', 'o1', 'tickets'].

    Raises ValueError on empty paths or empty segments.
    """
    parts = path.strip("/").split("/")
    if not parts or any(p == "" for p in parts):
        raise ValueError(f"Invalid store path: {path!r}")
    return parts


def join_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p)


def is_related(a: str, b: str) -> bool:
    """True when one path is an ancestor of (or equal to) the other."""
    pa, pb = split_path(a), split_path(b)
    n = min(len(pa), len(pb))
    return pa[:n] == pb[:n]


def user_path(user_id: str) -> str:
    return join_path("users", user_id)


ORDERS_PATH = "orders"


def order_path(order_id: str) -> str:
    return join_path(ORDERS_PATH, order_id)
