"""Order ledger Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the store-backed implementation.
"""

from collections.abc import Callable
from typing import Protocol

from src.tk_order.domain.models import Order
from src.tk_store.domain.store import ErrorHandler

OrdersHandler = Callable[[list[Order]], None]


class LedgerSubscriptionProtocol(Protocol):
    @property
    def user_id(self) -> str: ...

    @property
    def active(self) -> bool: ...

    async def cancel(self) -> None: ...


class OrderLedgerProtocol(Protocol):
    @property
    def user_id(self) -> str | None: ...

    @property
    def orders(self) -> list[Order]: ...

    @property
    def live(self) -> bool: ...

    def get(self, order_id: str) -> Order | None: ...

    def require(self, order_id: str) -> Order: ...

    async def subscribe(
        self,
        user_id: str,
        on_change: OrdersHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> LedgerSubscriptionProtocol: ...

    async def unsubscribe(self) -> None: ...

    async def delete(self, order_id: str) -> None: ...

    async def update_quantities(self, order_id: str, quantities: dict[str, int]) -> None: ...
