"""OrderLedger — live, user-filtered mirror of the orders collection.

One subscription at a time. Each subscribe() binds a fresh token to the
user id; a delivery carrying an old token (previous user, or a listener
that was already torn down) is dropped, so filtering is tied to the
identity switch instead of happening after the fact.

A lost store subscription marks the ledger as not live: the last orders
stay readable, on_error is told once, and subscribe() again resumes.

Mutations are store-confirmed: delete() and update_quantities() never
touch the local list. The next snapshot delivery reflects them.
"""

import logging
from typing import Any

from src.tk_common.errors import OrderNotFoundError
from src.tk_order.domain.models import Order
from src.tk_order.domain.normalize import normalize_orders
from src.tk_order.domain.repository import OrdersHandler
from src.tk_store.domain.store import (
    ORDERS_PATH,
    ErrorHandler,
    LedgerStoreProtocol,
    Subscription,
    order_path,
)

logger = logging.getLogger(__name__)


class LedgerSubscription:
    """Cancellation handle for one user's order stream."""

    def __init__(self, ledger: "OrderLedger", user_id: str, token: object) -> None:
        self._ledger = ledger
        self._user_id = user_id
        self._token = token
        self._handle: Subscription | None = None

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def active(self) -> bool:
        return self._ledger._token is self._token and not self._ledger._lost

    async def cancel(self) -> None:
        if self._ledger._token is self._token:
            await self._ledger.unsubscribe()


class OrderLedger:
    def __init__(self, store: LedgerStoreProtocol) -> None:
        self._store = store
        self._token: object | None = None
        self._user_id: str | None = None
        self._orders: list[Order] = []
        self._subscription: LedgerSubscription | None = None
        self._lost = False

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def orders(self) -> list[Order]:
        return list(self._orders)

    @property
    def live(self) -> bool:
        """Subscribed and still receiving changes."""
        return self._token is not None and not self._lost

    def get(self, order_id: str) -> Order | None:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def require(self, order_id: str) -> Order:
        """Orders of other users are indistinguishable from missing ones."""
        order = self.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        user_id: str,
        on_change: OrdersHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> LedgerSubscription:
        await self.unsubscribe()
        token = object()
        self._token = token
        self._user_id = user_id
        subscription = LedgerSubscription(self, user_id, token)
        self._subscription = subscription

        def handle(snapshot: Any) -> None:
            if self._token is not token:
                logger.debug("dropping stale order snapshot for user %s", user_id)
                return
            self._orders = normalize_orders(snapshot, user_id)
            if on_change is not None:
                on_change(list(self._orders))

        def fail(exc: Exception) -> None:
            if self._token is not token:
                return
            self._lost = True
            logger.warning("order ledger for user %s stopped receiving changes", user_id)
            if on_error is not None:
                on_error(exc)

        try:
            subscription._handle = await self._store.subscribe(ORDERS_PATH, handle, fail)
        except Exception:
            self._reset()
            raise
        logger.info("order ledger subscribed for user %s (%d orders)", user_id, len(self._orders))
        return subscription

    async def unsubscribe(self) -> None:
        subscription = self._subscription
        self._reset()
        if subscription is not None and subscription._handle is not None:
            await subscription._handle.cancel()
            logger.info("order ledger unsubscribed for user %s", subscription.user_id)

    def _reset(self) -> None:
        self._token = None
        self._user_id = None
        self._orders = []
        self._subscription = None
        self._lost = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def delete(self, order_id: str) -> None:
        self.require(order_id)
        try:
            await self._store.remove(order_path(order_id))
        except Exception:
            logger.warning("delete of order %s failed; ledger unchanged", order_id)
            raise
        logger.info("order %s deleted", order_id)

    async def update_quantities(self, order_id: str, quantities: dict[str, int]) -> None:
        """Partial update of tickets/{ticketId}/quantity leaves only."""
        order = self.require(order_id)
        fields: dict[str, int] = {}
        for ticket_id, quantity in quantities.items():
            if order.ticket(ticket_id) is None:
                logger.warning(
                    "ticket %s no longer in order %s; quantity not written", ticket_id, order_id
                )
                continue
            fields[f"tickets/{ticket_id}/quantity"] = max(int(quantity), 0)
        if not fields:
            return
        try:
            await self._store.update(order_path(order_id), fields)
        except Exception:
            logger.warning("quantity update of order %s failed", order_id)
            raise
        logger.info("order %s quantities updated: %s", order_id, fields)
