"""OrderApplicationService — edit/commit/delete flows over one user's ledger.

Holds no state of its own: the ledger mirrors the store, the edit session
holds the pending overlay. Failed writes leave both untouched and the
error propagates to the caller.
"""

import logging

from src.tk_order.application.schemas import LedgerSummaryResponse
from src.tk_order.domain.edit_session import EditSession
from src.tk_order.domain.models import Order
from src.tk_order.domain.repository import OrderLedgerProtocol

logger = logging.getLogger(__name__)


class OrderApplicationService:
    def __init__(self, ledger: OrderLedgerProtocol, edits: EditSession | None = None) -> None:
        self._ledger = ledger
        self._edits = edits or EditSession()

    @property
    def edits(self) -> EditSession:
        return self._edits

    def on_ledger_change(self, orders: list[Order]) -> None:
        """Subscription callback: forget edits of orders that disappeared."""
        gone = self._edits.reconcile(orders)
        if gone:
            logger.info("dropped edits for removed orders: %s", gone)

    def begin_edit(self, order_id: str) -> Order:
        order = self._ledger.require(order_id)
        self._edits.begin_edit(order)
        return order

    def set_quantity(self, order_id: str, ticket_id: str, quantity: int) -> int:
        self._ledger.require(order_id)
        return self._edits.set_pending_quantity(order_id, ticket_id, quantity)

    async def commit(self, order_id: str) -> dict[str, int]:
        """Write changed quantities; returns what was written.

        The pending map survives a failed write.
        """
        changed = self._edits.changed_quantities(order_id)
        self._ledger.require(order_id)
        if changed:
            await self._ledger.update_quantities(order_id, changed)
        self._edits.clear(order_id)
        return changed

    def discard(self, order_id: str) -> None:
        self._edits.discard(order_id)

    async def delete(self, order_id: str) -> None:
        await self._ledger.delete(order_id)
        self._edits.discard(order_id)

    def summary(self, notice: str | None = None) -> LedgerSummaryResponse:
        return LedgerSummaryResponse.build(self._ledger.orders, self._edits.pending, notice)
