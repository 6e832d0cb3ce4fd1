"""Edit session — local overlay of pending ticket quantities.

Per order: VIEWING -> EDITING -> VIEWING (commit or discard).

begin_edit snapshots the stored quantities twice: once as the base and
once as the editable pending map. A ledger refresh never replaces the
pending map of an order being edited; only commit/discard/clear end the
overlay. changed_quantities() is what a commit writes, so tickets the
user never touched keep whatever the store holds.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType

from src.tk_common.errors import OrderNotEditingError, TicketNotFoundError
from src.tk_order.domain.models import Order


class EditState(str, Enum):
    VIEWING = "VIEWING"
    EDITING = "EDITING"


class EditSession:
    def __init__(self) -> None:
        self._base: dict[str, dict[str, int]] = {}
        self._pending: dict[str, dict[str, int]] = {}

    def state(self, order_id: str) -> EditState:
        return EditState.EDITING if order_id in self._pending else EditState.VIEWING

    def is_editing(self, order_id: str) -> bool:
        return order_id in self._pending

    @property
    def pending(self) -> Mapping[str, Mapping[str, int]]:
        """Read-only view for the totals calculator."""
        return MappingProxyType(
            {oid: MappingProxyType(q) for oid, q in self._pending.items()}
        )

    def begin_edit(self, order: Order) -> None:
        if order.id in self._pending:
            return
        self._base[order.id] = order.stored_quantities
        self._pending[order.id] = order.stored_quantities

    def set_pending_quantity(self, order_id: str, ticket_id: str, quantity: int) -> int:
        """Record a pending quantity; negatives are clamped to 0."""
        pending = self._pending.get(order_id)
        if pending is None:
            raise OrderNotEditingError(order_id)
        if ticket_id not in pending:
            raise TicketNotFoundError(order_id, ticket_id)
        clamped = max(int(quantity), 0)
        pending[ticket_id] = clamped
        return clamped

    def pending_for(self, order_id: str) -> dict[str, int]:
        pending = self._pending.get(order_id)
        if pending is None:
            raise OrderNotEditingError(order_id)
        return dict(pending)

    def changed_quantities(self, order_id: str) -> dict[str, int]:
        pending = self.pending_for(order_id)
        base = self._base.get(order_id, {})
        return {tid: qty for tid, qty in pending.items() if base.get(tid) != qty}

    def discard(self, order_id: str) -> None:
        self._base.pop(order_id, None)
        self._pending.pop(order_id, None)

    # Same transition, reached through a successful commit.
    clear = discard

    def discard_all(self) -> None:
        self._base.clear()
        self._pending.clear()

    def reconcile(self, orders: Iterable[Order]) -> list[str]:
        """Drop edits for orders no longer in the ledger; returns their ids."""
        present = {o.id for o in orders}
        gone = [oid for oid in self._pending if oid not in present]
        for oid in gone:
            self.discard(oid)
        return gone
