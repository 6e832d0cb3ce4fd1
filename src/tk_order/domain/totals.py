"""Totals — pure functions of (orders, pending quantities).

pending maps order_id -> {ticket_id: quantity}. A pending entry wins over
the stored quantity, including a pending 0.

Within an order, ticket amounts are summed exactly (math.fsum) and
rounded to cents once. The grand total is the sum of those rounded order
totals, so it always reconciles with the order totals shown next to it.
"""

from collections.abc import Iterable, Mapping

from src.tk_common.money import exact_sum, round_amount
from src.tk_order.domain.models import Order, Ticket

PendingQuantities = Mapping[str, Mapping[str, int]]


def ticket_total(ticket: Ticket, quantity: int) -> float:
    """Unit price times quantity, unrounded; an unparseable price counts as 0.

    Kept at full precision so order_total rounds once. The displayed line
    total is round_amount(ticket_total(...)).
    """
    return ticket.unit_price * quantity


def effective_quantity(order: Order, ticket: Ticket, pending: PendingQuantities) -> int:
    order_pending = pending.get(order.id)
    if order_pending is not None and ticket.id in order_pending:
        return order_pending[ticket.id]
    return ticket.quantity


def order_total(order: Order, pending: PendingQuantities | None = None) -> float:
    pending = pending or {}
    return round_amount(
        exact_sum(ticket_total(t, effective_quantity(order, t, pending)) for t in order.tickets)
    )


def grand_total(orders: Iterable[Order], pending: PendingQuantities | None = None) -> float:
    pending = pending or {}
    return round_amount(exact_sum(order_total(o, pending) for o in orders))
